"""Typed errors surfaced by the query engine.

Every store, planner and API failure is raised as one of these. Callers (an
HTTP layer, the CLI) map ``status_code`` onto their own transport.
"""

from typing import Any, Dict


class CertLedgerError(Exception):
    """Base class for all engine errors."""

    status_code = 500
    kind = "Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status_code,
            "error": self.kind,
            "message": self.message,
        }


class NotFoundError(CertLedgerError):
    """No row exists for the requested natural key at the resolved head."""

    status_code = 404
    kind = "NotFound"


class BadRequestError(CertLedgerError):
    """Malformed parameters or filter combination."""

    status_code = 400
    kind = "BadRequest"


class UnauthorizedError(CertLedgerError):
    """Caller identity was rejected upstream (auth is delegated)."""

    status_code = 401
    kind = "Unauthorized"

    def __init__(self, message: str = "Caller is not authorized"):
        super().__init__(message)


class InternalError(CertLedgerError):
    """Database failure or broken data invariant."""

    status_code = 500
    kind = "InternalError"

    @classmethod
    def from_exception(cls, exc: BaseException) -> "InternalError":
        """
        Wrap a storage exception without leaking query text.

        SQLAlchemy's DBAPIError renders the failing statement and its
        parameters in ``str()``; only the driver-level message is kept.
        """
        orig = getattr(exc, "orig", None)
        if orig is not None:
            return cls(str(orig))
        return cls(f"{exc.__class__.__name__}: {exc}")


class DataIntegrityError(InternalError):
    """Versioned rows violate non-overlap or referential completeness."""


class ServiceUnavailableError(CertLedgerError):
    """No pooled connection could be checked out in time."""

    status_code = 503
    kind = "ServiceUnavailable"
