"""Temporal joins: one primary entity plus its dependents at a single head.

Dependent collections are fetched with one ``IN (...)`` query per
collection type for a whole page of primary rows, then fanned back out
through maps keyed by the owning natural key. Every query is filtered to
the same head, because a dependent's current version can have a different
validity window than the row that references it.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from ..database.versioned_store import VersionedEntityStore, entity_spec
from ..errors import DataIntegrityError
from ..utils.logging import get_logger
from .predicates import In, Predicate

logger = get_logger(__name__)


@dataclass
class CertificateDetail:
    """A certificate with its required references resolved at the head."""
    certificate: Any
    factory: Any
    standard: Any
    certifying_body: Any
    assertion_id: Optional[str] = None


@dataclass
class OrganizationDependents:
    """Batched dependents for a page of organizations, keyed by organization_id."""
    addresses: Dict[str, Any] = field(default_factory=dict)
    contacts: Dict[str, List[Any]] = field(default_factory=dict)
    authorizations: Dict[str, List[Any]] = field(default_factory=dict)
    assertion_ids: Dict[str, str] = field(default_factory=dict)


class TemporalJoinPlanner:
    """Assembles denormalized views, all read at one fixed head."""

    def __init__(self, store: VersionedEntityStore, head: int):
        self.store = store
        self.head = head

    def page(
        self,
        entity_type: str,
        predicate: Optional[Predicate],
        limit: int,
        offset: int,
    ) -> Tuple[List[Any], int]:
        """
        Count then slice the primary rows, both with the same predicate.

        Returns:
            (rows of the page ordered by natural key, total matching rows)
        """
        total = self.store.count_rows(entity_type, self.head, predicate)
        rows = self.store.list_rows(
            entity_type, self.head, predicate, limit=limit, offset=offset
        )
        return rows, total

    def fetch(self, entity_type: str, natural_key: str) -> Optional[Any]:
        return self.store.get_row(entity_type, self.head, natural_key)

    def collections(self, entity_type: str, owner_keys: Iterable[str]) -> Dict[str, List[Any]]:
        """Multi-map owner key -> dependent rows, from a single batched query."""
        owner_keys = set(owner_keys)
        if not owner_keys:
            return {}
        owner_field = entity_spec(entity_type).owner_field
        rows = self.store.list_rows(
            entity_type, self.head, In(owner_field, owner_keys), order_field=owner_field
        )
        grouped: Dict[str, List[Any]] = defaultdict(list)
        for row in rows:
            grouped[getattr(row, owner_field)].append(row)
        logger.debug(
            "Fetched %d %s rows for %d owners at head %s",
            len(rows), entity_type, len(owner_keys), self.head,
        )
        return dict(grouped)

    def singles(self, entity_type: str, owner_keys: Iterable[str]) -> Dict[str, Any]:
        """
        Map owner key -> its one optional dependent.

        Raises:
            DataIntegrityError: If an owner has more than one such row at the head
        """
        result: Dict[str, Any] = {}
        for owner, rows in self.collections(entity_type, owner_keys).items():
            if len(rows) > 1:
                raise DataIntegrityError(
                    f"{len(rows)} {entity_type} rows are valid for {owner} "
                    f"at block {self.head}, expected at most one"
                )
            result[owner] = rows[0]
        return result

    def assertion_ids(self, object_ids: Iterable[str]) -> Dict[str, str]:
        """Linked assertion per object; the lowest assertion_id when several exist."""
        return {
            object_id: min(row.assertion_id for row in rows)
            for object_id, rows in self.collections("assertions", object_ids).items()
        }

    def required(self, entity_type: str, keys: Iterable[str]) -> Dict[str, Any]:
        """
        Map natural key -> row for references that must exist at the head.

        Raises:
            DataIntegrityError: If any key has no row, or more than one
        """
        keys = set(keys)
        if not keys:
            return {}
        spec = entity_spec(entity_type)
        by_key: Dict[str, Any] = {}
        for row in self.store.list_rows(entity_type, self.head, In(spec.key_field, keys)):
            key = getattr(row, spec.key_field)
            if key in by_key:
                raise DataIntegrityError(
                    f"More than one {entity_type} row for {spec.key_field}={key} "
                    f"is valid at block {self.head}"
                )
            by_key[key] = row
        missing: Set[str] = keys - set(by_key)
        if missing:
            logger.warning(
                "Missing required %s at head %s: %s", entity_type, self.head, sorted(missing)
            )
            raise DataIntegrityError(
                f"No {entity_type} row exists for {spec.key_field} "
                f"{', '.join(sorted(missing))} as of block {self.head}, but one must exist"
            )
        return by_key

    def organization_dependents(
        self,
        organization_ids: Iterable[str],
        address_owner_ids: Optional[Iterable[str]] = None,
    ) -> OrganizationDependents:
        """
        Contacts, authorizations, linked assertion and address per organization.

        Addresses are only read for ``address_owner_ids`` (all organizations
        when None), since only factories expose one.
        """
        organization_ids = set(organization_ids)
        if address_owner_ids is None:
            address_owner_ids = organization_ids
        return OrganizationDependents(
            addresses=self.singles("addresses", address_owner_ids),
            contacts=self.collections("contacts", organization_ids),
            authorizations=self.collections("authorizations", organization_ids),
            assertion_ids=self.assertion_ids(organization_ids),
        )

    def certificate_details(self, certificates: List[Any]) -> List[CertificateDetail]:
        """
        Resolve each certificate's factory, standard and certifying body.

        A certificate whose standard or organizations are not valid at the
        head is a broken reference, not an optional one.
        """
        if not certificates:
            return []
        standards = self.required("standards", {c.standard_id for c in certificates})
        organizations = self.required(
            "organizations",
            {c.factory_id for c in certificates} | {c.certifying_body_id for c in certificates},
        )
        assertion_ids = self.assertion_ids(c.certificate_id for c in certificates)
        return [
            CertificateDetail(
                certificate=cert,
                factory=organizations[cert.factory_id],
                standard=standards[cert.standard_id],
                certifying_body=organizations[cert.certifying_body_id],
                assertion_id=assertion_ids.get(cert.certificate_id),
            )
            for cert in certificates
        ]

    def certificates_by_factory(self, factory_ids: Iterable[str]) -> Dict[str, List[CertificateDetail]]:
        factory_ids = set(factory_ids)
        if not factory_ids:
            return {}
        certificates = self.store.list_rows(
            "certificates", self.head, In("factory_id", factory_ids)
        )
        grouped: Dict[str, List[CertificateDetail]] = defaultdict(list)
        for detail in self.certificate_details(certificates):
            grouped[detail.certificate.factory_id].append(detail)
        return dict(grouped)
