"""Repository functions for the append-only blocks ledger."""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from ..errors import InternalError, ServiceUnavailableError
from .schema import Block


def get_max_block_num(session: Session) -> Optional[int]:
    """
    Highest committed block number.

    Args:
        session: SQLAlchemy session

    Returns:
        Max block_num, or None if no block has been committed yet
    """
    try:
        return session.execute(select(func.max(Block.block_num))).scalar_one()
    except PoolTimeoutError as exc:
        raise ServiceUnavailableError("Database connection pool exhausted") from exc
    except SQLAlchemyError as exc:
        raise InternalError.from_exception(exc) from exc


def find_block_by_num(session: Session, block_num: int) -> Optional[Block]:
    """Get block by number."""
    stmt = select(Block).where(Block.block_num == block_num)
    try:
        return session.execute(stmt).scalars().first()
    except PoolTimeoutError as exc:
        raise ServiceUnavailableError("Database connection pool exhausted") from exc
    except SQLAlchemyError as exc:
        raise InternalError.from_exception(exc) from exc
