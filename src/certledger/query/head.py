"""Block height resolution."""

from typing import Optional

from sqlalchemy.orm import Session

from ..database.block_repo import get_max_block_num
from ..errors import InternalError
from ..utils.logging import get_logger

logger = get_logger(__name__)


class BlockHeightResolver:
    """
    Fixes the head for one request.

    An explicit head is used as given, even past the chain tip (which just
    yields no rows yet). Otherwise the latest committed block is read once.
    """

    def __init__(self, session: Session):
        self.session = session

    def resolve(self, explicit_head: Optional[int] = None) -> int:
        if explicit_head is not None:
            return explicit_head
        head = get_max_block_num(self.session)
        if head is None:
            raise InternalError("No committed blocks: the ledger has no head yet")
        logger.debug("Resolved head to latest block %s", head)
        return head
