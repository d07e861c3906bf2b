r"""
Stock mutation service: add one unit, and the two-step remove workflow.

Removal is split so the operator can see the current quantity before the
decrement is committed:

    initiate_remove --> CONFIRM_REQUIRED ------> confirm_remove --> REMOVED
                   \                                        \
                    --> REGISTERED_ZERO_STOCK                --> OutOfStock

``initiate_remove`` never changes the quantity. ``confirm_remove`` re-reads
the quantity under a row lock, because the value shown to the operator may be
stale by the time they answer.
"""
import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from scanstock.catalog import service as catalog_service
from scanstock.catalog.models import Item
from scanstock.database import atomic
from scanstock.exceptions import OutOfStock
from scanstock.inventory import ledger
from scanstock.inventory.events import service as event_service
from scanstock.inventory.events.models import StockAction, StockEvent


class RemoveStatus(str, enum.Enum):
    CONFIRM_REQUIRED = "CONFIRM_REQUIRED"
    REGISTERED_ZERO_STOCK = "REGISTERED_ZERO_STOCK"
    REMOVED = "REMOVED"


@dataclass
class AddResult:
    item: Item
    event: StockEvent
    on_hand: int


@dataclass
class RemoveInitiated:
    status: RemoveStatus
    item: Item
    on_hand: int


@dataclass
class RemoveConfirmed:
    on_hand: int
    event: StockEvent
    status: RemoveStatus = RemoveStatus.REMOVED


# --------------------------
# Add one unit
# --------------------------
def add_one(db: Session, scanned_code: str) -> AddResult:
    with atomic(db):
        item = catalog_service.get_item_by_code(db, scanned_code)
        ledger.ensure_on_hand(db, item.id)
        ledger.increment_on_hand(db, item.id)
        ev = event_service.record_event(db, item.id, StockAction.ADD)
        on_hand = ledger.get_on_hand(db, item.id)

    logger.info(f"Added 1 x {scanned_code}, on hand {on_hand}")
    return AddResult(item=item, event=ev, on_hand=on_hand)


# --------------------------
# Remove, step 1: read only
# --------------------------
def initiate_remove(db: Session, scanned_code: str) -> RemoveInitiated:
    with atomic(db):
        item = catalog_service.get_item_by_code(db, scanned_code)
        ledger.ensure_on_hand(db, item.id)
        on_hand = ledger.get_on_hand(db, item.id)

    if on_hand > 0:
        return RemoveInitiated(RemoveStatus.CONFIRM_REQUIRED, item, on_hand)

    logger.info(f"Remove scan for {scanned_code} registered at zero stock")
    return RemoveInitiated(RemoveStatus.REGISTERED_ZERO_STOCK, item, 0)


# --------------------------
# Remove, step 2: locked decrement
# --------------------------
def confirm_remove(
    db: Session,
    scanned_code: str,
    order_id: Optional[str] = None,
    source: Optional[str] = None,
    date_subtracted: Optional[datetime] = None,
) -> RemoveConfirmed:
    with atomic(db):
        item = catalog_service.get_item_by_code(db, scanned_code)

        row = ledger.lock_on_hand(db, item.id)
        if row is None or row.on_hand <= 0:
            logger.warning(f"Remove rejected, {scanned_code} is out of stock")
            raise OutOfStock(scanned_code)

        row.on_hand -= 1
        ev = event_service.record_event(
            db,
            item.id,
            StockAction.REMOVE,
            order_id=order_id,
            source=source,
            date_subtracted=date_subtracted,
        )
        on_hand = row.on_hand

    logger.info(f"Removed 1 x {scanned_code}, on hand {on_hand}")
    return RemoveConfirmed(on_hand=on_hand, event=ev)
