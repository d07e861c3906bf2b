from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from scanstock.inventory.events.models import StockAction, StockEvent


def record_event(
    db: Session,
    item_id: int,
    action: StockAction,
    order_id: Optional[str] = None,
    source: Optional[str] = None,
    date_subtracted: Optional[datetime] = None,
) -> StockEvent:
    """
    Append one event to the log. Removal events always carry a
    date_subtracted, defaulting to now.
    """
    now = datetime.now(timezone.utc)

    ev = StockEvent(
        item_id=item_id,
        action=action.value,
        qty=1,
        created_at=now,
    )
    if action is StockAction.REMOVE:
        ev.order_id = order_id
        ev.source = source
        ev.date_subtracted = date_subtracted or now

    db.add(ev)
    db.flush()
    return ev


def list_events(db: Session, item_id: int) -> List[StockEvent]:
    return (
        db.query(StockEvent)
        .filter(StockEvent.item_id == item_id)
        .order_by(StockEvent.id.asc())
        .all()
    )
