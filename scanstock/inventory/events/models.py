import enum

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, event
from sqlalchemy.orm import relationship

from scanstock.database import Base
from scanstock.catalog.models import utcnow
from scanstock.exceptions import ImmutableEvent


class StockAction(str, enum.Enum):
    ADD = "add"
    REMOVE = "remove"


class StockEvent(Base):
    __tablename__ = "inventory_events"

    id = Column(Integer, primary_key=True, index=True)

    item_id = Column(
        Integer,
        ForeignKey("items.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    action = Column(String(16), nullable=False)   # add | remove
    qty = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # remove only
    order_id = Column(String, nullable=True)
    source = Column(String, nullable=True)
    date_subtracted = Column(DateTime(timezone=True), nullable=True)

    item = relationship("Item")


@event.listens_for(StockEvent, "before_update")
def _reject_event_update(mapper, connection, target):
    raise ImmutableEvent(f"Stock event {target.id} cannot be modified")


@event.listens_for(StockEvent, "before_delete")
def _reject_event_delete(mapper, connection, target):
    raise ImmutableEvent(f"Stock event {target.id} cannot be deleted")
