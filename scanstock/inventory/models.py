from sqlalchemy import Column, Integer, ForeignKey, DateTime, CheckConstraint
from sqlalchemy.orm import relationship

from scanstock.database import Base
from scanstock.catalog.models import utcnow


class OnHand(Base):
    __tablename__ = "inventory_onhand"

    item_id = Column(
        Integer,
        ForeignKey("items.id", ondelete="CASCADE"),
        primary_key=True,
    )
    item = relationship("Item", back_populates="on_hand")

    on_hand = Column(Integer, nullable=False, default=0)

    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("on_hand >= 0", name="ck_inventory_onhand_non_negative"),
    )
