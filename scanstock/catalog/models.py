from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Float, DateTime
from sqlalchemy.orm import relationship

from scanstock.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class Item(Base):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)

    scanned_code = Column(String, unique=True, index=True, nullable=False)
    model = Column(String, nullable=False)

    brand = Column(String, nullable=True)
    size = Column(String, nullable=True)
    color = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    sold_order = Column(String, nullable=True)
    purchased_from = Column(String, nullable=True)

    paint_thickness = Column(Float, nullable=True)
    price = Column(Float, nullable=True)
    qty = Column(Float, nullable=True)   # catalog metadata, not the on-hand count

    inventory_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    on_hand = relationship("OnHand", back_populates="item", uselist=False)
