"""
On-hand ledger access shared by the catalog and the stock mutation service.
"""
from typing import Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from scanstock.inventory.models import OnHand


# Dialects with INSERT ... ON CONFLICT DO NOTHING
_CONFLICT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def ensure_on_hand(db: Session, item_id: int):
    """
    Create the ledger row for ``item_id`` at zero if it does not exist yet.
    Never touches an existing row.
    """
    insert = _CONFLICT_INSERTS.get(db.get_bind().dialect.name)
    if insert is not None:
        db.execute(
            insert(OnHand)
            .values(item_id=item_id, on_hand=0)
            .on_conflict_do_nothing(index_elements=[OnHand.item_id])
        )
        return

    exists = db.query(OnHand).filter(OnHand.item_id == item_id).first()
    if not exists:
        db.add(OnHand(item_id=item_id, on_hand=0))
        db.flush()


def get_on_hand(db: Session, item_id: int) -> int:
    row = db.query(OnHand.on_hand).filter(OnHand.item_id == item_id).first()
    return row.on_hand if row else 0


def lock_on_hand(db: Session, item_id: int) -> Optional[OnHand]:
    """
    Read the ledger row with an exclusive row lock (SELECT ... FOR UPDATE)
    held until the surrounding transaction ends.
    """
    return (
        db.query(OnHand)
        .filter(OnHand.item_id == item_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def increment_on_hand(db: Session, item_id: int, amount: int = 1):
    # Plain UPDATE on_hand = on_hand + n, no explicit lock.
    db.query(OnHand).filter(OnHand.item_id == item_id).update(
        {OnHand.on_hand: OnHand.on_hand + amount},
        synchronize_session=False,
    )
