from datetime import datetime, timezone
from typing import Optional

import pandas as pd
from loguru import logger
from pydantic import ValidationError
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from scanstock.catalog import models, schemas
from scanstock.database import atomic
from scanstock.exceptions import ItemNotFound, MissingFields
from scanstock.inventory import ledger

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

# Fields overwritten on every upsert; inventory_date is handled separately.
MERGED_FIELDS = (
    "brand",
    "model",
    "size",
    "color",
    "notes",
    "sold_order",
    "purchased_from",
    "paint_thickness",
    "price",
    "qty",
)


def find_item_by_code(db: Session, scanned_code: str) -> Optional[models.Item]:
    return (
        db.query(models.Item)
        .filter(models.Item.scanned_code == scanned_code)
        .first()
    )


def get_item_by_code(db: Session, scanned_code: str) -> models.Item:
    item = find_item_by_code(db, scanned_code)
    if item is None:
        logger.warning(f"Item not found: {scanned_code}")
        raise ItemNotFound(scanned_code)
    return item


def _clean(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _upsert_on_conflict(db: Session, insert, scanned_code: str, values: dict, inventory_date):
    """
    Single INSERT ... ON CONFLICT (scanned_code) DO UPDATE. Two writers racing
    on a new scan code both succeed; the later one merges.
    """
    # Only used for the log line; the statement itself decides insert vs merge
    created = find_item_by_code(db, scanned_code) is None

    stmt = insert(models.Item).values(
        scanned_code=scanned_code,
        inventory_date=inventory_date or datetime.now(timezone.utc),
        **values,
    )
    merged = dict(values)
    if inventory_date is not None:
        merged["inventory_date"] = stmt.excluded.inventory_date
    db.execute(
        stmt.on_conflict_do_update(
            index_elements=[models.Item.scanned_code],
            set_=merged,
        )
    )

    item = (
        db.query(models.Item)
        .filter(models.Item.scanned_code == scanned_code)
        .populate_existing()
        .one()
    )
    return item, created


def _upsert_locked(db: Session, scanned_code: str, values: dict, inventory_date):
    item = (
        db.query(models.Item)
        .filter(models.Item.scanned_code == scanned_code)
        .with_for_update()
        .first()
    )

    if item is None:
        item = models.Item(
            scanned_code=scanned_code,
            inventory_date=inventory_date or datetime.now(timezone.utc),
            **values,
        )
        db.add(item)
        created = True
    else:
        for field, value in values.items():
            setattr(item, field, value)
        if inventory_date is not None:
            item.inventory_date = inventory_date
        created = False

    db.flush()  # get item.id without committing yet
    return item, created


def upsert_item(db: Session, payload: schemas.ItemCreate) -> models.Item:
    """
    Insert an item or merge into the existing one with the same scan code.

    Merge policy: every mutable field is overwritten with the incoming value
    (including None). inventory_date keeps the stored value when the incoming
    one is absent; a brand-new item without a date gets the current time.
    The ledger row is created at zero in the same transaction.

    PostgreSQL and SQLite merge with INSERT ... ON CONFLICT DO UPDATE; other
    backends lock the existing row and insert or update it.
    """
    scanned_code = _clean(payload.scanned_code)
    model = _clean(payload.model)

    if not scanned_code or not model:
        raise MissingFields(["ScannedCode", "Model"])

    values = {field: _clean(getattr(payload, field)) for field in MERGED_FIELDS}
    values["model"] = model

    with atomic(db):
        insert = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
        if insert is not None:
            item, created = _upsert_on_conflict(db, insert, scanned_code, values, payload.inventory_date)
        else:
            item, created = _upsert_locked(db, scanned_code, values, payload.inventory_date)
        ledger.ensure_on_hand(db, item.id)

    logger.info(f"Item {'created' if created else 'updated'}: {scanned_code}")
    return item


# --------------------------------------------------
# Bulk import (CSV / Excel rows)
# --------------------------------------------------
# Normalised header -> ItemCreate alias
IMPORT_COLUMNS = {
    "inventorydate": "InventoryDate",
    "scannedcode": "ScannedCode",
    "barcode": "ScannedCode",
    "brand": "Brand",
    "model": "Model",
    "name": "Model",
    "size": "Size",
    "color": "Color",
    "notes": "Notes",
    "soldorder#": "SoldOrder#",
    "soldorder": "SoldOrder#",
    "purchasedfrom": "PurchasedFrom",
    "paintthickness": "PaintThickness",
    "price": "Price",
    "qty": "Qty",
}

TEXT_ALIASES = {"ScannedCode", "Brand", "Model", "Size", "Color", "Notes", "SoldOrder#", "PurchasedFrom"}


def import_items(db: Session, df: pd.DataFrame) -> dict:
    """
    Upsert every row of ``df`` into the catalog. Rows without a scan code or
    model, or with an unreadable number or date, are skipped; unknown
    columns are ignored.
    """
    columns = {}
    for column in df.columns:
        alias = IMPORT_COLUMNS.get(str(column).strip().lower().replace(" ", ""))
        if alias and alias not in columns.values():
            columns[column] = alias
    df = df[list(columns)].rename(columns=columns)

    if "ScannedCode" not in df.columns or "Model" not in df.columns:
        raise MissingFields(["ScannedCode", "Model"])

    imported = 0
    skipped = 0

    for index, row in df.iterrows():
        fields = {}
        for alias, value in row.items():
            if pd.isna(value):
                continue
            if alias in TEXT_ALIASES:
                value = str(value).strip()
            elif hasattr(value, "item") and not isinstance(value, datetime):
                value = value.item()   # numpy scalar -> python
            fields[alias] = value

        try:
            upsert_item(db, schemas.ItemCreate(**fields))
        except ValidationError as exc:
            logger.warning(f"Skipping row {index}: {exc.error_count()} invalid value(s)")
            skipped += 1
            continue
        except MissingFields:
            skipped += 1
            continue
        imported += 1

    logger.info(f"Import finished: {imported} imported, {skipped} skipped")
    return {"imported": imported, "skipped": skipped}
