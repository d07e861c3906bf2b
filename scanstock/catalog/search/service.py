from typing import Dict, Iterable, List, Optional

from sqlalchemy import String, and_, cast, func, or_
from sqlalchemy.orm import Session

from scanstock.catalog.models import Item
from scanstock.config import settings
from scanstock.exceptions import InvalidField
from scanstock.inventory.models import OnHand

# Filterable (string) columns, keyed by their query-string name
FIELD_MAP = {
    "brand": Item.brand,
    "model": Item.model,
    "size": Item.size,
    "color": Item.color,
    "purchasedfrom": Item.purchased_from,
    "scannedcode": Item.scanned_code,
    "notes": Item.notes,
    "soldorder": Item.sold_order,
}

# Free-text search runs over these, numeric/date ones cast to text
TEXT_COLUMNS = (
    Item.scanned_code,
    Item.brand,
    Item.model,
    Item.size,
    Item.color,
    Item.notes,
    Item.sold_order,
    Item.purchased_from,
)
CAST_COLUMNS = (
    Item.paint_thickness,
    Item.price,
    Item.qty,
    Item.inventory_date,
)

LIKE_ESCAPE = "\\"


def resolve_field(field: Optional[str]):
    column = FIELD_MAP.get((field or "").strip().lower())
    if column is None:
        raise InvalidField(field)
    return column


def escape_like(text: str) -> str:
    """Make %, _ and the escape character itself match literally."""
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def parse_list(values: Iterable[str]) -> List[str]:
    """
    Split comma-joined query values (one or many occurrences of the same
    parameter) into a flat list of trimmed, non-empty strings.
    """
    out = []
    for value in values:
        out.extend(part.strip() for part in str(value).split(","))
    return [v for v in out if v]


def search_items(
    db: Session,
    q: Optional[str] = None,
    filters: Optional[Dict[str, Iterable[str]]] = None,
    limit: Optional[int] = None,
) -> List[dict]:
    """
    Filtered catalog search joined with on-hand quantity.

    - ``q``: case-insensitive substring over TEXT_COLUMNS and CAST_COLUMNS
    - ``filters``: field -> allowed values, case-insensitive exact match;
      values OR'ed within a field, fields AND'ed together and with ``q``

    Ordered by brand, model (nulls last) then scan code.
    """
    limit = limit or settings.SEARCH_LIMIT

    conditions = []

    term = (q or "").strip()
    if term:
        pattern = f"%{escape_like(term)}%"
        columns = list(TEXT_COLUMNS) + [cast(c, String) for c in CAST_COLUMNS]
        conditions.append(
            or_(*(col.ilike(pattern, escape=LIKE_ESCAPE) for col in columns))
        )

    for field, values in (filters or {}).items():
        column = resolve_field(field)
        wanted = [v.lower() for v in values if v]
        if not wanted:
            continue
        conditions.append(func.lower(column).in_(wanted))

    on_hand = func.coalesce(OnHand.on_hand, 0).label("on_hand")

    query = (
        db.query(Item, on_hand)
        .outerjoin(OnHand, OnHand.item_id == Item.id)
    )
    if conditions:
        query = query.filter(and_(*conditions))

    rows = (
        query
        .order_by(
            Item.brand.asc().nulls_last(),
            Item.model.asc().nulls_last(),
            Item.scanned_code.asc(),
        )
        .limit(limit)
        .all()
    )

    return [{"item": item, "on_hand": count} for item, count in rows]


def distinct_values(db: Session, field: str) -> List[dict]:
    """
    Every non-blank value of a filterable field with its occurrence count,
    sorted case-insensitively.
    """
    column = resolve_field(field)

    rows = (
        db.query(column.label("value"), func.count().label("count"))
        .filter(column.isnot(None), func.trim(column) != "")
        .group_by(column)
        .order_by(func.lower(column), column)
        .all()
    )

    return [{"value": r.value, "count": r.count} for r in rows]
