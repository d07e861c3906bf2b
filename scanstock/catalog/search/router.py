from collections import defaultdict
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from scanstock.database import get_db
from scanstock.catalog.schemas import ItemOut
from scanstock.catalog.search import schemas, service

router = APIRouter()


@router.get("/distinct", response_model=List[schemas.DistinctValueOut])
def distinct_values(
    field: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """
    Distinct values of one filterable field, for filter menus.
    """
    return service.distinct_values(db, field)


@router.get("/search", response_model=List[schemas.SearchHitOut])
def search_items(
    request: Request,
    q: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """
    Free-text + per-field filtered search.

    Every query parameter other than ``q`` is a field filter with
    comma-joined values, e.g. ``?q=tee&brand=Acme,Bolt&size=M``.
    """
    raw = defaultdict(list)
    for key, value in request.query_params.multi_items():
        if key != "q":
            raw[key].append(value)

    filters = {key: service.parse_list(values) for key, values in raw.items()}
    hits = service.search_items(db, q=q, filters=filters)

    return [
        schemas.SearchHitOut(
            **ItemOut.model_validate(hit["item"]).model_dump(),
            on_hand=hit["on_hand"],
        )
        for hit in hits
    ]
