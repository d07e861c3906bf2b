from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from scanstock.database import get_db
from scanstock.catalog import schemas, service

router = APIRouter()


@router.get("/{code}", response_model=schemas.ItemOut)
def get_item(code: str, db: Session = Depends(get_db)):
    """
    Fetch one item by its scan code.
    """
    return service.get_item_by_code(db, code)


@router.post(
    "",
    response_model=schemas.ItemOut,
    status_code=status.HTTP_201_CREATED
)
def upsert_item(
    item: schemas.ItemCreate,
    db: Session = Depends(get_db)
):
    """
    Create an item, or overwrite the one that already has this ScannedCode.
    The item's on-hand ledger row is created at zero if missing.
    """
    return service.upsert_item(db, item)
