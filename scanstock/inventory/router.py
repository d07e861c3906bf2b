from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from scanstock.database import get_db
from scanstock.exceptions import MissingBarcode
from scanstock.catalog.schemas import ItemOut
from scanstock.inventory import schemas, service
from scanstock.inventory.events.schemas import StockEventOut

router = APIRouter()


def _require_barcode(body: schemas.BarcodeIn) -> str:
    barcode = (body.barcode or "").strip()
    if not barcode:
        raise MissingBarcode()
    return barcode


@router.post(
    "/add",
    response_model=schemas.AddOut,
    status_code=status.HTTP_201_CREATED
)
def add_one(body: schemas.BarcodeIn, db: Session = Depends(get_db)):
    """
    Add one unit of the scanned item.
    """
    result = service.add_one(db, _require_barcode(body))

    return schemas.AddOut(
        event=StockEventOut.model_validate(result.event),
        item=ItemOut.model_validate(result.item),
        on_hand=result.on_hand,
    )


@router.post("/remove/initiate", response_model=schemas.RemoveInitiateOut)
def initiate_remove(body: schemas.BarcodeIn, db: Session = Depends(get_db)):
    """
    Start a removal. Returns CONFIRM_REQUIRED with the current quantity, or
    REGISTERED_ZERO_STOCK when there is nothing to remove. Never changes stock.
    """
    result = service.initiate_remove(db, _require_barcode(body))

    return schemas.RemoveInitiateOut(
        status=result.status.value,
        item=ItemOut.model_validate(result.item),
        on_hand=result.on_hand,
    )


@router.post("/remove/confirm", response_model=schemas.RemoveConfirmOut)
def confirm_remove(body: schemas.RemoveConfirmIn, db: Session = Depends(get_db)):
    """
    Remove one unit. Fails with 409 OUT_OF_STOCK if the quantity is zero
    at the time of the call.
    """
    result = service.confirm_remove(
        db,
        _require_barcode(body),
        order_id=body.order_id,
        source=body.source,
        date_subtracted=body.date_subtracted,
    )

    return schemas.RemoveConfirmOut(
        status=result.status.value,
        on_hand=result.on_hand,
        event=StockEventOut.model_validate(result.event),
    )
