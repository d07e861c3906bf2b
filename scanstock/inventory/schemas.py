from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime

from scanstock.catalog.schemas import ItemOut
from scanstock.inventory.events.schemas import StockEventOut


# -------------------------------
# Requests
# -------------------------------
class BarcodeIn(BaseModel):
    barcode: Optional[str] = None   # = ScannedCode


class RemoveConfirmIn(BarcodeIn):
    order_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("orderId", "Order Id", "order_id")
    )
    source: Optional[str] = Field(
        None, validation_alias=AliasChoices("source", "Where bought from")
    )
    date_subtracted: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices("dateSubtracted", "Date Subtracted", "date_subtracted"),
    )

    @field_validator("order_id", "source", "date_subtracted", mode="before")
    @classmethod
    def blank_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


# -------------------------------
# Responses
# -------------------------------
class AddOut(BaseModel):
    event: StockEventOut
    item: ItemOut
    on_hand: int = Field(alias="onHand")

    model_config = ConfigDict(populate_by_name=True)


class RemoveInitiateOut(BaseModel):
    status: str
    item: ItemOut
    on_hand: int = Field(alias="onHand")

    model_config = ConfigDict(populate_by_name=True)


class RemoveConfirmOut(BaseModel):
    status: str
    on_hand: int = Field(alias="onHand")
    event: StockEventOut

    model_config = ConfigDict(populate_by_name=True)
