from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime


# -------------------------------
# Create / upsert
# -------------------------------
class ItemCreate(BaseModel):
    """
    Payload for POST /items. ScannedCode and Model are required, but they are
    checked in the service so a blank value is reported as MISSING_FIELDS
    rather than a validation error.
    """
    inventory_date: Optional[datetime] = Field(None, alias="InventoryDate")
    scanned_code: Optional[str] = Field(None, alias="ScannedCode")
    brand: Optional[str] = Field(None, alias="Brand")
    model: Optional[str] = Field(None, alias="Model")
    size: Optional[str] = Field(None, alias="Size")
    color: Optional[str] = Field(None, alias="Color")
    notes: Optional[str] = Field(None, alias="Notes")
    sold_order: Optional[str] = Field(None, alias="SoldOrder#")
    purchased_from: Optional[str] = Field(None, alias="PurchasedFrom")
    paint_thickness: Optional[float] = Field(None, alias="PaintThickness")
    price: Optional[float] = Field(None, alias="Price")
    qty: Optional[float] = Field(None, alias="Qty")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("paint_thickness", "price", "qty", "inventory_date", mode="before")
    @classmethod
    def blank_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


# -------------------------------
# Output
# -------------------------------
class ItemOut(BaseModel):
    id: int
    inventory_date: datetime = Field(alias="InventoryDate")
    scanned_code: str = Field(alias="ScannedCode")
    brand: Optional[str] = Field(None, alias="Brand")
    model: str = Field(alias="Model")
    size: Optional[str] = Field(None, alias="Size")
    color: Optional[str] = Field(None, alias="Color")
    notes: Optional[str] = Field(None, alias="Notes")
    sold_order: Optional[str] = Field(None, alias="SoldOrder#")
    purchased_from: Optional[str] = Field(None, alias="PurchasedFrom")
    paint_thickness: Optional[float] = Field(None, alias="PaintThickness")
    price: Optional[float] = Field(None, alias="Price")
    qty: Optional[float] = Field(None, alias="Qty")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
