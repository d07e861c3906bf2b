from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class StockEventOut(BaseModel):
    id: int
    item_id: int
    action: str
    qty: int
    created_at: datetime
    order_id: Optional[str] = Field(None, alias="Order Id")
    source: Optional[str] = Field(None, alias="Where bought from")
    date_subtracted: Optional[datetime] = Field(None, alias="Date Subtracted")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
