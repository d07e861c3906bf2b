from pydantic import BaseModel, Field

from scanstock.catalog.schemas import ItemOut


class SearchHitOut(ItemOut):
    on_hand: int = Field(0, alias="onHand")


class DistinctValueOut(BaseModel):
    value: str
    count: int
