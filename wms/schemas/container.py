from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from wms.schemas.transaction import TransactionOut


class ContainerContentIn(BaseModel):
    sku: str = Field(min_length=1, max_length=130)
    quantity: int = Field(gt=0)


class ContainerCreateIn(BaseModel):
    container_type: Literal["BOX", "PALLET"]
    warehouse_code: str = Field(min_length=1, max_length=20)
    contents: list[ContainerContentIn] = Field(default_factory=list)
    actor: str = Field(min_length=1, max_length=100)
    notes: str | None = Field(default=None, max_length=255)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "container_type": "BOX",
                "warehouse_code": "WH1",
                "contents": [{"sku": "SKU-1", "quantity": 10}, {"sku": "SKU-2", "quantity": 5}],
                "actor": "packer-2",
            }
        }
    )


class ContainerOpenIn(BaseModel):
    actor: str = Field(min_length=1, max_length=100)
    location_code: str | None = Field(default=None, max_length=64)


class ContainerContentOut(BaseModel):
    position: int
    product_id: str
    product_sku: str
    quantity: int


class ContainerOut(BaseModel):
    id: str
    barcode: str
    container_type: str
    warehouse_id: str
    status: str
    created_by: str
    notes: str | None = None
    created_at: datetime
    opened_at: datetime | None = None
    opened_by: str | None = None
    contents: list[ContainerContentOut]


class ContainerOpenOut(BaseModel):
    container: ContainerOut
    transaction: TransactionOut
    items_returned: int
