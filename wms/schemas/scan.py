from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from wms.schemas.container import ContainerOut


class ScanIn(BaseModel):
    code: str = Field(min_length=1, max_length=130)
    warehouse_code: str = Field(min_length=1, max_length=20)

    model_config = ConfigDict(
        json_schema_extra={"example": {"code": "8690000000011", "warehouse_code": "WH1"}}
    )


class ProductOut(BaseModel):
    id: str
    sku: str
    barcode: str | None = None
    name: str
    base_unit: str
    units_per_inner_pack: int
    inner_packs_per_outer_pack: int


class SerialOut(BaseModel):
    serial_no: str
    full_barcode: str
    status: str
    registered: bool


class InventoryRowOut(BaseModel):
    product_id: str
    product_sku: str
    warehouse_id: str
    location_id: str | None = None
    quantity: int


class LocationOut(BaseModel):
    id: str
    warehouse_id: str
    code: str
    qr_code: str
    name: str
    is_default: bool


class OperationModeOut(BaseModel):
    id: str
    mode_code: str
    mode_type: str
    name: str


class ScanOut(BaseModel):
    type: Literal["PRODUCT", "CONTAINER", "LOCATION", "OPERATION_MODE"]
    code: str
    product: ProductOut | None = None
    serial: SerialOut | None = None
    container: ContainerOut | None = None
    location: LocationOut | None = None
    operation_mode: OperationModeOut | None = None
    inventory: list[InventoryRowOut] = Field(default_factory=list)
