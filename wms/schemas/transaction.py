from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from wms.schemas.common import PaginationMeta
from wms.services.unit_converter import UnitOfMeasure


class TransactionLineIn(BaseModel):
    code: str = Field(min_length=1, max_length=130, description="Product SKU or barcode.")
    quantity: int = Field(gt=0)
    unit: UnitOfMeasure = UnitOfMeasure.EACH


class TransactionCreateIn(BaseModel):
    transaction_type: Literal["INBOUND", "OUTBOUND"]
    warehouse_code: str = Field(min_length=1, max_length=20)
    location_code: str | None = Field(
        default=None,
        max_length=64,
        description="Location QR code. Falls back to the warehouse default location when omitted or unknown.",
    )
    lines: list[TransactionLineIn] = Field(default_factory=list)
    container_barcodes: list[str] = Field(
        default_factory=list,
        description="ACTIVE containers whose contents are appended as EACH lines.",
    )
    actor: str = Field(min_length=1, max_length=100)
    reference_no: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def validate_has_lines(self) -> "TransactionCreateIn":
        if not self.lines and not self.container_barcodes:
            raise ValueError("lines or container_barcodes must not be empty")
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "transaction_type": "INBOUND",
                "warehouse_code": "WH1",
                "location_code": "LOC-L1",
                "lines": [{"code": "SKU-1", "quantity": 2, "unit": "OUTER_PACK"}],
                "actor": "operator-7",
                "reference_no": "PO-1042",
            }
        }
    )


class TransactionUndoIn(BaseModel):
    actor: str = Field(min_length=1, max_length=100)


class TransactionLineOut(BaseModel):
    line_no: int
    product_id: str
    product_sku: str
    requested_code: str
    quantity: int
    unit: str
    base_quantity: int


class TransactionOut(BaseModel):
    id: str
    transaction_type: str
    direction: int
    warehouse_id: str
    location_id: str | None = None
    actor: str
    reference_no: str | None = None
    notes: str | None = None
    container_id: str | None = None
    reverses_transaction_id: str | None = None
    created_at: datetime
    lines: list[TransactionLineOut]


class TransactionSummaryOut(BaseModel):
    id: str
    transaction_type: str
    direction: int
    warehouse_id: str
    location_id: str | None = None
    actor: str
    reference_no: str | None = None
    line_count: int
    total_base_quantity: int
    created_at: datetime


class TransactionListOut(BaseModel):
    items: list[TransactionSummaryOut]
    pagination: PaginationMeta
