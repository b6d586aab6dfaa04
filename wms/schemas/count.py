from datetime import datetime

from pydantic import BaseModel, Field


class CountOpenIn(BaseModel):
    warehouse_code: str = Field(min_length=1, max_length=20)
    actor: str = Field(min_length=1, max_length=100)
    notes: str | None = Field(default=None, max_length=255)


class CountLocationStartIn(BaseModel):
    location_code: str = Field(min_length=1, max_length=64)
    actor: str = Field(min_length=1, max_length=100)


class CountScanIn(BaseModel):
    barcode: str = Field(min_length=1, max_length=130)
    actor: str = Field(min_length=1, max_length=100)


class CountActorIn(BaseModel):
    actor: str = Field(min_length=1, max_length=100)


class CountItemOut(BaseModel):
    id: str
    product_id: str
    product_sku: str
    product_name: str | None = None
    expected_quantity: int
    counted_quantity: int
    variance: int
    is_unexpected: bool


class CountLocationOut(BaseModel):
    id: str
    location_id: str
    location_code: str
    status: str
    total_expected: int
    total_counted: int
    total_variance: int
    unexpected_count: int
    counted_by: str
    started_at: datetime
    saved_at: datetime | None = None
    items: list[CountItemOut]


class CountReportOut(BaseModel):
    id: str
    report_number: str | None = None
    warehouse_id: str
    status: str
    total_locations: int
    total_expected: int
    total_counted: int
    total_variance: int
    variance_percentage: float
    created_by: str
    notes: str | None = None
    created_at: datetime
    finalized_at: datetime | None = None
    locations: list[CountLocationOut]
