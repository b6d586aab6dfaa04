from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wms.db.base import Base


class CountReport(Base):
    """
    A cycle count. While OPEN it is the working session; finalizing freezes the totals
    and assigns the report number. Counting never writes to the inventory ledger.
    """
    __tablename__ = "count_reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    report_number: Mapped[Optional[str]] = mapped_column(String(40), nullable=True, unique=True)
    warehouse_id: Mapped[str] = mapped_column(String(36), ForeignKey("warehouses.id"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="OPEN", server_default="OPEN")

    total_locations: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_expected: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_counted: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_variance: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    variance_percentage: Mapped[Decimal] = mapped_column(
        Numeric(9, 2), nullable=False, default=Decimal("0.00"), server_default="0"
    )

    created_by: Mapped[str] = mapped_column(String(100), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    finalized_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    locations: Mapped[list["CountLocationResult"]] = relationship(
        order_by="CountLocationResult.started_at",
        lazy="selectin",
    )


class CountLocationResult(Base):
    __tablename__ = "count_location_results"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    report_id: Mapped[str] = mapped_column(String(36), ForeignKey("count_reports.id"), nullable=False, index=True)
    location_id: Mapped[str] = mapped_column(String(36), ForeignKey("locations.id"), nullable=False)
    location_code: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="COUNTING", server_default="COUNTING")

    total_expected: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_counted: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_variance: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    unexpected_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    counted_by: Mapped[str] = mapped_column(String(100), nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    saved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[list["CountItem"]] = relationship(
        order_by="CountItem.position",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("report_id", "location_id", name="uq_count_location_results_report_location"),
    )


class CountItem(Base):
    __tablename__ = "count_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    location_result_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("count_location_results.id"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("products.id"), nullable=False)
    product_sku: Mapped[str] = mapped_column(String(100), nullable=False)
    product_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    expected_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    counted_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    variance: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_unexpected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")

    __table_args__ = (
        UniqueConstraint("location_result_id", "product_id", name="uq_count_items_location_product"),
    )


class CountScan(Base):
    __tablename__ = "count_scans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    location_result_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("count_location_results.id"),
        nullable=False,
    )
    count_item_id: Mapped[str] = mapped_column(String(36), ForeignKey("count_items.id"), nullable=False)
    barcode: Mapped[str] = mapped_column(String(130), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("location_result_id", "barcode", name="uq_count_scans_location_barcode"),
        Index("ix_count_scans_count_item", "count_item_id"),
    )
