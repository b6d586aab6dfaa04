from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from wms.db.base import Base


class Product(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    sku: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    barcode: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    base_unit: Mapped[str] = mapped_column(String(20), nullable=False, default="EACH", server_default="EACH")

    units_per_inner_pack: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    inner_packs_per_outer_pack: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("units_per_inner_pack >= 1", name="ck_products_units_per_inner_pack"),
        CheckConstraint("inner_packs_per_outer_pack >= 1", name="ck_products_inner_packs_per_outer_pack"),
    )


class SerialNumber(Base):
    """
    Registered serialised unit. The printed label reads <SKU>-<serial_no>.
    """
    __tablename__ = "serial_numbers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    serial_no: Mapped[str] = mapped_column(String(20), nullable=False)
    full_barcode: Mapped[str] = mapped_column(String(130), nullable=False, unique=True, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="AVAILABLE", server_default="AVAILABLE")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class OperationMode(Base):
    __tablename__ = "operation_modes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    mode_code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    mode_type: Mapped[str] = mapped_column(String(30), nullable=False)  # RECEIVING, PICKING, COUNT, CONTAINER
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")
