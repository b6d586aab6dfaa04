from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wms.db.base import Base


class Container(Base):
    __tablename__ = "containers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    barcode: Mapped[str] = mapped_column(String(30), nullable=False, unique=True, index=True)
    container_type: Mapped[str] = mapped_column(String(20), nullable=False)  # BOX, PALLET
    warehouse_id: Mapped[str] = mapped_column(String(36), ForeignKey("warehouses.id"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="ACTIVE", server_default="ACTIVE")
    created_by: Mapped[str] = mapped_column(String(100), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    opened_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    opened_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    contents: Mapped[list["ContainerContent"]] = relationship(
        order_by="ContainerContent.position",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_containers_warehouse_status", "warehouse_id", "status"),
    )


class ContainerContent(Base):
    __tablename__ = "container_contents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    container_id: Mapped[str] = mapped_column(String(36), ForeignKey("containers.id"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("products.id"), nullable=False)
    product_sku: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)


class BarcodeSequence(Base):
    """
    Per-prefix monotonic counter for generated barcodes (KOL-00001, PAL-00001, SAY-20261018-0001).
    """
    __tablename__ = "barcode_sequences"

    prefix: Mapped[str] = mapped_column(String(40), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
