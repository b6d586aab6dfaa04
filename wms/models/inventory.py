from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint, func, text
from sqlalchemy.orm import Mapped, mapped_column

from wms.db.base import Base


class InventoryRow(Base):
    """
    On-hand quantity in base units for one (product, warehouse, location) key.
    Rows are created on first inbound movement and are only ever zeroed, never deleted.
    """
    __tablename__ = "inventory_rows"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    product_sku: Mapped[str] = mapped_column(String(100), nullable=False)
    warehouse_id: Mapped[str] = mapped_column(String(36), ForeignKey("warehouses.id"), nullable=False, index=True)
    location_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("locations.id"), nullable=True, index=True
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("product_id", "warehouse_id", "location_id", name="uq_inventory_rows_key"),
        # NULLs are distinct in the key above; warehouse-level rows need their own index.
        Index(
            "uq_inventory_rows_key_no_location",
            "product_id",
            "warehouse_id",
            unique=True,
            postgresql_where=text("location_id IS NULL"),
            sqlite_where=text("location_id IS NULL"),
        ),
        CheckConstraint("quantity >= 0", name="ck_inventory_rows_quantity_non_negative"),
        Index("ix_inventory_rows_warehouse_location", "warehouse_id", "location_id"),
    )
