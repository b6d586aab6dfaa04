from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wms.db.base import Base


class InventoryTransaction(Base):
    """
    Header of one committed stock movement. Never updated or deleted once committed;
    undo writes a new REVERSAL row that points back here.
    """
    __tablename__ = "inventory_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    transaction_type: Mapped[str] = mapped_column(String(20), nullable=False)  # INBOUND, OUTBOUND, REVERSAL
    direction: Mapped[int] = mapped_column(Integer, nullable=False)  # +1 adds stock, -1 removes stock
    warehouse_id: Mapped[str] = mapped_column(String(36), ForeignKey("warehouses.id"), nullable=False, index=True)
    location_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("locations.id"), nullable=True)
    actor: Mapped[str] = mapped_column(String(100), nullable=False)
    reference_no: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    container_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("containers.id"), nullable=True)
    reverses_transaction_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("inventory_transactions.id"),
        nullable=True,
        unique=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    lines: Mapped[list["InventoryTransactionLine"]] = relationship(
        order_by="InventoryTransactionLine.line_no",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_inventory_transactions_warehouse_created_at", "warehouse_id", "created_at"),
    )


class InventoryTransactionLine(Base):
    __tablename__ = "inventory_transaction_lines"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    transaction_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("inventory_transactions.id"),
        nullable=False,
        index=True,
    )
    line_no: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("products.id"), nullable=False)
    product_sku: Mapped[str] = mapped_column(String(100), nullable=False)  # by value, never re-read from the product
    requested_code: Mapped[str] = mapped_column(String(130), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)
    base_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
