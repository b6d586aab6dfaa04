"""Authoritative on-hand quantities keyed by (product, warehouse, location).

All mutation goes through :func:`apply_delta`, which holds a row lock on the key
for the rest of the caller's unit of work. Reads used for display or pre-flight
checks take no locks.
"""
import logging
import uuid
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wms.core.errors import InsufficientStock
from wms.core.observability import log_event
from wms.models.inventory import InventoryRow
from wms.models.product import Product


def _location_clause(location_id: str | None):
    if location_id is None:
        return InventoryRow.location_id.is_(None)
    return InventoryRow.location_id == location_id


def _key_filter(product_id: str, warehouse_id: str, location_id: str | None):
    return (
        InventoryRow.product_id == product_id,
        InventoryRow.warehouse_id == warehouse_id,
        _location_clause(location_id),
    )


def _lock_row(db: Session, product_id: str, warehouse_id: str, location_id: str | None) -> InventoryRow | None:
    return db.execute(
        select(InventoryRow)
        .where(*_key_filter(product_id, warehouse_id, location_id))
        .with_for_update()
    ).scalar_one_or_none()


def reject_insufficient(
    product: Product,
    *,
    available: int,
    requested: int,
    location_id: str | None,
) -> InsufficientStock:
    log_event(
        "ledger.insufficient_stock",
        level=logging.WARNING,
        sku=product.sku,
        location_id=location_id,
        available=available,
        requested=requested,
    )
    return InsufficientStock(product.sku, available=available, requested=requested)


def apply_delta(
    db: Session,
    *,
    product: Product,
    warehouse_id: str,
    location_id: str | None,
    delta: int,
) -> int:
    """Apply a signed base-unit delta to one ledger row and return the new quantity.

    A missing row is created for a positive delta. A delta that would take the
    row below zero raises InsufficientStock without writing anything.
    """
    row = _lock_row(db, product.id, warehouse_id, location_id)

    if row is None:
        if delta < 0:
            raise reject_insufficient(product, available=0, requested=-delta, location_id=location_id)
        try:
            with db.begin_nested():
                row = InventoryRow(
                    id=str(uuid.uuid4()),
                    product_id=product.id,
                    product_sku=product.sku,
                    warehouse_id=warehouse_id,
                    location_id=location_id,
                    quantity=delta,
                )
                db.add(row)
            return row.quantity
        except IntegrityError:
            # A concurrent first inbound inserted the row; fall through to the locked update.
            row = _lock_row(db, product.id, warehouse_id, location_id)
            if row is None:
                raise

    new_quantity = row.quantity + delta
    if new_quantity < 0:
        raise reject_insufficient(product, available=row.quantity, requested=-delta, location_id=location_id)
    row.quantity = new_quantity
    db.flush()
    return new_quantity


def get_on_hand(db: Session, *, product_id: str, warehouse_id: str, location_id: str | None) -> int:
    quantity = db.execute(
        select(InventoryRow.quantity).where(*_key_filter(product_id, warehouse_id, location_id))
    ).scalar_one_or_none()
    return int(quantity or 0)


def snapshot_quantities(
    db: Session,
    *,
    product_ids: Iterable[str],
    warehouse_id: str,
    location_id: str | None,
) -> dict[str, int]:
    ids = sorted(set(product_ids))
    if not ids:
        return {}
    rows = db.execute(
        select(InventoryRow.product_id, InventoryRow.quantity).where(
            InventoryRow.product_id.in_(ids),
            InventoryRow.warehouse_id == warehouse_id,
            _location_clause(location_id),
        )
    ).all()
    snapshot = {product_id: 0 for product_id in ids}
    for product_id, quantity in rows:
        snapshot[product_id] = int(quantity)
    return snapshot


def location_rows(db: Session, *, location_id: str, positive_only: bool = True) -> list[InventoryRow]:
    stmt = select(InventoryRow).where(InventoryRow.location_id == location_id)
    if positive_only:
        stmt = stmt.where(InventoryRow.quantity > 0)
    return list(db.execute(stmt.order_by(InventoryRow.product_sku.asc())).scalars().all())


def product_rows(db: Session, *, product_id: str, warehouse_id: str) -> list[InventoryRow]:
    return list(
        db.execute(
            select(InventoryRow)
            .where(InventoryRow.product_id == product_id, InventoryRow.warehouse_id == warehouse_id)
            .order_by(InventoryRow.location_id.asc())
        ).scalars().all()
    )
