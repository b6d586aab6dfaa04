"""Atomic, unit-normalised stock movements.

Every movement is written as an immutable transaction header with ordered lines
and applied to the inventory ledger inside the caller's unit of work. Nothing is
committed here; on any error the caller rolls back and no header, line or
ledger change survives.
"""
import uuid
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from wms.core.errors import (
    ContainerAlreadyOpened,
    ContainerNotFound,
    InventoryError,
    ProductNotFound,
    TransactionAlreadyReversed,
    TransactionNotFound,
)
from wms.core.observability import log_event
from wms.models.container import Container
from wms.models.location import Warehouse
from wms.models.product import Product
from wms.models.transaction import InventoryTransaction, InventoryTransactionLine
from wms.services.inventory_ledger import apply_delta, reject_insufficient, snapshot_quantities
from wms.services.master_data import get_warehouse_or_404, resolve_effective_location
from wms.services.unit_converter import UnitOfMeasure, to_base_units


class TransactionType(str, Enum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"
    REVERSAL = "REVERSAL"


DIRECTIONS = {
    TransactionType.INBOUND: 1,
    TransactionType.OUTBOUND: -1,
}


@dataclass(frozen=True)
class LineRequest:
    code: str
    quantity: int
    unit: UnitOfMeasure = UnitOfMeasure.EACH


@dataclass(frozen=True)
class _ResolvedLine:
    product: Product
    requested_code: str
    quantity: int
    unit: UnitOfMeasure


class ProductLookup:
    """Products referenced by one engine call, loaded with a single query.

    Codes are matched against barcodes first, then SKUs, the same precedence
    the scan resolver uses.
    """

    def __init__(self, products: Iterable[Product]) -> None:
        self.by_sku: dict[str, Product] = {}
        self.by_barcode: dict[str, Product] = {}
        for product in products:
            self.by_sku[product.sku] = product
            if product.barcode:
                self.by_barcode[product.barcode] = product

    @classmethod
    def load(cls, db: Session, codes: Iterable[str]) -> "ProductLookup":
        wanted = sorted({code.strip() for code in codes if code and code.strip()})
        if not wanted:
            return cls([])
        products = db.execute(
            select(Product).where(
                Product.is_active.is_(True),
                or_(Product.sku.in_(wanted), Product.barcode.in_(wanted)),
            )
        ).scalars().all()
        return cls(products)

    def resolve(self, code: str) -> Product:
        key = code.strip()
        product = self.by_barcode.get(key) or self.by_sku.get(key)
        if not product:
            raise ProductNotFound(code)
        return product


def content_lines(container: Container) -> list[LineRequest]:
    """EACH lines for a container's content rows, in position order."""
    return [
        LineRequest(code=content.product_sku, quantity=content.quantity, unit=UnitOfMeasure.EACH)
        for content in container.contents
    ]


def _container_lines(db: Session, barcodes: Sequence[str], warehouse: Warehouse) -> list[LineRequest]:
    if not barcodes:
        return []
    containers = {
        container.barcode: container
        for container in db.execute(
            select(Container).where(
                Container.barcode.in_(list(barcodes)),
                Container.warehouse_id == warehouse.id,
            )
        ).scalars().all()
    }
    lines: list[LineRequest] = []
    for barcode in barcodes:
        container = containers.get(barcode)
        if not container:
            raise ContainerNotFound(barcode)
        if container.status != "ACTIVE":
            raise ContainerAlreadyOpened(barcode, status=container.status)
        lines.extend(content_lines(container))
    return lines


def _book(
    db: Session,
    *,
    transaction_type: TransactionType,
    direction: int,
    warehouse_id: str,
    location_id: str | None,
    lines: Sequence[_ResolvedLine],
    actor: str,
    reference_no: str | None,
    notes: str | None,
    container_id: str | None = None,
    reverses_transaction_id: str | None = None,
) -> InventoryTransaction:
    if not lines:
        raise InventoryError("A transaction needs at least one line", identifier=transaction_type.value)

    txn = InventoryTransaction(
        id=str(uuid.uuid4()),
        transaction_type=transaction_type.value,
        direction=direction,
        warehouse_id=warehouse_id,
        location_id=location_id,
        actor=actor,
        reference_no=reference_no,
        notes=notes,
        container_id=container_id,
        reverses_transaction_id=reverses_transaction_id,
    )
    db.add(txn)

    # Pre-flight check against a snapshot, consumed line by line so repeated
    # lines of one product are checked against what is left.
    available: dict[str, int] = {}
    if direction < 0:
        available = snapshot_quantities(
            db,
            product_ids=[line.product.id for line in lines],
            warehouse_id=warehouse_id,
            location_id=location_id,
        )

    deltas: dict[str, int] = defaultdict(int)
    products: dict[str, Product] = {}
    for line_no, line in enumerate(lines, start=1):
        if line.quantity <= 0:
            raise InventoryError(
                f"Quantity for {line.requested_code} must be positive, got {line.quantity}",
                identifier=line.requested_code,
            )
        base_quantity = to_base_units(line.quantity, line.unit, line.product)
        if direction < 0:
            remaining = available[line.product.id]
            if base_quantity > remaining:
                raise reject_insufficient(
                    line.product,
                    available=remaining,
                    requested=base_quantity,
                    location_id=location_id,
                )
            available[line.product.id] = remaining - base_quantity

        txn.lines.append(
            InventoryTransactionLine(
                id=str(uuid.uuid4()),
                transaction_id=txn.id,
                line_no=line_no,
                product_id=line.product.id,
                product_sku=line.product.sku,
                requested_code=line.requested_code,
                quantity=line.quantity,
                unit=line.unit.value,
                base_quantity=base_quantity,
            )
        )
        deltas[line.product.id] += direction * base_quantity
        products[line.product.id] = line.product

    # Ledger rows are locked in SKU order so concurrent movements over the same
    # products always acquire locks in the same sequence.
    for product in sorted(products.values(), key=lambda item: item.sku):
        delta = deltas[product.id]
        if delta == 0:
            continue
        apply_delta(db, product=product, warehouse_id=warehouse_id, location_id=location_id, delta=delta)

    db.flush()
    return txn


def create_transaction(
    db: Session,
    *,
    transaction_type: TransactionType | str,
    warehouse_code: str,
    location_code: str | None,
    lines: Sequence[LineRequest],
    actor: str,
    reference_no: str | None = None,
    notes: str | None = None,
    container_barcodes: Sequence[str] = (),
    container_id: str | None = None,
) -> InventoryTransaction:
    transaction_type = TransactionType(transaction_type)
    if transaction_type not in DIRECTIONS:
        raise InventoryError(
            f"Transaction type {transaction_type.value} cannot be created directly",
            identifier=transaction_type.value,
        )

    warehouse = get_warehouse_or_404(db, warehouse_code)
    location = resolve_effective_location(db, warehouse, location_code)

    requests = [*lines, *_container_lines(db, container_barcodes, warehouse)]
    lookup = ProductLookup.load(db, [request.code for request in requests])
    resolved = [
        _ResolvedLine(
            product=lookup.resolve(request.code),
            requested_code=request.code,
            quantity=request.quantity,
            unit=UnitOfMeasure(request.unit),
        )
        for request in requests
    ]

    txn = _book(
        db,
        transaction_type=transaction_type,
        direction=DIRECTIONS[transaction_type],
        warehouse_id=warehouse.id,
        location_id=location.id if location else None,
        lines=resolved,
        actor=actor,
        reference_no=reference_no,
        notes=notes,
        container_id=container_id,
    )
    log_event(
        "transaction.created",
        transaction_id=txn.id,
        transaction_type=txn.transaction_type,
        warehouse=warehouse.code,
        location=location.code if location else None,
        lines=len(resolved),
        actor=actor,
    )
    return txn


def get_transaction(db: Session, transaction_id: str) -> InventoryTransaction:
    txn = db.get(InventoryTransaction, transaction_id)
    if not txn:
        raise TransactionNotFound(transaction_id)
    return txn


def undo_transaction(db: Session, transaction_id: str, actor: str) -> InventoryTransaction:
    """Book a REVERSAL that inverts every line of ``transaction_id``.

    Quantities and units are copied from the original while base quantities are
    recomputed from the products' current pack ratios. A reversal can itself be
    undone, but any single transaction is reversed at most once.
    """
    original = db.execute(
        select(InventoryTransaction)
        .where(InventoryTransaction.id == transaction_id)
        .with_for_update()
    ).scalar_one_or_none()
    if not original:
        raise TransactionNotFound(transaction_id)

    existing_reversal_id = db.execute(
        select(InventoryTransaction.id).where(InventoryTransaction.reverses_transaction_id == original.id)
    ).scalar_one_or_none()
    if existing_reversal_id:
        raise TransactionAlreadyReversed(original.id, reversal_id=existing_reversal_id)

    products = {
        product.id: product
        for product in db.execute(
            select(Product).where(Product.id.in_({line.product_id for line in original.lines}))
        ).scalars().all()
    }
    resolved = [
        _ResolvedLine(
            product=products[line.product_id],
            requested_code=line.requested_code,
            quantity=line.quantity,
            unit=UnitOfMeasure(line.unit),
        )
        for line in original.lines
    ]

    reversal = _book(
        db,
        transaction_type=TransactionType.REVERSAL,
        direction=-original.direction,
        warehouse_id=original.warehouse_id,
        location_id=original.location_id,
        lines=resolved,
        actor=actor,
        reference_no=f"UNDO-{original.id}",
        notes=original.notes,
        reverses_transaction_id=original.id,
    )
    log_event(
        "transaction.reversed",
        transaction_id=reversal.id,
        reverses_transaction_id=original.id,
        direction=reversal.direction,
        lines=len(resolved),
        actor=actor,
    )
    return reversal


def list_transactions(
    db: Session,
    *,
    warehouse_code: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[InventoryTransaction], int]:
    filters = []
    if warehouse_code:
        warehouse = get_warehouse_or_404(db, warehouse_code)
        filters.append(InventoryTransaction.warehouse_id == warehouse.id)

    total = int(
        db.execute(select(func.count(InventoryTransaction.id)).where(*filters)).scalar_one()
    )
    rows = db.execute(
        select(InventoryTransaction)
        .where(*filters)
        .order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())
        .limit(limit)
        .offset(offset)
    ).scalars().all()
    return list(rows), total
