import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import select
from sqlalchemy.orm import Session

from wms.core.config import settings
from wms.core.errors import ContainerAlreadyOpened, ContainerEmpty, ContainerNotFound, InventoryError
from wms.core.observability import log_event
from wms.models.container import Container, ContainerContent
from wms.models.location import Warehouse
from wms.models.transaction import InventoryTransaction
from wms.services.master_data import get_warehouse_or_404
from wms.services.sequence_service import format_sequence, next_sequence_value
from wms.services.transaction_engine import (
    LineRequest,
    ProductLookup,
    TransactionType,
    content_lines,
    create_transaction,
)


class ContainerType(str, Enum):
    BOX = "BOX"
    PALLET = "PALLET"


@dataclass(frozen=True)
class ContentRequest:
    sku: str
    quantity: int


def barcode_prefix(container_type: ContainerType) -> str:
    if container_type is ContainerType.PALLET:
        return settings.container_prefix_pallet
    return settings.container_prefix_box


def get_container(db: Session, barcode: str) -> Container:
    container = db.execute(
        select(Container).where(Container.barcode == barcode.strip())
    ).scalar_one_or_none()
    if not container:
        raise ContainerNotFound(barcode)
    return container


def _lock_container(db: Session, barcode: str) -> Container:
    container = db.execute(
        select(Container).where(Container.barcode == barcode.strip()).with_for_update()
    ).scalar_one_or_none()
    if not container:
        raise ContainerNotFound(barcode)
    return container


def create_container(
    db: Session,
    *,
    container_type: ContainerType | str,
    warehouse_code: str,
    contents: Sequence[ContentRequest],
    actor: str,
    notes: str | None = None,
) -> Container:
    """Register a sealed box or pallet with fixed contents.

    Creating a container records what is inside it; stock only moves when the
    container is opened.
    """
    container_type = ContainerType(container_type)
    if not contents:
        raise ContainerEmpty(container_type.value)

    warehouse = get_warehouse_or_404(db, warehouse_code)
    lookup = ProductLookup.load(db, [item.sku for item in contents])
    resolved = []
    for item in contents:
        product = lookup.resolve(item.sku)
        if item.quantity <= 0:
            raise InventoryError(
                f"Quantity for {item.sku} must be positive, got {item.quantity}",
                identifier=item.sku,
            )
        resolved.append((product, item.quantity))

    prefix = barcode_prefix(container_type)
    barcode = format_sequence(prefix, next_sequence_value(db, prefix), settings.container_sequence_width)

    container = Container(
        id=str(uuid.uuid4()),
        barcode=barcode,
        container_type=container_type.value,
        warehouse_id=warehouse.id,
        status="ACTIVE",
        created_by=actor,
        notes=notes,
    )
    db.add(container)
    for position, (product, quantity) in enumerate(resolved, start=1):
        container.contents.append(
            ContainerContent(
                id=str(uuid.uuid4()),
                container_id=container.id,
                position=position,
                product_id=product.id,
                product_sku=product.sku,
                quantity=quantity,
            )
        )
    db.flush()

    log_event(
        "container.created",
        barcode=barcode,
        container_type=container_type.value,
        warehouse=warehouse.code,
        items=len(resolved),
        actor=actor,
    )
    return container


def container_lines(db: Session, barcode: str) -> list[LineRequest]:
    """EACH lines for an ACTIVE container's contents. Does not change its state."""
    container = get_container(db, barcode)
    if container.status != "ACTIVE":
        raise ContainerAlreadyOpened(container.barcode, status=container.status)
    return content_lines(container)


def open_container(
    db: Session,
    *,
    barcode: str,
    actor: str,
    location_code: str | None = None,
) -> tuple[InventoryTransaction, int]:
    """Unpack a container into stock.

    Books one INBOUND transaction carrying exactly the content rows and moves
    the container to OPENED. Returns the transaction and the number of content rows
    returned to stock.
    """
    container = _lock_container(db, barcode)
    if container.status != "ACTIVE":
        raise ContainerAlreadyOpened(container.barcode, status=container.status)
    if not container.contents:
        raise ContainerEmpty(container.barcode)

    warehouse_code = container_warehouse_code(db, container)
    txn = create_transaction(
        db,
        transaction_type=TransactionType.INBOUND,
        warehouse_code=warehouse_code,
        location_code=location_code,
        lines=content_lines(container),
        actor=actor,
        reference_no=container.barcode,
        notes=f"Opened {container.container_type} {container.barcode}",
        container_id=container.id,
    )

    container.status = "OPENED"
    container.opened_at = datetime.now(timezone.utc)
    container.opened_by = actor
    db.flush()

    items_returned = len(container.contents)
    log_event(
        "container.opened",
        barcode=container.barcode,
        transaction_id=txn.id,
        items_returned=items_returned,
        actor=actor,
    )
    return txn, items_returned


def container_warehouse_code(db: Session, container: Container) -> str:
    warehouse = db.get(Warehouse, container.warehouse_id)
    return warehouse.code
