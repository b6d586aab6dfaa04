from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wms.core.api_docs import error_responses
from wms.core.deps import get_db
from wms.core.errors import storage_fault_guard
from wms.models.container import Container
from wms.routers.transactions import transaction_out
from wms.schemas.container import (
    ContainerContentOut,
    ContainerCreateIn,
    ContainerOpenIn,
    ContainerOpenOut,
    ContainerOut,
)
from wms.services.audit_service import log_audit_event
from wms.services.container_service import (
    ContentRequest,
    create_container,
    get_container,
    open_container,
)

router = APIRouter(prefix="/containers", tags=["containers"])


def container_out(container: Container) -> ContainerOut:
    return ContainerOut(
        id=container.id,
        barcode=container.barcode,
        container_type=container.container_type,
        warehouse_id=container.warehouse_id,
        status=container.status,
        created_by=container.created_by,
        notes=container.notes,
        created_at=container.created_at,
        opened_at=container.opened_at,
        opened_by=container.opened_by,
        contents=[
            ContainerContentOut(
                position=content.position,
                product_id=content.product_id,
                product_sku=content.product_sku,
                quantity=content.quantity,
            )
            for content in container.contents
        ],
    )


@router.post(
    "",
    response_model=ContainerOut,
    status_code=201,
    summary="Create a box or pallet with fixed contents",
    responses=error_responses(404, 409, 422, 500),
)
def create(payload: ContainerCreateIn, db: Session = Depends(get_db)):
    with storage_fault_guard("container.create"):
        container = create_container(
            db,
            container_type=payload.container_type,
            warehouse_code=payload.warehouse_code,
            contents=[ContentRequest(sku=item.sku, quantity=item.quantity) for item in payload.contents],
            actor=payload.actor,
            notes=payload.notes,
        )
        log_audit_event(
            db,
            actor=payload.actor,
            action="container.create",
            target_type="container",
            target_id=container.id,
            metadata_json={"barcode": container.barcode, "items": len(payload.contents)},
        )
        db.commit()
    return container_out(container)


@router.get(
    "/{barcode}",
    response_model=ContainerOut,
    summary="Get a container and its contents",
    responses=error_responses(404, 422, 500),
)
def get_one(barcode: str, db: Session = Depends(get_db)):
    return container_out(get_container(db, barcode))


@router.post(
    "/{barcode}/open",
    response_model=ContainerOpenOut,
    summary="Open a container and return its contents to stock",
    responses=error_responses(404, 409, 422, 500),
)
def open_one(barcode: str, payload: ContainerOpenIn, db: Session = Depends(get_db)):
    with storage_fault_guard("container.open"):
        txn, items_returned = open_container(
            db,
            barcode=barcode,
            actor=payload.actor,
            location_code=payload.location_code,
        )
        container = get_container(db, barcode)
        log_audit_event(
            db,
            actor=payload.actor,
            action="container.open",
            target_type="container",
            target_id=container.id,
            metadata_json={
                "barcode": container.barcode,
                "transaction_id": txn.id,
                "items_returned": items_returned,
            },
        )
        db.commit()
    return ContainerOpenOut(
        container=container_out(container),
        transaction=transaction_out(txn),
        items_returned=items_returned,
    )
