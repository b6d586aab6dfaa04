from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from wms.core.api_docs import error_responses
from wms.core.config import settings
from wms.core.deps import get_db
from wms.core.errors import storage_fault_guard
from wms.models.transaction import InventoryTransaction
from wms.schemas.common import PaginationMeta
from wms.schemas.transaction import (
    TransactionCreateIn,
    TransactionLineOut,
    TransactionListOut,
    TransactionOut,
    TransactionSummaryOut,
    TransactionUndoIn,
)
from wms.services.audit_service import log_audit_event
from wms.services.transaction_engine import (
    LineRequest,
    create_transaction,
    get_transaction,
    list_transactions,
    undo_transaction,
)

router = APIRouter(prefix="/transactions", tags=["transactions"])


def transaction_out(txn: InventoryTransaction) -> TransactionOut:
    return TransactionOut(
        id=txn.id,
        transaction_type=txn.transaction_type,
        direction=txn.direction,
        warehouse_id=txn.warehouse_id,
        location_id=txn.location_id,
        actor=txn.actor,
        reference_no=txn.reference_no,
        notes=txn.notes,
        container_id=txn.container_id,
        reverses_transaction_id=txn.reverses_transaction_id,
        created_at=txn.created_at,
        lines=[
            TransactionLineOut(
                line_no=line.line_no,
                product_id=line.product_id,
                product_sku=line.product_sku,
                requested_code=line.requested_code,
                quantity=line.quantity,
                unit=line.unit,
                base_quantity=line.base_quantity,
            )
            for line in txn.lines
        ],
    )


def _summary_out(txn: InventoryTransaction) -> TransactionSummaryOut:
    return TransactionSummaryOut(
        id=txn.id,
        transaction_type=txn.transaction_type,
        direction=txn.direction,
        warehouse_id=txn.warehouse_id,
        location_id=txn.location_id,
        actor=txn.actor,
        reference_no=txn.reference_no,
        line_count=len(txn.lines),
        total_base_quantity=sum(line.base_quantity for line in txn.lines),
        created_at=txn.created_at,
    )


@router.post(
    "",
    response_model=TransactionOut,
    status_code=201,
    summary="Book an inbound or outbound stock movement",
    responses=error_responses(400, 404, 409, 422, 500),
)
def create(payload: TransactionCreateIn, db: Session = Depends(get_db)):
    with storage_fault_guard("transaction.create"):
        txn = create_transaction(
            db,
            transaction_type=payload.transaction_type,
            warehouse_code=payload.warehouse_code,
            location_code=payload.location_code,
            lines=[
                LineRequest(code=line.code, quantity=line.quantity, unit=line.unit)
                for line in payload.lines
            ],
            actor=payload.actor,
            reference_no=payload.reference_no,
            notes=payload.notes,
            container_barcodes=payload.container_barcodes,
        )
        log_audit_event(
            db,
            actor=payload.actor,
            action="transaction.create",
            target_type="transaction",
            target_id=txn.id,
            metadata_json={
                "transaction_type": txn.transaction_type,
                "warehouse_code": payload.warehouse_code,
                "lines": len(txn.lines),
                "reference_no": txn.reference_no,
            },
        )
        db.commit()
    return transaction_out(txn)


@router.get(
    "",
    response_model=TransactionListOut,
    summary="List recent transactions",
    responses=error_responses(404, 422, 500),
)
def list_recent(
    warehouse_code: str | None = Query(default=None, max_length=20),
    limit: int = Query(default=50, ge=1, le=settings.transactions_page_max),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    rows, total = list_transactions(db, warehouse_code=warehouse_code, limit=limit, offset=offset)
    count = len(rows)
    return TransactionListOut(
        items=[_summary_out(txn) for txn in rows],
        pagination=PaginationMeta(
            total=total,
            limit=limit,
            offset=offset,
            count=count,
            has_next=offset + count < total,
        ),
    )


@router.get(
    "/{transaction_id}",
    response_model=TransactionOut,
    summary="Get a transaction with its lines",
    responses=error_responses(404, 422, 500),
)
def get_one(transaction_id: str, db: Session = Depends(get_db)):
    return transaction_out(get_transaction(db, transaction_id))


@router.post(
    "/{transaction_id}/undo",
    response_model=TransactionOut,
    status_code=201,
    summary="Reverse a committed transaction",
    responses=error_responses(400, 404, 409, 422, 500),
)
def undo(transaction_id: str, payload: TransactionUndoIn, db: Session = Depends(get_db)):
    with storage_fault_guard("transaction.undo"):
        reversal = undo_transaction(db, transaction_id, payload.actor)
        log_audit_event(
            db,
            actor=payload.actor,
            action="transaction.undo",
            target_type="transaction",
            target_id=transaction_id,
            metadata_json={"reversal_id": reversal.id, "lines": len(reversal.lines)},
        )
        db.commit()
    return transaction_out(reversal)
