from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wms.core.api_docs import error_responses
from wms.core.deps import get_db
from wms.core.errors import storage_fault_guard
from wms.models.count import CountItem, CountLocationResult, CountReport
from wms.schemas.count import (
    CountActorIn,
    CountItemOut,
    CountLocationOut,
    CountLocationStartIn,
    CountOpenIn,
    CountReportOut,
    CountScanIn,
)
from wms.services.audit_service import log_audit_event
from wms.services.cycle_count_service import (
    finalize_count_report,
    get_count_report,
    open_count_session,
    save_location_count,
    scan_count_item,
    start_location_count,
)

router = APIRouter(prefix="/counts", tags=["counts"])


def _item_out(item: CountItem) -> CountItemOut:
    return CountItemOut(
        id=item.id,
        product_id=item.product_id,
        product_sku=item.product_sku,
        product_name=item.product_name,
        expected_quantity=item.expected_quantity,
        counted_quantity=item.counted_quantity,
        variance=item.variance,
        is_unexpected=item.is_unexpected,
    )


def _location_out(result: CountLocationResult) -> CountLocationOut:
    return CountLocationOut(
        id=result.id,
        location_id=result.location_id,
        location_code=result.location_code,
        status=result.status,
        total_expected=result.total_expected,
        total_counted=result.total_counted,
        total_variance=result.total_variance,
        unexpected_count=result.unexpected_count,
        counted_by=result.counted_by,
        started_at=result.started_at,
        saved_at=result.saved_at,
        items=[_item_out(item) for item in result.items],
    )


def _report_out(report: CountReport) -> CountReportOut:
    return CountReportOut(
        id=report.id,
        report_number=report.report_number,
        warehouse_id=report.warehouse_id,
        status=report.status,
        total_locations=report.total_locations,
        total_expected=report.total_expected,
        total_counted=report.total_counted,
        total_variance=report.total_variance,
        variance_percentage=float(report.variance_percentage),
        created_by=report.created_by,
        notes=report.notes,
        created_at=report.created_at,
        finalized_at=report.finalized_at,
        locations=[_location_out(result) for result in report.locations],
    )


@router.post(
    "",
    response_model=CountReportOut,
    status_code=201,
    summary="Open a cycle count for a warehouse",
    responses=error_responses(404, 422, 500),
)
def open_count(payload: CountOpenIn, db: Session = Depends(get_db)):
    with storage_fault_guard("count.open"):
        report = open_count_session(
            db,
            warehouse_code=payload.warehouse_code,
            actor=payload.actor,
            notes=payload.notes,
        )
        log_audit_event(
            db,
            actor=payload.actor,
            action="count.open",
            target_type="count_report",
            target_id=report.id,
            metadata_json={"warehouse_code": payload.warehouse_code},
        )
        db.commit()
    return _report_out(report)


@router.post(
    "/{report_id}/locations",
    response_model=CountLocationOut,
    summary="Start counting a location",
    responses=error_responses(404, 409, 422, 500),
)
def start_location(report_id: str, payload: CountLocationStartIn, db: Session = Depends(get_db)):
    with storage_fault_guard("count.start_location"):
        result = start_location_count(
            db,
            report_id=report_id,
            location_code=payload.location_code,
            actor=payload.actor,
        )
        db.commit()
    return _location_out(result)


@router.post(
    "/{report_id}/scans",
    response_model=CountItemOut,
    summary="Count one scanned unit at the current location",
    responses=error_responses(404, 409, 422, 500),
)
def scan_item(report_id: str, payload: CountScanIn, db: Session = Depends(get_db)):
    with storage_fault_guard("count.scan"):
        item = scan_count_item(db, report_id=report_id, barcode=payload.barcode, actor=payload.actor)
        db.commit()
    return _item_out(item)


@router.post(
    "/{report_id}/locations/current/save",
    response_model=CountLocationOut,
    summary="Save the location currently being counted",
    responses=error_responses(404, 409, 422, 500),
)
def save_location(report_id: str, payload: CountActorIn, db: Session = Depends(get_db)):
    with storage_fault_guard("count.save_location"):
        result = save_location_count(db, report_id=report_id, actor=payload.actor)
        db.commit()
    return _location_out(result)


@router.post(
    "/{report_id}/finalize",
    response_model=CountReportOut,
    summary="Finalize the count report",
    responses=error_responses(404, 409, 422, 500),
)
def finalize(report_id: str, payload: CountActorIn, db: Session = Depends(get_db)):
    with storage_fault_guard("count.finalize"):
        report = finalize_count_report(db, report_id=report_id, actor=payload.actor)
        log_audit_event(
            db,
            actor=payload.actor,
            action="count.finalize",
            target_type="count_report",
            target_id=report.id,
            metadata_json={
                "report_number": report.report_number,
                "total_variance": report.total_variance,
                "variance_percentage": str(report.variance_percentage),
            },
        )
        db.commit()
    return _report_out(report)


@router.get(
    "/{report_id}",
    response_model=CountReportOut,
    summary="Get a count report with per-location results",
    responses=error_responses(404, 422, 500),
)
def get_report(report_id: str, db: Session = Depends(get_db)):
    return _report_out(get_count_report(db, report_id))
