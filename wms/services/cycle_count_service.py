"""Cycle counts: expected-versus-counted reconciliation per location.

A count report doubles as the counting session while it is OPEN. Each location
moves NOT_STARTED -> COUNTING -> SAVED, and only one location of a report may be
COUNTING at a time. Counting is an observation: nothing in this module writes to
the inventory ledger, and finalizing does not book corrective movements.
"""
import uuid
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from wms.core.config import settings
from wms.core.errors import AlreadyCounted, CountReportNotFound, InvalidCountState, ProductNotFound
from wms.core.observability import log_event
from wms.models.count import CountItem, CountLocationResult, CountReport, CountScan
from wms.models.location import Warehouse
from wms.models.product import Product
from wms.services.inventory_ledger import location_rows
from wms.services.master_data import get_location_or_404, get_warehouse_or_404
from wms.services.scan_resolver import ProductScan, resolve_scan
from wms.services.sequence_service import format_sequence, next_sequence_value

REPORT_OPEN = "OPEN"
REPORT_FINALIZED = "FINALIZED"
LOCATION_COUNTING = "COUNTING"
LOCATION_SAVED = "SAVED"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_count_report(db: Session, report_id: str) -> CountReport:
    report = db.get(CountReport, report_id)
    if not report:
        raise CountReportNotFound(report_id)
    return report


def _open_report(db: Session, report_id: str) -> CountReport:
    report = db.execute(
        select(CountReport).where(CountReport.id == report_id).with_for_update()
    ).scalar_one_or_none()
    if not report:
        raise CountReportNotFound(report_id)
    if report.status != REPORT_OPEN:
        raise InvalidCountState(
            f"Count report {report.report_number or report.id} is {report.status}",
            identifier=report.id,
            state=report.status,
        )
    return report


def _counting_location(report: CountReport) -> CountLocationResult | None:
    for result in report.locations:
        if result.status == LOCATION_COUNTING:
            return result
    return None


def _require_counting_location(report: CountReport) -> CountLocationResult:
    current = _counting_location(report)
    if current is None:
        raise InvalidCountState(
            f"No location is being counted in report {report.id}",
            identifier=report.id,
            state=report.status,
        )
    return current


def variance_percentage(total_variance: int, total_expected: int) -> Decimal:
    if total_expected == 0:
        return Decimal("0.00")
    return (Decimal(total_variance) * 100 / Decimal(total_expected)).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )


def open_count_session(
    db: Session,
    *,
    warehouse_code: str,
    actor: str,
    notes: str | None = None,
) -> CountReport:
    warehouse = get_warehouse_or_404(db, warehouse_code)
    report = CountReport(
        id=str(uuid.uuid4()),
        warehouse_id=warehouse.id,
        status=REPORT_OPEN,
        created_by=actor,
        notes=notes,
    )
    db.add(report)
    db.flush()
    return report


def start_location_count(
    db: Session,
    *,
    report_id: str,
    location_code: str,
    actor: str,
) -> CountLocationResult:
    """Begin counting a location, snapshotting its positive ledger rows as expected items.

    Rows at zero are left out of the snapshot, so a product found on a zeroed row
    is counted as unexpected. Re-starting the location that is already COUNTING
    returns it unchanged.
    """
    report = _open_report(db, report_id)
    location = get_location_or_404(db, location_code, report.warehouse_id)

    current = _counting_location(report)
    if current is not None:
        if current.location_id == location.id:
            return current
        raise InvalidCountState(
            f"Location {current.location_code} is still being counted; save it before starting {location.code}",
            identifier=location_code,
            state=LOCATION_COUNTING,
        )

    for result in report.locations:
        if result.location_id == location.id:
            raise InvalidCountState(
                f"Location {location.code} was already counted in this report",
                identifier=location_code,
                state=result.status,
            )

    rows = location_rows(db, location_id=location.id, positive_only=True)
    names = {
        product.id: product.name
        for product in db.execute(
            select(Product).where(Product.id.in_({row.product_id for row in rows}))
        ).scalars().all()
    } if rows else {}

    result = CountLocationResult(
        id=str(uuid.uuid4()),
        report_id=report.id,
        location_id=location.id,
        location_code=location.code,
        status=LOCATION_COUNTING,
        counted_by=actor,
        started_at=_utcnow(),
    )
    report.locations.append(result)
    for position, row in enumerate(rows, start=1):
        result.items.append(
            CountItem(
                id=str(uuid.uuid4()),
                location_result_id=result.id,
                position=position,
                product_id=row.product_id,
                product_sku=row.product_sku,
                product_name=names.get(row.product_id),
                expected_quantity=row.quantity,
                counted_quantity=0,
                variance=-row.quantity,
                is_unexpected=False,
            )
        )
    db.flush()
    return result


def scan_count_item(db: Session, *, report_id: str, barcode: str, actor: str) -> CountItem:
    """Count one physical unit at the location currently being counted.

    Serial barcodes identify a single unit and may be counted once per
    location; product barcodes and SKUs count one more unit on every scan.
    """
    report = _open_report(db, report_id)
    current = _require_counting_location(report)
    warehouse = db.get(Warehouse, report.warehouse_id)

    scan = resolve_scan(db, barcode, warehouse)
    if not isinstance(scan, ProductScan):
        raise ProductNotFound(barcode)

    unit_barcode = scan.serial.full_barcode if scan.serial else None
    if unit_barcode:
        seen = db.execute(
            select(CountScan.id).where(
                CountScan.location_result_id == current.id,
                CountScan.barcode == unit_barcode,
            )
        ).scalar_one_or_none()
        if seen:
            raise AlreadyCounted(unit_barcode, location_code=current.location_code)

    item = next((entry for entry in current.items if entry.product_id == scan.product.id), None)
    if item is None:
        item = CountItem(
            id=str(uuid.uuid4()),
            location_result_id=current.id,
            position=len(current.items) + 1,
            product_id=scan.product.id,
            product_sku=scan.product.sku,
            product_name=scan.product.name,
            expected_quantity=0,
            counted_quantity=0,
            variance=0,
            is_unexpected=True,
        )
        current.items.append(item)

    item.counted_quantity += 1
    item.variance = item.counted_quantity - item.expected_quantity
    db.flush()

    if unit_barcode:
        db.add(
            CountScan(
                id=str(uuid.uuid4()),
                location_result_id=current.id,
                count_item_id=item.id,
                barcode=unit_barcode,
            )
        )
        db.flush()
    return item


def save_location_count(db: Session, *, report_id: str, actor: str) -> CountLocationResult:
    report = _open_report(db, report_id)
    current = _require_counting_location(report)

    current.total_expected = sum(item.expected_quantity for item in current.items if not item.is_unexpected)
    current.total_counted = sum(item.counted_quantity for item in current.items)
    current.total_variance = current.total_counted - current.total_expected
    current.unexpected_count = sum(1 for item in current.items if item.is_unexpected)
    current.status = LOCATION_SAVED
    current.saved_at = _utcnow()
    db.flush()

    log_event(
        "count.location_saved",
        report_id=report.id,
        location=current.location_code,
        expected=current.total_expected,
        counted=current.total_counted,
        variance=current.total_variance,
        unexpected=current.unexpected_count,
        actor=actor,
    )
    return current


def finalize_count_report(db: Session, *, report_id: str, actor: str) -> CountReport:
    """Aggregate every saved location and assign the report number.

    Variances are reported only; deciding on corrective transactions is left
    to whoever reviews the report.
    """
    report = _open_report(db, report_id)
    current = _counting_location(report)
    if current is not None:
        raise InvalidCountState(
            f"Location {current.location_code} is still being counted",
            identifier=report.id,
            state=LOCATION_COUNTING,
        )
    saved = [result for result in report.locations if result.status == LOCATION_SAVED]
    if not saved:
        raise InvalidCountState(
            f"Count report {report.id} has no saved locations",
            identifier=report.id,
            state=report.status,
        )

    report.total_locations = len(saved)
    report.total_expected = sum(result.total_expected for result in saved)
    report.total_counted = sum(result.total_counted for result in saved)
    report.total_variance = report.total_counted - report.total_expected
    report.variance_percentage = variance_percentage(report.total_variance, report.total_expected)

    finalized_at = _utcnow()
    prefix = f"{settings.count_report_prefix}-{finalized_at:%Y%m%d}"
    report.report_number = format_sequence(
        prefix,
        next_sequence_value(db, prefix),
        settings.count_report_sequence_width,
    )
    report.status = REPORT_FINALIZED
    report.finalized_at = finalized_at
    db.flush()

    log_event(
        "count.finalized",
        report_id=report.id,
        report_number=report.report_number,
        locations=report.total_locations,
        variance=report.total_variance,
        variance_percentage=report.variance_percentage,
        actor=actor,
    )
    return report
