from datetime import datetime, timezone
from decimal import Decimal

import pytest

from conftest import ledger_quantity
from wms.core.errors import AlreadyCounted, CountReportNotFound, InvalidCountState, ProductNotFound
from wms.services.cycle_count_service import (
    finalize_count_report,
    get_count_report,
    open_count_session,
    save_location_count,
    scan_count_item,
    start_location_count,
    variance_percentage,
)
from wms.services.transaction_engine import LineRequest, create_transaction
from wms.services.unit_converter import UnitOfMeasure


def _receive(db, lines, location_code="LOC-L1"):
    create_transaction(
        db,
        transaction_type="INBOUND",
        warehouse_code="WH1",
        location_code=location_code,
        lines=lines,
        actor="operator-1",
    )
    db.commit()


def _open(db):
    report = open_count_session(db, warehouse_code="WH1", actor="counter-1")
    db.commit()
    return report


def _scan(db, report, barcode, times=1):
    item = None
    for _ in range(times):
        item = scan_count_item(db, report_id=report.id, barcode=barcode, actor="counter-1")
    db.commit()
    return item


def test_count_with_shortage_and_unexpected_item(db):
    _receive(db, [LineRequest("SKU-1", 2, UnitOfMeasure.OUTER_PACK)])
    report = _open(db)

    result = start_location_count(db, report_id=report.id, location_code="LOC-L1", actor="counter-1")
    db.commit()
    assert [(item.product_sku, item.expected_quantity, item.counted_quantity) for item in result.items] == [
        ("SKU-1", 120, 0)
    ]

    expected_item = _scan(db, report, "8690000000011", times=118)
    unexpected_item = _scan(db, report, "SKU-2", times=2)

    assert expected_item.counted_quantity == 118
    assert expected_item.variance == -2
    assert unexpected_item.is_unexpected is True
    assert unexpected_item.expected_quantity == 0
    assert unexpected_item.variance == 2

    saved = save_location_count(db, report_id=report.id, actor="counter-1")
    db.commit()
    assert saved.status == "SAVED"
    assert saved.total_expected == 120
    assert saved.total_counted == 120
    assert saved.total_variance == 0
    assert saved.unexpected_count == 1

    finalized = finalize_count_report(db, report_id=report.id, actor="counter-1")
    db.commit()
    today = datetime.now(timezone.utc).strftime("%Y%m%d")
    assert finalized.status == "FINALIZED"
    assert finalized.report_number == f"SAY-{today}-0001"
    assert finalized.total_locations == 1
    assert finalized.total_expected == 120
    assert finalized.total_counted == 120
    assert finalized.variance_percentage == Decimal("0.00")
    assert finalized.finalized_at is not None

    # A count is an observation; the ledger is untouched.
    assert ledger_quantity(db, "SKU-1", "LOC-L1") == 120
    assert ledger_quantity(db, "SKU-2", "LOC-L1") == 0


def test_report_totals_aggregate_locations(db):
    _receive(db, [LineRequest("SKU-2", 10)], location_code="LOC-L1")
    _receive(db, [LineRequest("SKU-3", 10)], location_code="LOC-L2")
    report = _open(db)

    start_location_count(db, report_id=report.id, location_code="LOC-L1", actor="counter-1")
    _scan(db, report, "SKU-2", times=9)
    save_location_count(db, report_id=report.id, actor="counter-1")
    start_location_count(db, report_id=report.id, location_code="LOC-L2", actor="counter-1")
    _scan(db, report, "SKU-3", times=7)
    save_location_count(db, report_id=report.id, actor="counter-1")
    finalized = finalize_count_report(db, report_id=report.id, actor="counter-1")
    db.commit()

    assert finalized.total_locations == 2
    assert finalized.total_expected == 20
    assert finalized.total_counted == 16
    assert finalized.total_variance == -4
    assert finalized.variance_percentage == Decimal("-20.00")

    second = _open(db)
    start_location_count(db, report_id=second.id, location_code="LOC-L1", actor="counter-1")
    save_location_count(db, report_id=second.id, actor="counter-1")
    numbered = finalize_count_report(db, report_id=second.id, actor="counter-1")
    db.commit()
    assert numbered.report_number.endswith("-0002")


def test_serial_barcode_is_counted_once_per_location(db):
    _receive(db, [LineRequest("SKU-1", 3)])
    report = _open(db)
    start_location_count(db, report_id=report.id, location_code="LOC-L1", actor="counter-1")
    db.commit()

    _scan(db, report, "SKU-1-000123")
    _scan(db, report, "SKU-1-000124")

    with pytest.raises(AlreadyCounted) as exc_info:
        scan_count_item(db, report_id=report.id, barcode="SKU-1-000123", actor="counter-1")
    db.rollback()

    assert "L1" in exc_info.value.message
    item = _scan(db, report, "8690000000011")
    assert item.counted_quantity == 3


def test_zeroed_row_is_not_expected(db):
    _receive(db, [LineRequest("SKU-2", 3)])
    create_transaction(
        db,
        transaction_type="OUTBOUND",
        warehouse_code="WH1",
        location_code="LOC-L1",
        lines=[LineRequest("SKU-2", 3)],
        actor="operator-1",
    )
    db.commit()
    report = _open(db)

    result = start_location_count(db, report_id=report.id, location_code="LOC-L1", actor="counter-1")
    db.commit()
    assert result.items == []

    item = _scan(db, report, "SKU-2")
    assert item.is_unexpected is True
    assert item.expected_quantity == 0
    assert item.variance == 1


def test_non_product_scan_is_rejected(db):
    report = _open(db)
    start_location_count(db, report_id=report.id, location_code="LOC-L1", actor="counter-1")
    db.commit()

    with pytest.raises(ProductNotFound):
        scan_count_item(db, report_id=report.id, barcode="LOC-L2", actor="counter-1")
    with pytest.raises(ProductNotFound):
        scan_count_item(db, report_id=report.id, barcode="UNKNOWN", actor="counter-1")


def test_scan_requires_a_location_being_counted(db):
    report = _open(db)
    with pytest.raises(InvalidCountState):
        scan_count_item(db, report_id=report.id, barcode="SKU-2", actor="counter-1")


def test_one_location_at_a_time(db):
    report = _open(db)
    first = start_location_count(db, report_id=report.id, location_code="LOC-L1", actor="counter-1")
    db.commit()

    again = start_location_count(db, report_id=report.id, location_code="LOC-L1", actor="counter-1")
    assert again.id == first.id

    with pytest.raises(InvalidCountState):
        start_location_count(db, report_id=report.id, location_code="LOC-L2", actor="counter-1")


def test_saved_location_cannot_be_restarted(db):
    report = _open(db)
    start_location_count(db, report_id=report.id, location_code="LOC-L1", actor="counter-1")
    save_location_count(db, report_id=report.id, actor="counter-1")
    db.commit()

    with pytest.raises(InvalidCountState) as exc_info:
        start_location_count(db, report_id=report.id, location_code="LOC-L1", actor="counter-1")
    assert exc_info.value.state == "SAVED"


def test_finalize_preconditions(db):
    report = _open(db)
    with pytest.raises(InvalidCountState):
        finalize_count_report(db, report_id=report.id, actor="counter-1")

    start_location_count(db, report_id=report.id, location_code="LOC-L1", actor="counter-1")
    db.commit()
    with pytest.raises(InvalidCountState):
        finalize_count_report(db, report_id=report.id, actor="counter-1")

    save_location_count(db, report_id=report.id, actor="counter-1")
    finalize_count_report(db, report_id=report.id, actor="counter-1")
    db.commit()

    with pytest.raises(InvalidCountState) as exc_info:
        start_location_count(db, report_id=report.id, location_code="LOC-L2", actor="counter-1")
    assert exc_info.value.state == "FINALIZED"


def test_unknown_report(db):
    with pytest.raises(CountReportNotFound):
        get_count_report(db, "missing")
    with pytest.raises(CountReportNotFound):
        save_location_count(db, report_id="missing", actor="counter-1")


@pytest.mark.parametrize(
    ("variance", "expected", "percentage"),
    [(-2, 120, Decimal("-1.67")), (1, 3, Decimal("33.33")), (5, 0, Decimal("0.00")), (0, 50, Decimal("0.00"))],
)
def test_variance_percentage(variance, expected, percentage):
    assert variance_percentage(variance, expected) == percentage
