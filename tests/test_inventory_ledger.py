import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from wms.core.errors import InsufficientStock
from wms.models.inventory import InventoryRow
from wms.models.location import Location, Warehouse
from wms.models.product import Product
from wms.services.inventory_ledger import apply_delta, get_on_hand, location_rows, snapshot_quantities


def _keys(db):
    warehouse = db.execute(select(Warehouse).where(Warehouse.code == "WH1")).scalar_one()
    location = db.execute(select(Location).where(Location.qr_code == "LOC-L1")).scalar_one()
    product = db.execute(select(Product).where(Product.sku == "SKU-1")).scalar_one()
    return warehouse, location, product


def test_first_inbound_creates_row(db):
    warehouse, location, product = _keys(db)

    assert apply_delta(db, product=product, warehouse_id=warehouse.id, location_id=location.id, delta=15) == 15
    assert apply_delta(db, product=product, warehouse_id=warehouse.id, location_id=location.id, delta=5) == 20
    assert get_on_hand(db, product_id=product.id, warehouse_id=warehouse.id, location_id=location.id) == 20

    rows = db.execute(select(InventoryRow).where(InventoryRow.product_id == product.id)).scalars().all()
    assert len(rows) == 1
    assert rows[0].product_sku == "SKU-1"


def test_decrement_on_missing_row_reports_zero_available(db):
    warehouse, location, product = _keys(db)

    with pytest.raises(InsufficientStock) as exc_info:
        apply_delta(db, product=product, warehouse_id=warehouse.id, location_id=location.id, delta=-1)

    assert exc_info.value.available == 0
    assert exc_info.value.requested == 1
    assert db.execute(select(InventoryRow)).first() is None


def test_decrement_below_zero_writes_nothing(db):
    warehouse, location, product = _keys(db)
    apply_delta(db, product=product, warehouse_id=warehouse.id, location_id=location.id, delta=10)

    with pytest.raises(InsufficientStock) as exc_info:
        apply_delta(db, product=product, warehouse_id=warehouse.id, location_id=location.id, delta=-11)

    assert "available=10, requested=11" in str(exc_info.value)
    assert get_on_hand(db, product_id=product.id, warehouse_id=warehouse.id, location_id=location.id) == 10


def test_row_is_zeroed_not_deleted(db):
    warehouse, location, product = _keys(db)
    apply_delta(db, product=product, warehouse_id=warehouse.id, location_id=location.id, delta=3)
    assert apply_delta(db, product=product, warehouse_id=warehouse.id, location_id=location.id, delta=-3) == 0

    assert location_rows(db, location_id=location.id) == []
    zeroed = location_rows(db, location_id=location.id, positive_only=False)
    assert [(row.product_sku, row.quantity) for row in zeroed] == [("SKU-1", 0)]


def test_warehouse_level_rows_are_separate_from_location_rows(db):
    warehouse, location, product = _keys(db)
    apply_delta(db, product=product, warehouse_id=warehouse.id, location_id=None, delta=4)
    apply_delta(db, product=product, warehouse_id=warehouse.id, location_id=location.id, delta=9)

    assert snapshot_quantities(db, product_ids=[product.id], warehouse_id=warehouse.id, location_id=None) == {
        product.id: 4
    }
    assert snapshot_quantities(
        db, product_ids=[product.id, product.id], warehouse_id=warehouse.id, location_id=location.id
    ) == {product.id: 9}


def test_warehouse_level_key_is_unique(db):
    warehouse = db.execute(select(Warehouse).where(Warehouse.code == "WH2")).scalar_one()
    product = db.execute(select(Product).where(Product.sku == "SKU-2")).scalar_one()

    assert apply_delta(db, product=product, warehouse_id=warehouse.id, location_id=None, delta=4) == 4

    db.add(
        InventoryRow(
            id=str(uuid.uuid4()),
            product_id=product.id,
            product_sku=product.sku,
            warehouse_id=warehouse.id,
            location_id=None,
            quantity=1,
        )
    )
    with pytest.raises(IntegrityError):
        db.flush()
    db.rollback()


def test_warehouse_level_row_is_reused(db):
    warehouse = db.execute(select(Warehouse).where(Warehouse.code == "WH2")).scalar_one()
    product = db.execute(select(Product).where(Product.sku == "SKU-2")).scalar_one()

    apply_delta(db, product=product, warehouse_id=warehouse.id, location_id=None, delta=4)
    assert apply_delta(db, product=product, warehouse_id=warehouse.id, location_id=None, delta=-1) == 3

    rows = db.execute(
        select(InventoryRow).where(InventoryRow.warehouse_id == warehouse.id, InventoryRow.location_id.is_(None))
    ).scalars().all()
    assert len(rows) == 1
    assert get_on_hand(db, product_id=product.id, warehouse_id=warehouse.id, location_id=None) == 3
