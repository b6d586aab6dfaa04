import pytest
import os
import uuid
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("DATABASE_URL", "sqlite://")

import wms.models  # noqa: F401
from wms.core.deps import get_db
from wms.db.base import Base
from wms.db.session import build_engine
from wms.main import app
from wms.models.inventory import InventoryRow
from wms.models.location import Location, Warehouse
from wms.models.product import OperationMode, Product, SerialNumber


def _id() -> str:
    return str(uuid.uuid4())


def seed_reference_data(session_local) -> None:
    wh1 = Warehouse(id=_id(), code="WH1", name="Main warehouse")
    wh2 = Warehouse(id=_id(), code="WH2", name="Overflow warehouse")
    sku1 = Product(
        id=_id(),
        sku="SKU-1",
        barcode="8690000000011",
        name="Glass jar 500ml",
        units_per_inner_pack=12,
        inner_packs_per_outer_pack=5,
    )
    with session_local() as db:
        db.add_all([wh1, wh2])
        db.flush()
        db.add_all(
            [
                Location(id=_id(), warehouse_id=wh1.id, code="L1", qr_code="LOC-L1", name="Aisle 1"),
                Location(id=_id(), warehouse_id=wh1.id, code="L2", qr_code="LOC-L2", name="Aisle 2"),
                Location(
                    id=_id(),
                    warehouse_id=wh1.id,
                    code="DEF",
                    qr_code="LOC-DEF",
                    name="Receiving dock",
                    is_default=True,
                ),
                Location(id=_id(), warehouse_id=wh2.id, code="W2", qr_code="LOC-W2", name="Overflow bay"),
            ]
        )
        db.add_all(
            [
                sku1,
                Product(id=_id(), sku="SKU-2", barcode="8690000000028", name="Jar lid"),
                Product(
                    id=_id(),
                    sku="SKU-3",
                    name="Shipping carton",
                    units_per_inner_pack=6,
                    inner_packs_per_outer_pack=4,
                ),
                Product(id=_id(), sku="SKU-OLD", name="Discontinued jar", is_active=False),
            ]
        )
        db.flush()
        db.add_all(
            [
                SerialNumber(
                    id=_id(),
                    product_id=sku1.id,
                    sku="SKU-1",
                    serial_no="000123",
                    full_barcode="SKU-1-000123",
                    status="IN_STOCK",
                ),
                OperationMode(id=_id(), mode_code="MODE-COUNT", mode_type="COUNT", name="Cycle count"),
                OperationMode(id=_id(), mode_code="MODE-RECEIVE", mode_type="RECEIVING", name="Receiving"),
            ]
        )
        db.commit()


def ledger_quantity(db, sku: str, location_qr: str | None, warehouse_code: str = "WH1") -> int:
    stmt = (
        select(InventoryRow.quantity)
        .join(Warehouse, Warehouse.id == InventoryRow.warehouse_id)
        .where(InventoryRow.product_sku == sku, Warehouse.code == warehouse_code)
    )
    if location_qr is None:
        stmt = stmt.where(InventoryRow.location_id.is_(None))
    else:
        stmt = stmt.join(Location, Location.id == InventoryRow.location_id).where(
            Location.qr_code == location_qr
        )
    quantity = db.execute(stmt).scalar_one_or_none()
    return int(quantity or 0)


@pytest.fixture()
def session_local(tmp_path):
    # File-backed so concurrent sessions contend on a real database lock.
    engine = build_engine(f"sqlite:///{tmp_path / 'wms-test.db'}")
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    seed_reference_data(factory)

    yield factory

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(session_local):
    session = session_local()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def test_context(session_local):
    def override_get_db():
        db = session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client, session_local

    app.dependency_overrides.clear()
