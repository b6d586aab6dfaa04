from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from wms.core.errors import LocationNotFound, WarehouseNotFound
from wms.models.location import Location, Warehouse
from wms.models.product import Product


def get_warehouse(db: Session, code: str) -> Warehouse | None:
    return db.execute(
        select(Warehouse).where(Warehouse.code == code.strip(), Warehouse.is_active.is_(True))
    ).scalar_one_or_none()


def get_warehouse_or_404(db: Session, code: str) -> Warehouse:
    warehouse = get_warehouse(db, code)
    if not warehouse:
        raise WarehouseNotFound(code)
    return warehouse


def get_location(db: Session, qr_code: str, warehouse_id: str) -> Location | None:
    return db.execute(
        select(Location).where(
            Location.qr_code == qr_code.strip(),
            Location.warehouse_id == warehouse_id,
            Location.is_active.is_(True),
        )
    ).scalar_one_or_none()


def get_location_or_404(db: Session, qr_code: str, warehouse_id: str) -> Location:
    location = get_location(db, qr_code, warehouse_id)
    if not location:
        raise LocationNotFound(qr_code)
    return location


def get_default_location(db: Session, warehouse_id: str) -> Location | None:
    return db.execute(
        select(Location)
        .where(
            Location.warehouse_id == warehouse_id,
            Location.is_default.is_(True),
            Location.is_active.is_(True),
        )
        .order_by(Location.created_at.asc())
        .limit(1)
    ).scalar_one_or_none()


def resolve_effective_location(
    db: Session,
    warehouse: Warehouse,
    requested_code: str | None,
) -> Location | None:
    """Location a movement is booked against.

    The requested QR code wins when it names an active location of this
    warehouse; otherwise the warehouse default location is used. ``None``
    means the warehouse has no default and the movement is booked at the
    warehouse level.
    """
    if requested_code and requested_code.strip():
        location = get_location(db, requested_code, warehouse.id)
        if location:
            return location
    return get_default_location(db, warehouse.id)


def get_product(db: Session, sku_or_barcode: str) -> Product | None:
    code = sku_or_barcode.strip()
    rows = db.execute(
        select(Product).where(
            Product.is_active.is_(True),
            or_(Product.sku == code, Product.barcode == code),
        )
    ).scalars().all()
    # A barcode match is preferred over a SKU match, mirroring scan precedence.
    for product in rows:
        if product.barcode == code:
            return product
    return rows[0] if rows else None
