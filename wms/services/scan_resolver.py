"""Classify a scanned code into exactly one warehouse entity.

Precedence, first match wins:

1. exact product barcode
2. container barcode (``<BOX|PALLET prefix>-<digits>``)
3. location QR code in the scanning warehouse
4. operation-mode trigger code
5. serial barcode ``<SKU>-<NNNNNN>``, registered or not
6. bare SKU

Container and location codes use disjoint prefixes, so the narrow formats are
tried before falling back to SKU matching. Resolution never writes.
"""
import re
from dataclasses import dataclass
from typing import Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from wms.core.config import settings
from wms.models.container import Container, ContainerContent
from wms.models.location import Location, Warehouse
from wms.models.product import OperationMode, Product, SerialNumber


@dataclass(frozen=True)
class SerialInfo:
    serial_no: str
    full_barcode: str
    status: str
    registered: bool


@dataclass(frozen=True)
class ProductScan:
    product: Product
    serial: SerialInfo | None = None


@dataclass(frozen=True)
class ContainerScan:
    container: Container
    contents: tuple[ContainerContent, ...]


@dataclass(frozen=True)
class LocationScan:
    location: Location


@dataclass(frozen=True)
class OperationModeScan:
    mode: OperationMode


@dataclass(frozen=True)
class NotFoundScan:
    code: str


ScanResult = Union[ProductScan, ContainerScan, LocationScan, OperationModeScan, NotFoundScan]


@dataclass(frozen=True)
class ParsedSerial:
    sku: str
    serial_no: str


def container_barcode_pattern() -> re.Pattern[str]:
    prefixes = "|".join(
        re.escape(prefix) for prefix in (settings.container_prefix_box, settings.container_prefix_pallet)
    )
    return re.compile(rf"^(?:{prefixes})-\d+$")


def parse_serial_barcode(code: str) -> ParsedSerial | None:
    sku, dash, serial_no = code.rpartition("-")
    if not dash or not sku:
        return None
    if len(serial_no) != settings.serial_number_digits or not serial_no.isdigit():
        return None
    return ParsedSerial(sku=sku, serial_no=serial_no)


def _active_product_by(db: Session, column, value: str) -> Product | None:
    return db.execute(
        select(Product).where(column == value, Product.is_active.is_(True))
    ).scalar_one_or_none()


def _match_container(db: Session, code: str, warehouse: Warehouse) -> ContainerScan | None:
    if not container_barcode_pattern().match(code):
        return None
    container = db.execute(
        select(Container).where(Container.barcode == code, Container.warehouse_id == warehouse.id)
    ).scalar_one_or_none()
    if not container:
        return None
    return ContainerScan(container=container, contents=tuple(container.contents))


def _match_location(db: Session, code: str, warehouse: Warehouse) -> LocationScan | None:
    location = db.execute(
        select(Location).where(
            Location.qr_code == code,
            Location.warehouse_id == warehouse.id,
            Location.is_active.is_(True),
        )
    ).scalar_one_or_none()
    return LocationScan(location=location) if location else None


def _match_operation_mode(db: Session, code: str) -> OperationModeScan | None:
    mode = db.execute(
        select(OperationMode).where(OperationMode.mode_code == code, OperationMode.is_active.is_(True))
    ).scalar_one_or_none()
    return OperationModeScan(mode=mode) if mode else None


def _match_serial(db: Session, code: str) -> ProductScan | None:
    parsed = parse_serial_barcode(code)
    if not parsed:
        return None

    registered = db.execute(
        select(SerialNumber, Product)
        .join(Product, Product.id == SerialNumber.product_id)
        .where(SerialNumber.full_barcode == code)
    ).first()
    if registered:
        serial, product = registered
        return ProductScan(
            product=product,
            serial=SerialInfo(
                serial_no=serial.serial_no,
                full_barcode=serial.full_barcode,
                status=serial.status,
                registered=True,
            ),
        )

    product = _active_product_by(db, Product.sku, parsed.sku)
    if not product:
        return None
    return ProductScan(
        product=product,
        serial=SerialInfo(serial_no=parsed.serial_no, full_barcode=code, status="UNKNOWN", registered=False),
    )


def resolve_scan(db: Session, code: str, warehouse: Warehouse) -> ScanResult:
    code = code.strip()
    if not code:
        return NotFoundScan(code=code)

    product = _active_product_by(db, Product.barcode, code)
    if product:
        return ProductScan(product=product)

    for match in (
        lambda: _match_container(db, code, warehouse),
        lambda: _match_location(db, code, warehouse),
        lambda: _match_operation_mode(db, code),
        lambda: _match_serial(db, code),
    ):
        result = match()
        if result is not None:
            return result

    product = _active_product_by(db, Product.sku, code)
    if product:
        return ProductScan(product=product)

    return NotFoundScan(code=code)


def scan_type(result: ScanResult) -> str:
    if isinstance(result, ProductScan):
        return "PRODUCT"
    if isinstance(result, ContainerScan):
        return "CONTAINER"
    if isinstance(result, LocationScan):
        return "LOCATION"
    if isinstance(result, OperationModeScan):
        return "OPERATION_MODE"
    if isinstance(result, NotFoundScan):
        return "NOT_FOUND"
    raise TypeError(f"Unsupported scan result: {type(result).__name__}")
