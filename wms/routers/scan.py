from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wms.core.api_docs import error_responses
from wms.core.deps import get_db
from wms.core.errors import ScannedCodeNotFound
from wms.models.inventory import InventoryRow
from wms.models.product import Product
from wms.routers.containers import container_out
from wms.schemas.scan import (
    InventoryRowOut,
    LocationOut,
    OperationModeOut,
    ProductOut,
    ScanIn,
    ScanOut,
    SerialOut,
)
from wms.services.inventory_ledger import location_rows, product_rows
from wms.services.master_data import get_warehouse_or_404
from wms.services.scan_resolver import (
    ContainerScan,
    LocationScan,
    NotFoundScan,
    OperationModeScan,
    ProductScan,
    resolve_scan,
    scan_type,
)

router = APIRouter(prefix="/scan", tags=["scan"])


def _product_out(product: Product) -> ProductOut:
    return ProductOut(
        id=product.id,
        sku=product.sku,
        barcode=product.barcode,
        name=product.name,
        base_unit=product.base_unit,
        units_per_inner_pack=product.units_per_inner_pack,
        inner_packs_per_outer_pack=product.inner_packs_per_outer_pack,
    )


def _row_out(row: InventoryRow) -> InventoryRowOut:
    return InventoryRowOut(
        product_id=row.product_id,
        product_sku=row.product_sku,
        warehouse_id=row.warehouse_id,
        location_id=row.location_id,
        quantity=row.quantity,
    )


@router.post(
    "",
    response_model=ScanOut,
    summary="Classify a scanned code",
    description=(
        "Resolves a code in precedence order: product barcode, container barcode, "
        "location QR code, operation mode, serial barcode, SKU. Read-only."
    ),
    responses=error_responses(404, 422, 500),
)
def scan(payload: ScanIn, db: Session = Depends(get_db)):
    warehouse = get_warehouse_or_404(db, payload.warehouse_code)
    result = resolve_scan(db, payload.code, warehouse)
    if isinstance(result, NotFoundScan):
        raise ScannedCodeNotFound(payload.code)

    out = ScanOut(type=scan_type(result), code=payload.code)
    if isinstance(result, ProductScan):
        out.product = _product_out(result.product)
        if result.serial:
            out.serial = SerialOut(
                serial_no=result.serial.serial_no,
                full_barcode=result.serial.full_barcode,
                status=result.serial.status,
                registered=result.serial.registered,
            )
        out.inventory = [
            _row_out(row) for row in product_rows(db, product_id=result.product.id, warehouse_id=warehouse.id)
        ]
    elif isinstance(result, ContainerScan):
        out.container = container_out(result.container)
    elif isinstance(result, LocationScan):
        location = result.location
        out.location = LocationOut(
            id=location.id,
            warehouse_id=location.warehouse_id,
            code=location.code,
            qr_code=location.qr_code,
            name=location.name,
            is_default=location.is_default,
        )
        out.inventory = [_row_out(row) for row in location_rows(db, location_id=location.id)]
    elif isinstance(result, OperationModeScan):
        out.operation_mode = OperationModeOut(
            id=result.mode.id,
            mode_code=result.mode.mode_code,
            mode_type=result.mode.mode_type,
            name=result.mode.name,
        )
    return out
