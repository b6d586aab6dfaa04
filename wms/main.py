from sqlalchemy import text

from wms.core.errors import InventoryError
from wms.core.observability import (
    http_exception_handler,
    inventory_error_handler,
    request_logging_middleware,
    setup_observability,
    unhandled_exception_handler,
    validation_exception_handler,
)
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from wms.core.config import settings
from wms.db.session import engine
from wms.routers import containers, counts, scan, transactions

app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    description=(
        "Warehouse inventory transaction engine.\n\n"
        "Typical scanner flow:\n"
        "1. `POST /scan` to classify a barcode, QR code or SKU.\n"
        "2. `POST /transactions` to book an INBOUND or OUTBOUND movement in any pack unit.\n"
        "3. `POST /transactions/{transaction_id}/undo` to reverse a movement.\n"
        "4. `POST /containers` and `POST /containers/{barcode}/open` for boxes and pallets.\n"
        "5. `POST /counts` and the `/counts/{report_id}/...` steps for cycle counts."
    ),
    swagger_ui_parameters={
        "displayRequestDuration": True,
        "defaultModelsExpandDepth": 1,
    },
    openapi_tags=[
        {"name": "health", "description": "Service status and quick links."},
        {"name": "scan", "description": "Barcode, QR code and SKU classification."},
        {"name": "transactions", "description": "Atomic stock movements and reversals."},
        {"name": "containers", "description": "Box and pallet lifecycle."},
        {"name": "counts", "description": "Cycle counts with expected-versus-counted reconciliation."},
    ],
)

setup_observability()
app.middleware("http")(request_logging_middleware)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(InventoryError, inventory_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

cors_origins = settings.cors_origins or ["http://localhost:3000"]
allow_all_origins = "*" in cors_origins
env_value = settings.env.lower().strip()
allow_origin_regex = settings.cors_origin_regex

if (
    not allow_origin_regex
    and env_value in {"dev", "development", "staging", "stage"}
):
    # Handheld scanner web views in development use dynamic localhost ports.
    allow_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all_origins else cors_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=not allow_all_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(scan.router)
app.include_router(transactions.router)
app.include_router(containers.router)
app.include_router(counts.router)


@app.get("/", tags=["health"])
def root():
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
        "ready": "/ready",
    }


@app.get("/health", tags=["health"])
def health():
    return {"ok": True}


@app.get("/ready", tags=["health"])
def ready():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception:
        return {"ok": False}
    return {"ok": True}
