"""Error taxonomy shared by the inventory services and the HTTP layer.

Every error names the identifier the operator scanned or typed, so a failure in
the middle of a scan sequence points at the exact item that caused it.
"""
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError


class InventoryError(Exception):
    status_code = 400
    code = "bad_request"

    def __init__(self, message: str, *, identifier: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.identifier = identifier

    def details(self) -> list[dict] | None:
        if self.identifier is None:
            return None
        return [{"field": "identifier", "message": self.identifier, "type": type(self).__name__}]


class NotFound(InventoryError):
    status_code = 404
    code = "not_found"
    entity = "Resource"

    def __init__(self, identifier: str) -> None:
        super().__init__(f"{self.entity} not found: {identifier}", identifier=identifier)


class WarehouseNotFound(NotFound):
    entity = "Warehouse"


class LocationNotFound(NotFound):
    entity = "Location"


class ProductNotFound(NotFound):
    entity = "Product"


class ContainerNotFound(NotFound):
    entity = "Container"


class TransactionNotFound(NotFound):
    entity = "Transaction"


class CountReportNotFound(NotFound):
    entity = "Count report"


class ScannedCodeNotFound(NotFound):
    entity = "Scanned code"


class InsufficientStock(InventoryError):
    status_code = 400
    code = "insufficient_stock"

    def __init__(self, sku: str, *, available: int, requested: int) -> None:
        super().__init__(
            f"Insufficient stock for {sku}: available={available}, requested={requested}",
            identifier=sku,
        )
        self.sku = sku
        self.available = available
        self.requested = requested

    def details(self) -> list[dict] | None:
        return [
            {"field": "sku", "message": self.sku, "type": "insufficient_stock"},
            {"field": "available", "message": str(self.available), "type": "insufficient_stock"},
            {"field": "requested", "message": str(self.requested), "type": "insufficient_stock"},
        ]


class StateViolation(InventoryError):
    status_code = 409
    code = "conflict"

    def __init__(self, message: str, *, identifier: str, state: str | None = None) -> None:
        super().__init__(message, identifier=identifier)
        self.state = state


class AlreadyCounted(StateViolation):
    def __init__(self, barcode: str, *, location_code: str) -> None:
        super().__init__(
            f"Barcode {barcode} was already counted at location {location_code}",
            identifier=barcode,
            state="COUNTED",
        )


class ContainerAlreadyOpened(StateViolation):
    def __init__(self, barcode: str, *, status: str) -> None:
        super().__init__(
            f"Container {barcode} is {status} and cannot be opened again",
            identifier=barcode,
            state=status,
        )


class ContainerEmpty(StateViolation):
    def __init__(self, identifier: str) -> None:
        super().__init__(f"Container {identifier} has no contents", identifier=identifier, state="EMPTY")


class InvalidCountState(StateViolation):
    pass


class TransactionAlreadyReversed(StateViolation):
    def __init__(self, transaction_id: str, *, reversal_id: str) -> None:
        super().__init__(
            f"Transaction {transaction_id} was already reversed by {reversal_id}",
            identifier=transaction_id,
            state="REVERSED",
        )


class StorageFault(InventoryError):
    status_code = 500
    code = "storage_fault"

    def __init__(self, operation: str) -> None:
        super().__init__(f"Storage failure during {operation}", identifier=operation)


@contextmanager
def storage_fault_guard(operation: str) -> Iterator[None]:
    """Re-raise infrastructure failures from the unit of work as StorageFault."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise StorageFault(operation) from exc
