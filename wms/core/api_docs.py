from wms.schemas.common import ErrorOut


_ERROR_EXAMPLES: dict[int, tuple[str, str]] = {
    400: ("insufficient_stock", "Insufficient stock for SKU-1: available=120, requested=130"),
    404: ("not_found", "Product not found: SKU-404"),
    409: ("conflict", "Container KOL-00001 is OPENED and cannot be opened again"),
    422: ("validation_error", "Validation failed"),
    500: ("storage_fault", "Storage failure during transaction.create"),
}


def error_responses(*status_codes: int) -> dict[int, dict]:
    responses: dict[int, dict] = {}
    for status_code in status_codes:
        code, message = _ERROR_EXAMPLES.get(status_code, ("http_error", "HTTP error"))
        responses[status_code] = {
            "model": ErrorOut,
            "description": message,
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": code,
                            "message": message,
                            "request_id": "request-id",
                            "path": "/transactions",
                            "details": None,
                        }
                    }
                }
            },
        }
    return responses
