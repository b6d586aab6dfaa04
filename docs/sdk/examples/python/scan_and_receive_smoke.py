import os
import sys

import requests

base_url = os.getenv("WMS_BASE_URL", "http://localhost:8000").rstrip("/")
warehouse_code = os.getenv("WMS_WAREHOUSE_CODE", "WH1")
location_code = os.getenv("WMS_LOCATION_CODE")
product_code = os.getenv("WMS_PRODUCT_CODE")

if not location_code or not product_code:
    raise RuntimeError("WMS_LOCATION_CODE and WMS_PRODUCT_CODE are required")


def main() -> int:
    scan_response = requests.post(
        f"{base_url}/scan",
        json={"code": product_code, "warehouse_code": warehouse_code},
        timeout=15,
    )
    scan_response.raise_for_status()

    receive_response = requests.post(
        f"{base_url}/transactions",
        json={
            "transaction_type": "INBOUND",
            "warehouse_code": warehouse_code,
            "location_code": location_code,
            "lines": [{"code": product_code, "quantity": 1, "unit": "EACH"}],
            "actor": "smoke-probe",
            "reference_no": "SMOKE",
        },
        timeout=15,
    )
    receive_response.raise_for_status()
    transaction = receive_response.json()

    undo_response = requests.post(
        f"{base_url}/transactions/{transaction['id']}/undo",
        json={"actor": "smoke-probe"},
        timeout=15,
    )
    undo_response.raise_for_status()

    scanned = scan_response.json()
    print(f"Scanned {scanned['code']} as {scanned['type']}")
    print(f"Booked {transaction['id']} and reversed it as {undo_response.json()['id']}")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except requests.RequestException as exc:
        print(f"Inventory API probe failed: {exc}", file=sys.stderr)
        raise SystemExit(1)
