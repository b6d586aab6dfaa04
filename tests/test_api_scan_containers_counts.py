from conftest import ledger_quantity


def _receive(client, code, quantity, location_code="LOC-L1", unit="EACH"):
    response = client.post(
        "/transactions",
        json={
            "transaction_type": "INBOUND",
            "warehouse_code": "WH1",
            "location_code": location_code,
            "lines": [{"code": code, "quantity": quantity, "unit": unit}],
            "actor": "operator-1",
        },
    )
    assert response.status_code == 201
    return response.json()


def _scan(client, code, warehouse_code="WH1"):
    return client.post("/scan", json={"code": code, "warehouse_code": warehouse_code})


def test_scan_product_includes_inventory(test_context):
    client, _ = test_context
    _receive(client, "SKU-1", 5)

    response = _scan(client, "8690000000011")

    assert response.status_code == 200
    body = response.json()
    assert body["type"] == "PRODUCT"
    assert body["product"]["sku"] == "SKU-1"
    assert body["product"]["units_per_inner_pack"] == 12
    assert [row["quantity"] for row in body["inventory"]] == [5]


def test_scan_serial_location_and_mode(test_context):
    client, _ = test_context
    _receive(client, "SKU-2", 3)

    serial = _scan(client, "SKU-3-000077").json()
    assert serial["type"] == "PRODUCT"
    assert serial["serial"] == {
        "serial_no": "000077",
        "full_barcode": "SKU-3-000077",
        "status": "UNKNOWN",
        "registered": False,
    }

    location = _scan(client, "LOC-L1").json()
    assert location["type"] == "LOCATION"
    assert location["location"]["code"] == "L1"
    assert [(row["product_sku"], row["quantity"]) for row in location["inventory"]] == [("SKU-2", 3)]

    mode = _scan(client, "MODE-RECEIVE").json()
    assert mode["type"] == "OPERATION_MODE"
    assert mode["operation_mode"]["mode_type"] == "RECEIVING"


def test_scan_not_found_and_unknown_warehouse(test_context):
    client, _ = test_context

    missing = _scan(client, "ZZZ-UNKNOWN")
    assert missing.status_code == 404
    assert missing.json()["error"]["message"] == "Scanned code not found: ZZZ-UNKNOWN"

    wrong_warehouse = _scan(client, "LOC-L1", warehouse_code="WH2")
    assert wrong_warehouse.status_code == 404

    no_warehouse = _scan(client, "LOC-L1", warehouse_code="WH9")
    assert no_warehouse.status_code == 404
    assert "WH9" in no_warehouse.json()["error"]["message"]


def test_container_lifecycle(test_context):
    client, session_local = test_context

    created = client.post(
        "/containers",
        json={
            "container_type": "BOX",
            "warehouse_code": "WH1",
            "contents": [{"sku": "SKU-1", "quantity": 10}, {"sku": "SKU-2", "quantity": 5}],
            "actor": "packer-2",
            "notes": "mixed jars",
        },
    )
    assert created.status_code == 201
    box = created.json()
    assert box["barcode"] == "KOL-00001"
    assert box["status"] == "ACTIVE"

    scanned = _scan(client, "KOL-00001").json()
    assert scanned["type"] == "CONTAINER"
    assert [item["product_sku"] for item in scanned["container"]["contents"]] == ["SKU-1", "SKU-2"]

    opened = client.post("/containers/KOL-00001/open", json={"actor": "receiver-1", "location_code": "LOC-L2"})
    assert opened.status_code == 200
    body = opened.json()
    assert body["items_returned"] == 2
    assert body["container"]["status"] == "OPENED"
    assert body["transaction"]["transaction_type"] == "INBOUND"
    assert body["transaction"]["reference_no"] == "KOL-00001"

    again = client.post("/containers/KOL-00001/open", json={"actor": "receiver-1"})
    assert again.status_code == 409
    assert "OPENED" in again.json()["error"]["message"]

    detail = client.get("/containers/KOL-00001").json()
    assert detail["opened_by"] == "receiver-1"
    assert client.get("/containers/KOL-00404").status_code == 404

    with session_local() as db:
        assert ledger_quantity(db, "SKU-1", "LOC-L2") == 10
        assert ledger_quantity(db, "SKU-2", "LOC-L2") == 5


def test_empty_container_conflict(test_context):
    client, _ = test_context

    response = client.post(
        "/containers",
        json={"container_type": "PALLET", "warehouse_code": "WH1", "contents": [], "actor": "packer-2"},
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "conflict"


def test_cycle_count_flow(test_context):
    client, session_local = test_context
    _receive(client, "SKU-1", 2, unit="OUTER_PACK")

    report = client.post("/counts", json={"warehouse_code": "WH1", "actor": "counter-1"})
    assert report.status_code == 201
    report_id = report.json()["id"]
    assert report.json()["status"] == "OPEN"

    started = client.post(f"/counts/{report_id}/locations", json={"location_code": "LOC-L1", "actor": "counter-1"})
    assert started.status_code == 200
    assert started.json()["items"][0]["expected_quantity"] == 120

    for _ in range(118):
        item = client.post(f"/counts/{report_id}/scans", json={"barcode": "8690000000011", "actor": "counter-1"})
    assert item.json()["variance"] == -2
    for _ in range(2):
        extra = client.post(f"/counts/{report_id}/scans", json={"barcode": "SKU-2", "actor": "counter-1"})
    assert extra.json()["is_unexpected"] is True
    assert extra.json()["variance"] == 2

    duplicate = client.post(f"/counts/{report_id}/scans", json={"barcode": "SKU-1-000123", "actor": "counter-1"})
    assert duplicate.status_code == 200
    repeat = client.post(f"/counts/{report_id}/scans", json={"barcode": "SKU-1-000123", "actor": "counter-1"})
    assert repeat.status_code == 409

    early = client.post(f"/counts/{report_id}/finalize", json={"actor": "counter-1"})
    assert early.status_code == 409

    saved = client.post(f"/counts/{report_id}/locations/current/save", json={"actor": "counter-1"})
    assert saved.status_code == 200
    assert saved.json()["total_counted"] == 121
    assert saved.json()["unexpected_count"] == 1

    finalized = client.post(f"/counts/{report_id}/finalize", json={"actor": "counter-1"})
    assert finalized.status_code == 200
    body = finalized.json()
    assert body["status"] == "FINALIZED"
    assert body["report_number"].startswith("SAY-")
    assert body["total_variance"] == 1
    assert body["variance_percentage"] == 0.83

    fetched = client.get(f"/counts/{report_id}").json()
    assert fetched["locations"][0]["status"] == "SAVED"
    assert client.get("/counts/missing").status_code == 404

    with session_local() as db:
        assert ledger_quantity(db, "SKU-1", "LOC-L1") == 120
