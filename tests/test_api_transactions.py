from sqlalchemy import select

from conftest import ledger_quantity
from wms.models.audit_log import AuditLog


def _post_transaction(client, transaction_type, lines, location_code="LOC-L1", **extra):
    payload = {
        "transaction_type": transaction_type,
        "warehouse_code": "WH1",
        "location_code": location_code,
        "lines": lines,
        "actor": "operator-1",
        **extra,
    }
    return client.post("/transactions", json=payload)


def test_health_endpoints(test_context):
    client, _ = test_context

    assert client.get("/health").json() == {"ok": True}
    assert client.get("/ready").json() == {"ok": True}
    root = client.get("/")
    assert root.status_code == 200
    assert root.json()["docs"] == "/docs"


def test_inbound_then_oversized_outbound(test_context):
    client, session_local = test_context

    created = _post_transaction(client, "INBOUND", [{"code": "SKU-1", "quantity": 2, "unit": "OUTER_PACK"}])
    assert created.status_code == 201
    body = created.json()
    assert body["transaction_type"] == "INBOUND"
    assert body["direction"] == 1
    assert body["lines"][0]["base_quantity"] == 120
    assert created.headers.get("X-Request-ID")

    rejected = _post_transaction(
        client,
        "OUTBOUND",
        [{"code": "SKU-1", "quantity": 130}],
        location_code="LOC-L1",
    )
    assert rejected.status_code == 400
    error = rejected.json()["error"]
    assert error["code"] == "insufficient_stock"
    assert error["message"] == "Insufficient stock for SKU-1: available=120, requested=130"
    assert error["path"] == "/transactions"
    assert {"field": "available", "message": "120", "type": "insufficient_stock"} in error["details"]

    with session_local() as db:
        assert ledger_quantity(db, "SKU-1", "LOC-L1") == 120


def test_unknown_product_names_the_code(test_context):
    client, _ = test_context

    response = _post_transaction(client, "INBOUND", [{"code": "GHOST-1", "quantity": 1}])

    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "not_found"
    assert "GHOST-1" in error["message"]


def test_unknown_warehouse(test_context):
    client, _ = test_context

    response = client.post(
        "/transactions",
        json={
            "transaction_type": "INBOUND",
            "warehouse_code": "WH-404",
            "lines": [{"code": "SKU-2", "quantity": 1}],
            "actor": "operator-1",
        },
    )

    assert response.status_code == 404
    assert "WH-404" in response.json()["error"]["message"]


def test_validation_errors_use_the_envelope(test_context):
    client, _ = test_context

    no_lines = _post_transaction(client, "INBOUND", [])
    assert no_lines.status_code == 422
    assert no_lines.json()["error"]["code"] == "validation_error"

    bad_quantity = _post_transaction(client, "INBOUND", [{"code": "SKU-2", "quantity": 0}])
    assert bad_quantity.status_code == 422

    bad_unit = _post_transaction(client, "INBOUND", [{"code": "SKU-2", "quantity": 1, "unit": "CRATE"}])
    assert bad_unit.status_code == 422

    reversal = _post_transaction(client, "REVERSAL", [{"code": "SKU-2", "quantity": 1}])
    assert reversal.status_code == 422


def test_undo_flow(test_context):
    client, session_local = test_context
    original = _post_transaction(client, "INBOUND", [{"code": "8690000000028", "quantity": 6}]).json()

    undone = client.post(f"/transactions/{original['id']}/undo", json={"actor": "supervisor"})
    assert undone.status_code == 201
    reversal = undone.json()
    assert reversal["transaction_type"] == "REVERSAL"
    assert reversal["direction"] == -1
    assert reversal["reverses_transaction_id"] == original["id"]
    assert reversal["reference_no"] == f"UNDO-{original['id']}"

    again = client.post(f"/transactions/{original['id']}/undo", json={"actor": "supervisor"})
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "conflict"

    missing = client.post("/transactions/nope/undo", json={"actor": "supervisor"})
    assert missing.status_code == 404

    with session_local() as db:
        assert ledger_quantity(db, "SKU-2", "LOC-L1") == 0


def test_list_and_get_transactions(test_context):
    client, _ = test_context
    first = _post_transaction(client, "INBOUND", [{"code": "SKU-2", "quantity": 6}]).json()
    _post_transaction(
        client,
        "INBOUND",
        [{"code": "SKU-2", "quantity": 1}, {"code": "SKU-3", "quantity": 1, "unit": "INNER_PACK"}],
    )

    listing = client.get("/transactions", params={"warehouse_code": "WH1", "limit": 10})
    assert listing.status_code == 200
    body = listing.json()
    assert body["pagination"]["total"] == 2
    assert body["pagination"]["has_next"] is False
    assert sorted(item["line_count"] for item in body["items"]) == [1, 2]
    assert sorted(item["total_base_quantity"] for item in body["items"]) == [6, 7]

    detail = client.get(f"/transactions/{first['id']}")
    assert detail.status_code == 200
    assert detail.json()["lines"][0]["product_sku"] == "SKU-2"

    assert client.get("/transactions/does-not-exist").status_code == 404
    assert client.get("/transactions", params={"limit": 0}).status_code == 422


def test_audit_log_records_movements(test_context):
    client, session_local = test_context
    original = _post_transaction(client, "INBOUND", [{"code": "SKU-2", "quantity": 2}]).json()
    client.post(f"/transactions/{original['id']}/undo", json={"actor": "supervisor"})

    with session_local() as db:
        actions = db.execute(select(AuditLog.action, AuditLog.actor).order_by(AuditLog.action)).all()
    assert [tuple(row) for row in actions] == [
        ("transaction.create", "operator-1"),
        ("transaction.undo", "supervisor"),
    ]
