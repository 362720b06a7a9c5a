from datetime import date, timedelta


def _create_type(client, type_code="SOFTWARE_LICENSE", category="IT_SERVICES"):
    resp = client.post(
        "/api/contract-types",
        json={"type_code": type_code, "type_name": "Software License", "category": category},
        headers={"X-User": "admin"},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def _create_contract(client, contract_type_id, **overrides):
    today = date.today()
    body = {
        "title": "Microsoft 365 Enterprise",
        "contract_type_id": contract_type_id,
        "customer_id": "CUS-12345",
        "internal_department": "IT",
        "external_party": "Microsoft Maroc SARL",
        "start_date": today.isoformat(),
        "end_date": (today + timedelta(days=365)).isoformat(),
        "contract_value": "250000.00",
    }
    body.update(overrides)
    return client.post("/api/contracts", json=body, headers={"X-User": "alice"})


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"

    ready = client.get("/api/health/ready").json()
    assert ready["database"] == "up"
    assert ready["core_banking"] == {"system": "MOCK", "available": True}


def test_create_and_read_contract_with_derived_fields(client):
    contract_type = _create_type(client)

    resp = _create_contract(client, contract_type["id"])
    assert resp.status_code == 201, resp.text
    body = resp.json()

    year = date.today().year
    assert body["contract_number"] == f"BP-{year}-SOFTWARE_LICENSE-0001"
    assert body["status"] == "DRAFT"
    assert body["status_display_name"] == "Draft"
    assert body["effective_status"] == "DRAFT"
    assert body["created_by"] == "alice"
    assert body["customer_name"] == "Microsoft Maroc SARL"
    assert body["contract_type"]["type_code"] == "SOFTWARE_LICENSE"
    assert body["days_until_expiration"] == 365
    assert body["contract_duration_days"] == 365
    assert body["currently_active"] is False
    assert body["formatted_value"] == "MAD 250,000.00"
    assert resp.headers.get("X-Request-ID")

    fetched = client.get(f"/api/contracts/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["contract_number"] == body["contract_number"]


def test_activate_then_invalid_transition_is_reported(client):
    contract_type = _create_type(client)
    contract_id = _create_contract(client, contract_type["id"]).json()["id"]

    activated = client.post(f"/api/contracts/{contract_id}/activate", headers={"X-User": "bob"})
    assert activated.status_code == 200
    assert activated.json()["status"] == "ACTIVE"
    assert activated.json()["currently_active"] is True
    assert activated.json()["last_modified_by"] == "bob"

    again = client.post(f"/api/contracts/{contract_id}/activate", headers={"X-Request-ID": "req-42"})
    assert again.status_code == 409
    err = again.json()
    assert err["code"] == "INVALID_STATUS_TRANSITION"
    assert err["params"] == ["ACTIVE", "ACTIVE"]
    assert err["request_id"] == "req-42"
    assert again.headers["X-Request-ID"] == "req-42"


def test_suspend_terminate_and_history(client):
    contract_type = _create_type(client)
    contract_id = _create_contract(client, contract_type["id"]).json()["id"]
    client.post(f"/api/contracts/{contract_id}/activate")

    suspended = client.post(f"/api/contracts/{contract_id}/suspend", json={"reason": "Audit finding"})
    assert suspended.status_code == 200
    assert suspended.json()["compliance_notes"].startswith("Suspended: Audit finding (")

    terminated = client.post(f"/api/contracts/{contract_id}/terminate", json={"reason": "Closed"})
    assert terminated.json()["status"] == "TERMINATED"

    edit = client.put(f"/api/contracts/{contract_id}", json={"title": "Too late"})
    assert edit.status_code == 409
    assert edit.json()["code"] == "CONTRACT_NOT_EDITABLE"

    history = client.get(f"/api/contracts/{contract_id}/history").json()
    assert [h["action"] for h in history] == [
        "contract.terminated",
        "contract.suspended",
        "contract.activated",
        "contract.created",
    ]
    assert history[0]["payload"]["reason"] == "Closed"


def test_renew_returns_both_contracts(client):
    contract_type = _create_type(client)
    contract_id = _create_contract(client, contract_type["id"]).json()["id"]
    client.post(f"/api/contracts/{contract_id}/activate")

    start = date.today() + timedelta(days=366)
    resp = client.post(
        f"/api/contracts/{contract_id}/renew",
        json={"new_start_date": start.isoformat(), "new_end_date": (start + timedelta(days=365)).isoformat()},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["original"]["status"] == "RENEWED"
    assert body["renewed"]["status"] == "DRAFT"
    assert body["renewed"]["title"].endswith("(Renewed)")
    assert body["renewed"]["contract_number"].endswith("-0002")


def test_missing_required_field(client):
    contract_type = _create_type(client)

    resp = _create_contract(client, contract_type["id"], title=None)
    assert resp.status_code == 400
    assert resp.json()["code"] == "MISSING_REQUIRED_FIELD"
    assert resp.json()["params"] == ["title"]


def test_invalid_dates_rejected(client):
    contract_type = _create_type(client)
    today = date.today()

    resp = _create_contract(
        client,
        contract_type["id"],
        start_date=today.isoformat(),
        end_date=today.isoformat(),
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_CONTRACT_DATES"


def test_inactive_customer_rejected(client):
    contract_type = _create_type(client)

    resp = _create_contract(client, contract_type["id"], customer_id="CUS-99999")
    assert resp.status_code == 422
    assert resp.json()["code"] == "CUSTOMER_INACTIVE"


def test_unknown_contract_is_404(client):
    resp = client.get("/api/contracts/9999")
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"


def test_active_contract_cannot_be_deleted(client):
    contract_type = _create_type(client)
    contract_id = _create_contract(client, contract_type["id"]).json()["id"]
    client.post(f"/api/contracts/{contract_id}/activate")

    resp = client.delete(f"/api/contracts/{contract_id}")
    assert resp.status_code == 409
    assert resp.json()["code"] == "CONTRACT_NOT_DELETABLE"


def test_deleted_contract_cannot_be_activated_until_restored(client):
    contract_type = _create_type(client)
    contract_id = _create_contract(client, contract_type["id"]).json()["id"]

    assert client.delete(f"/api/contracts/{contract_id}").status_code == 200

    resp = client.post(f"/api/contracts/{contract_id}/activate")
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"
    assert client.get(f"/api/contracts/{contract_id}").status_code == 404

    restored = client.post(f"/api/contracts/{contract_id}/restore")
    assert restored.status_code == 200
    assert restored.json()["status"] == "DRAFT"

    activated = client.post(f"/api/contracts/{contract_id}/activate")
    assert activated.status_code == 200
    assert activated.json()["status"] == "ACTIVE"


def test_update_with_blank_title_is_rejected(client):
    contract_type = _create_type(client)
    contract_id = _create_contract(client, contract_type["id"]).json()["id"]

    resp = client.put(f"/api/contracts/{contract_id}", json={"title": "", "internal_department": " "})
    assert resp.status_code == 422
    assert client.get(f"/api/contracts/{contract_id}").json()["title"] == "Microsoft 365 Enterprise"


def test_contract_on_deleted_type_is_rejected(client):
    contract_type = _create_type(client)
    assert client.delete(f"/api/contract-types/{contract_type['id']}").status_code == 200

    resp = _create_contract(client, contract_type["id"])
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"


def test_list_search_and_number_availability(client):
    contract_type = _create_type(client)
    created = _create_contract(client, contract_type["id"]).json()

    page = client.get("/api/contracts", params={"page": 0, "size": 10}).json()
    assert page["total"] == 1
    assert page["items"][0]["contract_number"] == created["contract_number"]

    found = client.get("/api/contracts/search", params={"q": "microsoft"}).json()
    assert [c["id"] for c in found] == [created["id"]]

    taken = client.get(
        "/api/contracts/number-availability", params={"contract_number": created["contract_number"]}
    ).json()
    assert taken["available"] is False

    by_number = client.get(f"/api/contracts/number/{created['contract_number']}")
    assert by_number.status_code == 200


def test_expiring_endpoint_uses_as_of(client):
    contract_type = _create_type(client)
    today = date.today()
    contract_id = _create_contract(
        client, contract_type["id"], end_date=(today + timedelta(days=10)).isoformat()
    ).json()["id"]
    client.post(f"/api/contracts/{contract_id}/activate")

    expiring = client.get("/api/contracts/expiring", params={"days": 30}).json()
    assert [c["id"] for c in expiring] == [contract_id]
    assert expiring[0]["is_expiring_soon"] is True

    later = (today + timedelta(days=11)).isoformat()
    expired = client.get("/api/contracts/expired", params={"as_of": later}).json()
    assert [c["id"] for c in expired] == [contract_id]
    assert expired[0]["effective_status"] == "EXPIRED"


def test_statistics_report(client):
    contract_type = _create_type(client)
    contract_id = _create_contract(client, contract_type["id"]).json()["id"]
    _create_contract(client, contract_type["id"], title="Draft only")
    client.post(f"/api/contracts/{contract_id}/activate")

    stats = client.get("/api/reports/statistics").json()
    assert stats["total_contracts"] == 2
    assert stats["active_contracts"] == 1

    counts = client.get("/api/reports/status-counts").json()
    assert {c["status"]: c["count"] for c in counts} == {"ACTIVE": 1, "DRAFT": 1}


def test_contract_type_duplicate_is_conflict(client):
    _create_type(client)

    resp = client.post(
        "/api/contract-types",
        json={"type_code": "SOFTWARE_LICENSE", "type_name": "Again", "category": "IT_SERVICES"},
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "CONTRACT_TYPE_EXISTS"


def test_customer_endpoints(client):
    customer = client.get("/api/customers/CUS-67890").json()
    assert customer["customer_name"] == "OCP Group"

    assert client.get("/api/customers/CUS-99999/valid").json() == {"customer_id": "CUS-99999", "valid": False}
    assert client.get("/api/customers/CUS-00000").status_code == 404
    assert len(client.get("/api/customers/CUS-12345/accounts").json()) == 2
    assert client.get("/api/customers/system-health").json()["status"] == "HEALTHY"
