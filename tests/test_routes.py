from mealbattle.app.services.document_store import DocumentStore


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_process_requires_auth(client):
    resp = client.post("/ai/process", json={"text": "{}", "operation_kind": "meal_generation"})
    assert resp.status_code in (401, 403)


def test_process_rejects_bad_token(client):
    resp = client.post(
        "/ai/process",
        json={"text": "{}", "operation_kind": "meal_generation"},
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert resp.status_code == 401


def test_process_returns_record_and_status(client, auth_headers):
    resp = client.post(
        "/ai/process",
        json={"text": '{"calories": 450", "protein": 30}', "operation_kind": "tasty_analysis"},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["operation_kind"] == "food_analysis"
    assert body["status"] == "success"
    assert body["record"]["calories"] == 450


def test_process_garbage_reports_failure(client, auth_headers):
    resp = client.post(
        "/ai/process",
        json={"text": "I cannot help with that request.", "operation_kind": "meal_generation"},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "failure"
    assert body["record"]["confidence"] == "low"


def test_process_unknown_kind(client, auth_headers):
    resp = client.post("/ai/process", json={"text": "{}", "operation_kind": "smoothie"}, headers=auth_headers)
    assert resp.status_code == 400


def test_validation_error_envelope(client, auth_headers):
    resp = client.post("/ai/process", json={"operation_kind": "meal_generation"}, headers=auth_headers)
    assert resp.status_code == 422
    body = resp.json()
    assert body["error_code"] == "validation_error"
    assert any(detail["field"] == "body.text" for detail in body["details"])
    assert body["request_id"]


def test_generate_meal_saves_result(client, auth_headers, db_session, fake_generator):
    resp = client.post(
        "/ai/meals/generate",
        json={"ingredients": ["egg"], "calorie_target": 200},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    assert body["record"]["nutritionalInfo"]["protein"] == 10
    assert "egg" in fake_generator.prompts[0]

    saved = DocumentStore(db_session).get("users/user-1/ai_results", body["id"])
    assert saved["operationKind"] == "meal_generation"
    assert saved["instructions"] == ["Whisk", "Cook"]


def test_analyze_fridge_with_failed_generation(client, auth_headers, fake_generator):
    fake_generator.responses = ["Error: model offline"]
    resp = client.post("/ai/fridge/analyze", json={"items_description": "eggs, milk"}, headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "failure"
    assert body["record"]["error"] is True


def test_daily_summary_recalculate_and_read(client, auth_headers, db_session):
    DocumentStore(db_session).set(
        "userMeals/user-1/meals", "2024-01-01", {"meals": {"Lunch": [{"calories": 500, "protein": 30}]}}
    )
    resp = client.post("/nutrition/daily-summary/2024-01-01", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["summary"]["calories"] == 500
    assert resp.json()["summary"]["mealTotals"] == {"Lunch": 500}

    resp = client.get("/nutrition/daily-summary/2024-01-01", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["summary"]["protein"] == 30


def test_daily_summary_missing_and_bad_date(client, auth_headers):
    assert client.get("/nutrition/daily-summary/2024-02-02", headers=auth_headers).status_code == 404
    assert client.get("/nutrition/daily-summary/yesterday", headers=auth_headers).status_code == 400
    resp = client.post("/nutrition/daily-summary/2024-02-02", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["deleted"] is True


def test_admin_routes_require_secret(client):
    assert client.post("/admin/battles/process-end").status_code == 401
    resp = client.post("/admin/battles/process-end", headers={"X-Admin-Secret": "wrong"})
    assert resp.status_code == 401


def test_admin_generate_and_process_end(client, admin_headers, db_session, fake_generator):
    store = DocumentStore(db_session)
    store.set("ingredients", "ing-1", {"name": "salmon"})
    store.set("ingredients", "ing-2", {"name": "lemon"})
    fake_generator.responses = ["Salmon, Lemon"]

    resp = client.post("/admin/battles/generate", headers=admin_headers)
    assert resp.status_code == 200
    key = resp.json()["battle_key"]
    assert resp.json()["created"] is True
    assert store.get("general", "data")["currentBattle"] == key

    resp = client.post("/admin/battles/process-end", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == {"processed": False, "winners": []}
    assert store.get("battles", "general")["dates"][key]["status"] == "ended"
