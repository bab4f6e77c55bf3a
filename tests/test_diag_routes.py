"""Banner, health, config diagnostics, metrics and the fallback handlers."""


def test_banner(client):
    body = client.get("/").json()
    assert body["message"] == "Hackathon Platform API is running!"
    assert body["endpoints"]["hackathons"] == "/api/hackathons"


def test_health(client):
    body = client.get("/api/health").json()
    assert body["status"] == "OK"
    assert body["uptime"] >= 0


def test_config_diag_hides_secrets(client):
    resp = client.get("/api/diag/config")
    assert resp.status_code == 200
    assert resp.json()["has_jwt_secret"] is True
    assert "test-secret" not in resp.text


def test_unknown_route(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Route not found", "path": "/api/nothing-here"}


def test_metrics_exposed(client, manager, create_hackathon, participant):
    h = create_hackathon()
    manager.register(h.id, participant.id)
    resp = client.get("/metrics/")
    assert resp.status_code == 200
    assert "hackathon_registrations_total" in resp.text


def test_store_outage_is_500(client, store, monkeypatch):
    from pymongo.errors import ServerSelectionTimeoutError

    def down(*args, **kwargs):
        raise ServerSelectionTimeoutError("no servers")

    monkeypatch.setattr(store, "search_hackathons", down)
    resp = client.get("/api/hackathons")
    assert resp.status_code == 500
    assert resp.json()["message"] == "Database error"
    assert "no servers" not in resp.text
