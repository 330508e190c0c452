import json

from handlers import main


def _event(method: str, path: str) -> dict:
    return {"requestContext": {"http": {"method": method, "path": path}}}


def test_main_routes_health(monkeypatch):
    monkeypatch.setattr(main.health_check, "lambda_handler", lambda e, c: {"status": "ok"})
    resp = main.lambda_handler(_event("GET", "/health"), None)
    assert resp["status"] == "ok"


def test_main_routes_group_collection(monkeypatch):
    marker = {}

    def fake_handler(event, context):
        marker["called"] = True
        return {"statusCode": 200}

    monkeypatch.setattr(main.groups, "lambda_handler", fake_handler)
    resp = main.lambda_handler(_event("POST", "/admin/groups"), None)
    assert resp["statusCode"] == 200
    assert marker["called"] is True


def test_main_routes_group_members(monkeypatch):
    monkeypatch.setattr(main.groups, "lambda_handler", lambda e, c: {"members": True})
    resp = main.lambda_handler(_event("DELETE", "/admin/groups/g1/customers"), None)
    assert resp["members"] is True


def test_main_health_is_get_only():
    resp = main.lambda_handler(_event("POST", "/health"), None)
    assert resp["statusCode"] == 404


def test_main_does_not_match_partial_prefix():
    resp = main.lambda_handler(_event("GET", "/admin/groupsx"), None)
    assert resp["statusCode"] == 404


def test_main_unknown_route():
    resp = main.lambda_handler(_event("GET", "/unknown"), None)
    assert resp["statusCode"] == 404
    body = json.loads(resp["body"])
    assert body["message"] == "Route not found"
