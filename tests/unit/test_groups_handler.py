"""
Tests for the admin group handlers.
"""
import json
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from handlers import groups
from models.group import CustomerGroup, GroupCriteria, GroupType
from utils.error_handling import GroupTypeError, NotFoundError, SnapshotFetchError

NOW = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _event(method: str, path: str, body=None, email: str = "admin@example.com") -> dict:
    return {
        "requestContext": {
            "http": {"method": method, "path": path},
            "authorizer": {"jwt": {"claims": {"email": email}}},
        },
        "body": json.dumps(body) if body is not None else None,
    }


def _group(group_type: GroupType = GroupType.STATIC) -> CustomerGroup:
    return CustomerGroup(
        id="g1",
        name="VIPs",
        type=group_type,
        customer_ids=["cus_1"] if group_type == GroupType.STATIC else None,
        criteria=GroupCriteria(min_orders=1) if group_type == GroupType.DYNAMIC else None,
        created_at=NOW,
        updated_at=NOW,
        created_by="admin@example.com",
    )


@pytest.fixture
def mock_service():
    service = MagicMock()
    with patch.object(groups, "_get_group_service", return_value=service):
        yield service


def test_list_groups(mock_service):
    mock_service.list_groups.return_value = [_group()]
    resp = groups.lambda_handler(_event("GET", "/admin/groups"), None)

    assert resp["statusCode"] == 200
    body = json.loads(resp["body"])
    assert body["groups"][0]["customerIds"] == ["cus_1"]


def test_create_group_records_admin(mock_service):
    mock_service.create_group.return_value = _group(GroupType.DYNAMIC)
    payload = {"name": "VIPs", "type": "dynamic", "criteria": {"minOrders": 1}}

    resp = groups.lambda_handler(_event("POST", "/admin/groups", payload), None)

    assert resp["statusCode"] == 201
    request = mock_service.create_group.call_args.args[0]
    assert request.criteria.min_orders == 1
    assert mock_service.create_group.call_args.kwargs["created_by"] == "admin@example.com"


def test_create_dynamic_group_without_criteria_returns_422(mock_service):
    payload = {"name": "Everyone", "type": "dynamic", "criteria": {}}
    resp = groups.lambda_handler(_event("POST", "/admin/groups", payload), None)

    assert resp["statusCode"] == 422
    body = json.loads(resp["body"])
    assert body["message"] == "Invalid request"
    mock_service.create_group.assert_not_called()


def test_invalid_json_returns_422(mock_service):
    event = _event("POST", "/admin/groups")
    event["body"] = "{not json"
    resp = groups.lambda_handler(event, None)
    assert resp["statusCode"] == 422


def test_get_group(mock_service):
    mock_service.get_group.return_value = _group()
    resp = groups.lambda_handler(_event("GET", "/admin/groups/g1"), None)

    assert resp["statusCode"] == 200
    mock_service.get_group.assert_called_once_with("g1")


def test_get_unknown_group_returns_404(mock_service):
    mock_service.get_group.return_value = None
    resp = groups.lambda_handler(_event("GET", "/admin/groups/nope"), None)
    assert resp["statusCode"] == 404


def test_update_group(mock_service):
    mock_service.update_group.return_value = _group()
    resp = groups.lambda_handler(_event("PUT", "/admin/groups/g1", {"name": "New"}), None)

    assert resp["statusCode"] == 200
    group_id, request = mock_service.update_group.call_args.args
    assert group_id == "g1"
    assert request.name == "New"


def test_delete_unknown_group_returns_404(mock_service):
    mock_service.delete_group.side_effect = NotFoundError("Group nope not found")
    resp = groups.lambda_handler(_event("DELETE", "/admin/groups/nope"), None)

    assert resp["statusCode"] == 404
    assert json.loads(resp["body"])["message"] == "Group nope not found"


def test_group_customers(mock_service):
    mock_service.get_group_customers.return_value = ["cus_1", "cus_5"]
    resp = groups.lambda_handler(_event("GET", "/admin/groups/g1/customers"), None)

    assert resp["statusCode"] == 200
    assert json.loads(resp["body"]) == {"customerIds": ["cus_1", "cus_5"], "count": 2}


def test_group_customers_snapshot_failure_returns_502(mock_service):
    mock_service.get_group_customers.side_effect = SnapshotFetchError("invoices")
    resp = groups.lambda_handler(_event("GET", "/admin/groups/g1/customers"), None)
    assert resp["statusCode"] == 502


def test_add_customers(mock_service):
    updated = _group()
    updated.customer_ids = ["cus_1", "cus_2"]
    mock_service.add_customers_to_group.return_value = updated

    resp = groups.lambda_handler(
        _event("POST", "/admin/groups/g1/customers", {"customerIds": ["cus_2", "cus_2"]}), None
    )

    assert resp["statusCode"] == 200
    mock_service.add_customers_to_group.assert_called_once_with("g1", ["cus_2"])
    assert json.loads(resp["body"])["count"] == 2


def test_add_customers_to_dynamic_group_returns_409(mock_service):
    mock_service.add_customers_to_group.side_effect = GroupTypeError("Group g1 is not a static group")
    resp = groups.lambda_handler(
        _event("POST", "/admin/groups/g1/customers", {"customerIds": ["cus_2"]}), None
    )
    assert resp["statusCode"] == 409


def test_remove_customers_requires_ids(mock_service):
    resp = groups.lambda_handler(_event("DELETE", "/admin/groups/g1/customers", {}), None)

    assert resp["statusCode"] == 422
    mock_service.remove_customers_from_group.assert_not_called()


def test_preview(mock_service):
    mock_service.preview_criteria.return_value = ["cus_5"]
    resp = groups.lambda_handler(
        _event("POST", "/admin/groups/preview", {"criteria": {"hasActiveSubscription": True}}), None
    )

    assert resp["statusCode"] == 200
    criteria = mock_service.preview_criteria.call_args.args[0]
    assert criteria.has_active_subscription is True
    assert json.loads(resp["body"])["count"] == 1


def test_unexpected_error_returns_500(mock_service):
    mock_service.list_groups.side_effect = RuntimeError("boom")
    resp = groups.lambda_handler(_event("GET", "/admin/groups"), None)

    assert resp["statusCode"] == 500
    assert "correlation_id" in json.loads(resp["body"])


@pytest.mark.parametrize(
    "method,path",
    [("PATCH", "/admin/groups/g1"), ("GET", "/admin/groups/g1/members"), ("PUT", "/admin/groups")],
)
def test_unknown_group_route_returns_404(mock_service, method, path):
    resp = groups.lambda_handler(_event(method, path), None)
    assert resp["statusCode"] == 404
