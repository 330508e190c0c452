"""
Handlers for the admin customer group endpoints.

    GET    /admin/groups
    POST   /admin/groups
    POST   /admin/groups/preview
    GET    /admin/groups/{id}
    PUT    /admin/groups/{id}
    DELETE /admin/groups/{id}
    GET    /admin/groups/{id}/customers
    POST   /admin/groups/{id}/customers
    DELETE /admin/groups/{id}/customers
"""

from __future__ import annotations

import json
import uuid
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from models.group import GroupCreateRequest, GroupCriteria, GroupUpdateRequest
from utils.error_handling import AppError, ValidationError, to_response
from utils.logging_config import get_logger
from utils.validators import ensure_id_list, ensure_present

logger = get_logger(__name__)

GROUPS_PATH = "/admin/groups"

# Lazy-loaded service to avoid import-time AWS clients
_group_service: Optional["CustomerGroupService"] = None


def _get_group_service():
    """Lazy-load CustomerGroupService."""
    global _group_service
    if _group_service is None:
        from services.group_service import CustomerGroupService
        _group_service = CustomerGroupService()
    return _group_service


def _response(status: int, body: Any) -> Dict:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def _body(event) -> Dict[str, Any]:
    try:
        payload = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Request body is not valid JSON: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def _admin_email(event) -> str:
    """Admin identity from the JWT authorizer; issuing the token is upstream."""
    claims = (
        event.get("requestContext", {}).get("authorizer", {}).get("jwt", {}).get("claims", {})
    )
    return claims.get("email") or "unknown"


def _customer_ids(event) -> List[str]:
    payload = _body(event)
    ensure_present(payload.get("customerIds"), "customerIds")
    return ensure_id_list(payload["customerIds"])


def list_groups(event, context):
    groups = _get_group_service().list_groups()
    return _response(200, {"groups": [g.to_document() for g in groups]})


def create_group(event, context):
    request = GroupCreateRequest.model_validate(_body(event))
    group = _get_group_service().create_group(request, created_by=_admin_email(event))
    return _response(201, {"group": group.to_document()})


def preview_group(event, context):
    """Evaluate unsaved criteria so the UI can show a member count."""
    payload = _body(event)
    criteria = GroupCriteria.model_validate(payload.get("criteria") or {})
    customer_ids = _get_group_service().preview_criteria(criteria)
    return _response(200, {"customerIds": customer_ids, "count": len(customer_ids)})


def get_group(event, context, group_id: str):
    group = _get_group_service().get_group(group_id)
    if group is None:
        return _response(404, {"message": "Group not found"})
    return _response(200, {"group": group.to_document()})


def update_group(event, context, group_id: str):
    request = GroupUpdateRequest.model_validate(_body(event))
    group = _get_group_service().update_group(group_id, request)
    return _response(200, {"message": "Group updated successfully", "group": group.to_document()})


def delete_group(event, context, group_id: str):
    _get_group_service().delete_group(group_id)
    return _response(200, {"message": "Group deleted successfully"})


def group_customers(event, context, group_id: str):
    customer_ids = _get_group_service().get_group_customers(group_id)
    return _response(200, {"customerIds": customer_ids, "count": len(customer_ids)})


def add_customers(event, context, group_id: str):
    group = _get_group_service().add_customers_to_group(group_id, _customer_ids(event))
    return _response(
        200,
        {
            "message": "Customers added to group successfully",
            "count": len(group.customer_ids or []),
        },
    )


def remove_customers(event, context, group_id: str):
    group = _get_group_service().remove_customers_from_group(group_id, _customer_ids(event))
    return _response(
        200,
        {
            "message": "Customers removed from group successfully",
            "count": len(group.customer_ids or []),
        },
    )


COLLECTION_ROUTES: Dict[str, Callable] = {
    "GET": list_groups,
    "POST": create_group,
}

ITEM_ROUTES: Dict[str, Callable] = {
    "GET": get_group,
    "PUT": update_group,
    "DELETE": delete_group,
}

MEMBER_ROUTES: Dict[str, Callable] = {
    "GET": group_customers,
    "POST": add_customers,
    "DELETE": remove_customers,
}


def _route(method: str, path: str) -> Optional[Callable]:
    """Resolve a handler for the path below /admin/groups."""
    parts = [p for p in path[len(GROUPS_PATH):].split("/") if p]

    if not parts:
        return COLLECTION_ROUTES.get(method)
    if parts == ["preview"] and method == "POST":
        return preview_group
    if len(parts) == 1 and method in ITEM_ROUTES:
        return lambda e, c: ITEM_ROUTES[method](e, c, parts[0])
    if len(parts) == 2 and parts[1] == "customers" and method in MEMBER_ROUTES:
        return lambda e, c: MEMBER_ROUTES[method](e, c, parts[0])
    return None


def lambda_handler(event, context):
    """Dispatch a /admin/groups request and map errors to HTTP responses."""
    http = event.get("requestContext", {}).get("http", {})
    method = http.get("method", "").upper()
    path = http.get("path", "").rstrip("/")
    correlation_id = str(uuid.uuid4())

    handler = _route(method, path)
    if handler is None:
        return _response(404, {"message": "Route not found", "route": f"{method} {path}"})

    try:
        return handler(event, context)
    except AppError as exc:
        logger.warning(
            "Group request rejected",
            extra={"correlation_id": correlation_id, "path": path, "error": str(exc)},
        )
        return to_response(exc)
    except PydanticValidationError as exc:
        logger.warning(
            "Group payload invalid",
            extra={"correlation_id": correlation_id, "path": path, "errors": exc.error_count()},
        )
        return _response(
            422,
            {
                "message": "Invalid request",
                "errors": exc.errors(include_url=False, include_context=False, include_input=False),
                "correlation_id": correlation_id,
            },
        )
    except Exception:  # broad so the router always returns JSON
        logger.exception("Group request failed", extra={"correlation_id": correlation_id})
        return _response(
            500, {"message": "Internal server error", "correlation_id": correlation_id}
        )
