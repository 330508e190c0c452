"""
Single entrypoint Lambda that routes HTTP API requests to thin handler modules.

One Lambda keeps the snapshot cache warm across admin routes.
"""

from typing import Callable, Dict, Tuple
import json

from . import groups, health_check


def _response(status: int, body: Dict) -> Dict:
    """Format a JSON API Gateway HTTP API response."""
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def lambda_handler(event, context):
    """
    Entry point invoked by API Gateway HTTP API.

    The event contains the HTTP method and path; we route it to the module
    that owns the path prefix.
    """
    method = event.get("requestContext", {}).get("http", {}).get("method", "")
    path = event.get("requestContext", {}).get("http", {}).get("path", "")
    route_key = f"{method.upper()} {path}"

    route_table: Tuple[Tuple[str, str, Callable], ...] = (
        ("GET", "/health", health_check.lambda_handler),
        ("", groups.GROUPS_PATH, groups.lambda_handler),
    )

    for route_method, prefix, handler in route_table:
        if route_method and route_method != method.upper():
            continue
        if path == prefix or path.startswith(prefix + "/"):
            return handler(event, context)

    return _response(404, {"message": "Route not found", "route": route_key})
