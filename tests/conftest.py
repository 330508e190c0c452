"""
Pytest configuration to ensure paths are set up correctly for tests.

This allows imports like `from handlers import groups` to work
when running tests, simulating the Lambda environment where code
is deployed from the src/ directory.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest


def _ensure_paths_on_sys_path() -> None:
    """Add repository root AND src/ to sys.path if missing.

    The src/ directory is added to simulate Lambda's import behavior,
    where Code.from_asset("src") makes src/ the root of the package.
    """
    repo_root = Path(__file__).resolve().parents[1]
    src_root = repo_root / "src"

    root_str = str(repo_root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)

    src_str = str(src_root)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


_ensure_paths_on_sys_path()

# Offline-friendly AWS defaults so nothing under test reaches AWS.
os.environ.setdefault("AWS_REGION", "eu-west-2")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-2")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("AWS_SESSION_TOKEN", "test")
os.environ.setdefault("ENVIRONMENT", "dev")

# Lambda environment variables used by services
os.environ.setdefault("CUSTOMERS_TABLE", "test-customers")
os.environ.setdefault("SUBSCRIPTIONS_TABLE", "test-subscriptions")
os.environ.setdefault("INVOICES_TABLE", "test-invoices")
os.environ.setdefault("CHARGES_TABLE", "test-charges")
os.environ.setdefault("GROUPS_TABLE", "test-groups")
os.environ.setdefault("SNAPSHOT_CACHE_TTL_SECONDS", "0")


class FakeRepository:
    """In-memory stand-in for DynamoDbRepository."""

    def __init__(self, items: Optional[List[Dict[str, Any]]] = None, error: Exception = None):
        self.items: Dict[str, Dict[str, Any]] = {i["id"]: dict(i) for i in items or []}
        self.error = error
        self.calls: List[str] = []

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if self.error is not None:
            raise self.error

    def get(self, key):
        self._check("get")
        item = self.items.get(key["id"])
        return dict(item) if item else None

    def put(self, item):
        self._check("put")
        self.items[item["id"]] = dict(item)

    def delete(self, key):
        self._check("delete")
        self.items.pop(key["id"], None)

    def scan_all(self):
        self._check("scan_all")
        return [dict(i) for i in self.items.values()]

    def query_index(self, index_name, attribute, value):
        self._check("query_index")
        return [dict(i) for i in self.items.values() if i.get(attribute) == value]


@pytest.fixture
def fake_repository():
    """Factory for in-memory repositories."""
    return FakeRepository
