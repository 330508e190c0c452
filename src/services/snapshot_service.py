"""
Billing snapshot service.

Reads the Stripe mirror tables (customers, subscriptions, invoices,
charges) into typed models. The four full-table reads are independent,
so ``fetch_all`` issues them on a small thread pool and waits for all of
them before returning. A failed read raises; it is never replaced by
an empty list.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Type, TypeVar

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, ValidationError as PydanticValidationError

from models.billing import Charge, Customer, Invoice, Subscription
from repositories.dynamodb_repo import DynamoDbRepository
from utils.cache_service import LRUCache
from utils.config import AppConfig
from utils.error_handling import SnapshotFetchError
from utils.logging_config import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

SNAPSHOT_CACHE_KEY = "billing-snapshot"

# Both survive warm Lambda invocations. Reusing the worker threads keeps
# their thread-local DynamoDB resources alive too.
_startup_config = AppConfig.from_environment()
snapshot_cache = LRUCache(max_size=1, ttl_seconds=_startup_config.snapshot_cache_ttl_seconds)
snapshot_executor = ThreadPoolExecutor(
    max_workers=_startup_config.snapshot_fetch_workers,
    thread_name_prefix="snapshot",
)


@dataclass(frozen=True)
class BillingSnapshot:
    """Point-in-time copy of the four cached collections."""

    customers: Sequence[Customer]
    subscriptions: Sequence[Subscription]
    invoices: Sequence[Invoice]
    charges: Sequence[Charge]


class SnapshotService:
    """Fetch cached billing collections for group evaluation."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        repository_factory: Optional[Callable[[str], Any]] = None,
        cache: Optional[LRUCache] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.config = config or AppConfig.from_environment()
        # Called per fetch so each worker thread gets its own table handle.
        self.repository_factory = repository_factory or DynamoDbRepository
        self.cache = cache if cache is not None else snapshot_cache
        self.executor = executor or snapshot_executor

    def fetch_customer_snapshot(self) -> List[Customer]:
        return self._load("customers", self.config.customers_table, Customer)

    def fetch_subscription_snapshot(
        self, customer_id: Optional[str] = None
    ) -> List[Subscription]:
        return self._load(
            "subscriptions", self.config.subscriptions_table, Subscription, customer_id
        )

    def fetch_invoice_snapshot(self, customer_id: Optional[str] = None) -> List[Invoice]:
        return self._load("invoices", self.config.invoices_table, Invoice, customer_id)

    def fetch_charge_snapshot(self, customer_id: Optional[str] = None) -> List[Charge]:
        return self._load("charges", self.config.charges_table, Charge, customer_id)

    def fetch_all(self) -> BillingSnapshot:
        """Fetch all four collections concurrently, or raise on any failure."""
        cached = self.cache.get(SNAPSHOT_CACHE_KEY)
        if cached is not None:
            logger.info("Billing snapshot cache hit")
            return cached

        start = time.perf_counter()
        futures = {
            "customers": self.executor.submit(self.fetch_customer_snapshot),
            "subscriptions": self.executor.submit(self.fetch_subscription_snapshot),
            "invoices": self.executor.submit(self.fetch_invoice_snapshot),
            "charges": self.executor.submit(self.fetch_charge_snapshot),
        }
        results = {name: future.result() for name, future in futures.items()}

        snapshot = BillingSnapshot(
            customers=tuple(results["customers"]),
            subscriptions=tuple(results["subscriptions"]),
            invoices=tuple(results["invoices"]),
            charges=tuple(results["charges"]),
        )
        self.cache.set(SNAPSHOT_CACHE_KEY, snapshot)

        logger.info(
            "Billing snapshot fetched",
            extra={
                **{name: len(items) for name, items in results.items()},
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return snapshot

    def _load(
        self,
        collection: str,
        table_name: str,
        model: Type[M],
        customer_id: Optional[str] = None,
    ) -> List[M]:
        try:
            repo = self.repository_factory(table_name)
            if customer_id:
                items = repo.query_index(
                    self.config.customer_id_index, "customerId", customer_id
                )
            else:
                items = repo.scan_all()
        except (BotoCoreError, ClientError) as exc:
            logger.error(
                "Snapshot fetch failed",
                extra={"collection": collection, "table": table_name, "error": str(exc)},
            )
            raise SnapshotFetchError(collection, exc) from exc

        records: List[M] = []
        for item in items:
            try:
                records.append(model.model_validate(item))
            except PydanticValidationError as exc:
                logger.warning(
                    "Skipping malformed cache document",
                    extra={
                        "collection": collection,
                        "document_id": item.get("id"),
                        "error_count": exc.error_count(),
                    },
                )
        return records
