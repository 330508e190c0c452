"""
Runtime configuration for the API Lambda.

Table names are injected by the CDK stack; the defaults match a local
DynamoDB setup so tests and scripts work without extra wiring.
"""

from dataclasses import dataclass
import os


@dataclass(frozen=True)
class AppConfig:
    """Environment-driven settings read once per cold start."""

    environment: str = "dev"

    # Billing cache tables (mirrored from Stripe by the sync job).
    customers_table: str = "customers"
    subscriptions_table: str = "subscriptions"
    invoices_table: str = "invoices"
    charges_table: str = "charges"
    groups_table: str = "customer_groups"

    # GSI on the join tables, partitioned by customerId.
    customer_id_index: str = "customerId-index"

    # Snapshot cache (0 disables caching between warm invocations).
    snapshot_cache_ttl_seconds: int = 60
    snapshot_fetch_workers: int = 4

    @classmethod
    def from_environment(cls) -> "AppConfig":
        """Load settings from environment variables."""
        env = os.environ
        return cls(
            environment=env.get("ENVIRONMENT", "dev"),
            customers_table=env.get("CUSTOMERS_TABLE", cls.customers_table),
            subscriptions_table=env.get("SUBSCRIPTIONS_TABLE", cls.subscriptions_table),
            invoices_table=env.get("INVOICES_TABLE", cls.invoices_table),
            charges_table=env.get("CHARGES_TABLE", cls.charges_table),
            groups_table=env.get("GROUPS_TABLE", cls.groups_table),
            customer_id_index=env.get("CUSTOMER_ID_INDEX", cls.customer_id_index),
            snapshot_cache_ttl_seconds=int(
                env.get("SNAPSHOT_CACHE_TTL_SECONDS", cls.snapshot_cache_ttl_seconds)
            ),
            snapshot_fetch_workers=int(
                env.get("SNAPSHOT_FETCH_WORKERS", cls.snapshot_fetch_workers)
            ),
        )
