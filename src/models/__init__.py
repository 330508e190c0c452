"""Pydantic models for cache documents and API payloads."""

from models.billing import (  # noqa: F401
    Charge,
    ChargeStatus,
    Customer,
    Invoice,
    InvoiceStatus,
    Subscription,
    SubscriptionStatus,
)
from models.group import (  # noqa: F401
    CustomerGroup,
    CustomerStatus,
    GroupCreateRequest,
    GroupCriteria,
    GroupType,
    GroupUpdateRequest,
)
