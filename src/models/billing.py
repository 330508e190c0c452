"""
Billing cache models.

These mirror the documents the Stripe sync job writes into the cache
tables. Documents use camelCase keys and unix-second timestamps; the
models accept either the cache key or the Python field name.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Type

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so cache and criteria dates compare."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _created_or_none(value: Any, handler: ValidatorFunctionWrapHandler) -> Optional[datetime]:
    """Unparseable timestamps become None; the record itself is kept."""
    try:
        return ensure_utc(handler(value))
    except ValidationError:
        return None


def _amount_or_zero(value: Any) -> int:
    if isinstance(value, int):
        return value
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def _coerce_status(enum_cls: Type[Enum], value: Any) -> Enum:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return enum_cls("other")


class SubscriptionStatus(str, Enum):
    """Stripe subscription states the back office distinguishes."""

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    OTHER = "other"


class InvoiceStatus(str, Enum):
    PAID = "paid"
    OPEN = "open"
    VOID = "void"
    UNCOLLECTIBLE = "uncollectible"
    OTHER = "other"


class ChargeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    PENDING = "pending"
    OTHER = "other"


class CacheRecord(BaseModel):
    """Common base: provider id, lenient about extra cache fields."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str

    @model_validator(mode="before")
    @classmethod
    def use_provider_id(cls, data: Any) -> Any:
        """Prefer the Stripe id over the cache document id."""
        if isinstance(data, dict) and data.get("stripeId"):
            return {**data, "id": data["stripeId"]}
        return data


class Customer(CacheRecord):
    """Cached Stripe customer."""

    created_at: Optional[datetime] = Field(default=None, alias="created")
    email: Optional[str] = None
    name: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("created_at", mode="wrap")
    @classmethod
    def created_in_utc(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Optional[datetime]:
        return _created_or_none(value, handler)


class CustomerRecord(CacheRecord):
    """Base for records joined to a customer by ``customerId``."""

    customer_id: Optional[str] = Field(default=None, alias="customerId")

    @field_validator("customer_id", mode="before")
    @classmethod
    def blank_customer_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Subscription(CustomerRecord):
    """Cached subscription; only the status matters for grouping."""

    status: SubscriptionStatus = SubscriptionStatus.OTHER
    current_period_end: Optional[datetime] = Field(default=None, alias="currentPeriodEnd")
    cancel_at_period_end: bool = Field(default=False, alias="cancelAtPeriodEnd")

    @field_validator("status", mode="before")
    @classmethod
    def known_status(cls, value: Any) -> SubscriptionStatus:
        return _coerce_status(SubscriptionStatus, value)


class Invoice(CustomerRecord):
    """Cached invoice. Amounts are in minor currency units."""

    status: InvoiceStatus = InvoiceStatus.OTHER
    amount_paid: int = Field(default=0, alias="amountPaid")
    created_at: Optional[datetime] = Field(default=None, alias="created")

    @field_validator("status", mode="before")
    @classmethod
    def known_status(cls, value: Any) -> InvoiceStatus:
        return _coerce_status(InvoiceStatus, value)

    @field_validator("amount_paid", mode="before")
    @classmethod
    def unreadable_amount_is_zero(cls, value: Any) -> int:
        return _amount_or_zero(value)

    @field_validator("created_at", mode="wrap")
    @classmethod
    def created_in_utc(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Optional[datetime]:
        return _created_or_none(value, handler)


class Charge(CustomerRecord):
    """Cached one-off charge. Amounts are in minor currency units."""

    status: ChargeStatus = ChargeStatus.OTHER
    amount: int = 0
    created_at: Optional[datetime] = Field(default=None, alias="created")

    @field_validator("status", mode="before")
    @classmethod
    def known_status(cls, value: Any) -> ChargeStatus:
        return _coerce_status(ChargeStatus, value)

    @field_validator("amount", mode="before")
    @classmethod
    def unreadable_amount_is_zero(cls, value: Any) -> int:
        return _amount_or_zero(value)

    @field_validator("created_at", mode="wrap")
    @classmethod
    def created_in_utc(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Optional[datetime]:
        return _created_or_none(value, handler)
