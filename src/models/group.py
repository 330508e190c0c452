"""Customer group models."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from models.billing import ensure_utc

ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class GroupType(str, Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"


class CustomerStatus(str, Enum):
    """Derived lifecycle label used by group criteria."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    CHURNED = "churned"


class CamelModel(BaseModel):
    """Wire models use camelCase keys, Python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        """JSON-safe camelCase dict with unset fields dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class GroupCriteria(CamelModel):
    """
    Predicate for dynamic groups.

    Every field is optional; ``None`` means "no constraint", which is not
    the same as a comparison against zero or ``False``. Amounts are in
    major currency units.
    """

    min_total_spent: Optional[float] = None
    max_total_spent: Optional[float] = None

    status: Optional[List[CustomerStatus]] = None

    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None
    last_order_after: Optional[datetime] = None
    last_order_before: Optional[datetime] = None

    has_active_subscription: Optional[bool] = None
    has_any_subscription: Optional[bool] = None

    min_orders: Optional[int] = Field(default=None, ge=0)
    max_orders: Optional[int] = Field(default=None, ge=0)

    @field_validator(
        "created_after", "created_before", "last_order_after", "last_order_before",
        mode="before",
    )
    @classmethod
    def date_only_is_utc_midnight(cls, value: Any) -> Any:
        if isinstance(value, str) and ISO_DATE.match(value):
            return datetime.combine(date.fromisoformat(value), time(), tzinfo=timezone.utc)
        return value

    @field_validator(
        "created_after", "created_before", "last_order_after", "last_order_before"
    )
    @classmethod
    def dates_in_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    def is_empty(self) -> bool:
        """True when no field constrains membership."""
        return not self.model_dump(exclude_none=True)


class CustomerGroup(CamelModel):
    """Stored group definition."""

    id: str
    name: str
    description: str = ""
    type: GroupType
    customer_ids: Optional[List[str]] = None
    criteria: Optional[GroupCriteria] = None
    created_at: datetime
    updated_at: datetime
    created_by: str = "system"


class GroupCreateRequest(CamelModel):
    """Payload for POST /admin/groups."""

    name: str
    description: str = ""
    type: GroupType
    customer_ids: Optional[List[str]] = None
    criteria: Optional[GroupCriteria] = None

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str) -> str:
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValueError("name is required")
        return cleaned

    @model_validator(mode="after")
    def members_match_type(self) -> "GroupCreateRequest":
        if self.type == GroupType.STATIC:
            if self.customer_ids is None:
                raise ValueError("Static groups require customerIds array")
            self.criteria = None
        else:
            if self.criteria is None or self.criteria.is_empty():
                raise ValueError("Dynamic groups require at least one criterion")
            self.customer_ids = None
        return self


class GroupUpdateRequest(CamelModel):
    """Payload for PUT /admin/groups/{id}. Omitted fields are left unchanged."""

    name: Optional[str] = None
    description: Optional[str] = None
    customer_ids: Optional[List[str]] = None
    criteria: Optional[GroupCriteria] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("name cannot be blank")
        return value.strip() if value is not None else value
