"""
Customer group service.

Owns the customer_groups table: CRUD, static membership edits, and
resolving any group to its current member ids. Dynamic groups are
resolved on demand by evaluating their criteria against a fresh billing
snapshot; static groups are just their stored id list.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from models.group import (
    CustomerGroup,
    GroupCreateRequest,
    GroupCriteria,
    GroupType,
    GroupUpdateRequest,
)
from repositories.dynamodb_repo import DynamoDbRepository
from services.group_evaluator import evaluate
from services.snapshot_service import SnapshotService
from utils.config import AppConfig
from utils.error_handling import GroupTypeError, NotFoundError, ValidationError
from utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_GROUP_ID = "starter-group"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CustomerGroupService:
    """Service for customer group management and membership resolution."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        repository: Optional[DynamoDbRepository] = None,
        snapshot_service: Optional[SnapshotService] = None,
    ):
        self.config = config or AppConfig.from_environment()
        self.repository = repository or DynamoDbRepository(self.config.groups_table)
        self.snapshots = snapshot_service or SnapshotService(self.config)

    # CRUD

    def create_group(self, request: GroupCreateRequest, created_by: str) -> CustomerGroup:
        """Persist a new group with a generated id."""
        now = _now()
        group = CustomerGroup(
            id=uuid.uuid4().hex,
            name=request.name,
            description=request.description,
            type=request.type,
            customer_ids=request.customer_ids,
            criteria=request.criteria,
            created_at=now,
            updated_at=now,
            created_by=created_by,
        )
        self._save(group)
        logger.info(
            "Group created",
            extra={"group_id": group.id, "type": group.type.value, "created_by": created_by},
        )
        return group

    def get_group(self, group_id: str) -> Optional[CustomerGroup]:
        item = self.repository.get({"id": group_id})
        if item is None:
            return None
        return CustomerGroup.model_validate(item)

    def list_groups(self) -> List[CustomerGroup]:
        groups = [CustomerGroup.model_validate(item) for item in self.repository.scan_all()]
        return sorted(groups, key=lambda g: g.created_at)

    def update_group(self, group_id: str, request: GroupUpdateRequest) -> CustomerGroup:
        """Apply the fields present in ``request`` and refresh ``updated_at``."""
        group = self._require_group(group_id)
        changes = request.model_dump(exclude_none=True)

        if request.customer_ids is not None and group.type != GroupType.STATIC:
            raise GroupTypeError("customerIds can only be set on a static group")
        if request.criteria is not None:
            if group.type != GroupType.DYNAMIC:
                raise GroupTypeError("criteria can only be set on a dynamic group")
            if request.criteria.is_empty():
                raise ValidationError("Dynamic groups require at least one criterion")
            changes["criteria"] = request.criteria

        updated = group.model_copy(update={**changes, "updated_at": _now()})
        self._save(updated)
        logger.info(
            "Group updated",
            extra={"group_id": group_id, "fields": sorted(changes)},
        )
        return updated

    def delete_group(self, group_id: str) -> None:
        self._require_group(group_id)
        self.repository.delete({"id": group_id})
        logger.info("Group deleted", extra={"group_id": group_id})

    # Static membership

    def add_customers_to_group(self, group_id: str, customer_ids: Iterable[str]) -> CustomerGroup:
        """Union ``customer_ids`` into a static group's members."""
        group = self._require_static_group(group_id)
        members = list(group.customer_ids or [])
        known = set(members)
        for customer_id in customer_ids:
            if customer_id not in known:
                known.add(customer_id)
                members.append(customer_id)
        return self._save_members(group, members)

    def remove_customers_from_group(
        self, group_id: str, customer_ids: Iterable[str]
    ) -> CustomerGroup:
        """Remove ``customer_ids`` from a static group's members."""
        group = self._require_static_group(group_id)
        to_remove = set(customer_ids)
        members = [cid for cid in group.customer_ids or [] if cid not in to_remove]
        return self._save_members(group, members)

    # Membership resolution

    def get_group_customers(self, group_id: str) -> List[str]:
        """
        Resolve a group to its current member ids.

        Unknown groups resolve to an empty list. Snapshot fetch failures
        propagate: resolving against partial data would be wrong.
        """
        group = self.get_group(group_id)
        if group is None:
            logger.warning("Group not found for resolution", extra={"group_id": group_id})
            return []

        if group.type == GroupType.STATIC:
            return list(group.customer_ids or [])

        customer_ids = self._evaluate(group.criteria or GroupCriteria())
        logger.info(
            "Dynamic group resolved",
            extra={"group_id": group_id, "count": len(customer_ids)},
        )
        return customer_ids

    def preview_criteria(self, criteria: GroupCriteria) -> List[str]:
        """Evaluate criteria that have not been saved to a group yet."""
        return self._evaluate(criteria)

    def ensure_default_group(self) -> CustomerGroup:
        """Create the "All Customers" starter group if it does not exist."""
        existing = self.get_group(DEFAULT_GROUP_ID)
        if existing is not None:
            return existing

        now = _now()
        group = CustomerGroup(
            id=DEFAULT_GROUP_ID,
            name="All Customers",
            description="Default group containing all customers",
            type=GroupType.DYNAMIC,
            # Empty criteria match everyone.
            criteria=GroupCriteria(),
            created_at=now,
            updated_at=now,
            created_by="system",
        )
        self._save(group)
        logger.info("Default group created", extra={"group_id": DEFAULT_GROUP_ID})
        return group

    # Helpers

    def _evaluate(self, criteria: GroupCriteria) -> List[str]:
        snapshot = self.snapshots.fetch_all()
        matched = evaluate(
            snapshot.customers,
            snapshot.subscriptions,
            snapshot.invoices,
            snapshot.charges,
            criteria,
        )
        return sorted(matched)

    def _require_group(self, group_id: str) -> CustomerGroup:
        group = self.get_group(group_id)
        if group is None:
            raise NotFoundError(f"Group {group_id} not found")
        return group

    def _require_static_group(self, group_id: str) -> CustomerGroup:
        group = self._require_group(group_id)
        if group.type != GroupType.STATIC:
            raise GroupTypeError(f"Group {group_id} is not a static group")
        return group

    def _save_members(self, group: CustomerGroup, members: List[str]) -> CustomerGroup:
        updated = group.model_copy(update={"customer_ids": members, "updated_at": _now()})
        self._save(updated)
        logger.info(
            "Group members updated",
            extra={"group_id": group.id, "count": len(members)},
        )
        return updated

    def _save(self, group: CustomerGroup) -> None:
        try:
            # Round-trip through validation so a bad update never reaches the table.
            document = CustomerGroup.model_validate(group.model_dump()).to_document()
        except PydanticValidationError as exc:
            raise ValidationError(str(exc)) from exc
        self.repository.put(document)
