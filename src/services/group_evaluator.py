"""
Dynamic customer group evaluation.

Joins the cached customer, subscription, invoice and charge snapshots by
customer id, derives a few facts per customer (total spent, order count,
subscription state) and keeps the customers whose facts satisfy every
criterion that is set. Everything here is in-memory and side-effect free;
fetching the snapshots is the caller's job.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set, TypeVar

from models.billing import (
    Charge,
    ChargeStatus,
    Customer,
    CustomerRecord,
    Invoice,
    InvoiceStatus,
    Subscription,
    SubscriptionStatus,
)
from models.group import CustomerStatus, GroupCriteria
from utils.logging_config import get_logger

logger = get_logger(__name__)

# Trialing and past_due customers have not churned, so they count as active.
ACTIVE_LIKE_STATUSES = frozenset(
    {SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING, SubscriptionStatus.PAST_DUE}
)

R = TypeVar("R", bound=CustomerRecord)


@dataclass(frozen=True)
class CustomerFacts:
    """Values derived from one customer's joined records."""

    customer_id: str
    total_spent: float
    order_count: int
    subscription_count: int
    has_active_subscription: bool
    status: CustomerStatus
    created_at: Optional[datetime]
    last_order_at: Optional[datetime] = None


def build_index(records: Iterable[R]) -> Dict[str, List[R]]:
    """Group records by customer id, dropping records with no customer."""
    index: Dict[str, List[R]] = defaultdict(list)
    for record in records:
        if record.customer_id:
            index[record.customer_id].append(record)
    return dict(index)


def compute_facts(
    customer: Customer,
    subscriptions: Sequence[Subscription] = (),
    invoices: Sequence[Invoice] = (),
    charges: Sequence[Charge] = (),
) -> CustomerFacts:
    """Derive grouping facts for one customer from their own records."""
    invoice_total = sum(
        invoice.amount_paid for invoice in invoices if invoice.status == InvoiceStatus.PAID
    )
    charge_total = sum(
        charge.amount for charge in charges if charge.status == ChargeStatus.SUCCEEDED
    )

    has_active = any(sub.status in ACTIVE_LIKE_STATUSES for sub in subscriptions)
    if has_active:
        status = CustomerStatus.ACTIVE
    elif subscriptions:
        status = CustomerStatus.INACTIVE
    else:
        status = CustomerStatus.CHURNED

    order_dates = [
        record.created_at
        for record in (*invoices, *charges)
        if record.created_at is not None
    ]

    return CustomerFacts(
        customer_id=customer.id,
        total_spent=(invoice_total + charge_total) / 100,
        # All invoices and charges count, whatever their status.
        order_count=len(invoices) + len(charges),
        subscription_count=len(subscriptions),
        has_active_subscription=has_active,
        status=status,
        created_at=customer.created_at,
        last_order_at=max(order_dates) if order_dates else None,
    )


def matches(facts: CustomerFacts, criteria: GroupCriteria) -> bool:
    """Return True when the facts pass every criterion that is set."""
    if criteria.min_total_spent is not None and facts.total_spent < criteria.min_total_spent:
        return False
    if criteria.max_total_spent is not None and facts.total_spent > criteria.max_total_spent:
        return False

    if criteria.status is not None and facts.status not in criteria.status:
        return False

    if (
        criteria.has_active_subscription is not None
        and facts.has_active_subscription != criteria.has_active_subscription
    ):
        return False
    if (
        criteria.has_any_subscription is not None
        and (facts.subscription_count > 0) != criteria.has_any_subscription
    ):
        return False

    # An unknown creation date never fails a created bound.
    if facts.created_at is not None:
        if criteria.created_after is not None and facts.created_at < criteria.created_after:
            return False
        if criteria.created_before is not None and facts.created_at > criteria.created_before:
            return False

    # Customers with no dated orders never satisfy a last-order bound.
    if criteria.last_order_after is not None and (
        facts.last_order_at is None or facts.last_order_at < criteria.last_order_after
    ):
        return False
    if criteria.last_order_before is not None and (
        facts.last_order_at is None or facts.last_order_at > criteria.last_order_before
    ):
        return False

    if criteria.min_orders is not None and facts.order_count < criteria.min_orders:
        return False
    if criteria.max_orders is not None and facts.order_count > criteria.max_orders:
        return False

    return True


def iter_facts(
    customers: Iterable[Customer],
    subscriptions: Iterable[Subscription],
    invoices: Iterable[Invoice],
    charges: Iterable[Charge],
) -> Iterable[CustomerFacts]:
    """Yield facts for every customer, computed lazily one at a time."""
    subscriptions_by_customer = build_index(subscriptions)
    invoices_by_customer = build_index(invoices)
    charges_by_customer = build_index(charges)

    for customer in customers:
        yield compute_facts(
            customer,
            subscriptions_by_customer.get(customer.id, ()),
            invoices_by_customer.get(customer.id, ()),
            charges_by_customer.get(customer.id, ()),
        )


def evaluate(
    customers: Sequence[Customer],
    subscriptions: Sequence[Subscription],
    invoices: Sequence[Invoice],
    charges: Sequence[Charge],
    criteria: GroupCriteria,
) -> Set[str]:
    """
    Return the ids of customers matching ``criteria``.

    Empty criteria match every customer. Join records whose customer is
    missing from ``customers`` are ignored.
    """
    matched: Set[str] = {
        facts.customer_id
        for facts in iter_facts(customers, subscriptions, invoices, charges)
        if matches(facts, criteria)
    }

    logger.info(
        "Group criteria evaluated",
        extra={
            "customers": len(customers),
            "subscriptions": len(subscriptions),
            "invoices": len(invoices),
            "charges": len(charges),
            "criteria": criteria.to_document(),
            "matched": len(matched),
        },
    )
    return matched
