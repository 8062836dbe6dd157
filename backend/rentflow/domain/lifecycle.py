# backend/rentflow/domain/lifecycle.py
"""
Request lifecycle graphs and the pure transition decision.

Nothing in here touches the database. `decide()` takes the stored state of a
request plus what a caller asked for and returns the state to write and the
side effects to run once it is written. Re-applying an already-applied
decision produces no new effects (except the guarded materialize effect,
which is itself a no-op once a rental exists).
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..errors import InvalidTransition, MissingField, ValidationError


# ----------------------------
# Vocabulary
# ----------------------------
class Kind:
    PROPERTY = "Property"
    FURNITURE_SELL = "FurnitureSell"
    FURNITURE_RENT = "FurnitureRent"
    SERVICE = "Service"

    ALL = (PROPERTY, FURNITURE_SELL, FURNITURE_RENT, SERVICE)


class Status:
    ORDERED = "Ordered"
    REQUESTED = "Requested"
    CONFIRMED = "Confirmed"
    SCHEDULED_DELIVERY = "Scheduled Delivery"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    ONGOING = "Ongoing"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class PaymentStatus:
    PENDING = "Pending"
    PAID = "Paid"
    PARTIAL = "Partial"
    REFUNDED = "Refunded"

    ALL = (PENDING, PAID, PARTIAL, REFUNDED)


# Linear happy path per kind; Cancelled hangs off every non-terminal state.
GRAPHS: dict[str, tuple[str, ...]] = {
    Kind.FURNITURE_SELL: (Status.ORDERED, Status.CONFIRMED, Status.OUT_FOR_DELIVERY, Status.DELIVERED),
    Kind.FURNITURE_RENT: (
        Status.REQUESTED,
        Status.CONFIRMED,
        Status.SCHEDULED_DELIVERY,
        Status.OUT_FOR_DELIVERY,
        Status.DELIVERED,
    ),
    Kind.SERVICE: (Status.PENDING, Status.ACCEPTED, Status.ONGOING, Status.COMPLETED),
    Kind.PROPERTY: (Status.REQUESTED, Status.ACCEPTED, Status.ONGOING, Status.COMPLETED),
}

CONFIRMATION_STATE: dict[str, str] = {
    Kind.FURNITURE_SELL: Status.CONFIRMED,
    Kind.FURNITURE_RENT: Status.CONFIRMED,
    Kind.SERVICE: Status.ACCEPTED,
    Kind.PROPERTY: Status.ACCEPTED,
}

RENTABLE_KINDS = frozenset({Kind.FURNITURE_RENT})

_ALIASES: dict[str, str] = {
    "ordered": Status.ORDERED,
    "requested": Status.REQUESTED,
    "confirmed": Status.CONFIRMED,
    "confirm": Status.CONFIRMED,
    "scheduled delivery": Status.SCHEDULED_DELIVERY,
    "scheduled": Status.SCHEDULED_DELIVERY,
    "out for delivery": Status.OUT_FOR_DELIVERY,
    "delivered": Status.DELIVERED,
    "pending": Status.PENDING,
    "accepted": Status.ACCEPTED,
    "accept": Status.ACCEPTED,
    "ongoing": Status.ONGOING,
    "in progress": Status.ONGOING,
    "completed": Status.COMPLETED,
    "complete": Status.COMPLETED,
    "cancelled": Status.CANCELLED,
    "canceled": Status.CANCELLED,
    "cancel": Status.CANCELLED,
    "rejected": Status.CANCELLED,
    "reject": Status.CANCELLED,
}


def normalize_status(raw: str) -> str:
    key = re.sub(r"[\s_\-]+", " ", str(raw or "")).strip().lower()
    if key not in _ALIASES:
        raise ValidationError(f"unknown status: {raw!r}", field="status")
    return _ALIASES[key]


def normalize_payment_status(raw: str) -> str:
    key = str(raw or "").strip().lower()
    for ps in PaymentStatus.ALL:
        if ps.lower() == key:
            return ps
    raise ValidationError(f"unknown payment_status: {raw!r}", field="payment_status")


def initial_status(kind: str) -> str:
    if kind not in GRAPHS:
        raise ValidationError(f"unknown kind: {kind!r}", field="kind")
    return GRAPHS[kind][0]


def is_terminal(kind: str, status: str) -> bool:
    return status == Status.CANCELLED or status == GRAPHS[kind][-1]


def is_rentable(kind: str) -> bool:
    return kind in RENTABLE_KINDS


def successors(kind: str, status: str) -> set[str]:
    """Statuses reachable in exactly one step."""
    graph = GRAPHS[kind]
    if is_terminal(kind, status) or status not in graph:
        return set()
    i = graph.index(status)
    return {graph[i + 1], Status.CANCELLED}


def _rank(kind: str, status: str) -> int:
    graph = GRAPHS[kind]
    return graph.index(status) if status in graph else len(graph)


def is_before_confirmation(kind: str, status: str) -> bool:
    return _rank(kind, status) < _rank(kind, CONFIRMATION_STATE[kind])


def accepts_delivery_date(kind: str, current: str, target: str) -> bool:
    """A delivery date belongs to the scheduling window of a graph that has one."""
    if Status.SCHEDULED_DELIVERY not in GRAPHS[kind] or target == Status.CANCELLED:
        return False
    if Status.SCHEDULED_DELIVERY in (current, target):
        return True
    return _rank(kind, current) < _rank(kind, Status.SCHEDULED_DELIVERY)


# ----------------------------
# Effects
# ----------------------------
@dataclass(frozen=True)
class Notify:
    old_status: str
    new_status: str
    old_payment_status: str
    new_payment_status: str


@dataclass(frozen=True)
class Materialize:
    pass


@dataclass(frozen=True)
class Decision:
    status: str
    payment_status: str
    scheduled_delivery_date: Optional[date]
    effects: tuple = field(default_factory=tuple)
    date_changed: bool = False

    @property
    def writes(self) -> bool:
        return self.has(Notify) or self.date_changed

    def has(self, effect_type: type) -> bool:
        return any(isinstance(e, effect_type) for e in self.effects)


def decide(
    *,
    kind: str,
    current_status: str,
    current_payment_status: str,
    current_scheduled_date: Optional[date],
    target: Optional[str],
    payment_status: Optional[str] = None,
    scheduled_delivery_date: Optional[date] = None,
) -> Decision:
    """
    target=None keeps the current status (payment-driven updates use this).

    Raises InvalidTransition / MissingField; never mutates anything.
    """
    if kind not in GRAPHS:
        raise ValidationError(f"unknown kind: {kind!r}", field="kind")

    target = current_status if target is None else target
    new_payment = payment_status or current_payment_status
    new_date = scheduled_delivery_date or current_scheduled_date

    if target != current_status and target not in successors(kind, current_status):
        raise InvalidTransition(kind=kind, current=current_status, target=target)

    if (
        scheduled_delivery_date is not None
        and scheduled_delivery_date != current_scheduled_date
        and not accepts_delivery_date(kind, current_status, target)
    ):
        raise ValidationError(
            f"scheduled_delivery_date cannot be set on a {kind} request moving {current_status} -> {target}",
            field="scheduled_delivery_date",
        )

    # Paid before confirmation collapses into a single move to the confirmation state.
    new_status = target
    if (
        new_payment == PaymentStatus.PAID
        and new_status == current_status
        and is_before_confirmation(kind, current_status)
    ):
        new_status = CONFIRMATION_STATE[kind]

    if new_status == Status.SCHEDULED_DELIVERY and new_status != current_status and new_date is None:
        raise MissingField("scheduled_delivery_date")

    effects: list = []
    if new_status != current_status or new_payment != current_payment_status:
        effects.append(
            Notify(
                old_status=current_status,
                new_status=new_status,
                old_payment_status=current_payment_status,
                new_payment_status=new_payment,
            )
        )
    if new_status == Status.DELIVERED and is_rentable(kind):
        effects.append(Materialize())

    return Decision(
        status=new_status,
        payment_status=new_payment,
        scheduled_delivery_date=new_date,
        effects=tuple(effects),
        date_changed=(new_date != current_scheduled_date),
    )
