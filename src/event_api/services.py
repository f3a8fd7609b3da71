"""
Wiring for one event store and the components that share it.
"""

from __future__ import annotations

from dataclasses import dataclass

from .audit import AuditTrail, Redactor
from .auth import DEFAULT_USERS, AuthService, User
from .metrics import MetricsCollector
from .orders import OrderManager
from .polls import PollEngagementTracker
from .store import Clock, EventStore


@dataclass
class Services:
    store: EventStore
    audit: AuditTrail
    auth: AuthService
    orders: OrderManager
    polls: PollEngagementTracker


def build_services(
    clock: Clock | None = None,
    metrics: MetricsCollector | None = None,
    redactor: Redactor | None = None,
    users: tuple[User, ...] | list[User] = DEFAULT_USERS,
) -> Services:
    """
    Build a fresh store and inject it into every producer.

    Args:
        clock: Clock for event and audit timestamps
        metrics: MetricsCollector shared by all components
        redactor: Redactor applied to audit metadata
        users: Users known to the auth service
    """
    store = EventStore(clock=clock, metrics=metrics)
    audit = AuditTrail(store, redactor=redactor)
    return Services(
        store=store,
        audit=audit,
        auth=AuthService(audit, users=users),
        orders=OrderManager(store),
        polls=PollEngagementTracker(store),
    )
