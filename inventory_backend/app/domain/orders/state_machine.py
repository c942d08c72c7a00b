"""
Order status state machine.

Pure functions over ``OrderStatus``: which transitions exist, and which
actors may invoke them. Persistence lives in ``transition_engine``.
"""

from typing import Dict, FrozenSet

from inventory_backend.app.models.enums import OrderStatus, Role, PRIVILEGED_ROLES


TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.APPROVED, OrderStatus.CANCELLED}),
    OrderStatus.APPROVED: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def successors(status: OrderStatus) -> FrozenSet[OrderStatus]:
    return TRANSITIONS[status]


def is_terminal(status: OrderStatus) -> bool:
    return not TRANSITIONS[status]


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    """True when ``requested`` is a direct successor of ``current``."""
    return requested in TRANSITIONS[current]


def may_invoke(role: Role, is_owner: bool, current: OrderStatus, requested: OrderStatus) -> bool:
    """
    Whether an actor may move an order from ``current`` to ``requested``.

    Admin and manager may apply any edge. The owning customer may only
    cancel while the order is still Pending. Does not check the graph.
    """
    if role in PRIVILEGED_ROLES:
        return True
    return (
        is_owner
        and current == OrderStatus.PENDING
        and requested == OrderStatus.CANCELLED
    )
