# -*- coding: utf-8 -*-
"""Order lifecycle: which state changes exist and who may request them.

    pending_dispatch --claim (courier)--> assigned
    pending_dispatch --(store)----------> fulfilled | cancelled
    assigned --(assigned courier)-------> fulfilled | cancelled

``fulfilled`` and ``cancelled`` are terminal. Ownership (which store, which courier) is
checked by :mod:`app_comandas.authorization`; this module only knows about roles.
"""
from enum import Enum
from typing import Dict, FrozenSet, Optional

from app_comandas.actors import Role

DELIVERED_AT_STORE_NOTE = "delivered at store"


class OrderState(str, Enum):
    PENDING_DISPATCH = "pending_dispatch"
    ASSIGNED = "assigned"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


TRANSITIONS: Dict[OrderState, FrozenSet[OrderState]] = {
    OrderState.PENDING_DISPATCH: frozenset(
        {OrderState.ASSIGNED, OrderState.FULFILLED, OrderState.CANCELLED}
    ),
    OrderState.ASSIGNED: frozenset({OrderState.FULFILLED, OrderState.CANCELLED}),
    OrderState.FULFILLED: frozenset(),
    OrderState.CANCELLED: frozenset(),
}

# Roles allowed to take each edge.
EDGE_ROLES: Dict[tuple, FrozenSet[Role]] = {
    (OrderState.PENDING_DISPATCH, OrderState.ASSIGNED): frozenset({Role.COURIER}),
    (OrderState.PENDING_DISPATCH, OrderState.FULFILLED): frozenset({Role.STORE}),
    (OrderState.PENDING_DISPATCH, OrderState.CANCELLED): frozenset({Role.STORE}),
    (OrderState.ASSIGNED, OrderState.FULFILLED): frozenset({Role.COURIER}),
    (OrderState.ASSIGNED, OrderState.CANCELLED): frozenset({Role.COURIER}),
}

ACTIVE_STATES = frozenset({OrderState.PENDING_DISPATCH, OrderState.ASSIGNED})
TERMINAL_STATES = frozenset(state for state, targets in TRANSITIONS.items() if not targets)


def is_terminal(state: OrderState) -> bool:
    return state in TERMINAL_STATES


def can_transition(current: OrderState, requested: OrderState, role: Role) -> bool:
    """Return True if ``role`` may move an order from ``current`` to ``requested``.

    Staying in the same state is never a transition, and terminal states have no
    outgoing edges whatever the role.
    """
    if requested not in TRANSITIONS[current]:
        return False
    return role in EDGE_ROLES.get((current, requested), frozenset())


def required_side_effects(
    current: OrderState,
    requested: OrderState,
    role: Role,
    note: Optional[str] = None,
) -> Dict[str, str]:
    """Columns to write together with the new state.

    A store completing an order it never dispatched gets the fixed
    "delivered at store" note; otherwise a supplied note is kept as given.
    """
    if (
        current is OrderState.PENDING_DISPATCH
        and requested is OrderState.FULFILLED
        and role is Role.STORE
    ):
        return {"failure_note": DELIVERED_AT_STORE_NOTE}
    if note:
        return {"failure_note": note}
    return {}


def note_required(requested: OrderState) -> bool:
    return requested is OrderState.CANCELLED
