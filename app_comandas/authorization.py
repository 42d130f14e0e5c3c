# -*- coding: utf-8 -*-
"""Ownership checks that gate every order operation.

The checks are pure: courier grants are looked up by the caller and passed in as
``granted``. Every violation raises :class:`~app_comandas.errors.Forbidden` with the same
generic message, so a denial never tells the caller anything about the order.
"""
from app_comandas.actors import AdminActor, CourierActor, StoreActor
from app_comandas.errors import Forbidden, NotEligible
from app_comandas.state_machine import OrderState

DENIED = "You are not allowed to perform this action"


def authorize_create(actor, store_id: int) -> None:
    """Only the owning store creates orders."""
    if isinstance(actor, StoreActor) and actor.store_id == store_id:
        return
    raise Forbidden(DENIED)


def authorize_view(actor, store_id: int, granted: bool = False) -> None:
    """Reads: own store, a granted courier, or an admin."""
    if isinstance(actor, AdminActor):
        return
    if isinstance(actor, StoreActor) and actor.store_id == store_id:
        return
    if isinstance(actor, CourierActor) and granted:
        return
    raise Forbidden(DENIED)


def authorize_transition(actor, order, granted: bool = False) -> None:
    """May ``actor`` request a state change on ``order`` at all.

    Which target state is legal is left to the state machine; this only checks that the
    actor is the owning store, or a granted courier who, once the order is assigned, is
    the assigned one.
    """
    if isinstance(actor, StoreActor):
        if actor.store_id != order.store_id:
            raise Forbidden(DENIED)
        return
    if isinstance(actor, CourierActor):
        if not granted:
            raise Forbidden(DENIED)
        if order.state == OrderState.ASSIGNED and order.courier_id != actor.courier_id:
            raise Forbidden(DENIED)
        return
    # Admins manage accounts, not deliveries.
    raise Forbidden(DENIED)


def authorize_claim(actor, granted: bool) -> None:
    if not isinstance(actor, CourierActor):
        raise Forbidden(DENIED)
    if not granted:
        raise NotEligible()
