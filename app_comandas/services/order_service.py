# -*- coding: utf-8 -*-
"""Order use cases: create, read, list, change state and claim.

Lookups and permission checks run in a read session. The write that follows runs in its
own short session as a single conditional UPDATE keyed on the state (and courier) that was
read, so two callers racing on the same order can never both win; the loser gets a
Conflict and nothing is written.

Callers other than admins cannot tell a missing order from one they may not touch: both
are answered with the same Forbidden.
"""
import logging
from typing import Optional

from app_comandas import authorization
from app_comandas.actors import AdminActor, CourierActor
from app_comandas.errors import (
    AlreadyClaimed,
    Conflict,
    Forbidden,
    InvalidTransition,
    NotFound,
    OrderValidationError,
)
from app_comandas.sql import crud
from app_comandas.state_machine import (
    ACTIVE_STATES,
    OrderState,
    can_transition,
    note_required,
    required_side_effects,
)

logger = logging.getLogger(__name__)


class OrderService:
    """Order lifecycle façade over an owned :class:`~app_comandas.sql.database.Database`."""

    def __init__(self, database, publisher=None, history_limit: int = 100):
        self.database = database
        self.publisher = publisher
        self.history_limit = history_limit

    # Create ######################################################################################
    async def create(self, actor, store_id: int, customer, line_items):
        """Create a pending order priced with the products' current prices."""
        authorization.authorize_create(actor, store_id)
        _validate_customer(customer)
        if not line_items:
            raise OrderValidationError("An order needs at least one product")
        for item in line_items:
            if not isinstance(item.quantity, int) or item.quantity <= 0:
                raise OrderValidationError(
                    f"Quantity for product {item.product_id} must be a positive integer"
                )

        async with self.database.session() as db:
            lines = []
            for item in line_items:
                product = await crud.get_active_product(db, item.product_id, store_id)
                if product is None:
                    raise OrderValidationError(
                        f"Product {item.product_id} is not available at store {store_id}"
                    )
                lines.append((product, item.quantity))
            # Prices are read in the same transaction that stores them.
            order = await crud.create_order(db, store_id, customer, lines)

        logger.info("Order %s created for store %s (total %s)", order.id, store_id, order.total)
        await self._publish("order_created", order)
        return order

    # Read ########################################################################################
    async def get(self, order_id: int, actor):
        async with self.database.read_session() as db:
            order = await _find_order(db, order_id, actor)
            granted = await _courier_granted(db, actor, order.store_id)
            authorization.authorize_view(actor, order.store_id, granted)
            return order

    async def list(self, store_id: int, actor, filters=None):
        """Orders of a store visible to ``actor``, newest first.

        Couriers asking for ``mine`` only get orders assigned to them.
        """
        state = getattr(filters, "state", None)
        active_only = getattr(filters, "active_only", False)
        mine = getattr(filters, "mine", False)

        states = {OrderState(state)} if state else None
        if active_only:
            states = (states or set(ACTIVE_STATES)) & ACTIVE_STATES
            if not states:
                return []

        async with self.database.read_session() as db:
            granted = await _courier_granted(db, actor, store_id)
            authorization.authorize_view(actor, store_id, granted)
            courier_id = actor.courier_id if mine and isinstance(actor, CourierActor) else None
            return await crud.list_orders(
                db,
                store_id=store_id,
                states=states,
                created_on=getattr(filters, "created_on", None),
                product_ids=getattr(filters, "product_ids", None),
                courier_id=courier_id,
                limit=self.history_limit,
            )

    async def courier_board(self, store_id: int, actor):
        """Orders a courier can claim at a store, and the ones already assigned to it."""
        if not isinstance(actor, CourierActor):
            raise Forbidden(authorization.DENIED)
        async with self.database.read_session() as db:
            if not await crud.has_grant(db, actor.courier_id, store_id):
                raise Forbidden(authorization.DENIED)
            available = await crud.list_orders(
                db,
                store_id=store_id,
                states=[OrderState.PENDING_DISPATCH],
                unassigned=True,
                limit=self.history_limit,
            )
            assigned = await crud.list_orders(
                db,
                store_id=store_id,
                states=[OrderState.ASSIGNED],
                courier_id=actor.courier_id,
                limit=self.history_limit,
            )
        return {"available": available, "assigned": assigned}

    async def granted_stores(self, actor):
        if not isinstance(actor, CourierActor):
            raise Forbidden(authorization.DENIED)
        async with self.database.read_session() as db:
            return list(await crud.get_granted_store_ids(db, actor.courier_id))

    # Mutations ###################################################################################
    async def claim(self, order_id: int, actor):
        """Make ``actor`` the courier of a pending, unassigned order."""
        if not isinstance(actor, CourierActor):
            raise Forbidden(authorization.DENIED)
        async with self.database.read_session() as db:
            order = await crud.get_order(db, order_id)
            if order is None:
                raise NotFound(f"Order {order_id} not found")
            granted = await crud.has_grant(db, actor.courier_id, order.store_id)
        authorization.authorize_claim(actor, granted)

        async with self.database.session() as db:
            order = await self._claim(db, order_id, actor)

        await self._publish("order_claimed", order)
        return order

    async def update_state(
        self,
        order_id: int,
        actor,
        requested,
        note: Optional[str] = None,
    ):
        """Move an order to ``requested`` on behalf of ``actor``.

        A courier asking for ``assigned`` on a pending order is claiming it.
        """
        requested = parse_state(requested)
        note = note.strip() if note else None

        async with self.database.read_session() as db:
            order = await _find_order(db, order_id, actor)
            granted = await _courier_granted(db, actor, order.store_id)
        authorization.authorize_transition(actor, order, granted)

        current = order.state
        if not can_transition(current, requested, actor.role):
            raise InvalidTransition(current, requested)

        if requested is OrderState.ASSIGNED:
            async with self.database.session() as db:
                order = await self._claim(db, order_id, actor)
            event = "order_claimed"
        else:
            if note_required(requested) and not note:
                raise OrderValidationError("A note is required to cancel an order")
            values = required_side_effects(current, requested, actor.role, note)
            async with self.database.session() as db:
                changed = await crud.transition_order(
                    db, order_id, current, order.courier_id, requested, **values
                )
                if not changed:
                    raise Conflict(f"Order {order_id} changed while it was being updated")
                order = await crud.get_order(db, order_id)
            event = "order_state_changed"

        logger.info("Order %s moved from %s to %s by %s %s",
                    order_id, current.value, requested.value, actor.role.value, actor.actor_id)
        await self._publish(event, order, current)
        return order

    async def _claim(self, db, order_id: int, actor):
        changed = await crud.claim_order(db, order_id, actor.courier_id)
        if not changed:
            if not await crud.order_exists(db, order_id):
                raise NotFound(f"Order {order_id} not found")
            raise AlreadyClaimed()
        order = await crud.get_order(db, order_id)
        if order.state is not OrderState.ASSIGNED or order.courier_id != actor.courier_id:
            raise AlreadyClaimed()
        logger.info("Order %s claimed by courier %s", order_id, actor.courier_id)
        return order

    async def _publish(self, event: str, order, *args):
        if self.publisher is None:
            return
        await getattr(self.publisher, event)(order, *args)


def parse_state(value) -> OrderState:
    """Accept an OrderState or its string value."""
    try:
        return OrderState(value)
    except ValueError:
        raise OrderValidationError(f"Unknown order state '{value}'")


def _validate_customer(customer):
    if customer is None:
        raise OrderValidationError("Customer details are required")
    if not (customer.name or "").strip():
        raise OrderValidationError("Customer name is required")
    if not (customer.address or "").strip():
        raise OrderValidationError("Customer address is required")


async def _courier_granted(db, actor, store_id: int) -> bool:
    if isinstance(actor, CourierActor):
        return await crud.has_grant(db, actor.courier_id, store_id)
    return False


async def _find_order(db, order_id: int, actor):
    """Load an order. A missing order is reported as NotFound to admins only."""
    order = await crud.get_order(db, order_id)
    if order is None:
        if isinstance(actor, AdminActor):
            raise NotFound(f"Order {order_id} not found")
        raise Forbidden(authorization.DENIED)
    return order
