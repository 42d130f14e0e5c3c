# -*- coding: utf-8 -*-
"""Functions that interact with the database."""
import logging
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app_comandas.state_machine import OrderState
from . import models

logger = logging.getLogger(__name__)


# Collaborators ####################################################################################
async def get_active_product(db: AsyncSession, product_id: int, store_id: int):
    """Active product of the given store, or None."""
    stmt = select(models.Product).where(
        models.Product.id == product_id,
        models.Product.store_id == store_id,
        models.Product.active.is_(True),
    )
    return await get_element_statement_result(db, stmt)


async def has_grant(db: AsyncSession, courier_id: int, store_id: int) -> bool:
    stmt = select(
        exists().where(
            models.CourierStoreGrant.courier_id == courier_id,
            models.CourierStoreGrant.store_id == store_id,
        )
    )
    return bool(await get_element_statement_result(db, stmt))


async def get_granted_store_ids(db: AsyncSession, courier_id: int):
    stmt = (
        select(models.CourierStoreGrant.store_id)
        .where(models.CourierStoreGrant.courier_id == courier_id)
        .order_by(models.CourierStoreGrant.store_id)
    )
    return await get_list_statement_result(db, stmt)


# Orders ###########################################################################################
async def create_order(db: AsyncSession, store_id: int, customer, lines):
    """Insert an order and its line items in one transaction.

    ``lines`` is a list of ``(product, quantity)``; prices are copied from the products as
    they are now.
    """
    line_items = []
    total = 0
    for product, quantity in lines:
        subtotal = product.price * quantity
        total += subtotal
        line_items.append(
            models.OrderLineItem(
                product=product,
                quantity=quantity,
                unit_price=product.price,
                subtotal=subtotal,
            )
        )

    db_order = models.Order(
        store_id=store_id,
        customer_name=customer.name,
        customer_phone=customer.phone or "",
        customer_address=customer.address,
        state=OrderState.PENDING_DISPATCH,
        total=total,
        line_items=line_items,
    )
    db.add(db_order)
    await db.commit()
    return await get_order(db, db_order.id)


async def get_order(db: AsyncSession, order_id: int):
    """Order with its line items, freshly read from the database."""
    if order_id is None:
        return None
    return await db.get(models.Order, order_id, populate_existing=True)


async def order_exists(db: AsyncSession, order_id: int) -> bool:
    stmt = select(exists().where(models.Order.id == order_id))
    return bool(await get_element_statement_result(db, stmt))


async def claim_order(db: AsyncSession, order_id: int, courier_id: int) -> int:
    """Assign the courier if, and only if, the order is still waiting for one.

    Returns the number of rows changed: 1 when this courier won, 0 otherwise.
    """
    stmt = (
        update(models.Order)
        .where(
            models.Order.id == order_id,
            models.Order.state == OrderState.PENDING_DISPATCH,
            models.Order.courier_id.is_(None),
        )
        .values(
            courier_id=courier_id,
            state=OrderState.ASSIGNED,
            updated_at=models.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    await db.commit()
    return result.rowcount


async def transition_order(
    db: AsyncSession,
    order_id: int,
    expected_state: OrderState,
    expected_courier_id,
    new_state: OrderState,
    **values,
) -> int:
    """Move the order to ``new_state`` if it still has the state and courier we read.

    Returns the number of rows changed.
    """
    courier_matches = (
        models.Order.courier_id.is_(None)
        if expected_courier_id is None
        else models.Order.courier_id == expected_courier_id
    )
    stmt = (
        update(models.Order)
        .where(
            models.Order.id == order_id,
            models.Order.state == expected_state,
            courier_matches,
        )
        .values(state=new_state, updated_at=models.utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    await db.commit()
    return result.rowcount


async def list_orders(
    db: AsyncSession,
    store_id: int = None,
    states=None,
    created_on: date = None,
    product_ids=None,
    courier_id: int = None,
    unassigned: bool = False,
    limit: int = 100,
):
    """Orders matching every given filter, newest first."""
    stmt = select(models.Order)
    if store_id is not None:
        stmt = stmt.where(models.Order.store_id == store_id)
    if states:
        stmt = stmt.where(models.Order.state.in_(list(states)))
    if created_on is not None:
        start = datetime.combine(created_on, time.min, tzinfo=timezone.utc)
        stmt = stmt.where(
            models.Order.created_at >= start,
            models.Order.created_at < start + timedelta(days=1),
        )
    if product_ids:
        stmt = stmt.where(
            models.Order.id.in_(
                select(models.OrderLineItem.order_id).where(
                    models.OrderLineItem.product_id.in_(list(product_ids))
                )
            )
        )
    if courier_id is not None:
        stmt = stmt.where(models.Order.courier_id == courier_id)
    if unassigned:
        stmt = stmt.where(models.Order.courier_id.is_(None))
    stmt = stmt.order_by(models.Order.created_at.desc(), models.Order.id.desc()).limit(limit)
    return await get_list_statement_result(db, stmt)


# Generic functions ################################################################################
# READ
async def get_list_statement_result(db: AsyncSession, stmt):
    """Execute given statement and return list of items."""
    result = await db.execute(stmt)
    item_list = result.unique().scalars().all()
    return item_list


async def get_element_statement_result(db: AsyncSession, stmt):
    """Execute statement and return a single items"""
    result = await db.execute(stmt)
    item = result.scalar()
    return item
