# -*- coding: utf-8 -*-
"""FastAPI router definitions."""
import datetime
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app_comandas.dependencies import get_current_actor, get_database, get_order_service
from app_comandas.sql import schemas
from app_comandas.state_machine import OrderState

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/comandas"
)

ERROR_RESPONSES = {
    status.HTTP_403_FORBIDDEN: {"model": schemas.ErrorMessage, "description": "Not allowed"},
    status.HTTP_404_NOT_FOUND: {"model": schemas.ErrorMessage, "description": "Order not found"},
    status.HTTP_409_CONFLICT: {
        "model": schemas.ErrorMessage,
        "description": "Invalid transition, or the order changed concurrently",
    },
}


@router.get(
    "/health",
    summary="Health check endpoint",
    response_model=schemas.Message,
)
async def health_check(database=Depends(get_database)):
    """Endpoint to check if everything started correctly."""
    logger.debug("GET '/comandas/health' endpoint called.")
    if await database.ping():
        return {"detail": "OK"}
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service not available")


@router.post(
    "",
    response_model=schemas.Order,
    summary="Create an order",
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    tags=["Orders"]
)
async def create_order(
    order_schema: schemas.OrderCreate,
    service=Depends(get_order_service),
    actor=Depends(get_current_actor),
):
    """Create a pending order for the caller's store."""
    logger.debug("POST '/comandas' endpoint called by %s.", actor)
    return await service.create(
        actor,
        order_schema.store_id,
        order_schema.customer,
        order_schema.line_items,
    )


@router.get(
    "",
    response_model=List[schemas.Order],
    summary="List orders of a store",
    responses=ERROR_RESPONSES,
    tags=["Orders"]
)
async def list_orders(
    store_id: int = Query(description="Store whose orders are listed"),
    state: Optional[OrderState] = Query(default=None),
    created_on: Optional[datetime.date] = Query(default=None, alias="date"),
    product_ids: Optional[str] = Query(default=None, description="Comma separated product ids"),
    active_only: bool = Query(default=False),
    mine: bool = Query(default=False, description="Couriers: only orders assigned to me"),
    service=Depends(get_order_service),
    actor=Depends(get_current_actor),
):
    """Order history, newest first."""
    logger.debug("GET '/comandas' endpoint called by %s.", actor)
    filters = schemas.OrderFilters(
        state=state,
        created_on=created_on,
        product_ids=_parse_ids(product_ids),
        active_only=active_only,
        mine=mine,
    )
    return await service.list(store_id, actor, filters)


@router.get(
    "/courier/board",
    response_model=schemas.CourierBoard,
    summary="Orders a courier can claim, and its assigned ones",
    responses=ERROR_RESPONSES,
    tags=["Courier"]
)
async def courier_board(
    store_id: int = Query(),
    service=Depends(get_order_service),
    actor=Depends(get_current_actor),
):
    logger.debug("GET '/comandas/courier/board' endpoint called by %s.", actor)
    return await service.courier_board(store_id, actor)


@router.get(
    "/courier/stores",
    response_model=schemas.CourierStores,
    summary="Stores the courier works for",
    responses=ERROR_RESPONSES,
    tags=["Courier"]
)
async def courier_stores(
    service=Depends(get_order_service),
    actor=Depends(get_current_actor),
):
    return {"store_ids": await service.granted_stores(actor)}


@router.get(
    "/{order_id}",
    response_model=schemas.Order,
    summary="Get an order with its line items",
    responses=ERROR_RESPONSES,
    tags=["Orders"]
)
async def get_order(
    order_id: int,
    service=Depends(get_order_service),
    actor=Depends(get_current_actor),
):
    logger.debug("GET '/comandas/%s' endpoint called.", order_id)
    return await service.get(order_id, actor)


@router.patch(
    "/{order_id}/state",
    response_model=schemas.Order,
    summary="Change the state of an order",
    responses=ERROR_RESPONSES,
    tags=["Orders"]
)
async def update_order_state(
    order_id: int,
    state_schema: schemas.OrderStateUpdate,
    service=Depends(get_order_service),
    actor=Depends(get_current_actor),
):
    """Move an order along its lifecycle. Cancelling requires a note."""
    logger.debug("PATCH '/comandas/%s/state' endpoint called: %s.", order_id, state_schema.state)
    return await service.update_state(order_id, actor, state_schema.state, state_schema.note)


@router.post(
    "/{order_id}/claim",
    response_model=schemas.Order,
    summary="Claim an unassigned order",
    responses=ERROR_RESPONSES,
    tags=["Courier"]
)
async def claim_order(
    order_id: int,
    service=Depends(get_order_service),
    actor=Depends(get_current_actor),
):
    """Take ownership of a pending order. Only one courier ever wins."""
    logger.debug("POST '/comandas/%s/claim' endpoint called by %s.", order_id, actor)
    return await service.claim(order_id, actor)


def _parse_ids(raw: Optional[str]) -> List[int]:
    if not raw:
        return []
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="product_ids must be a comma separated list of integers",
        )
