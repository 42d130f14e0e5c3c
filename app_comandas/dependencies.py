# -*- coding: utf-8 -*-
"""FastAPI dependencies: the order service and the calling actor."""
import logging
from typing import Optional

from fastapi import Header, HTTPException, Request, status

from app_comandas.actors import Actor, build_actor

logger = logging.getLogger(__name__)


def get_order_service(request: Request):
    """Service built in the application lifespan."""
    return request.app.state.order_service


def get_database(request: Request):
    return request.app.state.database


async def get_current_actor(
    x_actor_id: Optional[int] = Header(default=None),
    x_actor_role: Optional[str] = Header(default=None),
    x_store_id: Optional[int] = Header(default=None),
) -> Actor:
    """Identity forwarded by the authentication gateway; trusted as is."""
    if x_actor_id is None or not x_actor_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing caller identity",
        )
    try:
        return build_actor(x_actor_id, x_actor_role.lower(), x_store_id)
    except ValueError as exc:
        logger.debug("Rejected identity headers: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid caller identity",
        )
