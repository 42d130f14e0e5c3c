# -*- coding: utf-8 -*-
"""Caller identities as forwarded by the authentication gateway."""
from dataclasses import dataclass
from enum import Enum
from typing import Union


class Role(str, Enum):
    STORE = "store"
    COURIER = "courier"
    ADMIN = "admin"


@dataclass(frozen=True)
class StoreActor:
    """A store account; acts only on orders of ``store_id``."""
    actor_id: int
    store_id: int

    @property
    def role(self) -> Role:
        return Role.STORE


@dataclass(frozen=True)
class CourierActor:
    """A courier; acts on orders of stores it holds a grant for."""
    courier_id: int

    @property
    def actor_id(self) -> int:
        return self.courier_id

    @property
    def role(self) -> Role:
        return Role.COURIER


@dataclass(frozen=True)
class AdminActor:
    actor_id: int

    @property
    def role(self) -> Role:
        return Role.ADMIN


Actor = Union[StoreActor, CourierActor, AdminActor]


def build_actor(actor_id: int, role: str, store_id: int = None) -> Actor:
    """Build the actor variant for a role name. Raises ValueError on bad input."""
    role = Role(role)
    if role is Role.STORE:
        if store_id is None:
            raise ValueError("store actors require a store id")
        return StoreActor(actor_id=actor_id, store_id=store_id)
    if role is Role.COURIER:
        return CourierActor(courier_id=actor_id)
    return AdminActor(actor_id=actor_id)
