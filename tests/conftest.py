"""
Shared fixtures.

Every test gets its own SQLite file; NullPool gives each session its own connection so
concurrent operations really compete for the database.

Seed data:
    store 1: Pizza (10.00), Soda (2.50), Retired (inactive)
    store 2: Bread (3.00)
    couriers 10, 11, 13, 14, 15 granted to store 1; courier 12 granted to store 2 only
"""
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.pool import NullPool

from app_comandas.actors import AdminActor, CourierActor, StoreActor
from app_comandas.services.order_service import OrderService
from app_comandas.sql import models, schemas
from app_comandas.sql.database import Database

STORE_ID = 1
OTHER_STORE_ID = 2
PIZZA, SODA, RETIRED, BREAD = 1, 2, 3, 4
COURIER_C, COURIER_D, COURIER_OTHER_STORE = 10, 11, 12
EXTRA_COURIERS = (13, 14, 15)


@pytest_asyncio.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'comandas.db'}", poolclass=NullPool)
    await db.create_all()
    async with db.session() as session:
        session.add_all([
            models.Product(id=PIZZA, store_id=STORE_ID, name="Pizza", price=Decimal("10.00")),
            models.Product(id=SODA, store_id=STORE_ID, name="Soda", price=Decimal("2.50")),
            models.Product(id=RETIRED, store_id=STORE_ID, name="Retired",
                           price=Decimal("7.00"), active=False),
            models.Product(id=BREAD, store_id=OTHER_STORE_ID, name="Bread", price=Decimal("3.00")),
        ])
        for courier_id in (COURIER_C, COURIER_D) + EXTRA_COURIERS:
            session.add(models.CourierStoreGrant(courier_id=courier_id, store_id=STORE_ID))
        session.add(models.CourierStoreGrant(courier_id=COURIER_OTHER_STORE, store_id=OTHER_STORE_ID))
        await session.commit()
    yield db
    await db.dispose()


@pytest.fixture
def service(database):
    return OrderService(database)


@pytest.fixture
def store():
    return StoreActor(actor_id=100, store_id=STORE_ID)


@pytest.fixture
def other_store():
    return StoreActor(actor_id=200, store_id=OTHER_STORE_ID)


@pytest.fixture
def courier_c():
    return CourierActor(courier_id=COURIER_C)


@pytest.fixture
def courier_d():
    return CourierActor(courier_id=COURIER_D)


@pytest.fixture
def ungranted_courier():
    return CourierActor(courier_id=COURIER_OTHER_STORE)


@pytest.fixture
def admin():
    return AdminActor(actor_id=1)


def customer(name="Ana", phone="600000000", address="Calle Mayor 1"):
    return schemas.CustomerInfo(name=name, phone=phone, address=address)


def items(*pairs):
    return [schemas.LineItemCreate(product_id=product_id, quantity=quantity)
            for product_id, quantity in pairs]


@pytest_asyncio.fixture
async def pending_order(service, store):
    """Two pizzas at store 1, total 20."""
    return await service.create(store, STORE_ID, customer(), items((PIZZA, 2)))
