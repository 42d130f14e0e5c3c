# -*- coding: utf-8 -*-
"""Database models definitions. Table representations as class."""
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

from app_comandas.state_machine import OrderState

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


class BaseModel(Base):
    """Columns shared by every table."""
    __abstract__ = True

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class Product(BaseModel):
    """Catalog entry of a store. Only read here, at order creation."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    store_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    active = Column(Boolean, nullable=False, default=True)


class CourierStoreGrant(BaseModel):
    """Standing permission for a courier to work the orders of a store."""
    __tablename__ = "courier_store_grants"
    __table_args__ = (UniqueConstraint("courier_id", "store_id", name="uq_courier_store"),)

    id = Column(Integer, primary_key=True)
    courier_id = Column(Integer, nullable=False, index=True)
    store_id = Column(Integer, nullable=False, index=True)


class Order(BaseModel):
    """A comanda. Only ``state``, ``courier_id``, ``failure_note`` and ``updated_at`` change
    after creation, and only through conditional updates."""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    store_id = Column(Integer, nullable=False, index=True)
    courier_id = Column(Integer, nullable=True, index=True)
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(64), nullable=False, default="")
    customer_address = Column(String(512), nullable=False)
    state = Column(
        Enum(
            OrderState,
            name="order_state",
            native_enum=False,
            length=32,
            values_callable=lambda states: [state.value for state in states],
        ),
        nullable=False,
        default=OrderState.PENDING_DISPATCH,
        index=True,
    )
    total = Column(Numeric(10, 2), nullable=False)
    failure_note = Column(Text, nullable=True)

    line_items = relationship(
        "OrderLineItem",
        back_populates="order",
        lazy="selectin",
        order_by="OrderLineItem.id",
    )


class OrderLineItem(Base):
    """Product line frozen at creation time; never updated."""
    __tablename__ = "order_line_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="line_items")
    product = relationship("Product", lazy="joined")

    @property
    def product_name(self):
        return self.product.name if self.product is not None else None
