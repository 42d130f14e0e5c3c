# -*- coding: utf-8 -*-
"""Request and response models exchanged over HTTP."""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app_comandas.state_machine import OrderState


class Message(BaseModel):
    detail: Optional[str] = Field(default=None, examples=["error or success message"])


class ErrorMessage(Message):
    error: str = Field(description="Machine readable error code", examples=["already_claimed"])


class CustomerInfo(BaseModel):
    name: str = Field(min_length=1, max_length=255, description="Customer name", examples=["Ana"])
    phone: str = Field(default="", max_length=64, examples=["+34 600 000 000"])
    address: str = Field(min_length=1, max_length=512, examples=["Calle Mayor 1"])


class LineItemCreate(BaseModel):
    product_id: int = Field(description="Product of the ordering store", examples=[1])
    quantity: int = Field(gt=0, description="Units ordered", examples=[2])


class OrderCreate(BaseModel):
    """Schema definition to create an order"""
    store_id: int = Field(description="Store placing the order", examples=[1])
    customer: CustomerInfo
    line_items: List[LineItemCreate] = Field(min_length=1)


class OrderStateUpdate(BaseModel):
    state: OrderState = Field(description="Requested state", examples=["fulfilled"])
    note: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Reason; required when cancelling",
        examples=["client unavailable"],
    )


class OrderFilters(BaseModel):
    state: Optional[OrderState] = None
    created_on: Optional[date] = None
    product_ids: List[int] = Field(default_factory=list)
    active_only: bool = False
    mine: bool = False


class LineItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    product_id: int
    product_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class Order(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int = Field(description="Primary key/identifier of the order", examples=[1])
    store_id: int
    courier_id: Optional[int] = None
    customer_name: str
    customer_phone: str
    customer_address: str
    total: Decimal
    state: OrderState
    failure_note: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    line_items: List[LineItem] = Field(default_factory=list)


class CourierBoard(BaseModel):
    available: List[Order] = Field(description="Unassigned orders the courier may claim")
    assigned: List[Order] = Field(description="Orders currently assigned to the courier")


class CourierStores(BaseModel):
    store_ids: List[int]
