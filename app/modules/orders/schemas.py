# app/modules/orders/schemas.py
from __future__ import annotations
from typing import Optional, List, Literal
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict

from app.modules.products.schemas import ProductOut

OrderStatus = Literal["pending", "paid", "failed", "refunded"]


class OrderItemIn(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, ge=1)


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: Optional[int] = None
    product_name: str
    quantity: int
    price: int          # preço unitário congelado (centavos)


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    status: OrderStatus
    total_amount: int
    currency: str
    payment_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    paid_at: Optional[datetime] = None
    items: List[OrderItemOut] = []


class OrderStatusUpdateIn(BaseModel):
    status: OrderStatus
    payment_id: Optional[str] = None


class OrderStatsOut(BaseModel):
    total_orders: int
    paid_orders: int
    pending_orders: int
    failed_orders: int
    refunded_orders: int
    total_revenue: int          # só pedidos pagos
    average_order_value: int


class TopProductOut(BaseModel):
    product_id: int
    product_name: str
    total_sold: int
    total_revenue: int


class OrdersRangeOut(BaseModel):
    orders: List[OrderOut]
    total_revenue: int


class PurchasesOut(BaseModel):
    products: List[ProductOut]
    courses: List[ProductOut]
    ebooks: List[ProductOut]
    reviews: List[ProductOut]
    count: int
