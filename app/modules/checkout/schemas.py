from typing import List, Optional
from pydantic import BaseModel, Field

from app.modules.orders.schemas import OrderItemIn


class CheckoutIn(BaseModel):
    # preço nunca vem do cliente: só produto + quantidade
    items: List[OrderItemIn] = Field(..., min_length=1)


class CheckoutOut(BaseModel):
    order_id: int
    payment_id: str
    checkout_url: Optional[str] = None
