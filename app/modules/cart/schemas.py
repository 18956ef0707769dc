# app/modules/cart/schemas.py
from datetime import datetime
from typing import List
from pydantic import BaseModel, Field

from app.modules.products.schemas import ProductSummary


class CartAddIn(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, ge=1)


class CartQuantityIn(BaseModel):
    # <= 0 remove o item
    quantity: int


class CartItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    product: ProductSummary
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CartOut(BaseModel):
    items: List[CartItemOut] = []
    total: int = 0          # centavos, preço atual do catálogo
    item_count: int = 0     # soma das quantidades


class CartItemUpdateOut(BaseModel):
    removed: bool
    item: CartItemOut | None = None
