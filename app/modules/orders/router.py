# app/modules/orders/router.py
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_current_user
from app.modules.products.schemas import ProductOut
from app.modules.users.models import User
from . import crud
from .schemas import OrderOut, PurchasesOut

router = APIRouter()  # incluído com prefix "/orders"

@router.get("", response_model=List[OrderOut])
async def my_orders(
    db: AsyncSession = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return await crud.get_user_orders(db, me.id)

# produtos comprados (pedidos pagos), agrupados por tipo
@router.get("/purchases", response_model=PurchasesOut)
async def my_purchases(
    db: AsyncSession = Depends(get_db),
    me: User = Depends(get_current_user),
):
    products = [ProductOut.model_validate(p) for p in await crud.get_user_purchased_products(db, me.id)]
    return PurchasesOut(
        products=products,
        courses=[p for p in products if p.type == "course"],
        ebooks=[p for p in products if p.type == "ebook"],
        reviews=[p for p in products if p.type == "review"],
        count=len(products),
    )

@router.get("/{order_id}", response_model=OrderOut)
async def my_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return await crud.get_order_for_user(db, me.id, order_id)
