# app/modules/cart/router.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from app.core.dependencies import get_db, get_current_user
from app.core.logger import logger
from app.modules.users.models import User
from . import crud
from .schemas import CartAddIn, CartQuantityIn, CartItemOut, CartOut, CartItemUpdateOut

router = APIRouter()  # incluído com prefix "/cart"

@router.get("", response_model=CartOut)
async def get_cart(
    db: AsyncSession = Depends(get_db),
    me: User = Depends(get_current_user),
):
    try:
        items = await crud.get_cart_items(db, me.id)
        total = await crud.get_cart_total(db, me.id)
        count = await crud.get_item_count(db, me.id)
    except SQLAlchemyError:
        # leitura do carrinho não é crítica: mostra vazio e registra
        logger.exception("Falha ao ler carrinho do usuário %s", me.id)
        return CartOut()
    return CartOut(
        items=[CartItemOut.model_validate(i) for i in items],
        total=total,
        item_count=count,
    )

@router.post("", response_model=CartItemOut, status_code=status.HTTP_201_CREATED)
async def add_item(
    payload: CartAddIn,
    db: AsyncSession = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return await crud.add_to_cart(db, me.id, payload.product_id, payload.quantity)

@router.put("/{product_id}", response_model=CartItemUpdateOut)
async def update_item(
    product_id: int,
    payload: CartQuantityIn,
    db: AsyncSession = Depends(get_db),
    me: User = Depends(get_current_user),
):
    item = await crud.update_quantity(db, me.id, product_id, payload.quantity)
    if item is None:
        return CartItemUpdateOut(removed=True)
    return CartItemUpdateOut(removed=False, item=CartItemOut.model_validate(item))

@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_item(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    me: User = Depends(get_current_user),
):
    await crud.remove_from_cart(db, me.id, product_id)
    return

@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear(
    db: AsyncSession = Depends(get_db),
    me: User = Depends(get_current_user),
):
    await crud.clear_cart(db, me.id)
    return
