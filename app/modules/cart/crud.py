# app/modules/cart/crud.py
"""
Carrinho por usuário.

Todo acesso é filtrado pelo user_id recebido como argumento. O carrinho
mostra sempre o preço ATUAL do catálogo (ver get_cart_total); o preço
congelado do pedido vive em app.modules.orders.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func

from app.core.exceptions import CartItemNotFound, ValidationError
from app.db.upsert import insert_for
from app.modules.products.crud import get_active_product_or_404
from app.modules.products.models import Product
from .models import CartItem


async def get_cart_item(db: AsyncSession, user_id: int, product_id: int) -> CartItem | None:
    q = await db.execute(
        select(CartItem)
        .where(CartItem.user_id == user_id, CartItem.product_id == product_id)
        .execution_options(populate_existing=True)
    )
    return q.scalar_one_or_none()

async def add_to_cart(db: AsyncSession, user_id: int, product_id: int, quantity: int = 1) -> CartItem:
    if quantity < 1:
        raise ValidationError("quantity deve ser >= 1")
    await get_active_product_or_404(db, product_id)

    # incremento atômico no banco: nada de ler-somar-gravar em memória
    stmt = insert_for(db, CartItem).values(
        user_id=user_id, product_id=product_id, quantity=quantity
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[CartItem.user_id, CartItem.product_id],
        set_={
            "quantity": CartItem.quantity + stmt.excluded.quantity,
            "updated_at": func.now(),
        },
    )
    await db.execute(stmt)
    await db.commit()
    return await get_cart_item(db, user_id, product_id)

async def update_quantity(db: AsyncSession, user_id: int, product_id: int, quantity: int) -> CartItem | None:
    """Define a quantidade. quantity <= 0 remove a linha e devolve None."""
    if quantity <= 0:
        await remove_from_cart(db, user_id, product_id)
        return None

    res = await db.execute(
        update(CartItem)
        .where(CartItem.user_id == user_id, CartItem.product_id == product_id)
        .values(quantity=quantity, updated_at=func.now())
    )
    await db.commit()
    if (res.rowcount or 0) == 0:
        raise CartItemNotFound()
    return await get_cart_item(db, user_id, product_id)

async def remove_from_cart(db: AsyncSession, user_id: int, product_id: int) -> None:
    await db.execute(
        delete(CartItem).where(CartItem.user_id == user_id, CartItem.product_id == product_id)
    )
    await db.commit()

async def clear_cart(db: AsyncSession, user_id: int) -> None:
    await db.execute(delete(CartItem).where(CartItem.user_id == user_id))
    await db.commit()

async def get_cart_items(db: AsyncSession, user_id: int) -> list[CartItem]:
    res = await db.execute(
        select(CartItem)
        .where(CartItem.user_id == user_id)
        .order_by(CartItem.created_at.desc(), CartItem.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(res.scalars().unique().all())

async def get_cart_total(db: AsyncSession, user_id: int) -> int:
    # preço ao vivo do catálogo
    total = await db.scalar(
        select(func.coalesce(func.sum(CartItem.quantity * Product.price), 0))
        .select_from(CartItem)
        .join(Product, Product.id == CartItem.product_id)
        .where(CartItem.user_id == user_id)
    )
    return int(total or 0)

async def get_item_count(db: AsyncSession, user_id: int) -> int:
    # soma das quantidades (não o número de linhas)
    count = await db.scalar(
        select(func.coalesce(func.sum(CartItem.quantity), 0)).where(CartItem.user_id == user_id)
    )
    return int(count or 0)
