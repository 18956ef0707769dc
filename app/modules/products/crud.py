# app/modules/products/crud.py
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, or_

from app.core.exceptions import ProductNotFound, ValidationError
from app.modules.cart.models import CartItem
from app.modules.digital_products.models import DigitalProduct, UserDownload
from app.modules.orders.models import OrderItem
from .models import Product
from .schemas import ProductCreate, ProductUpdate


async def get_product(db: AsyncSession, product_id: int) -> Product | None:
    q = await db.execute(
        select(Product).where(Product.id == product_id).execution_options(populate_existing=True)
    )
    return q.scalar_one_or_none()

async def get_product_or_404(db: AsyncSession, product_id: int) -> Product:
    product = await get_product(db, product_id)
    if not product:
        raise ProductNotFound()
    return product

async def get_active_product_or_404(db: AsyncSession, product_id: int) -> Product:
    q = await db.execute(
        select(Product).where(Product.id == product_id, Product.is_active == True)
    )
    product = q.scalar_one_or_none()
    if not product:
        raise ProductNotFound()
    return product

async def list_products(
    db: AsyncSession,
    *,
    type: Optional[str] = None,
    category: Optional[str] = None,
    featured: Optional[bool] = None,
    q: Optional[str] = None,
    include_inactive: bool = False,
    limit: int = 100,
    offset: int = 0,
) -> list[Product]:
    stmt = select(Product)
    if not include_inactive:
        stmt = stmt.where(Product.is_active == True)
    if type:
        stmt = stmt.where(Product.type == type)
    if category:
        stmt = stmt.where(Product.category == category, Product.type == "review")
    if featured is not None:
        stmt = stmt.where(Product.featured == featured)
    if q:
        like = f"%{q.strip()}%"
        stmt = stmt.where(or_(
            Product.name.ilike(like),
            Product.description.ilike(like),
            Product.short_description.ilike(like),
        ))
    stmt = stmt.order_by(Product.created_at.desc(), Product.id.desc()).limit(limit).offset(offset)
    res = await db.execute(stmt)
    return list(res.scalars().all())

async def create_product(db: AsyncSession, payload: ProductCreate) -> Product:
    obj = Product(**payload.model_dump(), sales=0)
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    return obj

async def update_product(db: AsyncSession, product_id: int, payload: ProductUpdate) -> Product:
    obj = await get_product_or_404(db, product_id)
    for k, v in payload.model_dump(exclude_unset=True).items():
        setattr(obj, k, v)
    if obj.category is not None and obj.type != "review":
        await db.rollback()
        raise ValidationError("category só é permitida para produtos do tipo review")
    await db.commit()
    await db.refresh(obj)
    return obj

async def toggle_product(db: AsyncSession, product_id: int) -> Product:
    obj = await get_product_or_404(db, product_id)
    obj.is_active = not obj.is_active
    await db.commit()
    await db.refresh(obj)
    return obj

async def delete_product(db: AsyncSession, product_id: int) -> None:
    await get_product_or_404(db, product_id)

    # dependentes explícitos; o ON DELETE do banco cobre o mesmo caso
    dp_ids = select(DigitalProduct.id).where(DigitalProduct.product_id == product_id)
    await db.execute(delete(UserDownload).where(UserDownload.digital_product_id.in_(dp_ids)))
    await db.execute(delete(DigitalProduct).where(DigitalProduct.product_id == product_id))
    await db.execute(delete(CartItem).where(CartItem.product_id == product_id))
    # pedidos ficam; o item mantém nome/preço do snapshot
    await db.execute(
        update(OrderItem).where(OrderItem.product_id == product_id).values(product_id=None)
    )
    await db.execute(delete(Product).where(Product.id == product_id))
    await db.commit()
