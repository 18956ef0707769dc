# app/modules/orders/crud.py
"""
Pedidos: criação com preço congelado, máquina de estados e relatórios.

Fluxo de status:
    pending -> paid -> refunded
    pending -> failed
Só "paid" libera acesso ao conteúdo (ver app.services.access).
"""
from __future__ import annotations

from collections import OrderedDict
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func, case

from app.core.config import settings
from app.core.exceptions import (
    InvalidStatusTransition,
    OrderNotFound,
    ProductNotFound,
    ValidationError,
)
from app.core.logger import logger
from app.modules.products.models import Product
from app.utils.dates import as_utc, utcnow
from .models import (
    Order,
    OrderItem,
    STATUS_CHOICES,
    STATUS_PAID,
    STATUS_PENDING,
    STATUS_FAILED,
    STATUS_REFUNDED,
    ALLOWED_TRANSITIONS,
)
from .schemas import OrderItemIn


def _merge_items(items: Iterable[OrderItemIn]) -> "OrderedDict[int, int]":
    merged: "OrderedDict[int, int]" = OrderedDict()
    for it in items:
        if it.quantity < 1:
            raise ValidationError("quantity deve ser >= 1")
        merged[it.product_id] = merged.get(it.product_id, 0) + it.quantity
    return merged

def _order_query():
    return select(Order).execution_options(populate_existing=True)


# ---------- leitura ----------
async def get_order(db: AsyncSession, order_id: int) -> Order:
    res = await db.execute(_order_query().where(Order.id == order_id))
    order = res.scalar_one_or_none()
    if not order:
        raise OrderNotFound()
    return order

async def get_order_for_user(db: AsyncSession, user_id: int, order_id: int) -> Order:
    # pedido de outro usuário é tratado como inexistente
    res = await db.execute(_order_query().where(Order.id == order_id, Order.user_id == user_id))
    order = res.scalar_one_or_none()
    if not order:
        raise OrderNotFound()
    return order

async def get_order_by_payment_id(db: AsyncSession, payment_id: str) -> Order | None:
    res = await db.execute(_order_query().where(Order.payment_id == payment_id))
    return res.scalar_one_or_none()

async def get_user_orders(db: AsyncSession, user_id: int) -> list[Order]:
    res = await db.execute(
        _order_query().where(Order.user_id == user_id).order_by(Order.created_at.desc(), Order.id.desc())
    )
    return list(res.scalars().all())

async def get_all_orders(db: AsyncSession, status: Optional[str] = None) -> list[Order]:
    stmt = _order_query()
    if status:
        stmt = stmt.where(Order.status == status)
    res = await db.execute(stmt.order_by(Order.created_at.desc(), Order.id.desc()))
    return list(res.scalars().all())

async def get_user_purchased_products(db: AsyncSession, user_id: int) -> list[Product]:
    paid_product_ids = (
        select(OrderItem.product_id)
        .join(Order, Order.id == OrderItem.order_id)
        .where(Order.user_id == user_id, Order.status == STATUS_PAID)
    )
    res = await db.execute(
        select(Product).where(Product.id.in_(paid_product_ids)).order_by(Product.name.asc())
    )
    return list(res.scalars().all())


# ---------- escrita ----------
async def create_order(db: AsyncSession, user_id: int, items: Iterable[OrderItemIn]) -> Order:
    """
    Cria o pedido "pending" com o preço ATUAL de cada produto.
    Depois disso, preço e total do pedido não mudam mais.
    """
    merged = _merge_items(items)
    if not merged:
        raise ValidationError("Nenhum item para o pedido")

    res = await db.execute(
        select(Product).where(Product.id.in_(list(merged.keys())), Product.is_active == True)
    )
    products = {p.id: p for p in res.scalars().all()}
    missing = [pid for pid in merged if pid not in products]
    if missing:
        raise ProductNotFound(f"Produto(s) não encontrado(s)/ativo(s): {missing}")

    order = Order(
        user_id=user_id,
        status=STATUS_PENDING,
        currency=settings.CURRENCY,
        total_amount=0,
    )
    total = 0
    for pid, qty in merged.items():
        p = products[pid]
        order.items.append(OrderItem(product_id=p.id, product_name=p.name, quantity=qty, price=p.price))
        total += p.price * qty
    order.total_amount = total

    db.add(order)
    await db.commit()
    logger.info("Pedido %s criado (user=%s, total=%s, itens=%s)", order.id, user_id, total, len(merged))
    return await get_order(db, order.id)

async def attach_payment_id(db: AsyncSession, order_id: int, payment_id: str) -> Order:
    """Grava o id do pagamento do provedor num pedido ainda pendente."""
    order = await get_order(db, order_id)
    if order.status != STATUS_PENDING:
        raise InvalidStatusTransition(order.status, STATUS_PENDING)
    await db.execute(
        update(Order)
        .where(Order.id == order_id, Order.status == STATUS_PENDING)
        .values(payment_id=payment_id, updated_at=func.now())
    )
    await db.commit()
    return await get_order(db, order_id)

async def _adjust_sales(db: AsyncSession, order: Order, sign: int) -> None:
    for item in order.items:
        if item.product_id is None:
            continue
        if sign > 0:
            new_value = Product.sales + item.quantity
        else:
            new_value = case((Product.sales >= item.quantity, Product.sales - item.quantity), else_=0)
        await db.execute(update(Product).where(Product.id == item.product_id).values(sales=new_value))

async def update_order_status(
    db: AsyncSession,
    order_id: int,
    status: str,
    payment_id: Optional[str] = None,
) -> Order:
    """
    Aplica a transição de status de forma idempotente.

    - mesmo status atual: não faz nada (paid_at e contadores ficam como estão)
    - transição permitida: UPDATE condicional (WHERE status = origem), então
      duas entregas simultâneas do mesmo webhook só aplicam uma vez
    - qualquer outra: InvalidStatusTransition
    """
    if status not in STATUS_CHOICES:
        raise ValidationError(f"Status inválido: {status}")

    order = await get_order(db, order_id)
    if order.status == status:
        logger.info("Pedido %s já está em %s; nada a fazer", order_id, status)
        return order

    previous = order.status
    sources = ALLOWED_TRANSITIONS.get(status, ())
    if order.status not in sources:
        logger.warning("Transição recusada para pedido %s: %s -> %s", order_id, order.status, status)
        raise InvalidStatusTransition(order.status, status)

    values = {"status": status, "updated_at": func.now()}
    if status == STATUS_PAID:
        values["paid_at"] = utcnow()
    if payment_id:
        values["payment_id"] = payment_id

    res = await db.execute(
        update(Order).where(Order.id == order_id, Order.status.in_(sources)).values(**values)
    )
    if (res.rowcount or 0) == 0:
        # outra requisição mudou o status entre a leitura e o UPDATE
        await db.rollback()
        current = await get_order(db, order_id)
        if current.status == status:
            return current
        raise InvalidStatusTransition(current.status, status)

    if status == STATUS_PAID:
        await _adjust_sales(db, order, +1)
    elif status == STATUS_REFUNDED:
        await _adjust_sales(db, order, -1)

    await db.commit()
    logger.info("Pedido %s: %s -> %s (payment_id=%s)", order_id, previous, status, payment_id)
    return await get_order(db, order_id)

async def delete_order(db: AsyncSession, order_id: int) -> None:
    # utilitário de admin/teste; fluxo normal nunca exclui pedidos
    await get_order(db, order_id)
    await db.execute(delete(OrderItem).where(OrderItem.order_id == order_id))
    await db.execute(delete(Order).where(Order.id == order_id))
    await db.commit()


# ---------- relatórios (só pedidos pagos contam receita) ----------
async def get_order_stats(db: AsyncSession) -> dict:
    res = await db.execute(select(Order.status, func.count(Order.id)).group_by(Order.status))
    by_status = {s: 0 for s in STATUS_CHOICES}
    for st, n in res.all():
        by_status[st] = int(n)

    revenue = await db.scalar(
        select(func.coalesce(func.sum(Order.total_amount), 0)).where(Order.status == STATUS_PAID)
    )
    revenue = int(revenue or 0)
    paid = by_status[STATUS_PAID]
    return {
        "total_orders": sum(by_status.values()),
        "paid_orders": paid,
        "pending_orders": by_status[STATUS_PENDING],
        "failed_orders": by_status[STATUS_FAILED],
        "refunded_orders": by_status[STATUS_REFUNDED],
        "total_revenue": revenue,
        "average_order_value": revenue // paid if paid else 0,
    }

async def get_top_products(db: AsyncSession, limit: int = 10) -> list[dict]:
    total_sold = func.sum(OrderItem.quantity).label("total_sold")
    total_revenue = func.sum(OrderItem.quantity * OrderItem.price).label("total_revenue")
    stmt = (
        select(
            OrderItem.product_id,
            func.max(OrderItem.product_name).label("product_name"),
            total_sold,
            total_revenue,
        )
        .join(Order, Order.id == OrderItem.order_id)
        .where(Order.status == STATUS_PAID, OrderItem.product_id.is_not(None))
        .group_by(OrderItem.product_id)
        .order_by(total_sold.desc(), total_revenue.desc())
        .limit(limit)
    )
    res = await db.execute(stmt)
    return [
        {
            "product_id": row.product_id,
            "product_name": row.product_name,
            "total_sold": int(row.total_sold or 0),
            "total_revenue": int(row.total_revenue or 0),
        }
        for row in res.all()
    ]

async def get_orders_by_date_range(db: AsyncSession, start: datetime, end: datetime) -> list[Order]:
    # sqlite descarta o offset ao gravar o parâmetro; tudo vai em UTC
    start, end = as_utc(start), as_utc(end)
    if end < start:
        raise ValidationError("end não pode ser menor que start")
    res = await db.execute(
        _order_query()
        .where(Order.status == STATUS_PAID, Order.created_at >= start, Order.created_at <= end)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    return list(res.scalars().all())
