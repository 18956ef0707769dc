# app/services/payment_reconcile.py
from typing import Optional, Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidStatusTransition, OrderNotFound
from app.core.logger import logger
from app.modules.orders.crud import get_order, get_order_by_payment_id, update_order_status
from app.modules.orders.models import Order, STATUS_PAID, STATUS_FAILED, STATUS_REFUNDED

FAILED_STATUSES = {"failed", "canceled", "expired"}
# open | pending | authorized: ainda aguardando, pedido segue "pending"

def _amount_value(amount: Optional[Dict[str, Any]]) -> Optional[str]:
    if not amount:
        return None
    return amount.get("value")

def order_status_from_payment(payment: Dict[str, Any]) -> Optional[str]:
    """
    Traduz o pagamento da Mollie para o status do pedido (ou None se ainda em aberto).
    Reembolso total aparece como status "paid" + amountRefunded == amount.
    """
    status = str(payment.get("status", "")).lower()
    if status == "paid":
        refunded = _amount_value(payment.get("amountRefunded"))
        if refunded and refunded == _amount_value(payment.get("amount")):
            return STATUS_REFUNDED
        return STATUS_PAID
    if status in FAILED_STATUSES:
        return STATUS_FAILED
    return None

async def reconcile_order_from_payment(db: AsyncSession, payment: Dict[str, Any]) -> Order:
    """
    Aplica o status do pagamento ao pedido correspondente.

    Procura o pedido pelo payment_id e, na falta, por metadata.order_id.
    Webhook repetido não tem efeito (update_order_status é idempotente);
    transição proibida é registrada e o pedido volta como está.
    """
    payment_id = payment.get("id")
    order = await get_order_by_payment_id(db, payment_id) if payment_id else None
    if order is None:
        order_id = (payment.get("metadata") or {}).get("order_id")
        if order_id is None:
            raise OrderNotFound(f"Nenhum pedido para o pagamento {payment_id}")
        order = await get_order(db, int(order_id))

    target = order_status_from_payment(payment)
    if target is None:
        logger.info("Pagamento %s ainda em aberto (%s); pedido %s segue %s",
                    payment_id, payment.get("status"), order.id, order.status)
        return order

    try:
        return await update_order_status(db, order.id, target, payment_id=payment_id)
    except InvalidStatusTransition as e:
        logger.warning("Webhook ignorado para pedido %s (payment=%s): %s", order.id, payment_id, e.detail)
        return await get_order(db, order.id)
