# app/modules/checkout/router.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.dependencies import get_db, get_current_user, get_payment_client
from app.core.exceptions import PaymentProviderError
from app.core.logger import logger
from app.integrations.mollie_client import MollieClient, MollieError
from app.modules.orders import crud as orders_crud
from app.modules.users.models import User
from .schemas import CheckoutIn, CheckoutOut

router = APIRouter()  # incluído com prefix "/checkout"

@router.post("/create-payment", response_model=CheckoutOut, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payload: CheckoutIn,
    db: AsyncSession = Depends(get_db),
    me: User = Depends(get_current_user),
    payments: MollieClient = Depends(get_payment_client),
):
    order = await orders_crud.create_order(db, me.id, payload.items)

    base = settings.PUBLIC_BASE_URL.rstrip("/")
    try:
        payment = await payments.create_payment(
            amount_cents=order.total_amount,
            currency=order.currency,
            description=f"Studio Insight - pedido #{order.id}",
            redirect_url=f"{base}/payment/success?orderId={order.id}",
            webhook_url=f"{base}{settings.API_V1_PREFIX}/webhooks/payment",
            metadata={"order_id": order.id, "user_id": me.id},
        )
    except MollieError as e:
        # pedido fica pending; o cliente pode tentar de novo
        logger.error("Falha ao criar pagamento do pedido %s: %s", order.id, e.code)
        raise PaymentProviderError() from e

    if not payment.get("id"):
        logger.error("Provedor não devolveu id de pagamento para o pedido %s", order.id)
        raise PaymentProviderError()

    await orders_crud.attach_payment_id(db, order.id, payment["id"])
    return CheckoutOut(order_id=order.id, payment_id=payment["id"], checkout_url=payment.get("checkout_url"))
