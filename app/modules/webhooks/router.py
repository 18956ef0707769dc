from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_payment_client
from app.core.exceptions import OrderNotFound
from app.core.logger import logger
from app.integrations.mollie_client import MollieClient, MollieError
from app.services.payment_reconcile import reconcile_order_from_payment

router = APIRouter()

async def _payment_id_from(request: Request) -> str | None:
    # a Mollie manda form-urlencoded "id=tr_..."; aceitamos JSON também
    if (request.headers.get("content-type") or "").startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            return None
        return body.get("id") if isinstance(body, dict) else None
    form = await request.form()
    value = form.get("id")
    return str(value) if value else None

@router.post("/payment", status_code=status.HTTP_200_OK)
async def payment_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    payments: MollieClient = Depends(get_payment_client),
):
    payment_id = await _payment_id_from(request)
    if not payment_id:
        raise HTTPException(status_code=400, detail="id do pagamento ausente")

    try:
        payment = await payments.get_payment(payment_id)
    except MollieError as e:
        if e.code == "http_404":
            raise HTTPException(status_code=404, detail="Pagamento desconhecido")
        # 502 faz o provedor reenviar depois
        raise HTTPException(status_code=502, detail="Falha ao consultar o pagamento")

    try:
        order = await reconcile_order_from_payment(db, payment)
    except OrderNotFound:
        logger.warning("Webhook para pagamento %s sem pedido correspondente", payment_id)
        raise

    return {"received": True, "order_id": order.id, "status": order.status}
