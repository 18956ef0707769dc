# app/services/access.py
"""
Controle de acesso a conteúdo digital.

Regra central: só um pedido com status "paid" contendo o produto libera
acesso. Pedidos pending/failed/refunded nunca liberam.

can_user_download() responde à pergunta; grant_download() é o único caminho
usado pelas rotas para efetivamente liberar um download: faz as checagens e
consome um download numa única instrução condicional, então duas requisições
simultâneas não passam do download_limit.
"""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, exists

from app.core.exceptions import DigitalProductNotFound, Forbidden
from app.core.logger import logger
from app.db.upsert import insert_for
from app.modules.digital_products.crud import get_digital_product, get_user_download
from app.modules.digital_products.models import DigitalProduct, UserDownload
from app.modules.orders.models import Order, OrderItem, STATUS_PAID
from app.utils.dates import as_utc, utcnow


async def has_user_purchased_product(db: AsyncSession, user_id: int, product_id: int) -> bool:
    stmt = select(
        exists()
        .where(
            OrderItem.order_id == Order.id,
            Order.user_id == user_id,
            Order.status == STATUS_PAID,
            OrderItem.product_id == product_id,
        )
    )
    return bool(await db.scalar(stmt))

def _is_expired(dp: DigitalProduct) -> bool:
    # no instante exato de expires_at já não vale mais
    return dp.expires_at is not None and utcnow() >= as_utc(dp.expires_at)

async def can_user_download(db: AsyncSession, user_id: int, digital_product_id: int) -> bool:
    dp = await get_digital_product(db, digital_product_id)
    if not dp:
        return False
    if not await has_user_purchased_product(db, user_id, dp.product_id):
        return False
    if dp.download_limit is not None:
        ud = await get_user_download(db, user_id, digital_product_id)
        if ud is not None and ud.download_count >= dp.download_limit:
            return False
    if _is_expired(dp):
        return False
    return True

def _deny(reason: str, user_id: int, digital_product_id: int) -> Forbidden:
    logger.warning("Download negado (user=%s, digital_product=%s): %s", user_id, digital_product_id, reason)
    return Forbidden(reason)

async def check_download_link(db: AsyncSession, user_id: int, digital_product_id: int) -> DigitalProduct:
    """
    Produto existe, compra segue paga e arquivo não expirou. Não conta
    download; é a checagem ao resolver um link já emitido.
    """
    dp = await get_digital_product(db, digital_product_id)
    if not dp:
        logger.warning("Download negado (user=%s, digital_product=%s): inexistente", user_id, digital_product_id)
        raise DigitalProductNotFound()
    if not await has_user_purchased_product(db, user_id, dp.product_id):
        raise _deny("Produto não comprado ou pagamento não confirmado", user_id, digital_product_id)
    if _is_expired(dp):
        raise _deny("Arquivo expirado", user_id, digital_product_id)
    return dp

async def grant_download(db: AsyncSession, user_id: int, digital_product_id: int) -> tuple[DigitalProduct, UserDownload]:
    """
    Checa elegibilidade e registra o download de forma atômica.
    Levanta DigitalProductNotFound / Forbidden; nunca libera em caso de dúvida.
    """
    dp = await check_download_link(db, user_id, digital_product_id)

    now = utcnow()
    stmt = insert_for(db, UserDownload).values(
        user_id=user_id,
        digital_product_id=digital_product_id,
        download_count=1,
        last_downloaded_at=now,
    )
    # o WHERE do upsert é a checagem do limite: se falhar, nenhuma linha volta
    stmt = stmt.on_conflict_do_update(
        index_elements=[UserDownload.user_id, UserDownload.digital_product_id],
        set_={
            "download_count": UserDownload.download_count + 1,
            "last_downloaded_at": now,
        },
        where=(UserDownload.download_count < dp.download_limit) if dp.download_limit is not None else None,
    ).returning(UserDownload.download_count)

    res = await db.execute(stmt)
    count = res.scalar_one_or_none()
    if count is None:
        await db.rollback()
        raise _deny("Limite de downloads atingido", user_id, digital_product_id)

    await db.commit()
    logger.info("Download liberado (user=%s, digital_product=%s, count=%s)", user_id, digital_product_id, count)
    return dp, await get_user_download(db, user_id, digital_product_id)
