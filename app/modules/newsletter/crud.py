# app/modules/newsletter/crud.py
"""
Inscrições na newsletter (double opt-in).

A inscrição pública entra como pending com um token de confirmação; o envio
do e-mail com o link fica fora desta API. O token só é usado uma vez.
"""
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import Conflict, SubscriptionNotFound, ValidationError
from app.core.logger import logger
from app.db.upsert import insert_for
from app.modules.users.crud import normalize_email
from app.utils.dates import utcnow
from .models import NewsletterSubscription, STATUS_CONFIRMED, STATUS_PENDING
from .schemas import SubscribeIn, SubscriptionCreate, SubscriptionUpdate


async def get_subscription(db: AsyncSession, subscription_id: int) -> NewsletterSubscription | None:
    q = await db.execute(
        select(NewsletterSubscription)
        .where(NewsletterSubscription.id == subscription_id)
        .execution_options(populate_existing=True)
    )
    return q.scalar_one_or_none()

async def get_subscription_by_email(db: AsyncSession, email: str) -> NewsletterSubscription | None:
    q = await db.execute(
        select(NewsletterSubscription)
        .where(NewsletterSubscription.email == normalize_email(email))
        .execution_options(populate_existing=True)
    )
    return q.scalar_one_or_none()

async def _upsert(db: AsyncSession, values: dict) -> NewsletterSubscription:
    stmt = insert_for(db, NewsletterSubscription).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[NewsletterSubscription.email],
        set_={**{k: v for k, v in values.items() if k != "email"}, "updated_at": func.now()},
    )
    await db.execute(stmt)
    await db.commit()
    return await get_subscription_by_email(db, values["email"])

async def subscribe(db: AsyncSession, payload: SubscribeIn) -> NewsletterSubscription:
    """
    Inscreve ou reinscreve. Reinscrição volta para pending com token novo,
    mesmo que o e-mail já estivesse confirmado.
    """
    if not payload.consent:
        raise ValidationError("Consentimento é obrigatório para a inscrição")
    sub = await _upsert(db, {
        "email": normalize_email(payload.email),
        "name": payload.name,
        "consent": True,
        "status": STATUS_PENDING,
        "confirmation_token": uuid4().hex,
        "confirmed_at": None,
    })
    logger.info("Newsletter: inscrição %s pendente de confirmação", sub.id)
    return sub

async def confirm_subscription(db: AsyncSession, token: str) -> NewsletterSubscription:
    # condicional: um segundo clique no mesmo link não confirma de novo
    res = await db.execute(
        update(NewsletterSubscription)
        .where(
            NewsletterSubscription.confirmation_token == token,
            NewsletterSubscription.status == STATUS_PENDING,
        )
        .values(
            status=STATUS_CONFIRMED,
            confirmation_token=None,
            confirmed_at=utcnow(),
            updated_at=func.now(),
        )
        .returning(NewsletterSubscription.id)
    )
    sub_id = res.scalar_one_or_none()
    await db.commit()
    if sub_id is None:
        raise SubscriptionNotFound("Token inválido ou já utilizado")
    logger.info("Newsletter: inscrição %s confirmada", sub_id)
    return await get_subscription(db, sub_id)

async def count_confirmed(db: AsyncSession) -> int:
    return int(await db.scalar(
        select(func.count(NewsletterSubscription.id))
        .where(NewsletterSubscription.status == STATUS_CONFIRMED)
    ) or 0)

async def list_subscriptions(db: AsyncSession, status: str | None = None) -> list[NewsletterSubscription]:
    stmt = select(NewsletterSubscription).order_by(
        NewsletterSubscription.created_at.desc(), NewsletterSubscription.id.desc()
    )
    if status:
        stmt = stmt.where(NewsletterSubscription.status == status)
    res = await db.execute(stmt.execution_options(populate_existing=True))
    return list(res.scalars().all())

async def admin_create(db: AsyncSession, payload: SubscriptionCreate) -> NewsletterSubscription:
    """Cadastro manual: sem token; confirmed já recebe confirmed_at."""
    confirmed = payload.status == STATUS_CONFIRMED
    sub = await _upsert(db, {
        "email": normalize_email(payload.email),
        "name": payload.name,
        "consent": True,
        "status": payload.status,
        "confirmation_token": None if confirmed else uuid4().hex,
        "confirmed_at": utcnow() if confirmed else None,
    })
    logger.info("Newsletter: inscrição %s gravada pelo admin (%s)", sub.id, sub.status)
    return sub

async def update_subscription(
    db: AsyncSession, subscription_id: int, payload: SubscriptionUpdate
) -> NewsletterSubscription:
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not data:
        raise ValidationError("Nenhum campo para atualizar")
    sub = await get_subscription(db, subscription_id)
    if not sub:
        raise SubscriptionNotFound()

    if "email" in data:
        data["email"] = normalize_email(data["email"])
    if "status" in data and data["status"] != sub.status:
        if data["status"] == STATUS_CONFIRMED:
            data["confirmed_at"] = utcnow()
            data["confirmation_token"] = None
        else:
            data["confirmed_at"] = None

    for k, v in data.items():
        setattr(sub, k, v)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("E-mail já inscrito na newsletter")
    return await get_subscription(db, subscription_id)

async def delete_subscription(db: AsyncSession, subscription_id: int) -> None:
    res = await db.execute(
        delete(NewsletterSubscription).where(NewsletterSubscription.id == subscription_id)
    )
    await db.commit()
    if (res.rowcount or 0) == 0:
        raise SubscriptionNotFound()
    logger.info("Newsletter: inscrição %s removida", subscription_id)
