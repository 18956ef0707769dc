# app/modules/digital_products/crud.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func

from app.core.exceptions import DigitalProductNotFound
from app.db.upsert import insert_for
from app.modules.products.crud import get_product_or_404
from app.utils.dates import utcnow
from .models import DigitalProduct, UserDownload
from .schemas import DigitalProductCreate, DigitalProductUpdate


async def get_digital_product(db: AsyncSession, digital_product_id: int) -> DigitalProduct | None:
    q = await db.execute(
        select(DigitalProduct)
        .where(DigitalProduct.id == digital_product_id)
        .execution_options(populate_existing=True)
    )
    return q.scalar_one_or_none()

async def get_digital_product_or_404(db: AsyncSession, digital_product_id: int) -> DigitalProduct:
    dp = await get_digital_product(db, digital_product_id)
    if not dp:
        raise DigitalProductNotFound()
    return dp

async def get_digital_products_by_product(db: AsyncSession, product_id: int) -> list[DigitalProduct]:
    res = await db.execute(
        select(DigitalProduct)
        .where(DigitalProduct.product_id == product_id)
        .order_by(DigitalProduct.created_at.desc(), DigitalProduct.id.desc())
    )
    return list(res.scalars().all())

async def get_all_digital_products(db: AsyncSession) -> list[DigitalProduct]:
    res = await db.execute(
        select(DigitalProduct).order_by(DigitalProduct.created_at.desc(), DigitalProduct.id.desc())
    )
    return list(res.scalars().all())

async def add_digital_product(db: AsyncSession, payload: DigitalProductCreate) -> DigitalProduct:
    await get_product_or_404(db, payload.product_id)
    obj = DigitalProduct(**payload.model_dump())
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    return obj

async def update_digital_product(
    db: AsyncSession, digital_product_id: int, payload: DigitalProductUpdate
) -> DigitalProduct:
    obj = await get_digital_product_or_404(db, digital_product_id)
    for k, v in payload.model_dump(exclude_unset=True).items():
        setattr(obj, k, v)
    await db.commit()
    await db.refresh(obj)
    return obj

async def delete_digital_product(db: AsyncSession, digital_product_id: int) -> None:
    await get_digital_product_or_404(db, digital_product_id)
    await db.execute(delete(UserDownload).where(UserDownload.digital_product_id == digital_product_id))
    await db.execute(delete(DigitalProduct).where(DigitalProduct.id == digital_product_id))
    await db.commit()


# ---------- downloads ----------
async def get_user_download(db: AsyncSession, user_id: int, digital_product_id: int) -> UserDownload | None:
    q = await db.execute(
        select(UserDownload)
        .where(UserDownload.user_id == user_id, UserDownload.digital_product_id == digital_product_id)
        .execution_options(populate_existing=True)
    )
    return q.scalar_one_or_none()

async def get_user_downloads(db: AsyncSession, user_id: int) -> list[UserDownload]:
    res = await db.execute(
        select(UserDownload)
        .where(UserDownload.user_id == user_id)
        .order_by(UserDownload.last_downloaded_at.desc())
    )
    return list(res.scalars().all())

async def track_download(db: AsyncSession, user_id: int, digital_product_id: int) -> UserDownload:
    """
    Conta um download (cria com 1 ou soma 1). Só deve ser chamado depois da
    checagem de elegibilidade; o caminho das rotas é app.services.access.grant_download.
    """
    now = utcnow()
    stmt = insert_for(db, UserDownload).values(
        user_id=user_id,
        digital_product_id=digital_product_id,
        download_count=1,
        last_downloaded_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[UserDownload.user_id, UserDownload.digital_product_id],
        set_={
            "download_count": UserDownload.download_count + 1,
            "last_downloaded_at": now,
        },
    )
    await db.execute(stmt)
    await db.commit()
    return await get_user_download(db, user_id, digital_product_id)

async def get_download_stats(db: AsyncSession, digital_product_id: int) -> dict:
    await get_digital_product_or_404(db, digital_product_id)
    res = await db.execute(
        select(
            func.coalesce(func.sum(UserDownload.download_count), 0),
            func.count(func.distinct(UserDownload.user_id)),
        ).where(UserDownload.digital_product_id == digital_product_id)
    )
    total, unique_users = res.one()
    return {
        "digital_product_id": digital_product_id,
        "total_downloads": int(total or 0),
        "unique_users": int(unique_users or 0),
    }
