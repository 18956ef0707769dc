# app/modules/users/crud.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, update, func
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import EmailAlreadyRegistered, UserNotFound, Forbidden
from app.core.logger import logger
from app.core.security import hash_password
from app.modules.cart.models import CartItem
from app.modules.digital_products.models import UserDownload
from app.modules.orders.models import Order, OrderItem
from .models import User, ROLE_USER
from .schemas import ProfileUpdate


def normalize_email(email: str) -> str:
    return email.strip().lower()

async def get_user(db: AsyncSession, user_id: int) -> User | None:
    q = await db.execute(select(User).where(User.id == user_id))
    return q.scalar_one_or_none()

async def get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await get_user(db, user_id)
    if not user:
        raise UserNotFound()
    return user

async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    q = await db.execute(select(User).where(User.email == normalize_email(email)))
    return q.scalar_one_or_none()

async def create_user(db: AsyncSession, email: str, password: str, name: str | None = None, role: str = ROLE_USER) -> User:
    email = normalize_email(email)
    if await get_user_by_email(db, email):
        raise EmailAlreadyRegistered()
    user = User(email=email, password_hash=hash_password(password), name=name, role=role)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # cadastro simultâneo com o mesmo e-mail
        await db.rollback()
        raise EmailAlreadyRegistered()
    await db.refresh(user)
    logger.info("Usuário %s cadastrado (%s)", user.id, role)
    return user

async def list_users(db: AsyncSession, limit: int = 100, offset: int = 0) -> list[User]:
    res = await db.execute(select(User).order_by(User.id).limit(limit).offset(offset))
    return list(res.scalars().all())

async def count_users(db: AsyncSession) -> int:
    return int(await db.scalar(select(func.count(User.id))) or 0)

async def update_profile(db: AsyncSession, user: User, payload: ProfileUpdate) -> User:
    for k, v in payload.model_dump(exclude_unset=True).items():
        setattr(user, k, v)
    await db.commit()
    await db.refresh(user)
    return user

async def set_role(db: AsyncSession, user_id: int, role: str) -> User:
    await get_user_or_404(db, user_id)
    await db.execute(update(User).where(User.id == user_id).values(role=role))
    await db.commit()
    user = await db.scalar(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    logger.info("Papel do usuário %s alterado para %s", user_id, role)
    return user

async def delete_user(db: AsyncSession, user_id: int, acting_user_id: int) -> None:
    if user_id == acting_user_id:
        raise Forbidden("Não é possível excluir o próprio usuário")
    await get_user_or_404(db, user_id)
    # mesmo efeito dos ON DELETE CASCADE, explícito para conexões sem o PRAGMA de FK
    await db.execute(delete(CartItem).where(CartItem.user_id == user_id))
    await db.execute(delete(UserDownload).where(UserDownload.user_id == user_id))
    order_ids = select(Order.id).where(Order.user_id == user_id).scalar_subquery()
    await db.execute(delete(OrderItem).where(OrderItem.order_id.in_(order_ids)))
    await db.execute(delete(Order).where(Order.user_id == user_id))
    await db.execute(delete(User).where(User.id == user_id))
    await db.commit()
    logger.info("Usuário %s excluído", user_id)
