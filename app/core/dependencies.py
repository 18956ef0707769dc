from typing import AsyncIterator
from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fastapi.security import OAuth2PasswordBearer

from app.db.session import AsyncSessionLocal
from app.modules.users.models import User, ROLE_ADMIN
from app.core.config import settings
from app.core.security import decode_token
from app.integrations.mollie_client import MollieClient

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_PREFIX}/auth/token")

async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not token:
        raise HTTPException(status_code=401, detail="Missing token")
    try:
        payload = decode_token(token, settings.SECRET_KEY)
        user_id = int(payload.get("sub"))
        if not user_id or payload.get("scope"):
            # tokens de download não valem como sessão
            raise HTTPException(status_code=401, detail="Invalid token")
    except HTTPException:
        raise
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid token")

    q = await db.execute(select(User).where(User.id == user_id))
    user = q.scalar_one_or_none()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user

async def get_current_admin(
    user: User = Depends(get_current_user),
) -> User:
    if user.role != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Admin only")
    return user

def get_payment_client() -> MollieClient:
    return MollieClient(api_key=settings.MOLLIE_API_KEY, base_url=settings.MOLLIE_API_BASE)
