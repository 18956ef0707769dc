# app/modules/downloads/router.py
from fastapi import APIRouter, Depends, Query
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.dependencies import get_db, get_current_user
from app.core.exceptions import Unauthorized
from app.core.security import create_download_token, decode_token, verify_download_token
from app.modules.digital_products.schemas import DownloadLinkOut, DownloadFileOut
from app.modules.users.models import User
from app.services.access import check_download_link, grant_download

router = APIRouter()  # incluído com prefix "/download"

@router.post("/{digital_product_id}", response_model=DownloadLinkOut)
async def request_download(
    digital_product_id: int,
    db: AsyncSession = Depends(get_db),
    me: User = Depends(get_current_user),
):
    """
    Libera um download (conta 1 no limite) e devolve link assinado temporário.
    """
    dp, ud = await grant_download(db, me.id, digital_product_id)
    token, expires_at = create_download_token(
        me.id,
        dp.id,
        expires_minutes=settings.DOWNLOAD_LINK_EXPIRE_MINUTES,
        secret_key=settings.SECRET_KEY,
    )
    return DownloadLinkOut(
        digital_product_id=dp.id,
        download_url=f"{settings.API_V1_PREFIX}/download/{dp.id}?token={token}",
        token=token,
        expires_at=expires_at,
        download_count=ud.download_count,
        download_limit=dp.download_limit,
    )

@router.get("/{digital_product_id}", response_model=DownloadFileOut)
async def resolve_download(
    digital_product_id: int,
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    # o próprio token identifica o usuário; não conta novo download
    try:
        user_id = int(decode_token(token, settings.SECRET_KEY).get("sub"))
    except (JWTError, TypeError, ValueError):
        raise Unauthorized("Link de download inválido ou expirado")
    if not verify_download_token(token, user_id, digital_product_id, settings.SECRET_KEY):
        raise Unauthorized("Link de download inválido ou expirado")

    # reembolso ou expiração depois de gerar o link também barram
    dp = await check_download_link(db, user_id, digital_product_id)

    return DownloadFileOut(
        file_url=dp.file_url,
        file_name=dp.file_name,
        file_type=dp.file_type,
        file_size=dp.file_size,
    )
