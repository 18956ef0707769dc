# app/modules/digital_products/router.py
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_current_user
from app.core.exceptions import Forbidden
from app.core.logger import logger
from app.modules.products.crud import get_product_or_404
from app.modules.users.models import User
from app.services.access import has_user_purchased_product
from . import crud
from .schemas import DigitalProductOut, UserDownloadOut

router = APIRouter()  # incluído com prefix "/digital-products"

# meus downloads (contagem por arquivo)
@router.get("/me/downloads", response_model=List[UserDownloadOut])
async def my_downloads(
    db: AsyncSession = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return await crud.get_user_downloads(db, me.id)

# arquivos de um produto, só para quem comprou (pedido pago)
@router.get("/{product_id}/user", response_model=List[DigitalProductOut])
async def product_files_for_user(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    me: User = Depends(get_current_user),
):
    await get_product_or_404(db, product_id)
    if not await has_user_purchased_product(db, me.id, product_id):
        logger.warning("Conteúdo negado (user=%s, product=%s): não comprado", me.id, product_id)
        raise Forbidden("Produto não comprado ou pagamento não confirmado")
    return await crud.get_digital_products_by_product(db, product_id)
