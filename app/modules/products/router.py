# app/modules/products/router.py
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db
from . import crud
from .schemas import ProductOut, ProductType, ReviewCategory

router = APIRouter()  # será incluído com prefix "/products"

# LIST (catálogo público, só ativos)
@router.get("", response_model=list[ProductOut])
async def list_products(
    db: AsyncSession = Depends(get_db),
    type: Optional[ProductType] = Query(None),
    category: Optional[ReviewCategory] = Query(None),
    featured: Optional[bool] = Query(None),
    q: Optional[str] = Query(None, min_length=1),
    limit: int = Query(100, le=1000),
    offset: int = 0,
):
    return await crud.list_products(
        db, type=type, category=category, featured=featured, q=q, limit=limit, offset=offset
    )

# DETAIL
@router.get("/{product_id}", response_model=ProductOut)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await crud.get_active_product_or_404(db, product_id)
