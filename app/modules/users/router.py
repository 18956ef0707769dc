from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_current_user
from . import crud
from .models import User
from .schemas import ProfileOut, ProfileUpdate

router = APIRouter()


@router.get("/me/profile", response_model=ProfileOut)
async def get_profile(user: User = Depends(get_current_user)):
    return user


@router.put("/me/profile", response_model=ProfileOut)
async def update_profile(
    payload: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await crud.update_profile(db, user, payload)
