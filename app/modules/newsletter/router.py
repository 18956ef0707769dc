from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db
from . import crud
from .schemas import SubscribeIn, SubscribedOut, SubscriberCountOut, SubscriptionOut

router = APIRouter()


@router.post("", response_model=SubscribedOut, status_code=status.HTTP_201_CREATED)
async def subscribe(payload: SubscribeIn, db: AsyncSession = Depends(get_db)):
    sub = await crud.subscribe(db, payload)
    return SubscribedOut.model_validate(sub)


@router.get("", response_model=SubscriberCountOut)
async def subscriber_count(db: AsyncSession = Depends(get_db)):
    return SubscriberCountOut(count=await crud.count_confirmed(db))


@router.get("/confirm", response_model=SubscriptionOut)
async def confirm(token: str = Query(..., min_length=1), db: AsyncSession = Depends(get_db)):
    return await crud.confirm_subscription(db, token)
