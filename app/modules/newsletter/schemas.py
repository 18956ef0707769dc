from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field

SubscriptionStatus = Literal["pending", "confirmed"]


class SubscribeIn(BaseModel):
    email: EmailStr
    name: Optional[str] = Field(None, max_length=200)
    consent: bool = True


class SubscriptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: EmailStr
    name: Optional[str] = None
    consent: bool
    status: SubscriptionStatus
    confirmed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class SubscribedOut(SubscriptionOut):
    message: str = "Confirme a inscrição pelo link enviado por e-mail"


class SubscriptionCreate(BaseModel):
    # admin: entra já confirmado por padrão
    email: EmailStr
    name: Optional[str] = Field(None, max_length=200)
    status: SubscriptionStatus = "confirmed"


class SubscriptionUpdate(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, max_length=200)
    status: Optional[SubscriptionStatus] = None


class SubscriberCountOut(BaseModel):
    count: int
