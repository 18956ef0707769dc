from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi.security import OAuth2PasswordRequestForm

from app.core.config import settings
from app.core.dependencies import get_db, get_current_user
from app.core.security import verify_password, create_access_token
from app.modules.users import crud as users_crud
from app.modules.users.models import User
from app.modules.users.schemas import UserOut
from .schemas import LoginRequest, RegisterRequest, RegisterOut, TokenOut

router = APIRouter()


def _issue_token(user: User) -> str:
    return create_access_token(
        {"sub": str(user.id), "role": user.role},
        expires_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        secret_key=settings.SECRET_KEY,
    )

async def _authenticate(db: AsyncSession, email: str, password: str) -> User:
    user = await users_crud.get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(status_code=401, detail="Credenciais inválidas")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Usuário inativo")
    return user


@router.post("/register", response_model=RegisterOut, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)):
    user = await users_crud.create_user(db, payload.email, payload.password, name=payload.name)
    return RegisterOut(access_token=_issue_token(user), user=UserOut.model_validate(user))


@router.post("/login", response_model=TokenOut)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await _authenticate(db, payload.email, payload.password)
    return TokenOut(access_token=_issue_token(user))


@router.post("/token", response_model=TokenOut)
async def token(form: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    # OAuth2PasswordRequestForm usa 'username' como e-mail
    user = await _authenticate(db, form.username, form.password)
    return TokenOut(access_token=_issue_token(user))


@router.get("/me", response_model=UserOut)
async def me(user: User = Depends(get_current_user)):
    return user
