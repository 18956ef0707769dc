# app/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

SECRET_ALG = "HS256"
DOWNLOAD_SCOPE = "download"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)

def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)

def create_access_token(
    data: dict[str, Any],
    expires_minutes: int = 120,
    secret_key: str = "change-me",
) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret_key, algorithm=SECRET_ALG)

def decode_token(token: str, secret_key: str) -> dict[str, Any]:
    return jwt.decode(token, secret_key, algorithms=[SECRET_ALG])

def create_download_token(
    user_id: int,
    digital_product_id: int,
    expires_minutes: int,
    secret_key: str,
) -> tuple[str, datetime]:
    """Token temporário que amarra usuário + produto digital. Devolve (token, expira_em)."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    token = jwt.encode(
        {"sub": str(user_id), "dp": digital_product_id, "scope": DOWNLOAD_SCOPE, "exp": expire},
        secret_key,
        algorithm=SECRET_ALG,
    )
    return token, expire

def verify_download_token(
    token: str,
    user_id: int,
    digital_product_id: int,
    secret_key: str,
) -> bool:
    # assinatura/expiração inválidas, escopo errado ou outro usuário/produto -> False
    try:
        payload = decode_token(token, secret_key)
    except JWTError:
        return False
    return (
        payload.get("scope") == DOWNLOAD_SCOPE
        and payload.get("sub") == str(user_id)
        and payload.get("dp") == digital_product_id
    )
