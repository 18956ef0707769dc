# app/main.py
import sys
import asyncio

# Event loop compatível no Windows (safe em outros SOs também)
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from contextlib import asynccontextmanager
import json
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import StoreError
from app.core.logger import logger, setup_logging
from app.api.v1.router import api_router
from app.db.session import engine
from app.db.base import Base

# registra todas as tabelas no metadata antes do create_all
from app.modules.users import models as _users_models  # noqa: F401
from app.modules.products import models as _products_models  # noqa: F401
from app.modules.cart import models as _cart_models  # noqa: F401
from app.modules.orders import models as _orders_models  # noqa: F401
from app.modules.digital_products import models as _dp_models  # noqa: F401
from app.modules.newsletter import models as _newsletter_models  # noqa: F401

setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)


def _normalize_origins(value) -> list[str]:
    """Aceita lista, JSON string ou CSV e devolve lista de origens."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(o).strip() for o in value if str(o).strip()]
    if isinstance(value, str):
        # tenta JSON primeiro
        try:
            as_json = json.loads(value)
            if isinstance(as_json, (list, tuple)):
                return [str(o).strip() for o in as_json if str(o).strip()]
        except ValueError:
            pass
        # fallback: CSV
        return [o.strip() for o in value.split(",") if o.strip()]
    return [str(value).strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Em desenvolvimento (ENVIRONMENT=dev e AUTO_CREATE_TABLES), cria as tabelas
    que faltarem. Em produção o schema é responsabilidade de quem faz o deploy.
    """
    env = (settings.ENVIRONMENT or "").lower().strip()
    if env == "dev" and settings.AUTO_CREATE_TABLES:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tabelas verificadas/criadas (%s)", engine.url.get_backend_name())
    yield
    await engine.dispose()


# --- App ---
app = FastAPI(title="Studio Insight API", lifespan=lifespan)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# --- CORS (colocado ANTES dos routers) ---
origins = _normalize_origins(settings.CORS_ORIGINS)

# defaults para o front em dev
if not origins:
    origins = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,      # lista explícita porque allow_credentials=True
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],        # Authorization, Content-Type etc.
)

# Healthcheck simples
@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


# --- API v1 (só depois do CORS) ---
app.include_router(api_router, prefix=settings.API_V1_PREFIX)
