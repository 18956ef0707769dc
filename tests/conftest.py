import os

# antes de importar o app: nada de banco local nem chave real da Mollie
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["MOLLIE_API_KEY"] = ""
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.core.dependencies import get_db, get_payment_client
from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import enable_sqlite_foreign_keys
from app.integrations.mollie_client import MollieError, cents_to_amount
from app.main import app
from app.modules.products import crud as products_crud
from app.modules.products.schemas import ProductCreate
from app.modules.users import crud as users_crud
from app.modules.users.models import ROLE_ADMIN


class FakePayments:
    """Substitui o MollieClient: guarda os pagamentos em memória."""

    def __init__(self):
        self.payments: dict[str, dict] = {}
        self.fail = False
        self._seq = 0

    async def create_payment(self, *, amount_cents, currency, description, redirect_url, webhook_url, metadata=None):
        if self.fail:
            raise MollieError("http_503", {"error": "indisponível"})
        self._seq += 1
        pid = f"tr_test{self._seq}"
        self.payments[pid] = {
            "id": pid,
            "status": "open",
            "amount": cents_to_amount(amount_cents, currency),
            "description": description,
            "redirectUrl": redirect_url,
            "webhookUrl": webhook_url,
            "metadata": metadata or {},
        }
        return {"id": pid, "status": "open", "checkout_url": f"https://mollie.test/checkout/{pid}"}

    async def get_payment(self, payment_id):
        if payment_id not in self.payments:
            raise MollieError("http_404", {"status": 404, "title": "Not Found"})
        return self.payments[payment_id]

    def set_status(self, payment_id, status):
        self.payments[payment_id]["status"] = status

    def refund(self, payment_id):
        p = self.payments[payment_id]
        p["status"] = "paid"
        p["amountRefunded"] = dict(p["amount"])


@pytest.fixture
async def engine(tmp_path):
    eng = enable_sqlite_foreign_keys(
        create_async_engine(f"sqlite+aiosqlite:///{(tmp_path / 'test.db').as_posix()}")
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def payments():
    return FakePayments()


@pytest.fixture
async def client(session_factory, payments):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_payment_client] = lambda: payments
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_product(db):
    async def _make(name="Curso de Fotografia", price=9700, type="course", **kw):
        return await products_crud.create_product(db, ProductCreate(name=name, price=price, type=type, **kw))
    return _make


@pytest.fixture
async def user(db):
    return await users_crud.create_user(db, "ana@example.com", "segredo123", name="Ana")


@pytest.fixture
async def other_user(db):
    return await users_crud.create_user(db, "bruno@example.com", "segredo123", name="Bruno")


@pytest.fixture
async def admin(db):
    return await users_crud.create_user(db, "admin@example.com", "segredo123", name="Admin", role=ROLE_ADMIN)


def auth_headers(u) -> dict:
    token = create_access_token(
        {"sub": str(u.id), "role": u.role},
        expires_minutes=30,
        secret_key=settings.SECRET_KEY,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth():
    return auth_headers
