import os
from datetime import date, timedelta
import tempfile

_tmpdir = tempfile.mkdtemp(prefix="qbuilder-tests-")

os.environ["APP_ENV"] = "development"
os.environ["DB_TYPE"] = "sqlite"
os.environ["SQLITE_PATH"] = os.path.join(_tmpdir, "qbuilder-test.db")
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["AUTH_RATE_LIMIT_ATTEMPTS"] = "1000"
os.environ["PDF_CACHE_DIR"] = os.path.join(_tmpdir, "pdfs")
os.environ["ENABLE_SCHEDULER"] = "false"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import update  # noqa: E402

from main import app  # noqa: E402
from qbuilder.core.db import AsyncSessionLocal, Base, engine  # noqa: E402
from qbuilder.core.rate_limit import auth_limiter  # noqa: E402
from qbuilder.models.users.user_models import User  # noqa: E402
from qbuilder.services.auth.oauth_state import oauth_state_store  # noqa: E402

PASSWORD = "Secret123"


@pytest.fixture
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    auth_limiter.reset()
    oauth_state_store.clear()

    yield

    async with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            await conn.execute(table.delete())
    await engine.dispose()


@pytest.fixture
async def db(database):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def client(database):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def register(client):
    """Register a contractor and return ``(headers, data)``."""

    async def _register(email="owner@builder.co.il", **overrides):
        payload = {
            "name": "Dana Cohen",
            "email": email,
            "password": PASSWORD,
            "business_name": "Cohen Renovations",
            "phone": "050-1234567",
            "address": "12 Herzl St, Haifa",
        }
        payload.update(overrides)
        response = await client.post("/auth/register", json=payload)
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        headers = {"Authorization": f"Bearer {data['auth']['access_token']}"}
        return headers, data

    return _register


@pytest.fixture
async def auth_headers(register):
    headers, _ = await register()
    return headers


@pytest.fixture
def make_admin(database):
    async def _make_admin(email):
        async with AsyncSessionLocal() as session:
            await session.execute(
                update(User).where(User.email == email.lower()).values(role="admin")
            )
            await session.commit()

    return _make_admin


@pytest.fixture
async def admin_headers(register, make_admin):
    headers, _ = await register(email="admin@builder.co.il")
    await make_admin("admin@builder.co.il")
    return headers


@pytest.fixture
def create_client_record(client):
    async def _create(headers, **overrides):
        payload = {
            "name": "Levi Family",
            "email": "levi@builder.co.il",
            "phone": "052-7654321",
            "address": "4 Hagefen St, Haifa",
        }
        payload.update(overrides)
        response = await client.post("/clients/", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture
def create_quote(client):
    async def _create(headers, client_id, **overrides):
        payload = {
            "client_id": client_id,
            "title": "Kitchen renovation",
            "expiry_date": (date.today() + timedelta(days=30)).isoformat(),
            "items": [
                {"description": "Wall tiling", "unit": "sqm", "quantity": "2", "unit_price": "100.50"},
                {"description": "Plumbing", "unit": "hour", "quantity": "1.5", "unit_price": "80"},
            ],
        }
        payload.update(overrides)
        response = await client.post("/quotes/", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
