# tests/conftest.py
import sys
from pathlib import Path

# --- Configuración del Path ---
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import os
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Generator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-dealership-suite")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("ASYNC_DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("RATE_LIMIT_LOGIN_PER_WINDOW", "1000")
os.environ.setdefault("RATE_LIMIT_REGISTRATION_PER_WINDOW", "1000")
os.environ.setdefault("RATE_LIMIT_CONTACT_PER_WINDOW", "5")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")
os.environ.setdefault("EMAILS_ENABLED", "false")
os.environ.setdefault("REDIS_URL", "")

from dealership.main import app
from dealership.core.login_guard import get_login_guard
from dealership.core.rate_limiter import get_rate_limiter
from dealership.core.security import get_password_hash
from dealership.core.token_blacklist import get_blacklist
from dealership.db.session import Base
from dealership.db.session_async import AsyncSessionLocal
from dealership.domain.enums import CategoryType, FuelType, Transmission
from dealership.models.catalog import Brand, Car, CarPart, Category
from dealership.models.user import User

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

sync_engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=sync_engine, expire_on_commit=False)

API = "/api/v1"


# ---------- Fixtures ----------
@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Crea las tablas en SQLite solo una vez por sesión de tests."""
    import dealership.models  # noqa: F401

    Base.metadata.drop_all(bind=sync_engine)
    Base.metadata.create_all(bind=sync_engine)
    yield
    Base.metadata.drop_all(bind=sync_engine)


@pytest.fixture(autouse=True)
def clean_state():
    """Limpia tablas y los contadores en memoria (rate limit, bloqueos, blacklist)."""
    get_rate_limiter().reset()
    get_login_guard().reset()
    get_blacklist().clear()
    yield
    with sync_engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Provee una sesión corta para preparar datos."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest_asyncio.fixture(scope="function")
async def client():
    """Provee un AsyncClient enlazado a la app sin overrides adicionales."""
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def async_db_session() -> AsyncSession:
    """Provee una AsyncSession para pruebas asíncronas directas."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.rollback()


# --- Usuarios ---
def _make_user(db: Session, prefix: str, password: str, *, is_superuser: bool = False, **extra) -> User:
    user = User(
        email=f"{prefix}-{uuid.uuid4().hex[:8]}@example.com",
        first_name=prefix.capitalize(),
        last_name="Tester",
        hashed_password=get_password_hash(password),
        is_superuser=is_superuser,
        is_active=True,
        **extra,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def admin_user(db_session: Session) -> User:
    return _make_user(db_session, "admin", "Admin1234", is_superuser=True)


@pytest.fixture(scope="function")
def normal_user(db_session: Session) -> User:
    return _make_user(
        db_session,
        "user",
        "User1234",
        address="12 Galle Road",
        city="Colombo",
        country="Sri Lanka",
    )


@pytest.fixture(scope="function")
def other_user(db_session: Session) -> User:
    return _make_user(db_session, "other", "Other1234", address="7 Main Street")


async def login(client: httpx.AsyncClient, email: str, password: str) -> httpx.Response:
    return await client.post(
        f"{API}/auth/login",
        data={"username": email, "password": password},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture(scope="function")
async def admin_token(client: httpx.AsyncClient, admin_user: User) -> str:
    resp = await login(client, admin_user.email, "Admin1234")
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


@pytest_asyncio.fixture(scope="function")
async def user_token(client: httpx.AsyncClient, normal_user: User) -> str:
    resp = await login(client, normal_user.email, "User1234")
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


@pytest_asyncio.fixture(scope="function")
async def other_token(client: httpx.AsyncClient, other_user: User) -> str:
    resp = await login(client, other_user.email, "Other1234")
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


# --- Catálogo ---
@dataclass
class CatalogData:
    toyota: Brand
    bosch: Brand
    sedan: Category
    suv: Category
    brakes: Category
    corolla: Car
    rav4: Car
    pads: CarPart
    fluid_filter: CarPart


@pytest.fixture(scope="function")
def catalog(db_session: Session) -> CatalogData:
    """Catálogo mínimo: 2 marcas, 3 categorías, 2 autos y 2 repuestos."""
    toyota = Brand(name="Toyota", slug="toyota")
    bosch = Brand(name="Bosch", slug="bosch")
    sedan = Category(name="Sedan", slug="sedan", category_type=CategoryType.car)
    suv = Category(name="SUV", slug="suv", category_type=CategoryType.car)
    brakes = Category(name="Brakes", slug="brakes", category_type=CategoryType.car_part)
    db_session.add_all([toyota, bosch, sedan, suv, brakes])
    db_session.flush()

    corolla = Car(
        brand_id=toyota.id,
        category_id=sedan.id,
        model="Corolla",
        year=2022,
        color="White",
        price=Decimal("21500.00"),
        fuel_type=FuelType.petrol,
        transmission=Transmission.automatic,
        stock_quantity=3,
    )
    rav4 = Car(
        brand_id=toyota.id,
        category_id=suv.id,
        model="RAV4",
        year=2019,
        color="Silver",
        price=Decimal("30900.00"),
        fuel_type=FuelType.hybrid,
        transmission=Transmission.automatic,
        stock_quantity=1,
    )
    pads = CarPart(
        brand_id=bosch.id,
        category_id=brakes.id,
        part_name="Front Brake Pads",
        part_number="BP-1001",
        price=Decimal("45.90"),
        compatibility="Toyota Corolla 2018-2023",
        stock_quantity=40,
    )
    fluid_filter = CarPart(
        brand_id=toyota.id,
        category_id=brakes.id,
        part_name="Brake Fluid Filter",
        part_number="BF-2002",
        price=Decimal("9.99"),
        compatibility="Toyota RAV4 2019-2023",
        stock_quantity=5,
    )
    db_session.add_all([corolla, rav4, pads, fluid_filter])
    db_session.commit()
    for obj in (toyota, bosch, sedan, suv, brakes, corolla, rav4, pads, fluid_filter):
        db_session.refresh(obj)
    return CatalogData(
        toyota=toyota,
        bosch=bosch,
        sedan=sedan,
        suv=suv,
        brakes=brakes,
        corolla=corolla,
        rav4=rav4,
        pads=pads,
        fluid_filter=fluid_filter,
    )
