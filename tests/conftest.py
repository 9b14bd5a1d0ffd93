"""
Inventory API — Shared pytest fixtures.
"""

from __future__ import annotations

import os
import secrets
from decimal import Decimal
from typing import Callable, Dict, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# ─── Environment setup (before any app imports) ───────────────────────────────

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", secrets.token_hex(32))
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("SEED_ON_STARTUP", "false")

# ─── App imports (after env is set) ───────────────────────────────────────────

from inventory_api.core.security import hash_password  # noqa: E402
from inventory_api.database import Base  # noqa: E402
from inventory_api.models.catalog import Category, Product, Supplier  # noqa: E402
from inventory_api.models.users import ROLE_ADMIN, ROLE_EMPLOYEE, User  # noqa: E402

DEFAULT_PASSWORD = "Secret123"

# ─────────────────────────────────────────────────────────────────────────────
# DATABASE FIXTURES
# ─────────────────────────────────────────────────────────────────────────────


def _make_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def set_pragmas(dbapi_conn, _):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()

    Base.metadata.create_all(engine)
    return engine


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """In-memory SQLite session, fresh for every test function."""
    engine = _make_engine()
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


# ─────────────────────────────────────────────────────────────────────────────
# FASTAPI CLIENT FIXTURE
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """FastAPI TestClient with overridden DB dependency."""
    from inventory_api.database import get_db
    from inventory_api.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# ─────────────────────────────────────────────────────────────────────────────
# USER FIXTURES
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    def _make(
        name: str = "Employee",
        email: str = "employee@store.com",
        role: str = ROLE_EMPLOYEE,
        password: str = DEFAULT_PASSWORD,
        active: bool = True,
    ) -> User:
        user = User(
            name=name,
            email=email,
            hashed_password=hash_password(password),
            role=role,
            active=active,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def admin_user(make_user) -> User:
    return make_user(name="Admin", email="admin@store.com", role=ROLE_ADMIN)


@pytest.fixture
def employee_user(make_user) -> User:
    return make_user(name="Emma Employee", email="emma@store.com")


@pytest.fixture
def other_employee(make_user) -> User:
    return make_user(name="Oscar Other", email="oscar@store.com")


# ─────────────────────────────────────────────────────────────────────────────
# JWT TOKEN FIXTURES
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def token_service():
    from inventory_api.main import app

    return app.state.token_service


@pytest.fixture
def headers_for(token_service) -> Callable[[User], Dict[str, str]]:
    def _headers(user: User) -> Dict[str, str]:
        token = token_service.issue(user).token
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin_headers(admin_user, headers_for) -> Dict[str, str]:
    return headers_for(admin_user)


@pytest.fixture
def employee_headers(employee_user, headers_for) -> Dict[str, str]:
    return headers_for(employee_user)


# ─────────────────────────────────────────────────────────────────────────────
# CATALOG FIXTURES
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def category(db_session: Session) -> Category:
    category = Category(name="Bebidas", description="Bebidas y jugos")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture
def supplier(db_session: Session) -> Supplier:
    supplier = Supplier(
        name="Distribuidora Central",
        phone="0981-555000",
        email="ventas@central.com",
        address="Av. Principal 100",
    )
    db_session.add(supplier)
    db_session.commit()
    return supplier


@pytest.fixture
def product(db_session: Session, category: Category, supplier: Supplier) -> Product:
    product = Product(
        name="Agua Mineral 1L",
        description="Sin gas",
        price=Decimal("1.50"),
        stock=40,
        category_id=category.id,
        supplier_id=supplier.id,
    )
    db_session.add(product)
    db_session.commit()
    return product
