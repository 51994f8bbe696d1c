import os

# Settings are read at import time; pin them before anything imports app.*
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["ADMIN_EMAIL"] = "admin@clearride.ai"

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.pricing import SubscriptionType
from app.db.base import Base
from app.db.session import get_db
from app.dependencies.services import get_clock
from app.main import app
from app.models.promo_code import DiscountType, PromoCode
from app.models.user import User
from app.utils.auth import create_access_token, hash_password

NOW = datetime(2026, 3, 1, 12, 0, 0)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def client(db, clock):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db, clock):
    counter = {"n": 0}

    def _make_user(**overrides) -> User:
        counter["n"] += 1
        values = {
            "email": f"driver{counter['n']}@example.com",
            "hashed_password": hash_password("secret123"),
            "name": "Test Driver",
            "is_active": True,
            "subscription_type": SubscriptionType.FREE_TRIAL.value,
            "subscription_start": clock(),
            "subscription_end": clock() + timedelta(days=7),
            "appeal_trial_used": False,
            "hpi_credits": 0,
        }
        values.update(overrides)
        user = User(**values)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_promo(db, clock):
    def _make_promo(**overrides) -> PromoCode:
        values = {
            "code": "SAVE10",
            "name": "Save 10",
            "discount_type": DiscountType.PERCENTAGE.value,
            "discount_value": Decimal("10"),
            "valid_from": clock() - timedelta(days=1),
            "valid_until": clock() + timedelta(days=30),
            "is_active": True,
            "applicable_for": "ALL",
        }
        values.update(overrides)
        promo = PromoCode(**values)
        db.add(promo)
        db.commit()
        db.refresh(promo)
        return promo

    return _make_promo


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict:
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
