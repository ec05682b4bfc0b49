"""
Test configuration for the hospital API.
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hospital_api.auth.models import AccountStatus, User, UserRole
from hospital_api.auth.repository import AccountRepository
from hospital_api.auth.service import AuthService
from hospital_api.config import Settings
from hospital_api.core.security import PasswordHasher
from hospital_api.core.tokens import TokenService
from hospital_api.database import Base, get_db
from hospital_api.main import create_app

STRONG_PASSWORD = "Str0ng!Pass"


class FrozenClock:
    """Clock returning a fixed instant that tests move by hand."""

    def __init__(self, now=None):
        self.now = now or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def settings():
    """
    Settings for tests: in-memory database, fast hashing, no rate limiting.
    """
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        jwt_secret="test-access-secret",
        refresh_token_secret="test-refresh-secret",
        bcrypt_rounds=4,
        rate_limit_enabled=False,
        bootstrap_admin_email=None,
        bootstrap_admin_password=None,
    )


@pytest.fixture
def engine():
    """
    Create a fresh in-memory database for each test.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def hasher(settings):
    return PasswordHasher.from_settings(settings)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def tokens(settings):
    return TokenService.from_settings(settings)


@pytest.fixture
def auth_service(db, hasher, tokens):
    return AuthService(AccountRepository(db), hasher, tokens)


@pytest.fixture
def make_user(db, hasher):
    """
    Factory inserting an account directly into the store.
    """
    counter = {"n": 0}

    def _make_user(email=None, password=STRONG_PASSWORD, role=UserRole.PATIENT,
                   status=AccountStatus.ACTIVE, deleted=False):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@hospital.org",
            password_hash=hasher.hash(password),
            first_name="Test",
            last_name=f"User{counter['n']}",
            role=role,
            status=status,
            deleted_at=datetime.now(timezone.utc) if deleted else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def app(settings, engine, db):
    """
    Application wired to the test database session.
    """
    app = create_app(settings, engine=engine)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides = {}


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers(tokens):
    """
    Build an Authorization header for an account.
    """
    def _auth_headers(user):
        token = tokens.issue_access_token(user.id, user.email, user.role)
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers
