"""
Shared test fixtures.

Every test gets its own file-backed SQLite database, a recording mailer in
place of Resend and S3 clients wrapped in botocore Stubbers, so nothing
leaves the process.
"""
import os

# Settings are read on first use; set them before the app is imported.
os.environ.update(
    {
        "ENV": "test",
        "LOG_LEVEL": "WARNING",
        "DATABASE_URL": "sqlite://",
        "FRONTEND_URL": "http://frontend.test",
        "AUTH_TOKEN_SECRET": "test-access-secret-0123456789abcdef",
        "AUTH_REFRESH_TOKEN_SECRET": "test-refresh-secret-0123456789abcdef",
        "AUTH_TOKEN_EXPIRES_MINUTES": "15",
        "AUTH_REFRESH_TOKEN_EXPIRES_DAYS": "30",
        "AUTH_VERIFY_EMAIL_EXPIRES_HOURS": "24",
        "RESEND_API_KEY": "re_test",
        "MAIL_FROM": "Accounts <no-reply@example.com>",
        "PUBLIC_BUCKET__ENDPOINT": "http://localhost:9000",
        "PUBLIC_BUCKET__ACCESS_KEY_ID": "test",
        "PUBLIC_BUCKET__SECRET_ACCESS_KEY": "test-secret",
        "PUBLIC_BUCKET__REGION": "us-east-1",
        "PUBLIC_BUCKET__BUCKET_NAME": "public-test",
        "PUBLIC_BUCKET__FORCE_PATH_STYLE": "true",
        "PRIVATE_BUCKET__ENDPOINT": "http://localhost:9000",
        "PRIVATE_BUCKET__ACCESS_KEY_ID": "test",
        "PRIVATE_BUCKET__SECRET_ACCESS_KEY": "test-secret",
        "PRIVATE_BUCKET__REGION": "us-east-1",
        "PRIVATE_BUCKET__BUCKET_NAME": "private-test",
        "PRIVATE_BUCKET__FORCE_PATH_STYLE": "true",
    }
)

import pytest
from botocore.stub import Stubber
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.config import get_settings
from app.database import Base, get_db
from app.main import app
from app.models.user import User
from app.services.mailer import get_mailer
from app.services.passwords import hash_password
from app.services.storage import ObjectStorage, get_storage
from app.services.tokens import utcnow

DEFAULT_PASSWORD = "Password123!"


class RecordingMailer:
    """Stands in for the Resend mailer; remembers what would have been sent."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.fail = False

    def send_verification_email(self, to: str, token: str) -> dict:
        if self.fail:
            raise RuntimeError("mail transport unavailable")
        self.sent.append((to, token))
        return {"id": f"test-{len(self.sent)}"}

    def token_for(self, email: str) -> str:
        for to, token in reversed(self.sent):
            if to == email:
                return token
        raise AssertionError(f"no verification email sent to {email}")


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    """Session for arranging and inspecting state. Call expire_all() before re-reading."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def storage(settings):
    return ObjectStorage(settings.public_bucket, settings.private_bucket)


@pytest.fixture
def public_s3(storage):
    with Stubber(storage.public_client) as stub:
        yield stub


@pytest.fixture
def private_s3(storage):
    with Stubber(storage.private_client) as stub:
        yield stub


@pytest.fixture
def client(session_factory, mailer, storage, public_s3, private_s3):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_storage] = lambda: storage

    # unhandled errors are asserted on as 500 responses
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(
        email: str = "user@example.com",
        password: str = DEFAULT_PASSWORD,
        verified: bool = True,
        suspended: bool = False,
        username: str | None = None,
        name: str | None = None,
    ) -> User:
        user = User(
            email=email,
            password_hash=hash_password(password),
            verified_at=utcnow() if verified else None,
            suspended_at=utcnow() if suspended else None,
            username=username,
            name=name,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def logged_in(client, make_user):
    """A verified user whose auth cookies are already in the client's jar."""
    user = make_user()
    resp = client.post("/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD})
    assert resp.status_code == 202
    return user
