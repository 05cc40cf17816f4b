import os
import tempfile

import pytest

# Point the app at a throwaway SQLite file before anything imports the engine
_DB_DIR = tempfile.mkdtemp(prefix="banner-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["ENV"] = "test"

from banner_service.db.session import SessionLocal, engine  # noqa: E402
from banner_service.db.init_db import create_tables  # noqa: E402
from banner_service.models.base import Base  # noqa: E402
from banner_service.models.user import User  # noqa: E402
from banner_service.core.security import get_password_hash  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    create_tables()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def ensure_user(email: str, password: str = "testpass", role: str = "admin", is_active: bool = True):
    db = SessionLocal()
    u = db.query(User).filter(User.email == email).first()
    if not u:
        u = User(email=email, full_name=email.split("@")[0], hashed_password=get_password_hash(password), role=role, is_active=is_active)
        db.add(u)
        db.commit()
    db.close()


@pytest.fixture
def admin_headers():
    from fastapi.testclient import TestClient
    from banner_service.main import app

    ensure_user("admin@example.com")
    r = TestClient(app).post("/auth/login-json", json={"email": "admin@example.com", "password": "testpass"})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}
