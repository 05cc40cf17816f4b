import logging

from sqlalchemy import inspect

from banner_service.db.session import engine, SessionLocal
from banner_service.models import banner  # noqa: F401
from banner_service.models import banner_placement  # noqa: F401
from banner_service.models import daily_statistic  # noqa: F401
from banner_service.models import media  # noqa: F401
from banner_service.models import option  # noqa: F401
from banner_service.models import placement  # noqa: F401
from banner_service.models import user  # noqa: F401
from banner_service.models.base import Base
from banner_service.models.user import User
from banner_service.core.config import settings
from banner_service.services.kv_store import SqlKeyValueStore
from banner_service.services.token_signer import TokenSigner

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0.0"
VERSION_OPTION = "db_version"


def create_tables():
    Base.metadata.create_all(bind=engine)


def installed_version() -> str | None:
    if not inspect(engine).has_table("options"):
        return None
    db = SessionLocal()
    try:
        return SqlKeyValueStore(db).get(VERSION_OPTION)
    finally:
        db.close()


def maybe_upgrade_schema() -> bool:
    """Create missing tables when the stored schema version differs. Returns True if it ran."""
    current = installed_version()
    if current == SCHEMA_VERSION:
        return False
    logger.info("Schema version %s -> %s, creating tables", current or "none", SCHEMA_VERSION)
    create_tables()
    db = SessionLocal()
    try:
        SqlKeyValueStore(db).set(VERSION_OPTION, SCHEMA_VERSION)
    finally:
        db.close()
    return True


def ensure_tracking_secret():
    """Make sure the signing secret exists before the first page is rendered."""
    db = SessionLocal()
    try:
        TokenSigner(SqlKeyValueStore(db)).generate(0, 0)
    finally:
        db.close()


def rotate_tracking_secret():
    db = SessionLocal()
    try:
        TokenSigner(SqlKeyValueStore(db)).rotate_secret()
    finally:
        db.close()


def seed_admin(email: str | None = None, password: str | None = None) -> User:
    db = SessionLocal()
    try:
        # Seed default admin (idempotent)
        admin_email = (email or settings.seed_admin_email or "admin@example.com").lower()
        admin_pwd = password or settings.seed_admin_password or "Admin1234!"

        from banner_service.core.security import get_password_hash

        admin = db.query(User).filter(User.email == admin_email).first()
        if not admin:
            admin = User(
                email=admin_email,
                full_name="Admin",
                hashed_password=get_password_hash(admin_pwd),
                role="admin",
                is_active=True,
            )
            db.add(admin)
            db.commit()
            db.refresh(admin)
            logger.info("Seeded admin user %s", admin_email)
        return admin
    finally:
        db.close()


def uninstall():
    """Drop every table, statistics and options included."""
    Base.metadata.drop_all(bind=engine)
    logger.info("All banner tables dropped")
