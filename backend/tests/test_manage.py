from sqlalchemy import inspect

import manage
from banner_service.db import init_db
from banner_service.db.session import SessionLocal, engine
from banner_service.models.user import User
from banner_service.services.kv_store import SqlKeyValueStore
from banner_service.services.token_signer import SECRET_OPTION


def _option(name):
    db = SessionLocal()
    try:
        return SqlKeyValueStore(db).get(name)
    finally:
        db.close()


def test_init_db_records_version_and_secret():
    assert manage.main(["init-db"]) == 0
    assert _option(init_db.VERSION_OPTION) == init_db.SCHEMA_VERSION
    assert len(_option(SECRET_OPTION)) == 64
    # Second run is a no-op
    assert init_db.maybe_upgrade_schema() is False


def test_rotate_secret_command():
    manage.main(["init-db"])
    before = _option(SECRET_OPTION)
    assert manage.main(["rotate-secret"]) == 0
    assert _option(SECRET_OPTION) != before


def test_seed_admin_is_idempotent():
    manage.main(["seed-admin", "--email", "Boss@Example.com", "--password", "pw12345!"])
    manage.main(["seed-admin", "--email", "boss@example.com", "--password", "other"])
    db = SessionLocal()
    try:
        users = db.query(User).filter(User.email == "boss@example.com").all()
        assert len(users) == 1
        assert users[0].role == "admin"
    finally:
        db.close()


def test_uninstall_requires_confirmation():
    assert manage.main(["uninstall"]) == 1
    assert inspect(engine).has_table("banners")
    assert manage.main(["uninstall", "--yes"]) == 0
    assert not inspect(engine).has_table("banners")
    assert not inspect(engine).has_table("daily_statistics")
