"""Maintenance commands for the banner service.

Run from the backend directory inside an active virtual environment:
    python manage.py migrate
    python manage.py init-db
    python manage.py seed-admin --email admin@example.com --password secret
    python manage.py rotate-secret
    python manage.py uninstall --yes
"""
import argparse
import logging
import os
import sys

from alembic.config import Config
from alembic import command

from banner_service.core.logger import configure_logging
from banner_service.db import init_db

logger = logging.getLogger("banner_service.manage")


def migrate(args):
    here = os.path.abspath(os.path.dirname(__file__))
    ini_path = os.path.join(here, "alembic.ini")
    if not os.path.exists(ini_path):
        logger.error("alembic.ini not found at %s", ini_path)
        return 1
    cfg = Config(ini_path)
    cfg.set_main_option("script_location", os.path.join(here, "alembic"))
    logger.info("Upgrading to %s", args.revision)
    command.upgrade(cfg, args.revision)
    logger.info("Upgrade complete")
    return 0


def init(args):
    if not init_db.maybe_upgrade_schema():
        logger.info("Schema already at version %s", init_db.SCHEMA_VERSION)
    init_db.ensure_tracking_secret()
    return 0


def seed_admin(args):
    admin = init_db.seed_admin(args.email, args.password)
    logger.info("Admin user: %s", admin.email)
    return 0


def rotate_secret(args):
    init_db.rotate_tracking_secret()
    return 0


def uninstall(args):
    if not args.yes:
        logger.error("Refusing to drop all tables without --yes")
        return 1
    init_db.uninstall()
    return 0


def build_parser():
    parser = argparse.ArgumentParser(prog="manage.py", description="Banner service maintenance")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("migrate", help="apply Alembic migrations")
    p.add_argument("revision", nargs="?", default="head")
    p.set_defaults(func=migrate)

    p = sub.add_parser("init-db", help="create tables without Alembic and store the schema version")
    p.set_defaults(func=init)

    p = sub.add_parser("seed-admin", help="create the admin user if missing")
    p.add_argument("--email")
    p.add_argument("--password")
    p.set_defaults(func=seed_admin)

    p = sub.add_parser("rotate-secret", help="replace the tracking secret (invalidates issued tokens)")
    p.set_defaults(func=rotate_secret)

    p = sub.add_parser("uninstall", help="drop every table, statistics included")
    p.add_argument("--yes", action="store_true")
    p.set_defaults(func=uninstall)
    return parser


def main(argv=None):
    configure_logging()
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
