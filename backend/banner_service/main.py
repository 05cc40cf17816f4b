from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import logging
from pathlib import Path

from banner_service.api.router import api_router
from banner_service.core.config import settings
from banner_service.core.errors import ServiceError
from banner_service.core.logger import configure_logging
from banner_service.db.init_db import ensure_tracking_secret, maybe_upgrade_schema, seed_admin

logger = logging.getLogger("banner_service.main")

STATIC_DIR = Path(__file__).resolve().parent / "static"


def _run_migrations_if_needed():
    """Apply Alembic migrations automatically in production if enabled.

    Controlled by AUTO_APPLY_MIGRATIONS (default on). Safe to run repeatedly.
    """
    if not settings.is_prod or not settings.auto_apply_migrations:
        return
    from alembic import command
    from alembic.config import Config
    alembic_ini = Path(__file__).resolve().parents[1] / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found at %s, skipping auto-migrations", alembic_ini)
        return
    cfg = Config(str(alembic_ini))
    # Ensure script_location resolves correctly when launched from arbitrary CWD
    cfg.set_main_option("script_location", str(Path(__file__).resolve().parents[1] / "alembic"))
    logger.info("Applying Alembic migrations -> head")
    command.upgrade(cfg, "head")
    logger.info("Migrations applied")


app = FastAPI(title=settings.app_name, version="1.0.0")

# Configurable CORS origins (CORS_ORIGINS env). If empty -> dev defaults.
origins = settings.cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"detail": message})


app.include_router(api_router)
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.on_event("startup")
def startup():
    configure_logging()
    logger.info("Starting %s (env=%s)", settings.app_name, settings.env)
    if settings.is_prod:
        _run_migrations_if_needed()
    else:
        maybe_upgrade_schema()
    ensure_tracking_secret()
    if settings.env.lower() in {"dev", "development"}:
        seed_admin()
