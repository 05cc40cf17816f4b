from fastapi import APIRouter

from banner_service.api.routes import health, auth, banners, placements, assignments, statistics, tracking, embed, media, settings

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])  # GET /
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])  # POST /login, /login-json, GET /me
api_router.include_router(banners.router, prefix="/banners", tags=["banners"])  # admin CRUD
api_router.include_router(placements.router, prefix="/placements", tags=["placements"])  # admin CRUD
api_router.include_router(assignments.router, prefix="/placements", tags=["placements"])  # /{id}/banners
api_router.include_router(statistics.router, prefix="/statistics", tags=["statistics"])  # admin reports
api_router.include_router(tracking.router, prefix="/track", tags=["tracking"])  # public POST /impression, /click
api_router.include_router(embed.router, prefix="/embed", tags=["embed"])  # public GET /{slug}, POST /expand
api_router.include_router(media.router, prefix="/media", tags=["media"])  # admin image registry
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])  # secret rotation
