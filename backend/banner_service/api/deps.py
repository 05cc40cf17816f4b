from typing import List, Tuple
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
import jwt

from banner_service.core.config import settings
from banner_service.core.security import decode_access_token
from banner_service.db.session import get_db
from banner_service.services.kv_store import SqlKeyValueStore
from banner_service.services.media import DbMediaResolver
from banner_service.services.renderer import BannerRenderer
from banner_service.services.selector import BannerSelector
from banner_service.services.stats_recorder import StatsRecorder
from banner_service.services.token_signer import TokenSigner

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

def get_current_roles(token: str = Depends(oauth2_scheme)) -> List[str]:
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    roles = payload.get("roles") or []
    if not isinstance(roles, list):
        roles = [roles]
    return roles

def require_roles(*allowed: str):
    def checker(roles: List[str] = Depends(get_current_roles)):
        if not any(r in roles for r in allowed):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return checker

def get_current_identity(token: str = Depends(oauth2_scheme)) -> Tuple[str, List[str]]:
    """Return (email, roles) from the JWT token."""
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    roles = payload.get("roles") or []
    if not isinstance(roles, list):
        roles = [roles]
    return sub, roles

# Service wiring. Tests swap these through app.dependency_overrides.

def get_kv_store(db: Session = Depends(get_db)) -> SqlKeyValueStore:
    return SqlKeyValueStore(db)

def get_token_signer(store: SqlKeyValueStore = Depends(get_kv_store)) -> TokenSigner:
    return TokenSigner(store)

def get_selector(store: SqlKeyValueStore = Depends(get_kv_store)) -> BannerSelector:
    return BannerSelector(store, cursor_ttl=settings.sequential_cursor_ttl)

def get_media_resolver(db: Session = Depends(get_db)) -> DbMediaResolver:
    return DbMediaResolver(db)

def get_renderer(
    signer: TokenSigner = Depends(get_token_signer),
    media: DbMediaResolver = Depends(get_media_resolver),
) -> BannerRenderer:
    return BannerRenderer(signer, media)

def get_stats_recorder(db: Session = Depends(get_db)) -> StatsRecorder:
    return StatsRecorder(db)
