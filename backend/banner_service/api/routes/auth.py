from typing import List, Tuple
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from banner_service.api.deps import get_current_identity
from banner_service.core.security import create_access_token, verify_password
from banner_service.schemas.auth import Token, UserOut, UserLogin
from banner_service.db.session import get_db
from banner_service.models.user import User

router = APIRouter()


def _authenticate(db: Session, email: str, password: str) -> User:
    """Existing users only: 401 for unknown user or bad password, 403 if blocked."""
    user = db.query(User).filter(User.email == email.lower().strip()).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is blocked")
    if not verify_password(password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect credentials")
    return user


@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = _authenticate(db, form_data.username, form_data.password)
    access_token = create_access_token(subject=user.email, roles=[user.role])
    return {"access_token": access_token, "token_type": "bearer"}

@router.post("/login-json", response_model=Token)
def login_json(payload: UserLogin, db: Session = Depends(get_db)):
    """JSON login, same behaviour as /login."""
    user = _authenticate(db, payload.email, payload.password)
    access_token = create_access_token(subject=user.email, roles=[user.role])
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/me", response_model=UserOut)
def me(identity: Tuple[str, List[str]] = Depends(get_current_identity), db: Session = Depends(get_db)):
    email, _roles = identity
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
