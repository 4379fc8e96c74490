# utils/tokenJWT.py
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User, UserRole
from services.errors import AuthenticationError, AuthorizationError
from services.permissions import Caller, is_active

# Missing credentials are reported by us (401), not by the scheme
bearer_scheme = HTTPBearer(auto_error=False)


# Generate a new JWT access token
def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def token_for(user: User) -> str:
    return create_access_token(data={"sub": str(user.id), "role": user.role.value})


def _user_from_token(db: Session, token: Optional[str]) -> User:
    if not token:
        raise AuthenticationError("missing bearer token")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        user_id = int(subject)
    except (JWTError, TypeError, ValueError):
        raise AuthenticationError("invalid token")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise AuthenticationError("invalid token")
    return user


def resolve_caller(db: Session, token: Optional[str]) -> Caller:
    """Identity and role behind a bearer token, read from the users table."""
    user = _user_from_token(db, token)
    return Caller(user_id=user.id, role=user.role)


# Retrieve the currently authenticated user based on the JWT token (PENDING accounts included)
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    return _user_from_token(db, credentials.credentials if credentials else None)


# Caller for protected operations; quarantined accounts stop here
def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Caller:
    caller = resolve_caller(db, credentials.credentials if credentials else None)
    if not is_active(caller.role):
        raise AuthorizationError("account pending approval")
    return caller


# Dependency factory for Role-Based Access Control
def role_required(*allowed_roles: UserRole):
    def _checker(caller: Caller = Depends(get_caller)) -> Caller:
        if allowed_roles and caller.role not in allowed_roles:
            names = " or ".join(r.value for r in allowed_roles)
            raise AuthorizationError(f"forbidden: {names} role required")
        return caller
    return _checker
