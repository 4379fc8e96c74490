# backend/routes/auth.py
import logging
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User, UserRole
from schemas import user as schemas
from services.errors import AuthenticationError, AuthorizationError, ValidationError
from utils.audit import client_ip, write_log
from utils.google_client import GoogleTokenError, google_client
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import get_current_user, token_for

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)


# Register a new STUDENT account and sign it in
@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    email = str(payload.email)

    db_user = db.query(User).filter(func.lower(User.email) == email).first()
    if db_user:
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": email, "reason": "Email exists"})
        raise ValidationError("email already in use")

    new_user = User(
        email=email,
        password_hash=get_password_hash(payload.password),
        name=payload.name,
        role=UserRole.STUDENT,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(db, user_id=new_user.id, action="REGISTER", resource="auth", status="SUCCESS",
              ip=client_ip(request), meta={"email": new_user.email})

    return {"user": new_user, "token": token_for(new_user)}


# Authenticate with email and password and issue a JWT
@router.post("/login", response_model=schemas.AuthResponse)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    db_user = db.query(User).filter(func.lower(User.email) == payload.email).first()

    if db_user is not None and not db_user.password_hash:
        raise AuthenticationError("this account uses Google Sign-In")

    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"email": payload.email})
        raise AuthenticationError("invalid credentials")

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": db_user.email})

    return {"user": db_user, "token": token_for(db_user)}


# Current account, also available to accounts still pending approval
@router.get("/me", response_model=schemas.UserEnvelope)
def me(current_user: User = Depends(get_current_user)):
    return {"user": current_user}


# Sign in (or sign up) with a Google ID token
@router.post("/google", response_model=schemas.AuthResponse)
async def google_sign_in(payload: schemas.GoogleSignIn, request: Request, db: Session = Depends(get_db)):
    if not payload.id_token:
        raise ValidationError("idToken is required")

    if not google_client.configured:
        raise HTTPException(status_code=500, detail="Google OAuth not configured")

    try:
        claims = await google_client.verify_id_token(payload.id_token)
    except GoogleTokenError as e:
        raise ValidationError(f"invalid Google token: {e}")

    google_id = claims["sub"]
    email = (claims.get("email") or "").strip().lower()
    name = claims.get("name") or claims.get("given_name")
    # tokeninfo reports booleans as strings
    email_verified = str(claims.get("email_verified", "")).lower() == "true"

    if not email:
        raise ValidationError("No email found in Google account")

    allowed_domain = settings.ALLOWED_EMAIL_DOMAIN.lower()
    if allowed_domain and not email.endswith(allowed_domain):
        logger.warning("Google Sign-In: email domain not allowed - email: %s", email)
        raise AuthorizationError(
            f"Only {settings.ALLOWED_EMAIL_DOMAIN} email addresses are allowed. "
            f"Your email ({email}) does not match the required domain."
        )

    if not email_verified and not settings.ALLOW_UNVERIFIED_EMAIL:
        raise ValidationError("Google account email is not verified")

    user = db.query(User).filter(or_(User.google_id == google_id, func.lower(User.email) == email)).first()
    if user is None:
        user = User(email=email, name=name, google_id=google_id, role=UserRole.STUDENT)
        db.add(user)
        action = "REGISTER"
    else:
        # Link the Google identity to an existing password account
        user.google_id = user.google_id or google_id
        user.name = name or user.name
        action = "LOGIN"
    db.commit()
    db.refresh(user)

    write_log(db, user_id=user.id, action=action, resource="auth", status="SUCCESS",
              ip=client_ip(request), meta={"email": user.email, "provider": "google"})

    return {"user": user, "token": token_for(user)}
