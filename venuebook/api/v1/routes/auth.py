import uuid
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from jose import JWTError
from venuebook.db.session import get_db
from venuebook.schemas.auth import LoginRequest, RegisterRequest, TokenPair, MeOut
from venuebook.schemas.booking_data import EMAIL_RE
from venuebook.models.user import User
from venuebook.core.security import verify_password, hash_password, create_access_token, create_refresh_token, decode_token, MIN_PASSWORD_LENGTH
from venuebook.api.deps import get_current_user
from venuebook.services.access_policy import get_roles

router = APIRouter(tags=["auth"])

def _tokens(user: User) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user.id),
        refresh_token=create_refresh_token(user.id),
    )

@router.post("/auth/register", response_model=TokenPair, status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    email = body.email.strip().lower()
    if not EMAIL_RE.match(email):
        raise HTTPException(status_code=400, detail="Invalid email address")
    if len(body.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="email already registered")
    user = User(
        id=str(uuid.uuid4()),
        email=email,
        full_name=body.fullName.strip(),
        password_hash=hash_password(body.password),
        is_active=True,
    )
    db.add(user)
    db.commit()
    return _tokens(user)

@router.post("/auth/login", response_model=TokenPair)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    return _tokens(user)


@router.post("/auth/refresh", response_model=TokenPair)
def refresh(refresh_token: str, db: Session = Depends(get_db)):
    try:
        payload = decode_token(refresh_token, expected_type="refresh")
    except (JWTError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    user = db.get(User, payload.get("sub"))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return _tokens(user)

@router.get("/auth/me", response_model=MeOut)
def me(me: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Return current user info including roles."""
    return MeOut(
        id=me.id,
        email=me.email,
        fullName=me.full_name or "",
        roles=sorted(get_roles(db, me.id)),
    )


@router.post("/auth/change-password")
def change_password(oldPassword: str, newPassword: str,
                    db: Session = Depends(get_db),
                    me: User = Depends(get_current_user)):
    if not verify_password(oldPassword, me.password_hash):
        raise HTTPException(status_code=400, detail="Old password incorrect")
    if len(newPassword) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    me.password_hash = hash_password(newPassword)
    db.commit()
    return {"ok": True}
