from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from venuebook.core.config import settings

# PBKDF2 avoids bcrypt backend/version issues and the 72-byte bcrypt input limit.
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGO = "HS256"
MIN_PASSWORD_LENGTH = 8
ACCESS, REFRESH = "access", "refresh"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def _encode(subject: str, token_type: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    claims = {"sub": subject, "type": token_type, "iat": now, "exp": now + lifetime}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=ALGO)


def create_access_token(user_id: str) -> str:
    return _encode(user_id, ACCESS, timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))


def create_refresh_token(user_id: str) -> str:
    return _encode(user_id, REFRESH, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def decode_token(token: str, expected_type: str = ACCESS) -> dict:
    """Verify signature and expiry; a refresh token is never accepted as an access token."""
    claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGO])
    if claims.get("type") != expected_type:
        raise ValueError(f"expected {expected_type} token")
    if not claims.get("sub"):
        raise ValueError("token has no subject")
    return claims
