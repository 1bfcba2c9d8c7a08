from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session
from venuebook.db.session import get_db
from venuebook.core.errors import AuthorizationError, BookingValidationError, DeliveryFailure, NotFoundError
from venuebook.core.security import decode_token
from venuebook.models.user import User
from venuebook.services.access_policy import Principal, load_principal

bearer = HTTPBearer(auto_error=False)

DOMAIN_ERRORS = (BookingValidationError, AuthorizationError, NotFoundError, DeliveryFailure)

def get_optional_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User | None:
    if not creds:
        return None
    try:
        payload = decode_token(creds.credentials)
    except (JWTError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")
    user = db.get(User, payload.get("sub"))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user

def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user

def get_principal(
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> Principal | None:
    """Resolved caller identity; None for anonymous requests (services decide what that may do)."""
    if user is None:
        return None
    return load_principal(db, user.id, user.email)

def require_roles(*roles: str):
    def _guard(principal: Principal | None = Depends(get_principal)) -> Principal:
        if principal is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        if not any(principal.has_role(r) for r in roles):
            raise HTTPException(status_code=403, detail="Forbidden")
        return principal
    return _guard

def to_http(e: Exception) -> HTTPException:
    """Map a domain error onto the HTTP response routes return for it."""
    if isinstance(e, BookingValidationError):
        return HTTPException(status_code=422, detail={"message": "Validation failed", "errors": [x.as_dict() for x in e.errors]})
    if isinstance(e, AuthorizationError):
        return HTTPException(status_code=e.status_code, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e) or "Not found")
    if isinstance(e, DeliveryFailure):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))
