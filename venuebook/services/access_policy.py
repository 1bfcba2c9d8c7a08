"""Who may read and write which booking.

A request carries an explicit ``Principal`` (or ``None`` when anonymous);
roles are looked up from ``user_roles`` on every request with no caching.
"""
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from venuebook.core.errors import AuthorizationError
from venuebook.models.booking import Booking
from venuebook.models.user_role import UserRole

PRIVILEGED_ROLES = frozenset({"admin", "support"})


@dataclass(frozen=True)
class Principal:
    user_id: str
    email: str = ""
    roles: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_privileged(self) -> bool:
        return bool(self.roles & PRIVILEGED_ROLES)

    def has_role(self, role: str) -> bool:
        return role in self.roles


def get_roles(db: Session, user_id: str) -> frozenset[str]:
    rows = db.execute(select(UserRole.role).where(UserRole.user_id == user_id)).scalars().all()
    return frozenset(rows)


def load_principal(db: Session, user_id: str, email: str = "") -> Principal:
    return Principal(user_id=user_id, email=(email or "").strip().lower(), roles=get_roles(db, user_id))


def ensure_authenticated(principal: Principal | None) -> Principal:
    if principal is None:
        raise AuthorizationError("Authentication required", status_code=401)
    return principal


def ensure_privileged(principal: Principal | None) -> Principal:
    p = ensure_authenticated(principal)
    if not p.is_privileged:
        raise AuthorizationError("Admin or support role required")
    return p


def can_read(principal: Principal | None, booking: Booking) -> bool:
    if principal is None:
        return False
    return principal.is_privileged or booking.owner_id == principal.user_id


def can_edit(principal: Principal | None, booking: Booking) -> bool:
    return can_read(principal, booking)


def ensure_can_read(principal: Principal | None, booking: Booking) -> None:
    ensure_authenticated(principal)
    if not can_read(principal, booking):
        raise AuthorizationError("Not allowed to view this booking")


def ensure_can_edit(principal: Principal | None, booking: Booking) -> None:
    ensure_authenticated(principal)
    if not can_edit(principal, booking):
        raise AuthorizationError("Not allowed to edit this booking")
