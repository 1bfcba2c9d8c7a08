import logging
import uuid

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError, OperationalError

from venuebook.db.session import SessionLocal
from venuebook.core.config import settings
from venuebook.core.security import hash_password
from venuebook.models.user import User
from venuebook.models.user_role import UserRole

logger = logging.getLogger(__name__)

# staff accounts provisioned on a fresh install: (email, role, display name)
STAFF_USERS = [
    ("admin101@venuebook.local", "admin", "Admin 101"),
    ("admin102@venuebook.local", "admin", "Admin 102"),
    ("support101@venuebook.local", "support", "Support 101"),
    ("support102@venuebook.local", "support", "Support 102"),
]


def ensure_user(db: Session, email: str, password: str, name: str) -> tuple[User, str]:
    u = db.query(User).filter(User.email == email).first()
    if u:
        return u, "already_exists"
    u = User(
        id=str(uuid.uuid4()),
        email=email,
        full_name=name,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(u)
    db.commit()
    return u, "created"


def ensure_role(db: Session, user_id: str, role: str) -> str:
    exists = db.query(UserRole).filter(UserRole.user_id == user_id, UserRole.role == role).first()
    if exists:
        return "already_assigned"
    db.add(UserRole(id=str(uuid.uuid4()), user_id=user_id, role=role))
    db.commit()
    return "assigned"


def setup_staff_users(db: Session) -> list[dict]:
    """Create the admin/support accounts and their role rows. Safe to re-run."""
    passwords = {"admin": settings.ADMIN_SEED_PASSWORD, "support": settings.SUPPORT_SEED_PASSWORD}
    results = []
    for email, role, name in STAFF_USERS:
        password = passwords[role]
        if not password:
            results.append({"email": email, "status": "skipped", "reason": f"{role.upper()}_SEED_PASSWORD not set"})
            continue
        user, status = ensure_user(db, email, password, name)
        role_status = ensure_role(db, user.id, role)
        logger.info("[seed] %s: %s, role %s %s", email, status, role, role_status)
        results.append({"email": email, "status": status, "userId": user.id, "role": role, "roleStatus": role_status})
    return results


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("[seed] users table not found yet. Skipping seeding (run alembic upgrade head).")
            return []
        return setup_staff_users(db)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
