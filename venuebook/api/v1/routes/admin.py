import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import func

from venuebook.db.session import get_db
from venuebook.api.deps import require_roles
from venuebook.models.user import User
from venuebook.models.user_role import UserRole, ROLES
from venuebook.services.access_policy import Principal, get_roles
from venuebook.services.audit_service import log_audit
from venuebook.services.booking_service import expire_sweep
from venuebook.seed import setup_staff_users

router = APIRouter(tags=["admin"])

@router.get("/admin/users")
def list_users(q: str | None = None, limit: int = 50, offset: int = 0,
               db: Session = Depends(get_db),
               me: Principal = Depends(require_roles("admin"))):
    query = db.query(User)
    if q:
        ql = f"%{q.lower()}%"
        query = query.filter(func.lower(User.email).like(ql) | func.lower(User.full_name).like(ql))
    total = query.count()
    users = query.order_by(User.created_at.desc()).limit(min(limit,200)).offset(max(offset,0)).all()
    return {
        "total": total,
        "items": [{"id":u.id,"email":u.email,"fullName":u.full_name,"roles":sorted(get_roles(db, u.id)),"isActive":u.is_active,"lastLoginAt":u.last_login_at.isoformat() if u.last_login_at else None,"createdAt":u.created_at.isoformat()} for u in users]
    }

@router.post("/admin/users/{user_id}/roles")
def grant_role(user_id: str, role: str,
               db: Session = Depends(get_db),
               me: Principal = Depends(require_roles("admin"))):
    if role not in ROLES:
        raise HTTPException(status_code=400, detail="invalid role")
    if not db.get(User, user_id):
        raise HTTPException(status_code=404, detail="not found")
    exists = db.query(UserRole).filter(UserRole.user_id == user_id, UserRole.role == role).first()
    if not exists:
        db.add(UserRole(id=str(uuid.uuid4()), user_id=user_id, role=role))
        log_audit(db, me.user_id, "user.role_granted", "user", user_id, {"role": role})
        db.commit()
    return {"ok": True, "roles": sorted(get_roles(db, user_id))}

@router.delete("/admin/users/{user_id}/roles/{role}")
def revoke_role(user_id: str, role: str,
                db: Session = Depends(get_db),
                me: Principal = Depends(require_roles("admin"))):
    row = db.query(UserRole).filter(UserRole.user_id == user_id, UserRole.role == role).first()
    if not row:
        raise HTTPException(status_code=404, detail="role not assigned")
    db.delete(row)
    log_audit(db, me.user_id, "user.role_revoked", "user", user_id, {"role": role})
    db.commit()
    return {"ok": True, "roles": sorted(get_roles(db, user_id))}

@router.post("/admin/setup-users")
def setup_users(db: Session = Depends(get_db), me: Principal = Depends(require_roles("admin"))):
    return {"success": True, "message": "Admin and support users setup complete", "results": setup_staff_users(db)}

@router.post("/admin/cleanup")
def run_cleanup(db: Session = Depends(get_db), me: Principal = Depends(require_roles("admin"))):
    """Run the expired-booking sweep now instead of waiting for the scheduled job."""
    deleted = expire_sweep(db)
    return {"success": True, "deleted": deleted}
