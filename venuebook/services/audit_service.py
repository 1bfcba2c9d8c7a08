import json
import uuid

from sqlalchemy.orm import Session

from venuebook.models.audit_log import AuditLog


def _jsonable(details: dict | None) -> dict:
    # dates and enums inside booking snapshots become strings
    return json.loads(json.dumps(details or {}, ensure_ascii=False, default=str))


def log_audit(db: Session, actor_user_id: str, action: str, entity_type: str, entity_id: str,
              details: dict | None = None) -> AuditLog:
    """Stage an audit row in the caller's transaction; the caller commits."""
    row = AuditLog(
        id=str(uuid.uuid4()),
        actor_user_id=actor_user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=_jsonable(details),
    )
    db.add(row)
    return row


def list_audit(db: Session, entity_type: str, entity_id: str) -> list[AuditLog]:
    return (
        db.query(AuditLog)
        .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
        .order_by(AuditLog.created_at.asc())
        .all()
    )


def audit_out(row: AuditLog) -> dict:
    return {
        "action": row.action,
        "actorUserId": row.actor_user_id,
        "details": row.details or {},
        "createdAt": row.created_at.isoformat(),
    }
