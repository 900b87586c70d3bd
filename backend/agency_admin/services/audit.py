"""Append-only trail of admin actions: logins and resolution changes."""

import logging

from sqlalchemy.orm import Session

from agency_admin.models.audit import AuditLog

logger = logging.getLogger(__name__)


def audit_event(
    db: Session,
    action: str,
    resource: str,
    *,
    user_id: int | None = None,
    ip_address: str | None = None,
    details: str | None = None,
    commit: bool = True,
) -> AuditLog:
    """Record one action. With ``commit=False`` the row joins the caller's transaction."""
    entry = AuditLog(action=action, resource=resource, user_id=user_id, ip_address=ip_address, details=details)
    db.add(entry)
    if commit:
        db.commit()
        logger.info("Audit event recorded", extra={"action": action, "resource": resource, "user_id": user_id})
    else:
        db.flush()
    return entry


def recent_audit_events(db: Session, limit: int = 50) -> list[AuditLog]:
    return db.query(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
