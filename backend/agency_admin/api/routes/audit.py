from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from agency_admin.core.database import get_db
from agency_admin.core.deps import AdminPrincipal, require_admin
from agency_admin.core.rate_limit import RATE_LIMIT_POLICIES, limiter
from agency_admin.schemas.audit import AuditLogResponse
from agency_admin.services.audit import recent_audit_events

router = APIRouter(prefix="/admin/audit", tags=["audit"])


@router.get("", response_model=list[AuditLogResponse])
@limiter.limit(RATE_LIMIT_POLICIES["api"])
def list_audit_logs(
    request: Request,
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    _: AdminPrincipal = Depends(require_admin),
):
    return recent_audit_events(db, limit=limit)
