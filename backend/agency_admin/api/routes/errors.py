import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request
from sqlalchemy.orm import Session

from agency_admin.core.database import get_db
from agency_admin.core.deps import AdminPrincipal, get_admin_identity, require_admin
from agency_admin.core.rate_limit import RATE_LIMIT_POLICIES, limiter
from agency_admin.models.admin_user import AdminUser
from agency_admin.models.error_log import ErrorLevel
from agency_admin.schemas.errors import ErrorDetailResponse, ErrorListResponse, ResolveRequest, ResolveResponse
from agency_admin.services.audit import audit_event
from agency_admin.services.error_logs import (
    TIME_RANGE_PATTERN,
    ErrorFilters,
    get_error_detail,
    list_error_classes,
    set_error_resolution,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/errors", tags=["errors"])


@router.get("", response_model=ErrorListResponse)
@limiter.limit(RATE_LIMIT_POLICIES["api"])
def list_errors(
    request: Request,
    time_range: str = Query(default="24h", alias="timeRange", pattern=TIME_RANGE_PATTERN),
    error_type: str | None = Query(default=None, alias="errorType", max_length=255),
    route: str | None = Query(default=None, max_length=500),
    level: ErrorLevel | None = None,
    search: str | None = Query(default=None, max_length=200),
    resolved: Literal["true", "false"] | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    _: AdminPrincipal = Depends(require_admin),
):
    filters = ErrorFilters(
        time_range=time_range,
        error_type=error_type,
        route=route,
        level=level,
        search=search,
        resolved=None if resolved is None else resolved == "true",
    )
    return list_error_classes(db, filters, limit=limit, offset=offset)


@router.get("/{fingerprint}", response_model=ErrorDetailResponse)
@limiter.limit(RATE_LIMIT_POLICIES["api"])
def error_detail(
    request: Request,
    fingerprint: str = Path(min_length=1, max_length=128),
    db: Session = Depends(get_db),
    _: AdminPrincipal = Depends(require_admin),
):
    detail = get_error_detail(db, fingerprint)
    if detail is None:
        raise HTTPException(status_code=404, detail="Error not found")
    return detail


@router.patch("/{fingerprint}", response_model=ResolveResponse)
@limiter.limit(RATE_LIMIT_POLICIES["api"])
def update_error_resolution(
    request: Request,
    payload: ResolveRequest,
    fingerprint: str = Path(min_length=1, max_length=128),
    db: Session = Depends(get_db),
    current: AdminUser = Depends(get_admin_identity),
):
    updated, resolved_at = set_error_resolution(db, fingerprint, payload.resolved, resolved_by=current.email)
    if not updated:
        raise HTTPException(status_code=404, detail="Error not found")

    # The row updates and their audit entry commit together or not at all.
    audit_event(
        db,
        "error_resolve" if payload.resolved else "error_unresolve",
        "error_log",
        user_id=current.id,
        ip_address=request.client.host if request.client else None,
        details=f"fingerprint={fingerprint} updated={updated}",
        commit=False,
    )
    db.commit()
    logger.info(
        "Error class resolution updated",
        extra={"fingerprint": fingerprint, "resolved": payload.resolved, "updated": updated, "resolved_by": current.email},
    )

    return ResolveResponse(
        fingerprint=fingerprint,
        resolved=payload.resolved,
        updated=updated,
        resolved_at=resolved_at,
        resolved_by=current.email if payload.resolved else None,
    )
