from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from agency_admin.core.database import get_db, utcnow
from agency_admin.core.deps import AdminPrincipal, require_admin
from agency_admin.core.rate_limit import RATE_LIMIT_POLICIES, limiter
from agency_admin.models.calculator_lead import CalculatorType, LeadQuality
from agency_admin.schemas.analytics import TrendsResponse
from agency_admin.services.analytics import export_leads_csv, get_lead_trends

router = APIRouter(prefix="/admin/analytics", tags=["analytics"])


@router.get("/trends", response_model=TrendsResponse)
@limiter.limit(RATE_LIMIT_POLICIES["api"])
def lead_trends(
    request: Request,
    days: int = Query(default=30, ge=1, le=365),
    db: Session = Depends(get_db),
    _: AdminPrincipal = Depends(require_admin),
):
    return get_lead_trends(db, days=days)


@router.get("/export")
@limiter.limit(RATE_LIMIT_POLICIES["api"])
def export_leads(
    request: Request,
    quality: LeadQuality | None = None,
    calculator_type: CalculatorType | None = Query(default=None, alias="type"),
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
    _: AdminPrincipal = Depends(require_admin),
):
    csv_data = export_leads_csv(
        db,
        quality=quality,
        calculator_type=calculator_type,
        start_date=start_date,
        end_date=end_date,
    )
    filename = f"leads-export-{utcnow().date().isoformat()}.csv"
    return Response(
        content=csv_data,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
