import csv
import logging
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone
from io import StringIO
from itertools import accumulate

from sqlalchemy.orm import Session

from agency_admin.core.database import utcnow
from agency_admin.models.calculator_lead import CalculatorLead, CalculatorType, LeadQuality
from agency_admin.models.lead_attribution import LeadAttribution
from agency_admin.schemas.analytics import CumulativePoint, DailyDataPoint, TrendsResponse

logger = logging.getLogger(__name__)

EXPORT_HEADERS = [
    "ID",
    "Email",
    "Name",
    "Company",
    "Phone",
    "Calculator Type",
    "Lead Score",
    "Lead Quality",
    "Contacted",
    "Converted",
    "Created At",
    "Contacted At",
    "Converted At",
    "Conversion Value",
    "Source",
    "Medium",
    "Campaign",
    "Device Type",
    "Browser",
    "Referrer",
    "Landing Page",
]
EMPTY_EXPORT = "No data to export"


def window_days(days: int, today: date) -> list[date]:
    """The ``days`` calendar dates ending on ``today``, oldest first."""
    if days < 1:
        raise ValueError("days must be at least 1")
    return [today - timedelta(days=days - 1 - i) for i in range(days)]


def _enum_value(value) -> str:
    return value.value if hasattr(value, "value") else str(value)


def rollup_leads(leads: Iterable[CalculatorLead], days: int, today: date) -> TrendsResponse:
    buckets: dict[str, DailyDataPoint] = {}
    for day in window_days(days, today):
        key = day.isoformat()
        buckets[key] = DailyDataPoint(date=key, calculators={t.value: 0 for t in CalculatorType})

    dropped = 0
    for lead in leads:
        point = buckets.get(lead.created_at.date().isoformat())
        # Leads dated outside the window (clock skew at the edges) are dropped, not clamped.
        if point is None:
            dropped += 1
            continue

        point.leads += 1
        if lead.contacted:
            point.contacted += 1
        if lead.converted:
            point.conversions += 1

        quality = _enum_value(lead.lead_quality)
        if quality == LeadQuality.hot.value:
            point.hot += 1
        elif quality == LeadQuality.warm.value:
            point.warm += 1
        elif quality == LeadQuality.cold.value:
            point.cold += 1

        calculator = _enum_value(lead.calculator_type)
        point.calculators[calculator] = point.calculators.get(calculator, 0) + 1

    if dropped:
        logger.warning("Dropped leads dated outside the trend window", extra={"dropped": dropped, "days": days})

    points = sorted(buckets.values(), key=lambda p: p.date)
    running_leads = accumulate(p.leads for p in points)
    running_conversions = accumulate(p.conversions for p in points)

    return TrendsResponse(
        daily_data=points,
        cumulative_leads=[CumulativePoint(date=p.date, value=v) for p, v in zip(points, running_leads)],
        cumulative_conversions=[CumulativePoint(date=p.date, value=v) for p, v in zip(points, running_conversions)],
        start_date=points[0].date,
        end_date=points[-1].date,
    )


def get_lead_trends(db: Session, days: int = 30, now: datetime | None = None) -> TrendsResponse:
    now = now or utcnow()
    today = now.date()
    start = datetime.combine(today - timedelta(days=days - 1), time.min)
    leads = (
        db.query(CalculatorLead)
        .filter(CalculatorLead.created_at >= start, CalculatorLead.created_at <= now)
        .order_by(CalculatorLead.created_at.asc())
        .all()
    )
    return rollup_leads(leads, days, today)


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _iso(value: datetime | None) -> str:
    # Stored values are naive UTC; written as 2026-03-10T09:00:00.000Z.
    if value is None:
        return ""
    return value.replace(tzinfo=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _attribution_by_lead(db: Session, lead_ids: list[int]) -> dict[int, LeadAttribution]:
    # Later touches overwrite earlier ones, so each lead keeps its most recent attribution.
    rows = (
        db.query(LeadAttribution)
        .filter(LeadAttribution.lead_id.in_(lead_ids))
        .order_by(LeadAttribution.id.asc())
        .all()
    )
    return {row.lead_id: row for row in rows}


def export_leads_csv(
    db: Session,
    quality: LeadQuality | None = None,
    calculator_type: CalculatorType | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> str:
    query = db.query(CalculatorLead)
    if quality is not None:
        query = query.filter(CalculatorLead.lead_quality == quality)
    if calculator_type is not None:
        query = query.filter(CalculatorLead.calculator_type == calculator_type)
    if start_date is not None:
        query = query.filter(CalculatorLead.created_at >= _as_naive_utc(start_date))
    if end_date is not None:
        query = query.filter(CalculatorLead.created_at <= _as_naive_utc(end_date))

    rows = query.order_by(CalculatorLead.created_at.desc(), CalculatorLead.id.desc()).all()
    if not rows:
        return EMPTY_EXPORT

    attribution = _attribution_by_lead(db, [lead.id for lead in rows])

    out = StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for lead in rows:
        touch = attribution.get(lead.id)
        writer.writerow([
            lead.id,
            lead.email,
            lead.name or "",
            lead.company or "",
            lead.phone or "",
            _enum_value(lead.calculator_type),
            lead.lead_score,
            _enum_value(lead.lead_quality),
            "Yes" if lead.contacted else "No",
            "Yes" if lead.converted else "No",
            _iso(lead.created_at),
            _iso(lead.contacted_at),
            _iso(lead.converted_at),
            lead.conversion_value if lead.conversion_value is not None else "",
            (touch.source or "") if touch else "",
            (touch.medium or "") if touch else "",
            (touch.campaign or "") if touch else "",
            # Device and browser are not captured.
            "",
            "",
            (touch.referrer or "") if touch else "",
            touch.landing_page if touch else "",
        ])

    return out.getvalue()
