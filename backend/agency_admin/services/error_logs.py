"""Error log queries, fingerprint grouping and resolution.

Raw ``error_logs`` rows are fetched with the requested filters and folded
into one ``ErrorClass`` per fingerprint in memory. Summary stats are always
computed over the full filtered row set, never just the returned page.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from agency_admin.core.database import utcnow
from agency_admin.models.error_log import ErrorLevel, ErrorLog
from agency_admin.schemas.errors import (
    ErrorClass,
    ErrorDetailResponse,
    ErrorListResponse,
    ErrorOccurrence,
    ErrorStats,
    Pagination,
)

logger = logging.getLogger(__name__)

TIME_RANGES: dict[str, timedelta] = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
}
TIME_RANGE_PATTERN = "^(" + "|".join(TIME_RANGES) + ")$"

SEARCH_MIN_LENGTH = 2
MAX_DETAIL_OCCURRENCES = 50


class InvalidTimeRange(ValueError):
    pass


@dataclass
class ErrorFilters:
    time_range: str = "24h"
    error_type: str | None = None
    route: str | None = None
    level: ErrorLevel | None = None
    search: str | None = None
    resolved: bool | None = None


def time_range_cutoff(time_range: str, now: datetime | None = None) -> datetime:
    try:
        delta = TIME_RANGES[time_range]
    except KeyError:
        raise InvalidTimeRange(
            f"Unknown time range {time_range!r}; expected one of {', '.join(TIME_RANGES)}"
        ) from None
    return (now or utcnow()) - delta


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def query_error_events(db: Session, filters: ErrorFilters, now: datetime | None = None) -> list[ErrorLog]:
    """All rows inside the window that match every supplied filter, newest first."""
    cutoff = time_range_cutoff(filters.time_range, now)
    query = db.query(ErrorLog).filter(ErrorLog.created_at >= cutoff)

    if filters.error_type:
        query = query.filter(ErrorLog.error_type == filters.error_type)
    if filters.route:
        query = query.filter(ErrorLog.route == filters.route)
    if filters.level is not None:
        query = query.filter(ErrorLog.level == filters.level)

    # Too-short search terms are ignored rather than rejected.
    search = (filters.search or "").strip()
    if len(search) >= SEARCH_MIN_LENGTH:
        pattern = _like_pattern(search)
        query = query.filter(
            or_(
                ErrorLog.message.ilike(pattern, escape="\\"),
                ErrorLog.error_type.ilike(pattern, escape="\\"),
                ErrorLog.route.ilike(pattern, escape="\\"),
            )
        )

    if filters.resolved is True:
        query = query.filter(ErrorLog.resolved_at.is_not(None))
    elif filters.resolved is False:
        query = query.filter(ErrorLog.resolved_at.is_(None))

    return query.order_by(ErrorLog.created_at.desc(), ErrorLog.id.desc()).all()


def group_error_events(events: Iterable[ErrorLog]) -> list[ErrorClass]:
    """Fold raw events into one class per fingerprint, most recently seen first.

    A class takes the first non-null ``resolved_at`` it meets, so a single
    resolved occurrence marks the whole class resolved.
    """
    classes: dict[str, ErrorClass] = {}
    for event in events:
        current = classes.get(event.fingerprint)
        if current is None:
            classes[event.fingerprint] = ErrorClass(
                fingerprint=event.fingerprint,
                error_type=event.error_type,
                message=event.message,
                level=event.level,
                route=event.route,
                count=1,
                first_seen=event.created_at,
                last_seen=event.created_at,
                resolved_at=event.resolved_at,
                resolved_by=event.resolved_by,
            )
            continue

        current.count += 1
        if event.created_at < current.first_seen:
            current.first_seen = event.created_at
        if event.created_at > current.last_seen:
            current.last_seen = event.created_at
            current.message = event.message
            current.level = event.level
        if event.resolved_at is not None and current.resolved_at is None:
            current.resolved_at = event.resolved_at
            current.resolved_by = event.resolved_by

    # Two stable passes: fingerprint ascending breaks ties on last_seen.
    ordered = sorted(classes.values(), key=lambda c: c.fingerprint)
    ordered.sort(key=lambda c: c.last_seen, reverse=True)
    return ordered


def compute_error_stats(events: Sequence[ErrorLog]) -> ErrorStats:
    resolved = sum(1 for e in events if e.resolved_at is not None)
    return ErrorStats(
        total_errors=len(events),
        unique_types=len({e.error_type for e in events}),
        fatal_count=sum(1 for e in events if e.level == ErrorLevel.fatal),
        resolved_count=resolved,
        unresolved_count=len(events) - resolved,
    )


def paginate(classes: Sequence[ErrorClass], limit: int, offset: int) -> tuple[list[ErrorClass], Pagination]:
    page = list(classes[offset : offset + limit])
    pagination = Pagination(
        total=len(classes),
        limit=limit,
        offset=offset,
        has_more=offset + len(page) < len(classes),
    )
    return page, pagination


def list_error_classes(
    db: Session,
    filters: ErrorFilters,
    limit: int = 50,
    offset: int = 0,
    now: datetime | None = None,
) -> ErrorListResponse:
    events = query_error_events(db, filters, now=now)
    classes = group_error_events(events)
    page, pagination = paginate(classes, limit, offset)
    return ErrorListResponse(errors=page, stats=compute_error_stats(events), pagination=pagination)


def get_error_detail(
    db: Session,
    fingerprint: str,
    max_occurrences: int = MAX_DETAIL_OCCURRENCES,
) -> ErrorDetailResponse | None:
    total, first_seen, last_seen, resolved_count = (
        db.query(
            func.count(ErrorLog.id),
            func.min(ErrorLog.created_at),
            func.max(ErrorLog.created_at),
            func.count(ErrorLog.resolved_at),
        )
        .filter(ErrorLog.fingerprint == fingerprint)
        .one()
    )
    if not total:
        return None

    occurrences = (
        db.query(ErrorLog)
        .filter(ErrorLog.fingerprint == fingerprint)
        .order_by(ErrorLog.created_at.desc(), ErrorLog.id.desc())
        .limit(max_occurrences)
        .all()
    )
    newest = occurrences[0]
    # Same adoption rule as group_error_events, walking newest to oldest.
    resolved_row = (
        db.query(ErrorLog)
        .filter(ErrorLog.fingerprint == fingerprint, ErrorLog.resolved_at.is_not(None))
        .order_by(ErrorLog.created_at.desc(), ErrorLog.id.desc())
        .first()
    )

    summary = ErrorClass(
        fingerprint=fingerprint,
        error_type=newest.error_type,
        message=newest.message,
        level=newest.level,
        route=newest.route,
        count=int(total),
        first_seen=first_seen,
        last_seen=last_seen,
        resolved_at=resolved_row.resolved_at if resolved_row else None,
        resolved_by=resolved_row.resolved_by if resolved_row else None,
    )
    return ErrorDetailResponse(
        summary=summary,
        resolved_count=int(resolved_count or 0),
        occurrences=[ErrorOccurrence.model_validate(row) for row in occurrences],
    )


def set_error_resolution(
    db: Session,
    fingerprint: str,
    resolved: bool,
    resolved_by: str | None,
    now: datetime | None = None,
) -> tuple[int, datetime | None]:
    """Apply the resolution state to every row with this fingerprint, regardless of age.

    Returns the number of rows touched and the timestamp written. Zero rows
    means the fingerprint is unknown. The caller owns the transaction and
    commits once its audit entry is in place.
    """
    resolved_at = (now or utcnow()) if resolved else None
    updated = (
        db.query(ErrorLog)
        .filter(ErrorLog.fingerprint == fingerprint)
        .update(
            {ErrorLog.resolved_at: resolved_at, ErrorLog.resolved_by: resolved_by if resolved else None},
            synchronize_session=False,
        )
    )
    logger.debug("Error class resolution staged", extra={"fingerprint": fingerprint, "updated": updated})
    return updated, resolved_at
