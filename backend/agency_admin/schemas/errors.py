from datetime import datetime

from pydantic import BaseModel, ConfigDict, StrictBool

from agency_admin.models.error_log import ErrorLevel


class ErrorClass(BaseModel):
    fingerprint: str
    error_type: str
    message: str
    level: ErrorLevel
    route: str | None
    count: int
    first_seen: datetime
    last_seen: datetime
    resolved_at: datetime | None = None
    resolved_by: str | None = None


class ErrorStats(BaseModel):
    total_errors: int
    unique_types: int
    fatal_count: int
    resolved_count: int
    unresolved_count: int


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class ErrorListResponse(BaseModel):
    errors: list[ErrorClass]
    stats: ErrorStats
    pagination: Pagination


class ErrorOccurrence(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    fingerprint: str
    error_type: str
    message: str
    level: ErrorLevel
    route: str | None
    stack_trace: str | None
    user_agent: str | None
    created_at: datetime
    resolved_at: datetime | None
    resolved_by: str | None


class ErrorDetailResponse(BaseModel):
    summary: ErrorClass
    resolved_count: int
    occurrences: list[ErrorOccurrence]


class ResolveRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    resolved: StrictBool


class ResolveResponse(BaseModel):
    fingerprint: str
    resolved: bool
    updated: int
    resolved_at: datetime | None
    resolved_by: str | None
