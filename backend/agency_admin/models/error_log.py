from datetime import datetime
import enum
import hashlib

from sqlalchemy import DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from agency_admin.core.database import Base, utcnow


class ErrorLevel(str, enum.Enum):
    info = "info"
    warn = "warn"
    error = "error"
    fatal = "fatal"


def compute_fingerprint(error_type: str, message: str, route: str | None = None) -> str:
    """Stable key for one class of error: same type, message and route."""
    raw = "|".join([error_type, message, route or ""])
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class ErrorLog(Base):
    """One row per error occurrence. Only the resolution columns are ever updated."""

    __tablename__ = "error_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    fingerprint: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    error_type: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    level: Mapped[ErrorLevel] = mapped_column(Enum(ErrorLevel), default=ErrorLevel.error, nullable=False)
    route: Mapped[str | None] = mapped_column(String(500))
    stack_trace: Mapped[str | None] = mapped_column(Text)
    user_agent: Mapped[str | None] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True, nullable=False)

    resolved_at: Mapped[datetime | None] = mapped_column(DateTime)
    resolved_by: Mapped[str | None] = mapped_column(String(255))
