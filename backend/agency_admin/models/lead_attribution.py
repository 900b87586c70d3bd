from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from agency_admin.core.database import Base, utcnow


class LeadAttribution(Base):
    """Marketing touch recorded for a visitor; linked to a lead once they submit a calculator."""

    __tablename__ = "lead_attribution"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    lead_id: Mapped[int | None] = mapped_column(ForeignKey("calculator_leads.id", ondelete="SET NULL"), index=True)
    email: Mapped[str | None] = mapped_column(String(255), index=True)
    source: Mapped[str | None] = mapped_column(String(120))
    medium: Mapped[str | None] = mapped_column(String(120))
    campaign: Mapped[str | None] = mapped_column(String(200))
    referrer: Mapped[str | None] = mapped_column(String(1000))
    landing_page: Mapped[str] = mapped_column(String(1000), nullable=False)
    first_visit_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
