from datetime import datetime
import enum

from sqlalchemy import Boolean, DateTime, Enum, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from agency_admin.core.database import Base, utcnow


class LeadQuality(str, enum.Enum):
    hot = "hot"
    warm = "warm"
    cold = "cold"


class CalculatorType(str, enum.Enum):
    roi_calculator = "roi-calculator"
    cost_estimator = "cost-estimator"
    performance_calculator = "performance-calculator"
    texas_ttl_calculator = "texas-ttl-calculator"


class CalculatorLead(Base):
    __tablename__ = "calculator_leads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(120))
    company: Mapped[str | None] = mapped_column(String(200))
    phone: Mapped[str | None] = mapped_column(String(30))
    # values_callable stores the hyphenated values rather than the member names.
    calculator_type: Mapped[CalculatorType] = mapped_column(
        Enum(CalculatorType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    lead_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    lead_quality: Mapped[LeadQuality] = mapped_column(Enum(LeadQuality), default=LeadQuality.cold, nullable=False)
    contacted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    converted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    contacted_at: Mapped[datetime | None] = mapped_column(DateTime)
    converted_at: Mapped[datetime | None] = mapped_column(DateTime)
    conversion_value: Mapped[float | None] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True, nullable=False)
