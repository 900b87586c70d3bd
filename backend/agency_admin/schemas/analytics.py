from pydantic import BaseModel, ConfigDict, Field


class DailyDataPoint(BaseModel):
    date: str
    leads: int = 0
    contacted: int = 0
    conversions: int = 0
    hot: int = 0
    warm: int = 0
    cold: int = 0
    calculators: dict[str, int] = Field(default_factory=dict)


class CumulativePoint(BaseModel):
    date: str
    value: int


class TrendsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    daily_data: list[DailyDataPoint] = Field(alias="dailyData")
    cumulative_leads: list[CumulativePoint] = Field(alias="cumulativeLeads")
    cumulative_conversions: list[CumulativePoint] = Field(alias="cumulativeConversions")
    start_date: str = Field(alias="startDate")
    end_date: str = Field(alias="endDate")
