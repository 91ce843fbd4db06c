# servio/schemas/availability.py
from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import time, date, datetime

DayOfWeek = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class ProviderAvailabilityCreate(BaseModel):
    day_of_week: DayOfWeek
    start_time: time = Field(..., description="HH:MM")
    end_time: time = Field(..., description="HH:MM")
    is_available: Optional[bool] = True


class ProviderAvailabilityUpdate(BaseModel):
    day_of_week: Optional[DayOfWeek] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    is_available: Optional[bool] = None


class ProviderAvailabilityResponse(BaseModel):
    id: int
    provider_id: int
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    is_available: bool

    class Config:
        from_attributes = True


class ProviderBlockedDateCreate(BaseModel):
    blocked_date: date
    reason: Optional[str] = None


class ProviderBlockedDateResponse(ProviderBlockedDateCreate):
    id: int
    provider_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AvailableSlotsResponse(BaseModel):
    provider_id: int
    date: date
    slots: List[str] = Field(default_factory=list, description="start times, HH:MM")
    buffer_minutes: int
    unavailable: bool = False
    no_weekly_availability: bool = False

    class Config:
        from_attributes = True
