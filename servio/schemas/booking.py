# servio/schemas/booking.py
from pydantic import BaseModel, Field
from datetime import date, time, datetime
from decimal import Decimal
from typing import List, Optional

from servio.db.models.booking import BookingStatus, PaymentMethod


# --- CREATE ---
class BookingAddonSelection(BaseModel):
    addon_id: int
    quantity: Optional[int] = None


class BookingCreate(BaseModel):
    service_id: int
    address_id: Optional[int] = None
    scheduled_date: date
    scheduled_time: time
    addons: List[BookingAddonSelection] = Field(default_factory=list)
    payment_method: PaymentMethod = PaymentMethod.CASH
    customer_notes: Optional[str] = None


# --- STATUS CHANGE (provider, admin, or customer cancelling) ---
class BookingStatusUpdate(BaseModel):
    status: BookingStatus = Field(
        ..., description="Allowed values: pending, accepted, in_progress, completed, cancelled, rejected"
    )
    cancellation_reason: Optional[str] = None
    provider_notes: Optional[str] = None


# --- RESPONSE ---
class BookingAddonLineResponse(BaseModel):
    id: int
    addon_id: Optional[int]
    addon_name: str
    addon_price: Decimal
    quantity: int

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    id: int
    booking_number: str
    customer_id: int
    provider_id: int
    service_id: int
    address_id: Optional[int]
    scheduled_date: date
    scheduled_time: time
    status: str

    service_price: Decimal
    addons_price: Decimal
    subtotal: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    provider_earnings: Decimal

    payment_method: str
    payment_status: str

    customer_notes: Optional[str]
    provider_notes: Optional[str]
    cancellation_reason: Optional[str]

    accepted_at: Optional[datetime]
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    addon_lines: List[BookingAddonLineResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True
