# servio/api/routes/availability.py
from fastapi import APIRouter, Depends, HTTPException, Query
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from servio.api.deps import get_availability_store, get_slot_resolver
from servio.core.exceptions import AvailabilityNotFound, BlockedDateNotFound, MissingField, ServiceNotFound
from servio.core.security import get_current_user
from servio.db.base import get_db
from servio.db.models.service import Service
from servio.db.models.user import User
from servio.db.repositories.availability_store import AvailabilityStore
from servio.schemas.availability import (
    AvailableSlotsResponse,
    ProviderAvailabilityCreate,
    ProviderAvailabilityResponse,
    ProviderAvailabilityUpdate,
    ProviderBlockedDateCreate,
    ProviderBlockedDateResponse,
)
from servio.services.slot_resolver import SlotResolver

router = APIRouter(prefix="/availability", tags=["availability"])


def _require_provider(user: User, action: str) -> None:
    if user.role not in ("provider", "admin"):
        raise HTTPException(status_code=403, detail=f"Only providers can {action}")


# ---------------- Weekly windows ----------------

@router.get("/provider/weekly", response_model=List[ProviderAvailabilityResponse])
def list_weekly_availability(
    store: AvailabilityStore = Depends(get_availability_store),
    current_user: User = Depends(get_current_user),
):
    _require_provider(current_user, "view availability")
    return store.list_availability(current_user.id)


@router.post("/provider/weekly", response_model=ProviderAvailabilityResponse, status_code=201)
def add_weekly_availability(
    payload: ProviderAvailabilityCreate,
    store: AvailabilityStore = Depends(get_availability_store),
    current_user: User = Depends(get_current_user),
):
    _require_provider(current_user, "edit availability")
    return store.create_availability(
        current_user.id,
        day_of_week=payload.day_of_week,
        start_time=payload.start_time,
        end_time=payload.end_time,
        is_available=payload.is_available,
    )


@router.patch("/provider/weekly/{availability_id}", response_model=ProviderAvailabilityResponse)
def update_weekly_availability(
    availability_id: int,
    payload: ProviderAvailabilityUpdate,
    store: AvailabilityStore = Depends(get_availability_store),
    current_user: User = Depends(get_current_user),
):
    _require_provider(current_user, "edit availability")
    return store.update_availability(availability_id, current_user.id, payload.dict(exclude_unset=True))


@router.delete("/provider/weekly/{availability_id}")
def delete_weekly_availability(
    availability_id: int,
    store: AvailabilityStore = Depends(get_availability_store),
    current_user: User = Depends(get_current_user),
):
    _require_provider(current_user, "edit availability")
    if not store.delete_availability(availability_id, current_user.id):
        raise AvailabilityNotFound(availability_id)
    return {"message": "Availability slot deleted"}


# ---------------- Blocked dates ----------------

@router.get("/provider/blocked-dates", response_model=List[ProviderBlockedDateResponse])
def list_blocked_dates(
    store: AvailabilityStore = Depends(get_availability_store),
    current_user: User = Depends(get_current_user),
):
    _require_provider(current_user, "view blocked dates")
    return store.list_blocked_dates(current_user.id)


@router.post("/provider/blocked-dates", response_model=ProviderBlockedDateResponse, status_code=201)
def add_blocked_date(
    payload: ProviderBlockedDateCreate,
    store: AvailabilityStore = Depends(get_availability_store),
    current_user: User = Depends(get_current_user),
):
    _require_provider(current_user, "edit blocked dates")
    return store.add_blocked_date(current_user.id, payload.blocked_date, payload.reason)


@router.delete("/provider/blocked-dates/{blocked_date_id}")
def delete_blocked_date(
    blocked_date_id: int,
    store: AvailabilityStore = Depends(get_availability_store),
    current_user: User = Depends(get_current_user),
):
    _require_provider(current_user, "edit blocked dates")
    if not store.delete_blocked_date(blocked_date_id, current_user.id):
        raise BlockedDateNotFound(blocked_date_id)
    return {"message": "Blocked date deleted"}


# ---------------- Public: open slots for a date ----------------

@router.get("/providers/{provider_id}/slots", response_model=AvailableSlotsResponse)
def get_available_slots_for_date(
    provider_id: int,
    date_str: str = Query(..., alias="date", description="date in YYYY-MM-DD"),
    duration_minutes: Optional[int] = Query(None, description="service duration in minutes"),
    service_id: Optional[int] = Query(None, description="take the duration from this service instead"),
    resolver: SlotResolver = Depends(get_slot_resolver),
    db: Session = Depends(get_db),
):
    """
    Start times (HH:MM) still open for the provider on that date.
    Either duration_minutes or service_id must be given; an explicit
    duration wins over the service's own.
    """
    try:
        target_date = datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format, use YYYY-MM-DD")

    if duration_minutes is None:
        if service_id is None:
            raise MissingField("duration_minutes or service_id")
        service = db.query(Service).filter(Service.id == service_id, Service.provider_id == provider_id).first()
        if not service:
            raise ServiceNotFound(service_id)
        if service.duration_minutes is None:
            raise MissingField("duration_minutes")
        duration_minutes = service.duration_minutes

    return resolver.resolve(provider_id, target_date, duration_minutes)
