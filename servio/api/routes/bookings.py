from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from servio.api.deps import get_booking_ledger, get_booking_store, get_state_machine
from servio.core.exceptions import BookingNotFound
from servio.core.security import get_current_user, require_admin
from servio.db.models.booking import Booking, BookingStatus
from servio.db.models.user import User
from servio.db.repositories.booking_store import BookingStore
from servio.schemas.booking import BookingCreate, BookingResponse, BookingStatusUpdate
from servio.services.booking_ledger import AddonSelection, BookingLedger
from servio.services.booking_state_machine import BookingStateMachine

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _can_view(booking: Booking, user: User) -> bool:
    return user.role == "admin" or user.id in (booking.customer_id, booking.provider_id)


# Customer creates booking

@router.post("", response_model=BookingResponse, status_code=201)
def create_booking(
    booking: BookingCreate,
    ledger: BookingLedger = Depends(get_booking_ledger),
    current_user: User = Depends(get_current_user),
):
    if current_user.role != "customer":
        raise HTTPException(status_code=403, detail="Only customers can create bookings")

    return ledger.create(
        customer_id=current_user.id,
        service_id=booking.service_id,
        scheduled_date=booking.scheduled_date,
        scheduled_time=booking.scheduled_time,
        addons=[AddonSelection(addon_id=a.addon_id, quantity=a.quantity) for a in booking.addons],
        payment_method=booking.payment_method.value,
        notes=booking.customer_notes,
        address_id=booking.address_id,
    )


# Customer or provider views their bookings

@router.get("/me", response_model=list[BookingResponse])
def my_bookings(
    store: BookingStore = Depends(get_booking_store),
    current_user: User = Depends(get_current_user),
):
    return store.list_for_user(current_user.id, current_user.role)


# Admin views all bookings

@router.get("/admin/all", response_model=list[BookingResponse])
def admin_all_bookings(
    status: Optional[str] = Query(None, description="booking status, or 'all'"),
    q: Optional[str] = Query(None, description="search booking number, people, business or service"),
    store: BookingStore = Depends(get_booking_store),
    admin: User = Depends(require_admin),
):
    return store.list_all(status=status, search=q)


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: int,
    store: BookingStore = Depends(get_booking_store),
    current_user: User = Depends(get_current_user),
):
    booking = store.get_booking(booking_id)
    if not booking:
        raise BookingNotFound(booking_id)
    if not _can_view(booking, current_user):
        raise HTTPException(status_code=403, detail="Not your booking")
    return booking


# Status changes: customers may only cancel their own booking,
# providers drive their own bookings, admins any booking

@router.patch("/{booking_id}/status", response_model=BookingResponse)
def update_booking_status(
    booking_id: int,
    payload: BookingStatusUpdate,
    store: BookingStore = Depends(get_booking_store),
    machine: BookingStateMachine = Depends(get_state_machine),
    current_user: User = Depends(get_current_user),
):
    booking = store.get_booking(booking_id)
    if not booking:
        raise BookingNotFound(booking_id)

    if current_user.role == "customer":
        if payload.status != BookingStatus.CANCELLED:
            raise HTTPException(status_code=403, detail="Customers can only cancel bookings")
        if booking.customer_id != current_user.id:
            raise HTTPException(status_code=403, detail="Not your booking")
    elif current_user.role == "provider":
        if booking.provider_id != current_user.id:
            raise HTTPException(status_code=403, detail="Not your booking")
    elif current_user.role != "admin":
        raise HTTPException(status_code=403, detail="Not allowed")

    return machine.transition(
        booking_id,
        payload.status,
        cancellation_reason=payload.cancellation_reason,
        provider_notes=payload.provider_notes,
        notify_customer=current_user.role != "customer",
    )
