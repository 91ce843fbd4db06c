# servio/api/deps.py
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from servio.core.config import BookingConfig
from servio.db.base import get_db
from servio.db.repositories.availability_store import AvailabilityStore
from servio.db.repositories.booking_store import BookingStore
from servio.services.booking_ledger import BookingLedger
from servio.services.booking_state_machine import BookingStateMachine
from servio.services.collaborators import CommissionSource, EarningsRecorder, Notifier, VerificationGate
from servio.services.slot_resolver import SlotResolver


def get_config(request: Request) -> BookingConfig:
    return request.app.state.config


def get_availability_store(db: Session = Depends(get_db)) -> AvailabilityStore:
    return AvailabilityStore(db)


def get_booking_store(db: Session = Depends(get_db)) -> BookingStore:
    return BookingStore(db)


def get_slot_resolver(
    request: Request,
    availability: AvailabilityStore = Depends(get_availability_store),
    bookings: BookingStore = Depends(get_booking_store),
    config: BookingConfig = Depends(get_config),
) -> SlotResolver:
    return SlotResolver(availability, bookings, config, today=request.app.state.today)


def get_booking_ledger(
    db: Session = Depends(get_db),
    store: BookingStore = Depends(get_booking_store),
    config: BookingConfig = Depends(get_config),
) -> BookingLedger:
    return BookingLedger(
        db,
        store,
        verification=VerificationGate(db),
        commission=CommissionSource(db, default_rate=config.default_commission_rate),
        notifier=Notifier(db),
        earnings=EarningsRecorder(db),
    )


def get_state_machine(
    db: Session = Depends(get_db),
    store: BookingStore = Depends(get_booking_store),
) -> BookingStateMachine:
    return BookingStateMachine(db, store, earnings=EarningsRecorder(db), notifier=Notifier(db))
