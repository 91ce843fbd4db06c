"""Booking ledger - prices and persists a new booking in one transaction"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from servio.core.exceptions import ProviderNotVerified, ProviderProfileNotFound, ServiceNotFound
from servio.db.models.booking import Booking, BookingAddonLine, BookingStatus, PaymentMethod, PaymentStatus
from servio.db.models.service import Service, ServiceAddon
from servio.db.repositories.booking_store import BookingStore
from servio.services.collaborators import CommissionSource, EarningsRecorder, Notifier, VerificationGate

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass(frozen=True)
class AddonSelection:
    addon_id: int
    quantity: Optional[int] = None


@dataclass(frozen=True)
class PriceBreakdown:
    service_price: Decimal
    addons_price: Decimal
    subtotal: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    provider_earnings: Decimal


def as_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def compute_price(service_price, addon_totals: Iterable[Decimal], commission_rate) -> PriceBreakdown:
    """
    Sum everything exactly, then round the commission once (half-up, 2 places).
    Earnings are whatever is left, so commission + earnings == subtotal.
    """
    service_price = as_decimal(service_price)
    commission_rate = as_decimal(commission_rate)
    addons_price = sum((as_decimal(t) for t in addon_totals), Decimal("0"))
    subtotal = service_price + addons_price
    commission_amount = (subtotal * commission_rate / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
    return PriceBreakdown(
        service_price=service_price,
        addons_price=addons_price,
        subtotal=subtotal,
        commission_rate=commission_rate,
        commission_amount=commission_amount,
        provider_earnings=subtotal - commission_amount,
    )


def generate_booking_number() -> str:
    return f"BK-{uuid.uuid4().hex[:8].upper()}"


class BookingLedger:
    def __init__(
        self,
        db: Session,
        store: BookingStore,
        verification: VerificationGate,
        commission: CommissionSource,
        notifier: Notifier,
        earnings: EarningsRecorder,
    ):
        self.db = db
        self.store = store
        self.verification = verification
        self.commission = commission
        self.notifier = notifier
        self.earnings = earnings

    def create(
        self,
        customer_id: int,
        service_id: int,
        scheduled_date: date,
        scheduled_time: time,
        addons: Optional[list[AddonSelection]] = None,
        payment_method: str = PaymentMethod.CASH.value,
        notes: Optional[str] = None,
        address_id: Optional[int] = None,
        paid: bool = False,
    ) -> Booking:
        """
        Create a pending booking with its addon lines. Either everything is
        committed or nothing is. `paid` marks bookings created after the
        payment already went through.
        """
        try:
            service = self.db.query(Service).filter(Service.id == service_id).first()
            if not service:
                raise ServiceNotFound(service_id)
            provider_id = service.provider_id

            status = self.verification.get_verification_status(provider_id)
            if status is None:
                raise ProviderProfileNotFound(provider_id)
            if status != "approved":
                raise ProviderNotVerified(provider_id, status)

            rate = self.commission.get_commission_rate(provider_id)
            lines = self._resolve_addon_lines(service_id, addons or [])
            price = compute_price(
                service.base_price,
                (as_decimal(line.addon_price) * line.quantity for line in lines),
                rate,
            )

            booking = Booking(
                booking_number=generate_booking_number(),
                customer_id=customer_id,
                provider_id=provider_id,
                service_id=service_id,
                address_id=address_id,
                scheduled_date=scheduled_date,
                scheduled_time=scheduled_time,
                status=BookingStatus.PENDING.value,
                payment_method=payment_method,
                payment_status=(PaymentStatus.PAID if paid else PaymentStatus.PENDING).value,
                service_price=price.service_price,
                addons_price=price.addons_price,
                subtotal=price.subtotal,
                commission_rate=price.commission_rate,
                commission_amount=price.commission_amount,
                provider_earnings=price.provider_earnings,
                customer_notes=notes,
            )
            self.store.add_booking(booking, lines)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.warning(f"❌ Booking creation failed for customer {customer_id}, service {service_id}: {e}")
            raise

        self.db.refresh(booking)
        logger.info(
            f"✅ Booking {booking.booking_number} created: subtotal={booking.subtotal} "
            f"commission={booking.commission_amount} earnings={booking.provider_earnings}"
        )

        self._after_commit(booking, paid)
        return booking

    def _resolve_addon_lines(self, service_id: int, selections: list[AddonSelection]) -> list[BookingAddonLine]:
        """Unknown, inactive or other-service addon ids are dropped without error"""
        if not selections:
            return []

        quantities: dict[int, int] = {}
        for selection in selections:
            # first selection of an addon wins
            quantities.setdefault(selection.addon_id, max(selection.quantity or 1, 1))

        rows = (
            self.db.query(ServiceAddon)
            .filter(
                ServiceAddon.id.in_(list(quantities)),
                ServiceAddon.service_id == service_id,
                ServiceAddon.is_active == True,  # noqa: E712
            )
            .order_by(ServiceAddon.id)
            .all()
        )
        return [
            BookingAddonLine(
                addon_id=row.id,
                addon_name=row.name,
                addon_price=as_decimal(row.price),
                quantity=quantities[row.id],
            )
            for row in rows
        ]

    def _after_commit(self, booking: Booking, paid: bool) -> None:
        try:
            self.notifier.notify(
                booking.provider_id,
                "booking_created",
                {
                    "title": "New booking request",
                    "message": f"You received a new booking request ({booking.booking_number}).",
                    "data": {
                        "booking_id": booking.id,
                        "service_id": booking.service_id,
                        "customer_id": booking.customer_id,
                    },
                },
            )
        except Exception:
            logger.exception(f"Provider notification failed for booking {booking.id}")

        if paid:
            # prepaid bookings recognise earnings at payment time
            try:
                self.earnings.record_earnings(
                    booking.provider_id,
                    booking.id,
                    amount=booking.subtotal,
                    commission=booking.commission_amount,
                    net=booking.provider_earnings,
                )
            except Exception:
                logger.exception(f"Earnings recognition failed for prepaid booking {booking.id}")
