# servio/core/exceptions.py
"""
Booking engine error taxonomy.

Services raise these; the application renders them as
{"detail": message} with the status code carried by the class.
"""


class BookingEngineError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# --- Validation (400) ---

class ValidationError(BookingEngineError):
    status_code = 400


class InvalidDuration(ValidationError):
    def __init__(self, duration_minutes):
        super().__init__(f"Service duration must be a positive number of minutes, got {duration_minutes}")
        self.duration_minutes = duration_minutes


class OutOfRangeDate(ValidationError):
    def __init__(self, requested, earliest, latest):
        super().__init__(
            f"Date {requested.isoformat()} is outside the booking window "
            f"({earliest.isoformat()} to {latest.isoformat()})"
        )
        self.requested = requested
        self.earliest = earliest
        self.latest = latest


class MissingField(ValidationError):
    def __init__(self, field: str):
        super().__init__(f"{field} is required")
        self.field = field


class InvalidTimeRange(ValidationError):
    def __init__(self):
        super().__init__("start_time must be before end_time")


# --- Not found (404) ---

class NotFoundError(BookingEngineError):
    status_code = 404


class ServiceNotFound(NotFoundError):
    def __init__(self, service_id):
        super().__init__("Service not found")
        self.service_id = service_id


class BookingNotFound(NotFoundError):
    def __init__(self, booking_id):
        super().__init__("Booking not found")
        self.booking_id = booking_id


class ProviderProfileNotFound(NotFoundError):
    def __init__(self, provider_id):
        super().__init__("Provider business profile not found")
        self.provider_id = provider_id


class AvailabilityNotFound(NotFoundError):
    def __init__(self, availability_id):
        super().__init__("Availability slot not found")
        self.availability_id = availability_id


class BlockedDateNotFound(NotFoundError):
    def __init__(self, blocked_date_id):
        super().__init__("Blocked date not found")
        self.blocked_date_id = blocked_date_id


# --- Business rules ---

class BusinessRuleError(BookingEngineError):
    status_code = 400


class ProviderNotVerified(BusinessRuleError):
    status_code = 403

    def __init__(self, provider_id, verification_status):
        super().__init__("This provider is not yet verified. Bookings are not available at this time.")
        self.provider_id = provider_id
        self.verification_status = verification_status


class InvalidTransition(BusinessRuleError):
    def __init__(self, from_status, to_status):
        super().__init__(f"Invalid status transition from {from_status} to {to_status}")
        self.from_status = from_status
        self.to_status = to_status
