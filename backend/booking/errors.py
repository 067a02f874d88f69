"""Error kinds raised by the booking core.

Every error carries the HTTP status and detail message the routes answer with.
Only ``StorageError`` describes a transient failure; everything else is the
caller's input or a business rule and should not be retried.
"""


class BookingError(Exception):
    """Base exception for slot and appointment operations."""

    status_code = 400
    detail = 'Booking request failed.'

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class InvalidInput(BookingError):
    """Raised when a request is missing fields or carries malformed values."""

    detail = 'Invalid request.'


class PastDate(BookingError):
    """Raised when an operation targets a date before today."""

    detail = 'Cannot book appointments in the past.'


class DoctorNotFound(BookingError):
    status_code = 404
    detail = 'Doctor not found.'


class PatientNotFound(BookingError):
    status_code = 404
    detail = 'Patient not found.'


class SlotNotFound(BookingError):
    status_code = 404
    detail = 'Appointment not found.'


class SlotUnavailable(BookingError):
    """Raised when the requested slot is already held by someone else."""

    detail = 'Selected time slot is not available.'


class PatientDoubleBooked(BookingError):
    """Raised when the patient already holds a slot at the same date and time."""

    detail = 'Patient already has an appointment at this time.'


class InvalidState(BookingError):
    """Raised when a slot's current status does not allow the operation."""

    detail = 'Only booked appointments can be changed.'


class InvalidSchedule(BookingError):
    """Raised when a doctor's availability template cannot be expanded."""

    status_code = 500
    detail = 'Doctor availability is misconfigured.'


class StorageError(BookingError):
    status_code = 503
    detail = 'Database unavailable. Verify DATABASE_URL and database credentials.'
