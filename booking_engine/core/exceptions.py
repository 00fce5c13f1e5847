# booking_engine/core/exceptions.py
"""
Booking error taxonomy.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer answers with. None of these are retried: validation and lookup errors
are the caller's to fix, and a conflict is a normal business outcome.
"""
from typing import Any, Dict, List, Optional


class BookingError(Exception):
    """Base class for booking and availability errors"""

    code = "BOOKING_ERROR"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


class ValidationError(BookingError):
    """Malformed or out-of-range input, naming the offending field"""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["field"] = self.field
        return data


class FormatError(ValidationError):
    """A date or time string that does not match its wire format"""

    code = "FORMAT_ERROR"

    def __init__(self, field: str, value: Any, expected: str):
        super().__init__(f"{field} must be in {expected} format, got {value!r}", field=field)
        self.value = value
        self.expected = expected


class NotFoundError(BookingError):
    """Unknown business, service, appointment or exception date"""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, resource_id: Any, message: Optional[str] = None):
        super().__init__(message or f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = str(resource_id)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["resource"] = self.resource
        data["resource_id"] = self.resource_id
        return data


class ConflictError(BookingError):
    """Requested slot overlaps existing bookings or falls outside open hours"""

    code = "BOOKING_CONFLICT"
    status_code = 409

    def __init__(self, conflicts: List[str], suggestions: Optional[list] = None):
        super().__init__("This time slot is not available. Please choose a different time.")
        self.conflicts = list(conflicts)
        self.suggestions = list(suggestions or [])

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["conflicts"] = self.conflicts
        data["suggestions"] = [slot.to_dict() for slot in self.suggestions]
        return data
