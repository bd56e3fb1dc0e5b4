class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class PunchSequenceError(DomainError):
    """Raised when a punch is not a legal next step for the employee."""


class NotFoundError(DomainError):
    """Raised when an employee, shift, punch or assignment does not exist."""


class ConflictError(DomainError):
    """Raised on duplicate names, overlapping shifts or a busy lock."""


class GeofenceError(DomainError):
    """Raised when a punch location is outside the company geofence."""

    def __init__(self, message: str, *, distance_m: float, radius_m: float):
        super().__init__(message)
        self.distance_m = distance_m
        self.radius_m = radius_m
