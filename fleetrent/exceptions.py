"""
Typed errors for the rental core.

The lifecycle raises these; RentalCatalog catches them and hands them back
inside an ``Outcome`` so callers check ``ok`` before assuming a state change.
Controllers map them to HTTP status codes.
"""


class RentalError(Exception):
    """Base class for every operation-scoped failure."""

    status_code = 400

    def __init__(self, message: str = "Error: rental operation failed") -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover
        return self.message

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "message": self.message}


class ValidationError(RentalError):
    """Raised on malformed input, e.g. an end date before the start date."""

    status_code = 400

    def __init__(self, message: str = "Error: invalid input") -> None:
        super().__init__(message)


class NotFoundError(RentalError):
    """Raised when a rental, vehicle or ticket id is unknown."""

    status_code = 404

    def __init__(self, message: str = "Error: not found") -> None:
        super().__init__(message)


class InvalidStateError(RentalError):
    """Raised when a transition is attempted from a state that forbids it."""

    status_code = 409

    def __init__(self, message: str = "Error: invalid rental state") -> None:
        super().__init__(message)


class TicketNotUsedError(RentalError):
    """Raised when a return is attempted before the pickup ticket was validated."""

    status_code = 409

    def __init__(self, message: str = "Error: ticket has not been used for pickup") -> None:
        super().__init__(message)


class ConflictError(RentalError):
    """
    Raised when a requested range collides with another booking.
    Carries the offending rental id, its renter and the buffered window so the
    caller can explain the clash.
    """

    status_code = 409

    def __init__(
            self,
            message: str = "Error: vehicle is not available",
            rental_id: str | None = None,
            renter: str | None = None,
            window: tuple | None = None,
    ) -> None:
        self.rental_id = rental_id
        self.renter = renter
        self.window = window
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["rental_id"] = self.rental_id
        data["renter"] = self.renter
        if self.window:
            data["window"] = [d.isoformat() for d in self.window]
        return data
