"""Domain exceptions raised by the GuestDesk services."""


class GuestDeskError(Exception):
    """Base exception for GuestDesk errors."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationFailed(GuestDeskError):
    """Input is well-formed but violates a business rule (bad date, room out of range)."""

    status_code = 400


class Conflict(GuestDeskError):
    """The request clashes with current state (room occupied, wrong lifecycle step)."""

    status_code = 400


class Forbidden(GuestDeskError):
    """The caller does not own the record."""

    status_code = 403


class NotFound(GuestDeskError):
    """A referenced record does not exist."""

    status_code = 404
