"""Domain errors raised by the appointment services and gateways."""


class AppointmentError(Exception):
    """Base class; ``status_code`` is the HTTP status the API maps it to."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppointmentError):
    """Missing or malformed request fields."""

    status_code = 400


class NotFoundError(AppointmentError):
    """The calendar provider does not know the requested event."""

    status_code = 404


class DownstreamError(AppointmentError):
    """Calendar or mail provider failure."""

    status_code = 500


class DeliveryError(DownstreamError):
    """The mail transport rejected or failed to deliver a message."""
