class UnauthorizedError(Exception):
    pass


class MissingFieldsError(Exception):
    def __init__(self, fields):
        super().__init__("Missing required fields")
        self.fields = fields


class NotFoundError(Exception):
    pass


class ValidationError(Exception):
    """Input is incomplete or invalid. Nothing was written."""


class RegistrationDenied(Exception):
    """A business rule refused the operation (window closed, full, duplicate)."""


class MissingProofError(ValidationError, RegistrationDenied):
    """Paid event registration without a transaction id or proof image."""


class TransientStoreError(Exception):
    """The database failed mid-transaction. The whole operation may be retried."""


class NotificationDeliveryError(Exception):
    pass


class CheckInError(Exception):
    pass


class InvalidPayload(CheckInError):
    pass


class WrongEvent(CheckInError):
    pass


class UnknownRegistrant(CheckInError):
    pass
