"""
Domain exceptions for the registrations app.

Only PaymentUpdateFailedError means nothing was applied. Receipt and
notification failures are partial successes: the caller logs them and
the status change stands.
"""


class RegistrationsServiceError(Exception):
    """Base exception for all registrations service errors."""
    pass


class InvalidTicketFormatError(RegistrationsServiceError):
    """Scanned ticket payload is malformed or carries the wrong prefix."""
    pass


class RegistrationNotFoundError(RegistrationsServiceError):
    """No registration matches the given identifier."""
    pass


class TicketMismatchError(RegistrationsServiceError):
    """Ticket fields disagree with the stored registration."""

    def __init__(self, message, mismatches=None):
        super().__init__(message)
        self.mismatches = mismatches or []


class InvalidPaymentStatusError(RegistrationsServiceError):
    """Requested payment status is not pending, confirmed or rejected."""
    pass


class PaymentUpdateFailedError(RegistrationsServiceError):
    """Persisting the payment status change failed; nothing was applied."""
    pass


class ReceiptIssuanceError(RegistrationsServiceError):
    """Receipt could not be created."""
    pass


class NotificationError(RegistrationsServiceError):
    """Participant e-mail could not be sent."""
    pass


class CategoryNotFoundError(RegistrationsServiceError):
    """Race category does not exist or is inactive."""
    pass


class ClaimLocationNotFoundError(RegistrationsServiceError):
    """Claim location does not exist or is inactive."""
    pass


class KitAlreadyClaimedError(RegistrationsServiceError):
    """Kit for this registration was already handed out."""
    pass


class KitNotClaimedError(RegistrationsServiceError):
    """Kit for this registration has not been claimed."""
    pass


class PaymentNotConfirmedError(RegistrationsServiceError):
    """Kit cannot be released before the payment is confirmed."""
    pass


class BulkClaimError(RegistrationsServiceError):
    """A bulk kit claim stopped partway; earlier claims stand."""

    def __init__(self, message, completed=0, registration_id=None):
        super().__init__(message)
        self.completed = completed
        self.registration_id = registration_id


class BulkUploadError(RegistrationsServiceError):
    """
    A registration upload file was unreadable or failed validation.

    ``errors`` lists ``{'row', 'field', 'message'}`` dicts; nothing was
    imported.
    """

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors or []


class ReportError(RegistrationsServiceError):
    """Unknown report type, status filter or export format."""
    pass
