"""
Join date error taxonomy.

Every failure raised while processing a webhook is a JoinDateError. The
``step`` attribute names the stage the invocation reached so the webhook
boundary can log it before converting the error into an ``error`` response.
"""


class JoinDateError(Exception):
    """Base exception for join date processing."""

    step = "unknown"

    def __init__(
        self,
        message: str,
        *,
        email: str | None = None,
        event_id: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.email = email
        self.event_id = event_id


class MissingCredentialError(JoinDateError):
    """CRM access token is not provisioned."""

    step = "preflight"


class CrmConnectivityError(JoinDateError):
    """CRM rejected the credential or could not be reached during pre-flight."""

    step = "preflight"


class InvalidSignatureError(JoinDateError):
    """Stripe-Signature header missing, malformed or not matching the body."""

    step = "verify_signature"


class InvalidEventError(JoinDateError):
    """Webhook body is not a usable Stripe event."""

    step = "parse_event"


class MissingEmailError(JoinDateError):
    """Checkout session carries no customer email."""

    step = "validate_event"


class DateFormattingError(JoinDateError):
    """Event timestamp cannot be turned into a calendar date."""

    step = "derive_date"


class ContactSearchError(JoinDateError):
    """Contact lookup failed or returned an unexpected shape."""

    step = "search_contact"


class ContactNotFoundError(JoinDateError):
    """Lookup succeeded but matched no contact."""

    step = "resolve_contact"

    def __init__(self, email: str, *, event_id: str | None = None):
        super().__init__(f"No contact found with email: {email}", email=email, event_id=event_id)


class UpdateFailedError(JoinDateError):
    """
    The join date write failed.

    No write was confirmed, so redelivering the event is safe.
    """

    step = "update_contact"

    def __init__(
        self,
        message: str,
        *,
        contact_id: str | None = None,
        email: str | None = None,
        event_id: str | None = None,
    ):
        super().__init__(message, email=email, event_id=event_id)
        self.contact_id = contact_id
