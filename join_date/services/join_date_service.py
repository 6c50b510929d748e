"""
Join date service: write-once join dates on HubSpot contacts.

Flow per invocation:
    START -> DATE_DERIVED -> CONTACT_RESOLVED -> SKIPPED | UPDATED
Any step may fail with a JoinDateError subclass; errors propagate to the caller.

Idempotency comes only from re-reading the contact's join_date on every call.
There is no lock: two concurrent events for the same contact can both see an
empty join_date and both write, in which case HubSpot keeps the last write.
"""

from datetime import UTC, datetime, tzinfo
from typing import Any, Protocol

from join_date.infrastructure.observability.logging import get_logger
from join_date.models.domain.join_date_domain import (
    JOIN_DATE_PROPERTY,
    ContactRecord,
    JoinDateResult,
    normalize_search_response,
)
from join_date.models.domain.stripe_domain import CheckoutEvent
from join_date.services.errors import (
    ContactNotFoundError,
    ContactSearchError,
    DateFormattingError,
    MissingEmailError,
    UpdateFailedError,
)

logger = get_logger(__name__)


class ContactsClient(Protocol):
    async def search_contacts(
        self, email: str, properties: list[str], limit: int = 1
    ) -> dict[str, Any]: ...

    async def update_contact(
        self, contact_id: str, properties: dict[str, str]
    ) -> dict[str, Any]: ...


def derive_join_date(timestamp: int, tz: tzinfo = UTC) -> str:
    """
    Convert an authoritative Unix timestamp into a ``YYYY-MM-DD`` join date.

    The instant is truncated to its calendar date in ``tz`` (UTC by default).

    Args:
        timestamp: Seconds since the Unix epoch
        tz: Time zone whose calendar decides the date

    Returns:
        str: ISO calendar date

    Raises:
        DateFormattingError: If the timestamp is not a non-negative integer
            representable as a datetime
    """
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        raise DateFormattingError(
            f"Date formatting failed: expected integer seconds, got {type(timestamp).__name__}"
        )
    if timestamp < 0:
        raise DateFormattingError(f"Date formatting failed: negative timestamp {timestamp}")

    try:
        moment = datetime.fromtimestamp(timestamp, tz=tz)
    except (OverflowError, OSError, ValueError) as e:
        raise DateFormattingError(f"Date formatting failed: {e}") from e

    return moment.date().isoformat()


class JoinDateAssigner:
    """
    Sets a contact's join date exactly once.

    Holds no state between calls beyond the injected contacts client and
    the date policy zone.
    """

    def __init__(self, contacts: ContactsClient, timezone: tzinfo = UTC):
        self._contacts = contacts
        self._timezone = timezone

    def derive_join_date(self, timestamp: int) -> str:
        return derive_join_date(timestamp, self._timezone)

    async def find_contact_by_email(self, email: str) -> ContactRecord | None:
        """
        Look up the first contact whose email matches exactly.

        Returns:
            ContactRecord or None when nothing matched

        Raises:
            ContactSearchError: If the lookup fails or the response shape is unknown
        """
        try:
            data = await self._contacts.search_contacts(email, [JOIN_DATE_PROPERTY], limit=1)
        except Exception as e:
            logger.error("Contact search failed", email=email, error=str(e))
            raise ContactSearchError(f"Contact search failed: {e}", email=email) from e

        try:
            results = normalize_search_response(data)
        except ContactSearchError as e:
            e.email = email
            raise

        logger.info("Contact search completed", email=email, result_count=len(results))
        if not results:
            return None

        try:
            return ContactRecord.from_hubspot(results[0])
        except (KeyError, TypeError, ValueError) as e:
            raise ContactSearchError(f"Malformed contact in search results: {e}", email=email) from e

    async def apply_join_date(self, email: str | None, event_created_at: int) -> JoinDateResult:
        """
        Write the join date unless the contact already has one.

        Args:
            email: Customer email from the checkout session
            event_created_at: Stripe event ``created`` timestamp

        Returns:
            JoinDateResult: ``updated`` or ``skipped`` outcome

        Raises:
            MissingEmailError, DateFormattingError, ContactSearchError,
            ContactNotFoundError, UpdateFailedError
        """
        if not email or not email.strip():
            raise MissingEmailError("No customer email found in checkout session")

        join_date = self.derive_join_date(event_created_at)

        contact = await self.find_contact_by_email(email)
        if contact is None:
            raise ContactNotFoundError(email)

        if contact.has_join_date():
            logger.info(
                "Join date already set",
                contact_id=contact.id,
                existing_join_date=contact.join_date,
            )
            return JoinDateResult.skipped(contact.id, contact.join_date)

        try:
            await self._contacts.update_contact(contact.id, {JOIN_DATE_PROPERTY: join_date})
        except Exception as e:
            logger.error("Join date update failed", contact_id=contact.id, error=str(e))
            raise UpdateFailedError(
                f"Join date update failed: {e}", contact_id=contact.id, email=email
            ) from e

        logger.info("Join date set", contact_id=contact.id, join_date=join_date)
        return JoinDateResult.updated(contact.id, join_date, email)

    async def process_event(self, event: CheckoutEvent) -> JoinDateResult | None:
        """
        Apply the join date for a checkout event.

        Returns None for any event type other than checkout.session.completed,
        without calling HubSpot.
        """
        if not event.is_checkout_completed():
            logger.info("Ignoring event type", event_type=event.type)
            return None

        return await self.apply_join_date(event.customer_email, event.created)
