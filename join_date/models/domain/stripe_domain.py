# join_date/models/domain/stripe_domain.py
"""
Stripe Domain Models
Read-only view of the Stripe events the join date webhook consumes.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, StrictInt, ValidationError

from join_date.services.errors import InvalidEventError

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"


class CheckoutEvent(BaseModel):
    """Domain model for a Stripe event carrying a checkout session."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    created: StrictInt  # seconds since epoch, when the checkout completed
    customer_email: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "CheckoutEvent":
        """
        Build a CheckoutEvent from a decoded Stripe event body.

        The customer email lives at ``data.object.customer_details.email``;
        any missing level yields ``None`` rather than an error so the
        assigner can report MissingEmailError for eligible events only.

        Raises:
            InvalidEventError: If the payload is not an event object
        """
        if not isinstance(payload, dict):
            raise InvalidEventError("Webhook body is not a JSON object")

        try:
            return cls(
                id=payload.get("id"),
                type=payload.get("type"),
                created=payload.get("created"),
                customer_email=_extract_customer_email(payload),
            )
        except ValidationError as e:
            raise InvalidEventError(
                f"Invalid Stripe event: {e.error_count()} field error(s)",
                event_id=payload.get("id") if isinstance(payload.get("id"), str) else None,
            ) from e

    def is_checkout_completed(self) -> bool:
        return self.type == CHECKOUT_SESSION_COMPLETED


def _extract_customer_email(payload: dict) -> str | None:
    data = payload.get("data")
    obj = data.get("object") if isinstance(data, dict) else None
    details = obj.get("customer_details") if isinstance(obj, dict) else None
    email = details.get("email") if isinstance(details, dict) else None
    return email if isinstance(email, str) else None
