# join_date/models/api/webhook_response.py
"""
Webhook response models.
Used by the Stripe webhook route for output formatting.
Keys are serialised in camelCase to keep the payload the event source logs stable.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from join_date.models.domain.join_date_domain import JoinDateAction, JoinDateResult


class WebhookStatus(str, Enum):
    SUCCESS = "success"
    IGNORED = "ignored"
    ERROR = "error"


class WebhookResponseData(BaseModel):
    """Payload describing which contact was touched and how."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    contact_id: str | None = Field(None, description="HubSpot contact ID")
    join_date: str | None = Field(None, description="Join date written by this invocation")
    contact_email: str | None = Field(None, description="Email used for the lookup")
    existing_join_date: str | None = Field(None, description="Join date that was already set")
    event_id: str | None = Field(None, description="Source Stripe event ID")


class WebhookResponse(BaseModel):
    """Response body for the join date webhook."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: WebhookStatus = Field(..., description="success, ignored or error")
    action: JoinDateAction | None = Field(None, description="updated or skipped")
    message: str = Field(..., description="Human-readable outcome")
    data: WebhookResponseData | None = Field(None, description="Outcome details")

    @classmethod
    def from_result(cls, result: JoinDateResult, event_id: str) -> "WebhookResponse":
        return cls(
            status=WebhookStatus.SUCCESS,
            action=result.action,
            message=result.message,
            data=WebhookResponseData(
                contact_id=result.contact_id,
                join_date=result.join_date,
                contact_email=result.contact_email,
                existing_join_date=result.existing_join_date,
                event_id=event_id,
            ),
        )

    @classmethod
    def ignored(cls, event_type: str) -> "WebhookResponse":
        return cls(status=WebhookStatus.IGNORED, message=f"Event type {event_type} not processed")

    @classmethod
    def error(cls, message: str) -> "WebhookResponse":
        return cls(status=WebhookStatus.ERROR, message=message)

    def status_code(self) -> int:
        """200 for success and ignored outcomes, 500 for failures."""
        return 500 if self.status == WebhookStatus.ERROR else 200
