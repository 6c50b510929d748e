"""
Stripe webhook route for join date mapping.

Receives checkout.session.completed events and sets the HubSpot contact's
join_date once, using event.created as the authoritative join moment.
Every failure is logged and returned as an ``error`` body; nothing is re-raised.
"""

import json

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from join_date.config import Settings, settings
from join_date.infrastructure.observability.logging import (
    bind_request_context,
    get_logger,
    log_join_date_outcome,
)
from join_date.models.api.webhook_response import WebhookResponse
from join_date.models.domain.stripe_domain import CheckoutEvent
from join_date.security.stripe_signature import STRIPE_SIGNATURE_HEADER, verify_stripe_signature
from join_date.services.errors import (
    CrmConnectivityError,
    InvalidEventError,
    InvalidSignatureError,
    JoinDateError,
    MissingCredentialError,
    MissingEmailError,
)
from join_date.services.hubspot.contacts_client import HubSpotAPIError, HubSpotContactsService
from join_date.services.join_date_service import JoinDateAssigner

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks/stripe", tags=["stripe-webhooks"])


def create_contacts_service(config: Settings) -> HubSpotContactsService:
    """
    Build a per-invocation HubSpot client from the provisioned credential.

    Raises:
        MissingCredentialError: If HUBSPOT_ACCESS_TOKEN is not configured
    """
    if not config.HUBSPOT_ACCESS_TOKEN:
        raise MissingCredentialError("Missing required secret: HUBSPOT_ACCESS_TOKEN")

    return HubSpotContactsService(
        access_token=config.HUBSPOT_ACCESS_TOKEN,
        base_url=config.hubspot_base_url(),
        timeout=config.HUBSPOT_REQUEST_TIMEOUT,
    )


def _parse_event(raw: bytes) -> CheckoutEvent:
    try:
        payload = json.loads(raw)
    except ValueError as e:
        raise InvalidEventError(f"Webhook body is not valid JSON: {e}") from e
    return CheckoutEvent.from_payload(payload)


def _respond(body: WebhookResponse, status_code: int | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code or body.status_code(),
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


async def _check_connectivity(contacts: HubSpotContactsService) -> None:
    try:
        await contacts.check_connectivity()
    except HubSpotAPIError as e:
        raise CrmConnectivityError(f"HubSpot pre-flight check failed: {e}") from e


async def _handle(raw: bytes, signature: str | None) -> WebhookResponse:
    contacts = create_contacts_service(settings)

    async with contacts:
        if settings.STRIPE_WEBHOOK_SECRET:
            verify_stripe_signature(
                raw,
                signature,
                settings.STRIPE_WEBHOOK_SECRET,
                tolerance=settings.STRIPE_SIGNATURE_TOLERANCE,
            )

        event = _parse_event(raw)
        bind_request_context(event_id=event.id, event_type=event.type)

        if not event.is_checkout_completed():
            logger.info("Event type not processed", event_type=event.type)
            return WebhookResponse.ignored(event.type)

        if not event.customer_email or not event.customer_email.strip():
            raise MissingEmailError(
                "No customer email found in checkout session", event_id=event.id
            )

        logger.info("Processing event", customer_email=event.customer_email)

        assigner = JoinDateAssigner(contacts, timezone=settings.join_date_zone())

        try:
            if settings.HUBSPOT_CONNECTIVITY_CHECK:
                await _check_connectivity(contacts)
            result = await assigner.process_event(event)
        except JoinDateError as e:
            e.event_id = e.event_id or event.id
            e.email = e.email or event.customer_email
            raise

        return WebhookResponse.from_result(result, event_id=event.id)


@router.post("/join-date")
async def stripe_join_date_webhook(request: Request):
    """Set the customer's join date from a Stripe checkout.session.completed event."""
    logger.info("Join date mapping started")

    raw = await request.body()
    signature = request.headers.get(STRIPE_SIGNATURE_HEADER)

    try:
        body = await _handle(raw, signature)
    except InvalidSignatureError as e:
        logger.warning("Stripe signature rejected", error=e.message, step=e.step)
        body = WebhookResponse.error(e.message)
        log_join_date_outcome(body.status.value, None)
        return _respond(body, status_code=400)
    except JoinDateError as e:
        logger.error(
            "Join date processing failed",
            error=e.message,
            error_type=type(e).__name__,
            step=e.step,
            email=e.email,
            event_id=e.event_id,
        )
        body = WebhookResponse.error(e.message)
    except Exception as e:
        logger.exception("Unexpected join date failure", error=str(e), error_type=type(e).__name__)
        body = WebhookResponse.error(f"Internal error: {type(e).__name__}")

    log_join_date_outcome(
        body.status.value,
        body.action.value if body.action else None,
        body.data.contact_id if body.data else None,
    )
    return _respond(body)
