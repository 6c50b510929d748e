# join_date/models/domain/join_date_domain.py
"""
Join Date Domain Models
Contact records, search response shapes and processing outcomes
used by the join date service.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from join_date.services.errors import ContactSearchError

JOIN_DATE_PROPERTY = "join_date"


class ContactRecord(BaseModel):
    """Partially observed HubSpot contact: only the fields the write-once check needs."""

    model_config = ConfigDict(frozen=True)

    id: str
    join_date: str | None = None

    @classmethod
    def from_hubspot(cls, hit: dict[str, Any]) -> "ContactRecord":
        properties = hit.get("properties") or {}
        return cls(id=str(hit["id"]), join_date=properties.get(JOIN_DATE_PROPERTY))

    def has_join_date(self) -> bool:
        """Write-once guard: any non-empty value, whitespace included, counts as set."""
        return bool(self.join_date)


class FlatSearchResponse(BaseModel):
    """Search response with the result list at the top level."""

    results: list[dict[str, Any]]


class WrappedSearchResponse(BaseModel):
    """Search response with the result list nested under ``body``."""

    body: FlatSearchResponse


SearchResponse = FlatSearchResponse | WrappedSearchResponse


def parse_search_response(data: Any) -> SearchResponse:
    """
    Classify a raw search payload as one of the two known shapes.

    A top-level ``results`` list wins over a ``body`` wrapper.

    Raises:
        ContactSearchError: If the payload matches neither shape
    """
    if not isinstance(data, dict):
        raise ContactSearchError(f"Unexpected search response type: {type(data).__name__}")

    try:
        if "results" in data:
            return FlatSearchResponse.model_validate(data)
        if "body" in data:
            return WrappedSearchResponse.model_validate(data)
    except ValidationError as e:
        raise ContactSearchError(f"Unexpected search response shape: {e}") from e

    raise ContactSearchError(f"Unexpected search response shape: keys={sorted(data)}")


def normalize_search_response(data: Any) -> list[dict[str, Any]]:
    """Return the result list regardless of which shape the CRM replied with."""
    response = parse_search_response(data)
    if isinstance(response, WrappedSearchResponse):
        return response.body.results
    return response.results


class JoinDateAction(str, Enum):
    UPDATED = "updated"
    SKIPPED = "skipped"


class JoinDateResult(BaseModel):
    """Outcome of one successful join date attempt."""

    model_config = ConfigDict(frozen=True)

    action: JoinDateAction
    message: str
    contact_id: str
    join_date: str | None = None
    existing_join_date: str | None = None
    contact_email: str | None = None

    @classmethod
    def updated(cls, contact_id: str, join_date: str, email: str) -> "JoinDateResult":
        return cls(
            action=JoinDateAction.UPDATED,
            message="Join date successfully set",
            contact_id=contact_id,
            join_date=join_date,
            contact_email=email,
        )

    @classmethod
    def skipped(cls, contact_id: str, existing_join_date: str) -> "JoinDateResult":
        return cls(
            action=JoinDateAction.SKIPPED,
            message="Join date already exists",
            contact_id=contact_id,
            existing_join_date=existing_join_date,
        )
