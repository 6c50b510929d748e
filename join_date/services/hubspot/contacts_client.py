"""
HubSpot CRM Contacts API client.
Handles contact search by email, single-property updates and the
credential pre-flight check.
Low-level CRM client: no retries, redelivery belongs to the event source.
"""

from typing import Any

import httpx

from join_date.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

HUBSPOT_API_BASE_URL = "https://api.hubapi.com"
CONTACTS_PATH = "/crm/v3/objects/contacts"
CONTACT_PROPERTIES_PATH = "/crm/v3/properties/contacts"

REQUEST_TIMEOUT = 10  # seconds


class HubSpotAPIError(Exception):
    """Custom exception for HubSpot API errors."""

    def __init__(
        self,
        message: str,
        category: str | None = None,
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.status_code = status_code
        self.response_data = response_data or {}


class HubSpotContactsService:
    """
    Service for HubSpot contact operations.

    One instance per webhook invocation: build it from the provisioned
    access token, use it, and close it (or use it as an async context manager).
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = HUBSPOT_API_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._get_auth_headers(access_token),
            timeout=httpx.Timeout(timeout),
        )

    async def __aenter__(self) -> "HubSpotContactsService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _get_auth_headers(self, access_token: str) -> dict:
        return {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _request(self, method: str, path: str, operation: str, **kwargs) -> dict:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"HubSpot {operation} request error", error=str(e))
            raise HubSpotAPIError(f"HubSpot request failed: {e}") from e

        return self._handle_api_response(response, operation)

    def _handle_api_response(self, response: httpx.Response, operation: str) -> dict:
        """
        Handle and validate HubSpot API response.

        Args:
            response: HTTP response from HubSpot
            operation: Operation name for logging

        Returns:
            dict: Parsed response data

        Raises:
            HubSpotAPIError: If response contains errors
        """
        logger.debug(
            f"HubSpot {operation} response",
            status_code=response.status_code,
            response_size=len(response.content),
        )

        if response.is_success:
            try:
                return response.json() if response.content else {}
            except ValueError as e:
                logger.error(f"Failed to parse HubSpot {operation} response", error=str(e))
                raise HubSpotAPIError(f"Invalid response format: {e}") from e

        try:
            error_data = response.json() if response.content else {}
        except ValueError:
            logger.error(
                f"HubSpot {operation} failed with non-JSON response",
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            raise HubSpotAPIError(
                f"HubSpot API error (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from None

        category = error_data.get("category")
        error_message = error_data.get("message", "Unknown HubSpot API error")

        logger.error(
            f"HubSpot {operation} failed",
            status_code=response.status_code,
            category=category,
            error_message=error_message,
        )

        raise HubSpotAPIError(
            self._map_hubspot_error(response.status_code, error_message),
            category=category,
            status_code=response.status_code,
            response_data=error_data,
        )

    def _map_hubspot_error(self, status_code: int, error_message: str) -> str:
        """Map HubSpot status codes to operator-friendly messages."""
        error_mappings = {
            401: "HubSpot authentication failed. Check the access token.",
            403: "HubSpot access denied. The private app is missing contact scopes.",
            404: "HubSpot contact not found.",
            429: "HubSpot rate limit reached.",
        }

        return error_mappings.get(status_code, f"HubSpot error: {error_message}")

    async def search_contacts(
        self, email: str, properties: list[str], limit: int = 1
    ) -> dict[str, Any]:
        """
        Search contacts with an exact-match filter on email.

        Args:
            email: Email address to match (EQ operator)
            properties: Contact properties to return
            limit: Maximum number of results

        Returns:
            dict: Raw search response

        Raises:
            HubSpotAPIError: If the search fails
        """
        payload = {
            "filterGroups": [
                {"filters": [{"propertyName": "email", "operator": "EQ", "value": email}]}
            ],
            "properties": properties,
            "limit": limit,
        }

        logger.info("Searching for contact", email=email)
        return await self._request("POST", f"{CONTACTS_PATH}/search", "search", json=payload)

    async def update_contact(self, contact_id: str, properties: dict[str, str]) -> dict[str, Any]:
        """
        Patch the given properties of one contact.

        Raises:
            HubSpotAPIError: If the update fails
        """
        logger.info(
            "Updating contact properties", contact_id=contact_id, properties=sorted(properties)
        )
        return await self._request(
            "PATCH",
            f"{CONTACTS_PATH}/{contact_id}",
            "update",
            json={"properties": properties},
        )

    async def check_connectivity(self) -> None:
        """
        Confirm the access token can read contact properties.

        Raises:
            HubSpotAPIError: If HubSpot is unreachable or rejects the token
        """
        logger.info("Testing HubSpot API connectivity")
        await self._request(
            "GET", CONTACT_PROPERTIES_PATH, "connectivity", params={"archived": "false"}
        )
        logger.info("HubSpot API connectivity confirmed")
