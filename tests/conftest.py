import pytest

from join_date.services.hubspot.contacts_client import HubSpotAPIError


class FakeContacts:
    """In-memory stand-in for HubSpotContactsService."""

    def __init__(self, wrap_results: bool = False):
        self.contacts: dict[str, dict[str, str | None]] = {}
        self.wrap_results = wrap_results
        self.search_calls: list[dict] = []
        self.update_calls: list[tuple[str, dict[str, str]]] = []
        self.connectivity_checks = 0
        self.fail_search = False
        self.fail_update = False
        self.fail_connectivity = False
        self.closed = False

    def add_contact(self, email: str, contact_id: str, join_date: str | None = None) -> None:
        self.contacts[email] = {"id": contact_id, "join_date": join_date}

    def join_date_of(self, email: str) -> str | None:
        return self.contacts[email]["join_date"]

    @property
    def call_count(self) -> int:
        return len(self.search_calls) + len(self.update_calls) + self.connectivity_checks

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True

    async def search_contacts(self, email: str, properties: list[str], limit: int = 1) -> dict:
        self.search_calls.append({"email": email, "properties": properties, "limit": limit})
        if self.fail_search:
            raise HubSpotAPIError("HubSpot rate limit reached.", status_code=429)

        contact = self.contacts.get(email)
        results = []
        if contact:
            results.append(
                {"id": contact["id"], "properties": {"join_date": contact["join_date"]}}
            )

        if self.wrap_results:
            return {"body": {"total": len(results), "results": results}}
        return {"total": len(results), "results": results}

    async def update_contact(self, contact_id: str, properties: dict[str, str]) -> dict:
        self.update_calls.append((contact_id, properties))
        if self.fail_update:
            raise HubSpotAPIError("HubSpot error: conflict", status_code=409)

        for contact in self.contacts.values():
            if contact["id"] == contact_id:
                contact.update(properties)
        return {"id": contact_id, "properties": properties}

    async def check_connectivity(self) -> None:
        self.connectivity_checks += 1
        if self.fail_connectivity:
            raise HubSpotAPIError(
                "HubSpot authentication failed. Check the access token.", status_code=401
            )


@pytest.fixture
def fake_contacts():
    return FakeContacts()


@pytest.fixture
def wrapped_fake_contacts():
    return FakeContacts(wrap_results=True)


@pytest.fixture
def checkout_payload():
    def _build(
        email: str | None = "a@example.com",
        created: int = 1752979200,
        event_type: str = "checkout.session.completed",
        event_id: str = "evt_test_123",
    ) -> dict:
        return {
            "id": event_id,
            "object": "event",
            "type": event_type,
            "created": created,
            "data": {
                "object": {
                    "id": "cs_test_123",
                    "object": "checkout.session",
                    "customer_details": {"email": email, "name": "Test Member"},
                }
            },
        }

    return _build
