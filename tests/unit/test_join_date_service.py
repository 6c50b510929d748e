"""
Tests for the write-once join date assigner.
"""

import pytest

from join_date.models.domain.join_date_domain import JoinDateAction
from join_date.models.domain.stripe_domain import CheckoutEvent
from join_date.services.errors import (
    ContactNotFoundError,
    ContactSearchError,
    DateFormattingError,
    MissingEmailError,
    UpdateFailedError,
)
from join_date.services.join_date_service import JoinDateAssigner


@pytest.mark.asyncio
async def test_sets_join_date_when_empty(fake_contacts):
    fake_contacts.add_contact("a@example.com", "101")
    assigner = JoinDateAssigner(fake_contacts)

    result = await assigner.apply_join_date("a@example.com", 1752979200)

    assert result.action == JoinDateAction.UPDATED
    assert result.join_date == "2025-07-20"
    assert result.contact_id == "101"
    assert result.contact_email == "a@example.com"
    assert fake_contacts.update_calls == [("101", {"join_date": "2025-07-20"})]
    assert fake_contacts.join_date_of("a@example.com") == "2025-07-20"


@pytest.mark.asyncio
async def test_search_requests_only_join_date(fake_contacts):
    fake_contacts.add_contact("a@example.com", "101")

    await JoinDateAssigner(fake_contacts).apply_join_date("a@example.com", 1752979200)

    assert fake_contacts.search_calls == [
        {"email": "a@example.com", "properties": ["join_date"], "limit": 1}
    ]


@pytest.mark.asyncio
async def test_existing_join_date_is_never_overwritten(fake_contacts):
    fake_contacts.add_contact("a@example.com", "101", join_date="2025-07-19")
    assigner = JoinDateAssigner(fake_contacts)

    result = await assigner.apply_join_date("a@example.com", 1752979200)

    assert result.action == JoinDateAction.SKIPPED
    assert result.existing_join_date == "2025-07-19"
    assert result.contact_id == "101"
    assert result.join_date is None
    assert fake_contacts.update_calls == []
    assert fake_contacts.join_date_of("a@example.com") == "2025-07-19"


@pytest.mark.asyncio
@pytest.mark.parametrize("later", [1752979200, 1752979200 + 86400 * 30])
async def test_second_invocation_skips(fake_contacts, later):
    fake_contacts.add_contact("a@example.com", "101")
    assigner = JoinDateAssigner(fake_contacts)

    first = await assigner.apply_join_date("a@example.com", 1752979200)
    second = await assigner.apply_join_date("a@example.com", later)

    assert first.action == JoinDateAction.UPDATED
    assert second.action == JoinDateAction.SKIPPED
    assert second.existing_join_date == first.join_date
    assert len(fake_contacts.update_calls) == 1
    assert fake_contacts.join_date_of("a@example.com") == "2025-07-20"


@pytest.mark.asyncio
async def test_whitespace_join_date_is_not_overwritten(fake_contacts):
    fake_contacts.add_contact("a@example.com", "101", join_date=" ")

    result = await JoinDateAssigner(fake_contacts).apply_join_date("a@example.com", 1752979200)

    assert result.action == JoinDateAction.SKIPPED
    assert result.existing_join_date == " "
    assert fake_contacts.update_calls == []
    assert fake_contacts.join_date_of("a@example.com") == " "


@pytest.mark.asyncio
async def test_wrapped_search_response_is_handled(wrapped_fake_contacts):
    contacts = wrapped_fake_contacts
    contacts.add_contact("a@example.com", "101", join_date="2025-07-19")

    result = await JoinDateAssigner(contacts).apply_join_date("a@example.com", 1752979200)

    assert result.action == JoinDateAction.SKIPPED
    assert result.existing_join_date == "2025-07-19"


@pytest.mark.asyncio
async def test_unknown_contact_raises_not_found(fake_contacts):
    with pytest.raises(ContactNotFoundError) as exc:
        await JoinDateAssigner(fake_contacts).apply_join_date("nobody@example.com", 1752979200)

    assert exc.value.email == "nobody@example.com"
    assert "nobody@example.com" in str(exc.value)
    assert fake_contacts.update_calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("email", [None, "", "   "])
async def test_missing_email_makes_no_calls(fake_contacts, email):
    with pytest.raises(MissingEmailError):
        await JoinDateAssigner(fake_contacts).apply_join_date(email, 1752979200)

    assert fake_contacts.call_count == 0


@pytest.mark.asyncio
async def test_bad_timestamp_fails_before_lookup(fake_contacts):
    fake_contacts.add_contact("a@example.com", "101")

    with pytest.raises(DateFormattingError):
        await JoinDateAssigner(fake_contacts).apply_join_date("a@example.com", -5)

    assert fake_contacts.search_calls == []


@pytest.mark.asyncio
async def test_search_failure_is_wrapped(fake_contacts):
    fake_contacts.fail_search = True

    with pytest.raises(ContactSearchError) as exc:
        await JoinDateAssigner(fake_contacts).apply_join_date("a@example.com", 1752979200)

    assert "Contact search failed" in str(exc.value)
    assert exc.value.__cause__ is not None
    assert len(fake_contacts.search_calls) == 1


@pytest.mark.asyncio
async def test_unexpected_search_shape_raises(fake_contacts):
    async def odd_search(email, properties, limit=1):
        return {"data": []}

    fake_contacts.search_contacts = odd_search

    with pytest.raises(ContactSearchError) as exc:
        await JoinDateAssigner(fake_contacts).find_contact_by_email("a@example.com")

    assert exc.value.email == "a@example.com"


@pytest.mark.asyncio
async def test_update_failure_raises(fake_contacts):
    fake_contacts.add_contact("a@example.com", "101")
    fake_contacts.fail_update = True

    with pytest.raises(UpdateFailedError) as exc:
        await JoinDateAssigner(fake_contacts).apply_join_date("a@example.com", 1752979200)

    assert exc.value.contact_id == "101"
    assert len(fake_contacts.update_calls) == 1


@pytest.mark.asyncio
async def test_non_checkout_event_is_ignored(fake_contacts, checkout_payload):
    event = CheckoutEvent.from_payload(checkout_payload(event_type="invoice.paid"))

    result = await JoinDateAssigner(fake_contacts).process_event(event)

    assert result is None
    assert fake_contacts.call_count == 0


@pytest.mark.asyncio
async def test_checkout_event_is_processed(fake_contacts, checkout_payload):
    fake_contacts.add_contact("a@example.com", "101")
    event = CheckoutEvent.from_payload(checkout_payload())

    result = await JoinDateAssigner(fake_contacts).process_event(event)

    assert result.action == JoinDateAction.UPDATED
    assert result.join_date == "2025-07-20"
