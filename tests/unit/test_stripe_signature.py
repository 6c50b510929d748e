import pytest

from join_date.security.stripe_signature import (
    compute_signature,
    parse_signature_header,
    verify_stripe_signature,
)
from join_date.services.errors import InvalidSignatureError

SECRET = "whsec_test_secret"
BODY = b'{"id":"evt_1","type":"checkout.session.completed"}'
NOW = 1752979200


def _header(timestamp: int = NOW, secret: str = SECRET, body: bytes = BODY) -> str:
    return f"t={timestamp},v1={compute_signature(secret, timestamp, body)}"


def test_valid_signature_passes():
    verify_stripe_signature(BODY, _header(), SECRET, now=NOW)


def test_any_matching_v1_signature_passes():
    header = f"t={NOW},v1=deadbeef,v1={compute_signature(SECRET, NOW, BODY)},v0=ignored"
    verify_stripe_signature(BODY, header, SECRET, now=NOW)


def test_tampered_body_fails():
    with pytest.raises(InvalidSignatureError):
        verify_stripe_signature(b"{}", _header(), SECRET, now=NOW)


def test_wrong_secret_fails():
    with pytest.raises(InvalidSignatureError):
        verify_stripe_signature(BODY, _header(secret="whsec_other"), SECRET, now=NOW)


def test_stale_timestamp_fails():
    with pytest.raises(InvalidSignatureError) as exc:
        verify_stripe_signature(BODY, _header(), SECRET, tolerance=300, now=NOW + 301)

    assert "tolerance" in str(exc.value)


def test_zero_tolerance_skips_age_check():
    verify_stripe_signature(BODY, _header(), SECRET, tolerance=0, now=NOW + 86400)


@pytest.mark.parametrize("header", [None, "", "v1=abc", "t=now,v1=abc", "t=123"])
def test_malformed_headers_fail(header):
    with pytest.raises(InvalidSignatureError):
        parse_signature_header(header)
