"""Unit tests for webhook signature verification."""

from __future__ import annotations

import base64
import hashlib
import hmac

import pytest

from modules.webhooks.signature import compute_signature, verify_signature

pytestmark = pytest.mark.unit

SECRET = "shpss_secret"
BODY = b'{"id": 5551234567, "name": "#1001"}'


def test_matches_reference_hmac():
    expected = base64.b64encode(
        hmac.new(SECRET.encode(), BODY, hashlib.sha256).digest()
    ).decode()
    assert compute_signature(BODY, SECRET) == expected


def test_valid_signature_verifies():
    assert verify_signature(BODY, compute_signature(BODY, SECRET), SECRET) is True


def test_surrounding_whitespace_is_ignored():
    signature = f"  {compute_signature(BODY, SECRET)}\n"
    assert verify_signature(BODY, signature, SECRET) is True


def test_any_body_change_fails():
    signature = compute_signature(BODY, SECRET)
    tampered = BODY.replace(b"1001", b"1002")
    assert verify_signature(tampered, signature, SECRET) is False


def test_reserialised_body_fails():
    signature = compute_signature(BODY, SECRET)
    assert verify_signature(b'{"id":5551234567,"name":"#1001"}', signature, SECRET) is False


def test_wrong_secret_fails():
    signature = compute_signature(BODY, "another-secret")
    assert verify_signature(BODY, signature, SECRET) is False


@pytest.mark.parametrize("received", ["", None, "not-base64"])
def test_missing_or_garbage_signature_fails(received):
    assert verify_signature(BODY, received, SECRET) is False


def test_empty_secret_never_verifies():
    signature = compute_signature(BODY, "")
    assert verify_signature(BODY, signature, "") is False
