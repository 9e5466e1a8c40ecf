"""Tests for the signed anti-forgery state cookie."""

import jwt

from oauth.state import (
    JWT_ALGORITHM,
    create_state_token,
    decode_state_token,
    verify_state,
)

SECRET = "state-signing-secret-at-least-32-bytes-long"


def test_state_token_round_trip():
    token = create_state_token("abc", SECRET)
    assert decode_state_token(token, SECRET) == "abc"


def test_verify_state_matches():
    token = create_state_token("abc", SECRET)
    assert verify_state(token, "abc", SECRET)


def test_verify_state_mismatch():
    token = create_state_token("abc", SECRET)
    assert not verify_state(token, "abd", SECRET)


def test_verify_state_requires_both_values():
    token = create_state_token("abc", SECRET)
    assert not verify_state(None, "abc", SECRET)
    assert not verify_state(token, "", SECRET)


def test_expired_state_token_is_rejected():
    token = create_state_token("abc", SECRET, expires_in=-10)
    assert decode_state_token(token, SECRET) is None
    assert not verify_state(token, "abc", SECRET)


def test_wrong_secret_is_rejected():
    token = create_state_token("abc", "a-completely-different-signing-secret")
    assert decode_state_token(token, SECRET) is None


def test_garbage_cookie_is_rejected():
    assert decode_state_token("not-a-jwt", SECRET) is None


def test_token_of_other_type_is_rejected():
    token = jwt.encode({"state": "abc", "type": "access", "exp": 9999999999}, SECRET, algorithm=JWT_ALGORITHM)
    assert decode_state_token(token, SECRET) is None
