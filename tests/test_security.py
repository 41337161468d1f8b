import re
from datetime import timedelta

from app.core.config import Settings
from app.core.security import (
    create_access_token,
    decode_access_token,
    generate_verification_token,
    hash_password,
    password_policy_violations,
    verify_password,
)


def test_password_hash_roundtrip():
    hashed = hash_password("Secret123!")
    assert hashed != "Secret123!"
    assert verify_password("Secret123!", hashed)
    assert not verify_password("secret123!", hashed)


def test_password_policy_accepts_strong_password():
    assert password_policy_violations("Secret123!") == []


def test_password_policy_lists_every_gap():
    problems = password_policy_violations("abc")
    assert "at least 8 characters" in problems
    assert "an uppercase letter" in problems
    assert "a digit" in problems
    assert "a special character" in problems
    assert "a lowercase letter" not in problems


def test_password_policy_is_configurable():
    relaxed = Settings(
        password_min_length=4,
        password_require_uppercase=False,
        password_require_digit=False,
        password_require_special=False,
    )
    assert password_policy_violations("abcd", settings=relaxed) == []


def test_access_token_carries_session_claims():
    token = create_access_token("user-1", "jane@x.com", "account-1")
    payload = decode_access_token(token)

    assert payload["sub"] == "user-1"
    assert payload["userId"] == "user-1"
    assert payload["email"] == "jane@x.com"
    assert payload["accountId"] == "account-1"


def test_expired_access_token_is_rejected():
    token = create_access_token("user-1", "jane@x.com", "account-1", expires_delta=timedelta(seconds=-5))
    assert decode_access_token(token) is None


def test_access_token_signed_with_other_secret_is_rejected():
    other = Settings(jwt_secret_key="another-secret")
    token = create_access_token("user-1", "jane@x.com", "account-1", settings=other)
    assert decode_access_token(token) is None


def test_garbage_access_token_is_rejected():
    assert decode_access_token("not.a.jwt") is None


def test_verification_tokens_are_random_fixed_length_hex():
    tokens = {generate_verification_token() for _ in range(50)}
    assert len(tokens) == 50
    assert all(re.fullmatch(r"[0-9a-f]{64}", t) for t in tokens)
