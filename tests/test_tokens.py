from datetime import timedelta

from app.core.tokens import generate_token, hash_token, sign_short_lived_token, verify_short_lived_token

SECRET = "test-secret"


def test_generate_token_returns_plain_and_hash():
    plain, hashed = generate_token()
    assert len(plain) == 20
    assert len(hashed) == 64
    assert plain != hashed
    assert hash_token(plain) == hashed


def test_generate_token_is_random():
    assert generate_token()[0] != generate_token()[0]


def test_short_lived_token_roundtrip():
    token = sign_short_lived_token({"id": 7, "email": "a@x.com"}, SECRET, timedelta(minutes=15))
    check = verify_short_lived_token(token, SECRET)
    assert check.ok
    assert check.claims["id"] == 7
    assert check.claims["email"] == "a@x.com"


def test_short_lived_token_expired():
    token = sign_short_lived_token({"id": 7}, SECRET, timedelta(seconds=-30))
    check = verify_short_lived_token(token, SECRET)
    assert not check.ok
    assert check.reason == "expired"


def test_short_lived_token_wrong_secret_or_garbage():
    token = sign_short_lived_token({"id": 7}, SECRET, timedelta(minutes=15))
    assert verify_short_lived_token(token, "other-secret").reason == "invalid"
    assert verify_short_lived_token("not-a-jwt", SECRET).reason == "invalid"
    assert verify_short_lived_token(None, SECRET).reason == "missing"
