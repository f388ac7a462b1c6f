"""Tests for the cached OAuth token."""

from liftlog.services.local_store import ACCESS_TOKEN_KEY, TOKEN_EXPIRES_KEY, JsonFileStore, MemoryStore
from liftlog.services.token_store import TokenStore


def test_token_valid_until_expiry(tokens, store, clock):
    assert tokens.current() is None
    assert tokens.save("ya29.token", 3600) is True
    assert store.get(ACCESS_TOKEN_KEY) == "ya29.token"
    assert store.get(TOKEN_EXPIRES_KEY) == str(clock.now_ms + 3_600_000)
    assert tokens.current() == "ya29.token"
    assert tokens.is_signed_in()

    clock.now_ms += 3_600_000
    assert tokens.current() is None
    assert not tokens.is_signed_in()


def test_clear_signs_out(tokens):
    tokens.save("ya29.token", 3600)
    tokens.clear()
    assert tokens.current() is None
    assert tokens.expires_at() is None


def test_garbage_expiry_is_treated_as_signed_out(clock):
    store = MemoryStore({ACCESS_TOKEN_KEY: "tok", TOKEN_EXPIRES_KEY: "soon"})
    assert TokenStore(store, clock=clock).current() is None


def test_non_utf8_token_file_is_treated_as_signed_out(tmp_path, clock):
    store = JsonFileStore(tmp_path)
    (tmp_path / "google_access_token.json").write_bytes(b"\xff\xfe")
    (tmp_path / "google_token_expires.json").write_bytes(b"\xff\xfe")
    tokens = TokenStore(store, clock=clock)
    assert tokens.current() is None
    assert tokens.expires_at() is None
    assert not tokens.is_signed_in()
