from __future__ import annotations

from core.identity import owner_from_envelope, owner_from_query


def test_query_owner_id_wins():
    assert owner_from_query("alice", "legacy") == "alice"


def test_query_falls_back_to_legacy_user_id():
    assert owner_from_query(None, "legacy") == "legacy"
    assert owner_from_query("   ", "legacy") == "legacy"


def test_query_default_owner():
    assert owner_from_query() == "default_user"


def test_envelope_session_user():
    body = {
        "session": {"user": {"userId": "amzn1.ask.account.SESSION"}},
        "context": {"System": {"user": {"userId": "amzn1.ask.account.CONTEXT"}}},
    }
    assert owner_from_envelope(body) == "amzn1.ask.account.SESSION"


def test_envelope_context_user_when_no_session():
    body = {"context": {"System": {"user": {"userId": "amzn1.ask.account.CONTEXT"}}}}
    assert owner_from_envelope(body) == "amzn1.ask.account.CONTEXT"


def test_envelope_without_user_uses_default():
    assert owner_from_envelope({"request": {"type": "LaunchRequest"}}) == "default_user"
    assert owner_from_envelope({"session": {"user": None}}) == "default_user"
    assert owner_from_envelope({"session": "nonsense"}) == "default_user"
    assert owner_from_envelope(None) == "default_user"
    assert owner_from_envelope(["not", "a", "mapping"]) == "default_user"


def test_envelope_without_user_uses_query_fallback():
    assert owner_from_envelope({"request": {"type": "LaunchRequest"}}, "from-query") == "from-query"
    assert owner_from_envelope(None, "from-query") == "from-query"
    assert owner_from_envelope({}, "   ") == "default_user"


def test_envelope_user_wins_over_query_fallback():
    body = {"session": {"user": {"userId": "amzn1.ask.account.SESSION"}}}
    assert owner_from_envelope(body, "from-query") == "amzn1.ask.account.SESSION"


def test_envelope_ignores_non_string_ids():
    assert owner_from_envelope({"session": {"user": {"userId": 12345}}}) == "default_user"


def test_same_envelope_resolves_to_same_owner():
    body = {"session": {"user": {"userId": "stable"}}}
    assert owner_from_envelope(body) == owner_from_envelope(dict(body))
