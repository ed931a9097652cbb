"""Redaction of secret-shaped fields before logging."""

import pytest

from flowrun.core.redact import REDACTED, TRUNCATED, contains_sensitive_data, is_sensitive_key, redact


@pytest.mark.parametrize("key", [
    "apiKey", "API_KEY", "x-api-key", "password", "slackBotToken", "clientSecret",
    "Authorization", "databaseUrl", "connection_string", "fromEmail", "privateKey", "credentials",
])
def test_sensitive_keys(key):
    assert is_sensitive_key(key)


@pytest.mark.parametrize("key", ["message", "channel", "status", "endpoint", "name", 3, None])
def test_ordinary_keys(key):
    assert not is_sensitive_key(key)


def test_redact_nested_structures():
    payload = {
        "endpoint": "https://api.example.com",
        "headers": {"Authorization": "Bearer abc", "Accept": "application/json"},
        "items": [{"token": "t-1", "id": 1}, {"id": 2}],
    }
    assert redact(payload) == {
        "endpoint": "https://api.example.com",
        "headers": {"Authorization": REDACTED, "Accept": "application/json"},
        "items": [{"token": REDACTED, "id": 1}, {"id": 2}],
    }


def test_redact_does_not_mutate_input():
    payload = {"apiKey": "sk-123"}
    redact(payload)
    assert payload == {"apiKey": "sk-123"}


def test_redact_scalars_pass_through():
    assert redact("sk-looks-secret") == "sk-looks-secret"
    assert redact(None) is None
    assert redact(5) == 5


def test_redact_tuple_becomes_list():
    assert redact(({"secret": 1},)) == [{"secret": REDACTED}]


def test_redact_truncates_deep_nesting():
    deep = current = {}
    for _ in range(15):
        current["child"] = {}
        current = current["child"]
    current["password"] = "hunter2"

    result = redact(deep)
    node = result
    for _ in range(10):
        node = node["child"]
    assert node["child"] == TRUNCATED


def test_contains_sensitive_data():
    assert contains_sensitive_data({"apiKey": "x"})
    assert not contains_sensitive_data({"channel": "#ops"})
    assert not contains_sensitive_data(["apiKey"])
