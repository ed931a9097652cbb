"""Mask secret-shaped fields in arbitrary structured data before it is logged.

Every value that reaches the execution log passes through :func:`redact`.
Keys are matched case-insensitively, either exactly against a known set of
secret names or against a handful of substring patterns, so ``apiKey``,
``API_KEY``, ``x-auth-token`` and ``slackBotToken`` are all caught.
"""

import re
from typing import Any

REDACTED = "[REDACTED]"
TRUNCATED = "[TRUNCATED]"

_MAX_DEPTH = 10

_SENSITIVE_KEYS: frozenset[str] = frozenset({
    # api keys
    "apikey", "api_key", "key",
    # credentials
    "password", "passwd", "pwd", "secret", "token",
    "accesstoken", "access_token", "refreshtoken", "refresh_token",
    "privatekey", "private_key", "clientsecret", "client_secret",
    # database
    "databaseurl", "database_url", "connectionstring", "connection_string",
    # email
    "fromemail", "from_email",
    # authentication
    "authorization", "auth", "bearer", "cookie",
    # payment / personal
    "creditcard", "credit_card", "cardnumber", "card_number", "cvv", "ssn",
    "phonenumber", "phone_number", "socialsecurity", "social_security",
})

_SENSITIVE_PATTERNS = [
    re.compile(r"api[_-]?key", re.IGNORECASE),
    re.compile(r"token", re.IGNORECASE),
    re.compile(r"secret", re.IGNORECASE),
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"credential", re.IGNORECASE),
    re.compile(r"auth", re.IGNORECASE),
    re.compile(r"private[_-]?key", re.IGNORECASE),
    re.compile(r"connection[_-]?string", re.IGNORECASE),
    re.compile(r"database[_-]?url", re.IGNORECASE),
]


def is_sensitive_key(key: Any) -> bool:
    """Return True if *key* names a field whose value must never be logged."""
    if not isinstance(key, str):
        return False
    if key.lower() in _SENSITIVE_KEYS:
        return True
    return any(p.search(key) for p in _SENSITIVE_PATTERNS)


def redact(value: Any, _depth: int = 0) -> Any:
    """Return a copy of *value* with every secret-shaped field replaced by ``[REDACTED]``.

    Dicts, lists and tuples are walked recursively; every other value is
    returned unchanged. Anything nested deeper than the depth limit is
    replaced wholesale, so an unusually deep payload can never leak a secret
    past the walker.
    """
    if _depth > _MAX_DEPTH:
        return TRUNCATED
    if isinstance(value, dict):
        return {
            k: REDACTED if is_sensitive_key(k) else redact(v, _depth + 1)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(item, _depth + 1) for item in value]
    return value


def contains_sensitive_data(value: Any) -> bool:
    """True if any top-level key of *value* looks like a secret."""
    if not isinstance(value, dict):
        return False
    return any(is_sensitive_key(k) for k in value)
