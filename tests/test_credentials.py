"""Integration encryption, encrypted store and credential broker."""

import pytest

from flowrun.credentials.broker import CredentialBroker, map_credentials
from flowrun.credentials.encryption import IntegrationEncryption, generate_key
from flowrun.exceptions import CredentialError, CredentialNotFound
from flowrun.types import IntegrationType

USER_A = "user-alpha-001"
USER_B = "user-beta-002"


# ── Encryption ───────────────────────────────────────────────────────────────


def test_encrypt_decrypt_roundtrip(encryption):
    token = encryption.encrypt("hello")
    assert encryption.decrypt(token) == "hello"


def test_ciphertext_format(encryption):
    iv, tag, ciphertext = encryption.encrypt("hello").split(":")
    assert len(iv) == 32
    assert len(tag) == 32
    assert len(ciphertext) == len("hello") * 2


def test_fresh_iv_per_encryption(encryption):
    assert encryption.encrypt("same") != encryption.encrypt("same")


def test_tampered_ciphertext_rejected(encryption):
    iv, tag, ciphertext = encryption.encrypt("hello").split(":")
    flipped = format(int(ciphertext[:2], 16) ^ 0x01, "02x") + ciphertext[2:]
    with pytest.raises(CredentialError):
        encryption.decrypt(f"{iv}:{tag}:{flipped}")


def test_wrong_key_rejected(encryption):
    token = encryption.encrypt("hello")
    with pytest.raises(CredentialError):
        IntegrationEncryption(key=generate_key()).decrypt(token)


@pytest.mark.parametrize("token", ["", "abc", "a:b", "zz:zz:zz", "00:00:00", "a:b:c:d"])
def test_malformed_tokens_rejected(encryption, token):
    with pytest.raises(CredentialError):
        encryption.decrypt(token)


@pytest.mark.parametrize("key", ["bad-key", "ab" * 16, "zz" * 32])
def test_invalid_key_raises(key):
    with pytest.raises(CredentialError):
        IntegrationEncryption(key=key)


def test_missing_key_uses_ephemeral_key(caplog):
    enc = IntegrationEncryption()
    assert enc.decrypt(enc.encrypt("x")) == "x"
    assert "ephemeral" in caplog.text


def test_generate_key_is_64_hex():
    key = generate_key()
    assert len(key) == 64
    int(key, 16)
    IntegrationEncryption(key=key)


def test_same_key_interoperates():
    key = generate_key()
    a = IntegrationEncryption(key=key)
    b = IntegrationEncryption(key=key)
    assert b.decrypt(a.encrypt("shared")) == "shared"


# ── Store ────────────────────────────────────────────────────────────────────


def _slack(store, user_id=USER_A, token="xoxb-secret"):
    return store.create(
        user_id=user_id,
        name="team slack",
        integration_type=IntegrationType.SLACK,
        config={"apiKey": token},
    )


def test_create_returns_metadata_only(store):
    record = _slack(store)
    assert record.encrypted_config == ""
    assert record.type == IntegrationType.SLACK


def test_get_decrypts_for_owner(store):
    record = _slack(store)
    fetched, config = store.get(record.id, USER_A)
    assert config == {"apiKey": "xoxb-secret"}
    assert fetched.encrypted_config == ""


def test_user_isolation(store):
    record = _slack(store)
    with pytest.raises(CredentialNotFound):
        store.get(record.id, USER_B)
    with pytest.raises(CredentialNotFound):
        store.delete(record.id, USER_B)


def test_list_filters_by_user_and_type(store):
    _slack(store)
    _slack(store, user_id=USER_B)
    store.create(user_id=USER_A, name="db", integration_type=IntegrationType.DATABASE, config={"url": "postgres://x"})
    assert len(store.list(USER_A)) == 2
    assert [r.type for r in store.list(USER_A, IntegrationType.DATABASE)] == [IntegrationType.DATABASE]
    assert all(r.encrypted_config == "" for r in store.list(USER_A))


def test_update_reencrypts(store):
    record = _slack(store)
    updated = store.update(record.id, USER_A, name="renamed", config={"apiKey": "xoxb-new"})
    assert updated.name == "renamed"
    assert updated.updated_at >= record.updated_at
    _, config = store.get(record.id, USER_A)
    assert config == {"apiKey": "xoxb-new"}


def test_delete_removes_integration(store):
    record = _slack(store)
    assert store.delete(record.id, USER_A) is True
    assert store.get_by_id(record.id) is None


def test_create_rejects_non_dict_config(store):
    with pytest.raises(CredentialError):
        store.create(user_id=USER_A, name="x", integration_type=IntegrationType.SLACK, config="nope")


def test_undecryptable_config_yields_empty(store):
    record = _slack(store)
    store._store[record.id] = store._store[record.id].model_copy(update={"encrypted_config": "00:11:22"})
    _, config = store.get(record.id, USER_A)
    assert config == {}


# ── Broker ───────────────────────────────────────────────────────────────────


@pytest.mark.parametrize("integration_type,config,expected", [
    (IntegrationType.RESEND, {"apiKey": "re_1", "fromEmail": "a@b.c"},
     {"RESEND_API_KEY": "re_1", "RESEND_FROM_EMAIL": "a@b.c"}),
    (IntegrationType.LINEAR, {"apiKey": "lin_1", "teamId": "T1"}, {"LINEAR_API_KEY": "lin_1", "LINEAR_TEAM_ID": "T1"}),
    (IntegrationType.SLACK, {"apiKey": "xoxb"}, {"SLACK_API_KEY": "xoxb"}),
    (IntegrationType.DATABASE, {"url": "postgres://db"}, {"DATABASE_URL": "postgres://db"}),
    (IntegrationType.AI_GATEWAY, {"apiKey": "gw", "openaiApiKey": "sk"}, {"AI_GATEWAY_API_KEY": "gw", "OPENAI_API_KEY": "sk"}),
])
def test_map_credentials(integration_type, config, expected):
    assert map_credentials(integration_type, config) == expected


def test_map_credentials_skips_empty_fields():
    assert map_credentials(IntegrationType.RESEND, {"apiKey": "re_1", "fromEmail": ""}) == {"RESEND_API_KEY": "re_1"}


@pytest.mark.asyncio
async def test_broker_resolves_integration(store, broker):
    record = _slack(store)
    assert await broker.get_credentials(record.id) == {"SLACK_API_KEY": "xoxb-secret"}


@pytest.mark.asyncio
async def test_broker_unknown_or_empty_id(broker):
    assert await broker.get_credentials("does-not-exist") == {}
    assert await broker.get_credentials(None) == {}
    assert await broker.get_credentials("") == {}


@pytest.mark.asyncio
async def test_broker_lookup_hook_never_sees_secrets(store):
    seen = []
    broker = CredentialBroker(store, on_lookup=lambda iid, found: seen.append((iid, found)))
    record = _slack(store)
    await broker.get_credentials(record.id)
    await broker.get_credentials("missing")
    assert seen == [(record.id, True), ("missing", False)]
