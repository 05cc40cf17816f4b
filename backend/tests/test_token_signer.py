from datetime import date, timedelta

import pytest

from banner_service.core.errors import StorageError
from banner_service.services.kv_store import MemoryKeyValueStore, SqlKeyValueStore
from banner_service.services.token_signer import SECRET_OPTION, TokenSigner

DAY = date(2030, 3, 14)


def test_token_is_64_hex_and_validates_same_day():
    signer = TokenSigner(MemoryKeyValueStore(), today=lambda: DAY)
    token = signer.generate(5, 2)
    assert len(token) == 64
    assert token == token.lower()
    int(token, 16)
    assert signer.validate(token, 5, 2)


def test_token_is_bound_to_ids():
    signer = TokenSigner(MemoryKeyValueStore(), today=lambda: DAY)
    token = signer.generate(5, 2)
    assert not signer.validate(token, 5, 3)
    assert not signer.validate(token, 6, 2)
    assert not signer.validate(token, 2, 5)


def test_token_expires_at_utc_midnight():
    today = [DAY]
    signer = TokenSigner(MemoryKeyValueStore(), today=lambda: today[0])
    token = signer.generate(1, 1)
    today[0] = DAY + timedelta(days=1)
    assert not signer.validate(token, 1, 1)


@pytest.mark.parametrize("token", ["", None, 12345, "abc"])
def test_garbage_tokens_are_rejected(token):
    signer = TokenSigner(MemoryKeyValueStore(), today=lambda: DAY)
    assert not signer.validate(token, 1, 1)


def test_secret_created_once_and_reused():
    store = MemoryKeyValueStore()
    first = TokenSigner(store, today=lambda: DAY)
    second = TokenSigner(store, today=lambda: DAY)
    token = first.generate(1, 2)
    secret = store.get(SECRET_OPTION)
    assert secret is not None and len(secret) == 64
    assert second.validate(token, 1, 2)
    assert store.get(SECRET_OPTION) == secret


def test_existing_secret_wins_over_concurrent_insert():
    store = MemoryKeyValueStore()
    store.add(SECRET_OPTION, "a" * 64)
    signer = TokenSigner(store, today=lambda: DAY)
    signer.generate(1, 1)
    assert store.get(SECRET_OPTION) == "a" * 64


def test_rotation_invalidates_outstanding_tokens():
    store = MemoryKeyValueStore()
    signer = TokenSigner(store, today=lambda: DAY)
    token = signer.generate(3, 4)
    signer.rotate_secret()
    assert not signer.validate(token, 3, 4)
    assert signer.validate(signer.generate(3, 4), 3, 4)


def test_unpersistable_secret_raises_storage_error():
    class BlackHole(MemoryKeyValueStore):
        def add(self, key, value):
            return True

        def get(self, key):
            return None

    with pytest.raises(StorageError):
        TokenSigner(BlackHole(), today=lambda: DAY).generate(1, 1)


def test_secret_persists_in_options_table(db):
    signer = TokenSigner(SqlKeyValueStore(db), today=lambda: DAY)
    token = signer.generate(8, 9)
    assert TokenSigner(SqlKeyValueStore(db), today=lambda: DAY).validate(token, 8, 9)


@pytest.mark.parametrize("token", ["é" * 64, "ÿ" * 32, "\ud800"])
def test_non_ascii_tokens_are_rejected_not_raised(token):
    signer = TokenSigner(MemoryKeyValueStore(), today=lambda: DAY)
    assert signer.validate(token, 1, 1) is False
