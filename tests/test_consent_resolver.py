from __future__ import annotations

import pytest

from obproxy.clients import SQLiteStore
from obproxy.services.consent_resolver import ConsentResolver
from obproxy.services.consent_store import ConsentKeys, ConsentStore

keys = ConsentKeys("testUsername", "a123", "accounts")
permissions = ["ReadAccountsDetail", "ReadBalances"]


class FailingConsentStore:
    async def get(self, keys: ConsentKeys) -> dict:
        raise ConnectionError("store unavailable")


async def _seed(store: ConsentStore) -> None:
    await store.put(
        keys,
        {"accountRequestId": "ar-1", "permissions": permissions},
    )
    await store.put(
        keys,
        {
            "accountRequestId": "ar-1",
            "authorisationCode": "code",
            "token": {"access_token": "token-1", "expires_in": 3600, "token_type": "bearer"},
        },
    )


@pytest.mark.asyncio
async def test_resolves_access_token_and_permissions(record_store: SQLiteStore) -> None:
    store = ConsentStore(record_store)
    await _seed(store)
    resolver = ConsentResolver(store)

    credentials = await resolver.access_token_and_permissions(keys)

    assert credentials.access_token == "token-1"
    assert credentials.permissions == permissions


@pytest.mark.asyncio
async def test_resolves_access_token_and_account_request_id(
    record_store: SQLiteStore,
) -> None:
    store = ConsentStore(record_store)
    await _seed(store)
    resolver = ConsentResolver(store)

    assert await resolver.access_token(keys) == "token-1"
    assert await resolver.account_request_id(keys) == "ar-1"


@pytest.mark.asyncio
async def test_missing_consent_resolves_to_none(record_store: SQLiteStore) -> None:
    resolver = ConsentResolver(ConsentStore(record_store))

    credentials = await resolver.access_token_and_permissions(keys)

    assert credentials.access_token is None
    assert credentials.permissions is None
    assert await resolver.access_token(keys) is None
    assert await resolver.account_request_id(keys) is None


@pytest.mark.asyncio
async def test_consent_without_token_resolves_to_none(record_store: SQLiteStore) -> None:
    store = ConsentStore(record_store)
    await store.put(keys, {"accountRequestId": "ar-1", "permissions": permissions})
    resolver = ConsentResolver(store)

    credentials = await resolver.access_token_and_permissions(keys)

    assert credentials.access_token is None
    assert credentials.permissions is None
    assert await resolver.account_request_id(keys) == "ar-1"


@pytest.mark.asyncio
async def test_lookup_failure_never_raises() -> None:
    resolver = ConsentResolver(FailingConsentStore())

    credentials = await resolver.access_token_and_permissions(keys)

    assert (credentials.access_token, credentials.permissions) == (None, None)
    assert await resolver.access_token(keys) is None
    assert await resolver.account_request_id(keys) is None


@pytest.mark.asyncio
async def test_unknown_username_never_raises(record_store: SQLiteStore) -> None:
    resolver = ConsentResolver(ConsentStore(record_store))

    credentials = await resolver.access_token_and_permissions(
        ConsentKeys(None, "a123", "accounts")
    )

    assert credentials.access_token is None
