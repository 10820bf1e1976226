import httpx
import pytest

from obproxy.clients import (
    AuthorisationServerDirectory,
    AuthorisationServerNotFoundError,
    ResourceServerClient,
    SQLiteStore,
    TokenIssuerClient,
)
from obproxy.core.config import AppSettings, OpenBankingSettings, ValidationSettings
from obproxy.main import app
from obproxy.services import (
    AuthorisationService,
    ConsentKeys,
    ConsentResolver,
    ConsentStore,
    RequestProxy,
    SessionStore,
    ValidationContext,
)

pytestmark = pytest.mark.anyio

rs_host = "http://rs.example.com"


class StubAggregator:
    def __init__(self) -> None:
        self.filter_calls: list[tuple] = []
        self.status_error: Exception | None = None

    async def filter_consented(self, username, scope, session_id, candidates):
        self.filter_calls.append((username, scope, session_id, list(candidates)))
        return [candidate for candidate in candidates if candidate != "bbb"]

    async def get_consent_status(self, account_request_id, authorisation_server_id, session_id):
        if self.status_error is not None:
            raise self.status_error
        return "Authorised"


def _upstream(request: httpx.Request) -> httpx.Response:
    if request.url.host == "auth.example.com":
        if b"bad-code" in request.content:
            return httpx.Response(400, text="invalid_grant")
        return httpx.Response(
            200, json={"access_token": "user-token", "expires_in": 3600, "token_type": "bearer"}
        )
    if request.headers.get("authorization") != "Bearer user-token":
        return httpx.Response(403, json={"message": "forbidden"})
    return httpx.Response(200, json={"Data": {"Account": []}})


@pytest.fixture()
def services(tmp_path):
    from obproxy import dependencies

    record_store = SQLiteStore(str(tmp_path / "api.db"))
    consent_store = ConsentStore(record_store)
    sessions = SessionStore(record_store)
    directory = AuthorisationServerDirectory(
        OpenBankingSettings(
            authorisation_servers={
                "aaa": {
                    "resource_server_host": rs_host,
                    "fapi_financial_id": "fapi-aaa",
                    "auth_server_host": "http://auth.example.com",
                    "client_id": "id",
                    "client_secret": "secret",
                },
                "bbb": {"resource_server_host": rs_host, "fapi_financial_id": "fapi-bbb"},
            }
        )
    )
    transport = httpx.MockTransport(_upstream)
    proxy = RequestProxy(
        directory=directory,
        sessions=sessions,
        resolver=ConsentResolver(consent_store),
        resource_server=ResourceServerClient(transport=transport),
        validation=ValidationContext(ValidationSettings(validate_response=False)),
    )
    authorisation = AuthorisationService(
        consent_store=consent_store,
        directory=directory,
        token_issuer=TokenIssuerClient(transport=transport),
        redirect_url="http://localhost:9999/tpp/authorized",
    )
    aggregator = StubAggregator()

    app.dependency_overrides.update(
        {
            dependencies.get_session_store: lambda: sessions,
            dependencies.get_consent_store: lambda: consent_store,
            dependencies.get_authorisation_server_directory: lambda: directory,
            dependencies.get_request_proxy: lambda: proxy,
            dependencies.get_authorisation_service: lambda: authorisation,
            dependencies.get_consent_status_aggregator: lambda: aggregator,
        }
    )

    yield {"sessions": sessions, "consents": consent_store, "aggregator": aggregator}

    app.dependency_overrides.clear()


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    )


async def test_healthcheck() -> None:
    from obproxy import dependencies

    app.dependency_overrides[dependencies.get_app_settings] = lambda: AppSettings(
        environment="test", validation=ValidationSettings(validate_response=True)
    )
    try:
        async with _client() as client:
            response = await client.get("/health")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "environment": "test",
        "validateResponse": True,
    }


async def test_consent_flow_then_proxied_call(services) -> None:
    session_id = await services["sessions"].create("alice")
    headers = {"authorization": session_id}

    async with _client() as client:
        registered = await client.post(
            "/account-requests",
            json={
                "authorisationServerId": "aaa",
                "scope": "accounts",
                "accountRequestId": "ar-1",
                "permissions": ["ReadAccountsBasic"],
            },
            headers=headers,
        )
        granted = await client.post(
            "/tpp/authorized",
            json={
                "authorisationServerId": "aaa",
                "authorisationCode": "good-code",
                "scope": "accounts",
            },
            headers=headers,
        )
        proxied = await client.get(
            "/open-banking/v1.1/accounts",
            headers={**headers, "x-authorization-server-id": "aaa"},
        )

    assert registered.status_code == 201
    assert registered.json() == {"id": "alice:::aaa:::accounts"}
    assert granted.status_code == 204
    assert proxied.status_code == 200
    assert proxied.json() == {"Data": {"Account": []}}
    assert proxied.headers["access-control-allow-origin"] == "*"


async def test_proxy_relays_upstream_rejection(services) -> None:
    async with _client() as client:
        response = await client.get(
            "/open-banking/v1.1/accounts",
            headers={"authorization": "no-session", "x-authorization-server-id": "aaa"},
        )

    assert response.status_code == 403
    assert response.json() == {"message": "forbidden"}


async def test_token_exchange_failure_relays_status_and_message(services) -> None:
    session_id = await services["sessions"].create("alice")

    async with _client() as client:
        response = await client.post(
            "/tpp/authorized",
            json={"authorisationServerId": "aaa", "authorisationCode": "bad-code"},
            headers={"authorization": session_id},
        )

    assert response.status_code == 400
    assert response.json() == {"message": "invalid_grant"}


async def test_consent_endpoints_require_session(services) -> None:
    async with _client() as client:
        response = await client.get("/consents", params={"scope": "accounts"})

    assert response.status_code == 401


async def test_list_consented_servers_defaults_to_directory(services) -> None:
    session_id = await services["sessions"].create("alice")

    async with _client() as client:
        response = await client.get(
            "/consents",
            params={"scope": "accounts"},
            headers={"authorization": session_id},
        )

    assert response.status_code == 200
    assert response.json() == {"consented": ["aaa"]}
    assert services["aggregator"].filter_calls == [
        ("alice", "accounts", session_id, ["aaa", "bbb"])
    ]


async def test_account_request_status(services) -> None:
    async with _client() as client:
        ok = await client.get(
            "/account-requests/ar-1/status", headers={"x-authorization-server-id": "aaa"}
        )
        services["aggregator"].status_error = ValueError("no Data.Status")
        failed = await client.get(
            "/account-requests/ar-1/status", headers={"x-authorization-server-id": "aaa"}
        )

    assert ok.status_code == 200
    assert ok.json() == {"status": "Authorised"}
    assert failed.status_code == 502
    assert failed.json() == {"message": "no Data.Status"}


async def test_delete_consent(services) -> None:
    session_id = await services["sessions"].create("alice")
    keys = ConsentKeys("alice", "aaa", "accounts")
    await services["consents"].put(keys, {"accountRequestId": "ar-1"})

    async with _client() as client:
        first = await client.delete(
            "/consents/aaa", params={"scope": "accounts"}, headers={"authorization": session_id}
        )
        second = await client.delete(
            "/consents/aaa", params={"scope": "accounts"}, headers={"authorization": session_id}
        )

    assert first.status_code == 204
    assert second.status_code == 204
    assert await services["consents"].get(keys) is None


async def test_account_request_status_rejects_unknown_server(services) -> None:
    services["aggregator"].status_error = AuthorisationServerNotFoundError(
        "Unknown authorisation server id: None"
    )

    async with _client() as client:
        response = await client.get("/account-requests/ar-1/status")

    assert response.status_code == 400
    assert response.json() == {"message": "Unknown authorisation server id: None"}
