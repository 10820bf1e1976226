from __future__ import annotations

import asyncio

import httpx
import pytest

from obproxy.core.config import ValidationSettings
from obproxy.services.validation import ResponseValidator, ValidationContext

audit_settings = ValidationSettings(
    validate_response=True,
    audit_queue_name="validation-reports",
    audit_endpoint_url="http://localhost:9324",
)


class RecordingAuditStream:
    def __init__(self) -> None:
        self.records: list[dict] = []

    async def send(self, record: dict) -> str:
        self.records.append(record)
        return f"message-{len(self.records)}"


def _exchange(body: bytes, content_type: str = "application/json"):
    request = httpx.Request(
        "GET",
        "http://rs.example.com/open-banking/v1.1/accounts",
        headers={"authorization": "Bearer secret", "x-fapi-interaction-id": "i-1"},
    )
    response = httpx.Response(
        200, content=body, headers={"content-type": content_type}, request=request
    )
    return request, response


@pytest.mark.asyncio
async def test_concurrent_first_use_builds_validator_once() -> None:
    builds = 0
    release = asyncio.Event()

    async def factory() -> ResponseValidator:
        nonlocal builds
        builds += 1
        await release.wait()
        return ResponseValidator()

    context = ValidationContext(audit_settings, validator_factory=factory)
    tasks = [asyncio.create_task(context.validator()) for _ in range(5)]
    await asyncio.sleep(0)
    release.set()
    validators = await asyncio.gather(*tasks)

    assert builds == 1
    assert all(validator is validators[0] for validator in validators)


@pytest.mark.asyncio
async def test_concurrent_first_use_connects_audit_stream_once() -> None:
    builds = 0
    release = asyncio.Event()

    async def factory(settings: ValidationSettings) -> RecordingAuditStream:
        nonlocal builds
        builds += 1
        await release.wait()
        return RecordingAuditStream()

    context = ValidationContext(audit_settings, audit_stream_factory=factory)
    tasks = [asyncio.create_task(context.audit_stream()) for _ in range(5)]
    await asyncio.sleep(0)
    release.set()
    streams = await asyncio.gather(*tasks)

    assert builds == 1
    assert all(stream is streams[0] for stream in streams)


@pytest.mark.asyncio
async def test_audit_stream_skipped_when_not_configured() -> None:
    async def factory(settings: ValidationSettings):  # pragma: no cover - must not run
        raise AssertionError("audit stream should not be built")

    context = ValidationContext(
        ValidationSettings(validate_response=True, audit_queue_name="only-topic"),
        audit_stream_factory=factory,
    )

    assert await context.audit_stream() is None


@pytest.mark.asyncio
async def test_failed_construction_is_retried_on_next_use() -> None:
    attempts = 0

    async def factory() -> ResponseValidator:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise RuntimeError("validator unavailable")
        return ResponseValidator()

    context = ValidationContext(audit_settings, validator_factory=factory)

    with pytest.raises(RuntimeError):
        await context.validator()
    assert isinstance(await context.validator(), ResponseValidator)
    assert attempts == 2


@pytest.mark.asyncio
async def test_validate_records_report_and_returns_body() -> None:
    stream = RecordingAuditStream()

    async def stream_factory(settings: ValidationSettings) -> RecordingAuditStream:
        return stream

    context = ValidationContext(audit_settings, audit_stream_factory=stream_factory)
    request, response = _exchange(b'{"Data": {"Account": []}}')
    metadata = {
        "interactionId": "i-1",
        "sessionId": "s-1",
        "permissions": ["ReadAccountsBasic"],
        "authorisationServerId": "a123",
    }

    body = await context.validate(request, response, metadata)

    assert body == {"Data": {"Account": []}}
    report = stream.records[0]
    assert report["interactionId"] == "i-1"
    assert report["authorisationServerId"] == "a123"
    assert report["response"]["statusCode"] == 200
    assert report["response"]["body"] == body
    assert "authorization" not in report["request"]["headers"]
    assert report["request"]["headers"]["x-fapi-interaction-id"] == "i-1"


@pytest.mark.asyncio
async def test_validator_returns_text_for_non_json_body() -> None:
    request, response = _exchange(b"plain text", content_type="text/plain")

    body = await ResponseValidator().validate(request, response, {})

    assert body == "plain text"
