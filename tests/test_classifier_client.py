"""Tests for the classification service client."""

from __future__ import annotations

import httpx
import pytest

from phishshield.classifier import (
    ClassifierAPIError,
    ClassifierClient,
    ClassifierRejected,
    ClassifierUnavailable,
    MalformedResponse,
)
from phishshield.models import Verdict


def _client(handler) -> ClassifierClient:
    return ClassifierClient("http://classifier.test/", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_classify_posts_url_and_parses_verdict(classifier, service):
    service.default = {"risk": "Malicious", "score": 0.91, "reasons": ["brand_in_subdomain"], "domain": "x.test"}

    verdict = await classifier.classify("https://x.test/login")

    assert service.requests == [("POST", "/api/check-url", {"url": "https://x.test/login"})]
    assert verdict.risk == "malicious"
    assert verdict.score == pytest.approx(0.91)
    assert verdict.reasons == ["brand_in_subdomain"]
    assert verdict.to_dict()["domain"] == "x.test"
    await classifier.close()


@pytest.mark.asyncio
async def test_missing_risk_is_malformed(classifier, service):
    service.default = {"score": 0.95, "reasons": []}

    with pytest.raises(MalformedResponse, match="risk"):
        await classifier.classify("https://x.test/")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"risk": "safe"},
        {"risk": "safe", "score": "high"},
        {"risk": "safe", "score": True},
        {"risk": "", "score": 0.1},
        {"risk": "safe", "score": 0.1, "reasons": "none"},
        {"risk": "malicious", "score": 5.0},
        {"risk": "safe", "score": -0.1},
    ],
)
async def test_malformed_payloads_raise(classifier, service, payload):
    service.default = payload

    with pytest.raises(MalformedResponse):
        await classifier.classify("https://x.test/")


@pytest.mark.asyncio
async def test_error_field_is_rejection_even_with_error_status():
    client = _client(lambda request: httpx.Response(400, json={"error": "Invalid URL"}))

    with pytest.raises(ClassifierRejected, match="Invalid URL"):
        await client.check_url("https://x.test/")
    await client.close()


@pytest.mark.asyncio
async def test_http_error_status_raises_api_error():
    client = _client(lambda request: httpx.Response(503, text="maintenance"))

    with pytest.raises(ClassifierAPIError) as excinfo:
        await client.check_url("https://x.test/")
    assert excinfo.value.status_code == 503
    await client.close()


@pytest.mark.asyncio
async def test_non_object_body_is_malformed():
    client = _client(lambda request: httpx.Response(200, json=["safe"]))

    with pytest.raises(MalformedResponse):
        await client.check_url("https://x.test/")
    await client.close()


@pytest.mark.asyncio
async def test_transport_errors_become_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)

    with pytest.raises(ClassifierUnavailable):
        await client.classify("https://x.test/")
    assert await client.health() is False
    await client.close()


@pytest.mark.asyncio
async def test_health_reports_status(classifier, service):
    assert await classifier.health() is True
    service.health_status = 500
    assert await classifier.health() is False


@pytest.mark.asyncio
async def test_report_and_list_actions(classifier, service):
    assert (await classifier.report_url("https://x.test/"))["ok"] is True
    await classifier.add_to_list("https://x.test/", "Blacklist")

    paths = [path for _, path, _ in service.requests]
    assert paths == ["/api/report-url", "/api/blacklist"]


@pytest.mark.asyncio
async def test_list_action_failure_is_rejection(classifier, service):
    service.list_response = {"ok": False, "error": "already listed"}

    with pytest.raises(ClassifierRejected, match="already listed"):
        await classifier.add_to_list("https://x.test/", "whitelist")


@pytest.mark.asyncio
async def test_unknown_list_type_is_value_error(classifier):
    with pytest.raises(ValueError):
        await classifier.add_to_list("https://x.test/", "greylist")


def test_verdict_from_response_keeps_unknown_tier():
    verdict = Verdict.from_response("https://x.test/", {"risk": "Quarantined", "score": 0.3})

    assert verdict.risk == "quarantined"
    assert verdict.tier is None
    assert not verdict.is_malicious
