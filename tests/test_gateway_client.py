import json

import httpx
import pytest

from clinicflow.engines.gateway_client import (
    GatewayClient, GatewayConfig, GatewayConfigurationError, GatewayRequestError, GatewayUnavailable
)

CONFIG = GatewayConfig(api_key="secret", url="https://gateway.test/v1/generate")


def client_for(handler, config=CONFIG):
    sleeps = []
    client = GatewayClient(config, http_client=httpx.Client(transport=httpx.MockTransport(handler)), sleep=sleeps.append)
    return client, sleeps


def test_posts_prompt_with_key_query_param():
    seen = {}

    def handler(request):
        seen["key"] = request.url.params["key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"candidates": [{"content": "ok"}]})

    client, _ = client_for(handler)
    assert client.call("hello") == "ok"
    assert seen == {"key": "secret", "body": {"prompt": "hello"}}


@pytest.mark.parametrize("config", [
    GatewayConfig(api_key="", url="https://gateway.test"),
    GatewayConfig(api_key="secret", url=""),
])
def test_missing_configuration_fails_before_any_request(config):
    calls = []
    client, sleeps = client_for(lambda r: calls.append(r) or httpx.Response(200), config)
    with pytest.raises(GatewayConfigurationError):
        client.call("hello")
    assert calls == [] and sleeps == []


def test_configuration_error_is_a_gateway_unavailable():
    assert issubclass(GatewayConfigurationError, GatewayUnavailable)
    assert issubclass(GatewayRequestError, GatewayUnavailable)


def test_fails_once_then_succeeds_with_one_retry():
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json={"output": [{"content": "recovered"}]})

    client, sleeps = client_for(handler)
    assert client.call("hello", retries=1) == "recovered"
    assert len(attempts) == 2
    assert sleeps == [1.0]


def test_exhausted_retries_raise_with_linear_backoff():
    attempts = []

    def handler(request):
        attempts.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    client, sleeps = client_for(handler)
    with pytest.raises(GatewayRequestError) as info:
        client.call("hello", retries=3)
    assert len(attempts) == 4
    assert sleeps == [1.0, 2.0, 3.0]
    assert isinstance(info.value.__cause__, httpx.ReadTimeout)


def test_zero_retries_makes_a_single_attempt():
    attempts = []

    def handler(request):
        attempts.append(request)
        return httpx.Response(500)

    client, sleeps = client_for(handler)
    with pytest.raises(GatewayUnavailable):
        client.call("hello", retries=0)
    assert len(attempts) == 1 and sleeps == []


def test_timeout_is_applied_per_attempt_in_seconds():
    seen = []

    def handler(request):
        seen.append(request.extensions["timeout"])
        return httpx.Response(200, text="plain")

    client, _ = client_for(handler)
    client.call("hello", timeout_ms=2500)
    assert seen[0]["read"] == 2.5


def test_non_json_body_is_returned_as_raw_text():
    client, _ = client_for(lambda r: httpx.Response(200, text="just prose"))
    assert client.call("hello") == "just prose"


def test_empty_body_yields_empty_string():
    client, _ = client_for(lambda r: httpx.Response(200, content=b""))
    assert client.call("hello") == ""


def test_empty_json_object_is_returned_serialized():
    client, _ = client_for(lambda r: httpx.Response(200, json={}))
    assert client.call("hello") == "{}"


def test_config_from_settings_reads_gateway_fields():
    class FakeSettings:
        GEMINI_API_KEY = "k"
        GEMINI_API_URL = "https://g"
        GEMINI_TIMEOUT_MS = 9000
        GEMINI_RETRIES = 2

    config = GatewayConfig.from_settings(FakeSettings)
    assert config.is_configured
    assert (config.timeout_ms, config.retries) == (9000, 2)
