import httpx
import pytest

from mealbattle.app.services import llm_client


class FakeResponse:
    status_code = 200

    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        return None

    def json(self):
        return self._payload


def fake_client_returning(payload, calls):
    class FakeAsyncClient:
        def __init__(self, *args, **kwargs):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def post(self, url, json=None, headers=None):
            calls.append({"url": url, "json": json, "headers": headers})
            return FakeResponse(payload)

    return FakeAsyncClient


def make_generator():
    return llm_client.LLMProxyTextGenerator(
        base_url="http://llm.local/",
        model_name="meal-model",
        app_id="app",
        app_key="secret",
    )


@pytest.mark.asyncio
async def test_generate_returns_assistant_content(monkeypatch):
    calls = []
    payload = {"choices": [{"message": {"content": '{"title": "Soup"}'}}]}
    monkeypatch.setattr(llm_client.httpx, "AsyncClient", fake_client_returning(payload, calls))

    content = await make_generator().generate("make soup")

    assert content == '{"title": "Soup"}'
    assert calls[0]["url"] == "http://llm.local/v1/chat/completions"
    assert calls[0]["json"]["model"] == "meal-model"
    assert calls[0]["json"]["messages"][-1]["content"] == "make soup"
    assert calls[0]["headers"]["X-App-Key"] == "secret"


@pytest.mark.asyncio
async def test_proxy_error_payload_raises(monkeypatch):
    payload = {"error": {"type": "rate_limit", "message": "slow down"}}
    monkeypatch.setattr(llm_client.httpx, "AsyncClient", fake_client_returning(payload, []))

    with pytest.raises(ValueError, match="rate_limit"):
        await make_generator().generate("make soup")


@pytest.mark.asyncio
async def test_generate_or_error_turns_failures_into_sentinel(monkeypatch):
    class BrokenAsyncClient:
        def __init__(self, *args, **kwargs):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def post(self, *args, **kwargs):
            raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(llm_client.httpx, "AsyncClient", BrokenAsyncClient)

    text = await llm_client.generate_or_error(make_generator(), "make soup")

    assert text == "Error: connection refused"


def test_base_url_is_required():
    with pytest.raises(ValueError):
        llm_client.LLMProxyTextGenerator(base_url="", model_name="m")
