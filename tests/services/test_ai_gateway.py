"""Tests for the Gemini gateway using httpx.MockTransport."""
import base64
import json
from types import SimpleNamespace

import httpx
import pytest

from bizvest.api.deps import get_ai_gateway
from bizvest.exceptions import AIServiceError
from bizvest.services.ai_gateway import AIGateway, AIGatewayConfig, Attachment, STRING


def _candidate(text: str) -> dict:
    return {
        "candidates": [{"content": {"parts": [{"text": text}]}}],
        "usageMetadata": {"totalTokenCount": 42},
    }


def _gateway(handler, api_key="test-key") -> AIGateway:
    config = AIGatewayConfig(
        base_url="https://ai.test/v1beta",
        api_key=api_key,
        model="gemini-test",
        timeout=5,
    )
    return AIGateway(config=config, transport=httpx.MockTransport(handler))


class TestGenerateText:
    @pytest.mark.asyncio
    async def test_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-goog-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_candidate("Halo"))

        gateway = _gateway(handler)
        text = await gateway.generate_text("Apa kabar?")
        await gateway.close()

        assert text == "Halo"
        assert seen["url"] == "https://ai.test/v1beta/models/gemini-test:generateContent"
        assert seen["key"] == "test-key"
        assert seen["body"]["contents"][0]["parts"] == [{"text": "Apa kabar?"}]
        assert seen["body"]["generationConfig"] == {"responseMimeType": "text/plain"}

    @pytest.mark.asyncio
    async def test_attachment_and_schema(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_candidate("Kopi, Teh"))

        gateway = _gateway(handler)
        await gateway.generate_text(
            "List products",
            response_mime_type="application/json",
            response_schema=STRING,
            attachment=Attachment(data=b"%PDF"),
        )

        parts = seen["body"]["contents"][0]["parts"]
        assert parts[0]["inlineData"] == {
            "mimeType": "application/pdf",
            "data": base64.b64encode(b"%PDF").decode("ascii"),
        }
        assert parts[1] == {"text": "List products"}
        assert seen["body"]["generationConfig"]["responseSchema"] == {"type": "STRING"}

    @pytest.mark.asyncio
    async def test_joins_text_parts(self):
        def handler(request):
            return httpx.Response(
                200,
                json={"candidates": [{"content": {"parts": [{"text": "a"}, {"text": "b"}]}}]},
            )

        assert await _gateway(handler).generate_text("x") == "ab"

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        def handler(request):  # pragma: no cover - never reached
            raise AssertionError("no request expected")

        with pytest.raises(AIServiceError):
            await _gateway(handler, api_key=None).generate_text("x")

    @pytest.mark.asyncio
    async def test_http_error(self):
        def handler(request):
            return httpx.Response(429, json={"error": {"message": "quota"}})

        with pytest.raises(AIServiceError) as exc_info:
            await _gateway(handler).generate_text("x")
        assert exc_info.value.status_code == 500
        assert "429" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(AIServiceError):
            await _gateway(handler).generate_text("x")

    @pytest.mark.asyncio
    async def test_no_candidates(self):
        def handler(request):
            return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

        with pytest.raises(AIServiceError):
            await _gateway(handler).generate_text("x")

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        def handler(request):
            return httpx.Response(200, text="<html>bad gateway</html>")

        with pytest.raises(AIServiceError):
            await _gateway(handler).generate_text("x")


class TestGenerateJson:
    @pytest.mark.asyncio
    async def test_decodes_answer(self):
        def handler(request):
            assert json.loads(request.content)["generationConfig"]["responseMimeType"] == "application/json"
            return httpx.Response(200, json=_candidate('[{"header": "H", "response": "R"}]'))

        result = await _gateway(handler).generate_json("x", {"type": "ARRAY"})
        assert result == [{"header": "H", "response": "R"}]

    @pytest.mark.asyncio
    async def test_unparseable_answer(self):
        def handler(request):
            return httpx.Response(200, json=_candidate("not json at all"))

        with pytest.raises(AIServiceError):
            await _gateway(handler).generate_json("x", {"type": "OBJECT"})


class TestGatewayDependency:
    def _request(self, **state):
        return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(**state)))

    def test_returns_lifespan_gateway(self):
        gateway = _gateway(lambda request: httpx.Response(200, json=_candidate("ok")))
        assert get_ai_gateway(self._request(ai_gateway=gateway)) is gateway

    def test_missing_gateway_raises(self):
        request = self._request()
        with pytest.raises(AIServiceError):
            get_ai_gateway(request)
        assert not hasattr(request.app.state, "ai_gateway")
