"""AI Gateway Service - Connection to the Gemini generateContent REST API.

One gateway is created in the application lifespan and stored on
``app.state.ai_gateway``; request handlers reach it through the
``get_ai_gateway`` dependency. Calls block the request: there are no
retries and no fallback providers. Any transport error, non-2xx answer or
unusable payload surfaces as ``AIServiceError``.
"""

import base64
import json
import logging
import time as _time
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel

from bizvest.config import settings
from bizvest.exceptions import AIServiceError

logger = logging.getLogger(__name__)


class AIGatewayConfig(BaseModel):
    """Configuration for the AI provider connection."""

    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    api_key: Optional[str] = None
    model: str = "gemini-2.5-flash"
    timeout: float = 120.0


class Attachment(BaseModel):
    """Binary document sent inline with a prompt."""

    mime_type: str = "application/pdf"
    data: bytes


def schema_object(properties: Dict[str, Any], required: Optional[List[str]] = None) -> Dict[str, Any]:
    """Build an OBJECT node of a Gemini response schema."""
    node: Dict[str, Any] = {"type": "OBJECT", "properties": properties}
    if required:
        node["required"] = required
    return node


def schema_array(items: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "ARRAY", "items": items}


STRING = {"type": "STRING"}
NUMBER = {"type": "NUMBER"}
BOOLEAN = {"type": "BOOLEAN"}


class AIGateway:
    """Gateway to the generative AI provider."""

    def __init__(
        self,
        config: Optional[AIGatewayConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or AIGatewayConfig(
            base_url=settings.GEMINI_BASE_URL,
            api_key=settings.GEMINI_API_KEY,
            model=settings.GEMINI_MODEL,
            timeout=settings.AI_TIMEOUT_SECONDS,
        )
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with auth headers."""
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self.config.api_key:
                headers["x-goog-api-key"] = self.config.api_key
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def _build_payload(
        self,
        prompt: str,
        response_mime_type: str,
        response_schema: Optional[Dict[str, Any]],
        attachment: Optional[Attachment],
    ) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = []
        if attachment is not None:
            parts.append({
                "inlineData": {
                    "mimeType": attachment.mime_type,
                    "data": base64.b64encode(attachment.data).decode("ascii"),
                }
            })
        parts.append({"text": prompt})

        generation_config: Dict[str, Any] = {"responseMimeType": response_mime_type}
        if response_schema is not None:
            generation_config["responseSchema"] = response_schema

        return {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": generation_config,
        }

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            feedback = data.get("promptFeedback", {})
            raise AIServiceError(f"no candidates returned {feedback}".strip())
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        if not text:
            raise AIServiceError("empty response from model")
        return text

    async def generate_text(
        self,
        prompt: str,
        response_mime_type: str = "text/plain",
        response_schema: Optional[Dict[str, Any]] = None,
        attachment: Optional[Attachment] = None,
        feature: str = "chat",
    ) -> str:
        """Run one generateContent call and return the concatenated text parts."""
        if not self.config.api_key:
            raise AIServiceError("GEMINI_API_KEY is not configured")

        payload = self._build_payload(prompt, response_mime_type, response_schema, attachment)
        model = self.config.model
        start = _time.time()
        try:
            client = await self.get_client()
            response = await client.post(f"/models/{model}:generateContent", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            duration_ms = int((_time.time() - start) * 1000)
            logger.error(
                f"AI request failed: model={model}, feature={feature}, "
                f"status={e.response.status_code}, {duration_ms}ms"
            )
            raise AIServiceError(f"provider returned HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            duration_ms = int((_time.time() - start) * 1000)
            logger.error(f"AI request error: model={model}, feature={feature}, {type(e).__name__}, {duration_ms}ms")
            raise AIServiceError(f"could not reach provider ({type(e).__name__})")
        except ValueError:
            raise AIServiceError("provider returned a non-JSON body")

        duration_ms = int((_time.time() - start) * 1000)
        usage = data.get("usageMetadata", {})
        logger.info(
            f"AI response: model={model}, feature={feature}, "
            f"tokens={usage.get('totalTokenCount')}, {duration_ms}ms"
        )
        return self._extract_text(data)

    async def generate_json(
        self,
        prompt: str,
        response_schema: Dict[str, Any],
        attachment: Optional[Attachment] = None,
        feature: str = "json",
    ) -> Any:
        """Run a structured-output call and decode the JSON answer."""
        text = await self.generate_text(
            prompt,
            response_mime_type="application/json",
            response_schema=response_schema,
            attachment=attachment,
            feature=feature,
        )
        try:
            return json.loads(text.strip())
        except json.JSONDecodeError as e:
            logger.warning(f"Unparseable AI JSON for feature={feature}: {e}")
            raise AIServiceError(f"failed to parse AI response: {e}")
