import logging
from typing import Dict, Optional, Protocol

import httpx

from mealbattle.app.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str: ...


class LLMProxyTextGenerator:
    """Text generator backed by an OpenAI-compatible chat-completions proxy."""

    def __init__(
        self,
        base_url: str,
        model_name: str,
        app_id: Optional[str] = None,
        app_key: Optional[str] = None,
        timeout: float = 60.0,
        max_tokens: int = 1500,
        temperature: float = 0.7,
    ):
        if not base_url:
            raise ValueError("LLM_BASE_URL must be set to generate text")
        self.base_url = base_url.rstrip("/")
        self.model_name = model_name
        self.app_id = app_id
        self.app_key = app_key
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "LLMProxyTextGenerator":
        settings = settings or get_settings()
        return cls(
            base_url=settings.llm_base_url or "",
            model_name=settings.llm_model_name,
            app_id=settings.llm_app_id,
            app_key=settings.llm_app_key,
            timeout=settings.llm_timeout_seconds,
            max_tokens=settings.llm_max_tokens,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.app_id and self.app_key:
            headers["X-App-Id"] = self.app_id
            headers["X-App-Key"] = self.app_key
        return headers

    async def generate(self, prompt: str) -> str:
        payload = {
            "model": self.model_name,
            "temperature": self.temperature,
            "messages": [
                {
                    "role": "system",
                    "content": "You are a nutrition and cooking assistant. Reply with JSON only, no commentary.",
                },
                {"role": "user", "content": prompt},
            ],
            "max_tokens": self.max_tokens,
            "stream": False,
        }
        timeout = httpx.Timeout(self.timeout, read=self.timeout, connect=10.0)
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.post(
                f"{self.base_url}/v1/chat/completions",
                json=payload,
                headers=self._headers(),
            )
        resp.raise_for_status()
        data = resp.json()

        if isinstance(data, dict) and "error" in data:
            error_info = data["error"] if isinstance(data["error"], dict) else {"message": str(data["error"])}
            error_type = error_info.get("type", "unknown_error")
            error_message = error_info.get("message", "Unknown error")
            logger.error("LLM proxy returned error: type=%s, message=%s", error_type, error_message[:500])
            raise ValueError(f"LLM proxy error ({error_type}): {error_message}")

        content = data.get("choices", [{}])[0].get("message", {}).get("content")
        if not content:
            raise ValueError("LLM response missing content")
        return content if isinstance(content, str) else str(content)


async def generate_or_error(generator: TextGenerator, prompt: str) -> str:
    """Call the generator, turning transport and proxy failures into an ``Error: ...`` sentinel."""
    try:
        return await generator.generate(prompt)
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Text generation failed: %s", exc)
        return f"Error: {exc}"
