"""
LLM client
Streams chat completions from an OpenAI-compatible endpoint through the openai SDK
"""

from typing import AsyncIterator, Dict, List, Optional, Protocol

import httpx
import openai

from core.exceptions import UpstreamError
from core.logger import get_logger
from core.settings import get_settings

logger = get_logger(__name__)


class TextStreamer(Protocol):
    """Anything that turns (system, messages) into a stream of text chunks"""

    def stream_text(
        self, system: str, messages: List[Dict[str, str]]
    ) -> AsyncIterator[str]: ...


class LLMClient:
    """Streaming chat-completions client

    Request: system prompt + ordered {role, content} messages.
    Response: the reply's text fragments in arrival order.
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str = "",
        max_tokens: int = 1024,
        temperature: float = 0.7,
        timeout_seconds: float = 60.0,
        max_retries: int = 2,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = openai.AsyncOpenAI(
            base_url=self.base_url,
            api_key=api_key,
            timeout=timeout_seconds,
            max_retries=max_retries,
            http_client=http_client,
        )

    def _messages(self, system: str, messages: List[Dict[str, str]]) -> List[Dict[str, str]]:
        return [{"role": "system", "content": system}] + [
            {"role": m["role"], "content": m["content"]} for m in messages
        ]

    async def stream_text(
        self, system: str, messages: List[Dict[str, str]]
    ) -> AsyncIterator[str]:
        """
        Stream the assistant reply as text chunks

        Raises:
            UpstreamError: on transport failure or an error response
        """
        try:
            stream = await self._client.chat.completions.create(
                model=self.model,
                messages=self._messages(system, messages),
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                stream=True,
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except openai.APIStatusError as e:
            logger.error(f"LLM request rejected: HTTP {e.status_code}")
            raise UpstreamError(
                f"LLM request failed with HTTP {e.status_code}: {e.message[:200]}"
            ) from e
        except openai.APIError as e:
            logger.error(f"LLM stream failed: {e}")
            raise UpstreamError(f"LLM request failed: {e}") from e


# Global client instance
_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get the configured LLM client"""
    global _llm_client
    if _llm_client is None:
        config = get_settings().get_llm_settings()
        _llm_client = LLMClient(
            base_url=config["base_url"],
            model=config["model"],
            api_key=config["api_key"],
            max_tokens=config["max_tokens"],
            temperature=config["temperature"],
            timeout_seconds=config["timeout_seconds"],
            max_retries=config["max_retries"],
        )
        logger.debug(f"LLM client initialized: {config['base_url']} ({config['model']})")
    return _llm_client
