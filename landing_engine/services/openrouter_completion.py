"""
Completion gateway using the OpenRouter (OpenAI-compatible) chat completions API
"""
import time
from typing import Optional

import httpx

from landing_engine.errors import CompletionError
from landing_engine.logging_config import logger
from landing_engine.services.completion_gateway import CompletionGateway, History


class OpenRouterCompletionGateway(CompletionGateway):
    """Chat completion over plain HTTP"""

    provider = "openrouter"

    OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 2048,
        temperature: float = 0.7,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(model)
        self.api_key = api_key
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.transport = transport

    async def complete(self, system_prompt: str, history: History) -> str:
        api_key = self._require_key(self.api_key, "OPENROUTER_API_KEY")
        start_time = time.time()

        messages = [{"role": "system", "content": system_prompt}] + list(history)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.OPENROUTER_API_URL,
                    headers={
                        "Authorization": f"Bearer {api_key}",
                        "Content-Type": "application/json",
                        "X-Title": "Landing Engine"
                    },
                    json={
                        "model": self.model,
                        "messages": messages,
                        "max_tokens": self.max_tokens,
                        "temperature": self.temperature,
                        "stream": False
                    }
                )
        except httpx.HTTPError as e:
            logger.error("OpenRouter API unreachable", error=str(e))
            raise CompletionError(f"OpenRouter API unreachable: {e}") from e

        if response.status_code != 200:
            logger.error(f"OpenRouter API error: {response.status_code} - {response.text[:500]}")
            raise CompletionError(
                f"OpenRouter API error: {response.status_code}",
                status_code=response.status_code
            )

        try:
            result = response.json()
            text = result["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise CompletionError(f"OpenRouter returned an unexpected body: {e}") from e

        logger.info(
            "OpenRouter completion received",
            model=self.model,
            execution_time=time.time() - start_time
        )
        return text
