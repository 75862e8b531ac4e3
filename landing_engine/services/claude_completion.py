"""
Completion gateway using Anthropic Claude
"""
import time
from typing import Optional

import anthropic
from anthropic import AsyncAnthropic

from landing_engine.errors import CompletionError
from landing_engine.logging_config import logger
from landing_engine.services.completion_gateway import CompletionGateway, History


class ClaudeCompletionGateway(CompletionGateway):
    """Chat completion through the Anthropic Messages API"""

    provider = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 2048,
        temperature: float = 0.7,
        timeout: float = 60.0,
        client: Optional[AsyncAnthropic] = None
    ):
        super().__init__(model)
        self.api_key = api_key
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> AsyncAnthropic:
        if self._client is None:
            api_key = self._require_key(self.api_key, "ANTHROPIC_API_KEY")
            self._client = AsyncAnthropic(api_key=api_key, timeout=self.timeout)
            logger.info(f"Initialized ClaudeCompletionGateway with model: {self.model}")
        return self._client

    async def complete(self, system_prompt: str, history: History) -> str:
        client = self.client
        start_time = time.time()

        try:
            response = await client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system_prompt,
                messages=history
            )
        except anthropic.APIStatusError as e:
            logger.error("Anthropic API error", status_code=e.status_code, error=str(e))
            raise CompletionError(f"Anthropic API error: {e.status_code}", status_code=e.status_code) from e
        except anthropic.APIError as e:
            logger.error("Anthropic API unreachable", error=str(e))
            raise CompletionError(f"Anthropic API unreachable: {e}") from e

        text = "".join(block.text for block in response.content if hasattr(block, "text"))

        logger.info(
            "Claude completion received",
            model=self.model,
            execution_time=time.time() - start_time,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens
        )
        return text
