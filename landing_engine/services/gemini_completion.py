"""
Completion gateway using Google Gemini
"""
import time

import google.generativeai as genai

from landing_engine.errors import CompletionError
from landing_engine.logging_config import logger
from landing_engine.services.completion_gateway import CompletionGateway, History


def to_gemini_contents(history: History) -> list:
    """Gemini names the assistant role 'model'"""
    return [
        {
            "role": "model" if turn["role"] == "assistant" else "user",
            "parts": [turn["content"]]
        }
        for turn in history
    ]


class GeminiCompletionGateway(CompletionGateway):
    """Chat completion through the Gemini SDK"""

    provider = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 2048,
        temperature: float = 0.7
    ):
        super().__init__(model)
        self.api_key = api_key
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def complete(self, system_prompt: str, history: History) -> str:
        api_key = self._require_key(self.api_key, "GEMINI_API_KEY")
        start_time = time.time()

        genai.configure(api_key=api_key)
        model = genai.GenerativeModel(self.model, system_instruction=system_prompt)

        try:
            response = await model.generate_content_async(
                to_gemini_contents(history),
                generation_config={
                    "max_output_tokens": self.max_tokens,
                    "temperature": self.temperature
                }
            )
            text = response.text
        except Exception as e:
            # The SDK surfaces transport, status and blocked-response failures
            # through unrelated exception types.
            logger.error("Gemini API error", error=str(e))
            raise CompletionError(f"Gemini API error: {e}") from e

        logger.info(
            "Gemini completion received",
            model=self.model,
            execution_time=time.time() - start_time
        )
        return text
