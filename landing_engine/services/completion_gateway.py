"""
Completion gateway interface and provider selection.

A gateway takes the fixed system instruction plus the ordered, role-tagged
conversation and returns one completion string. Provider choice is a
configuration detail (COMPLETION_PROVIDER), never a code fork.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from landing_engine.config import Settings, settings
from landing_engine.errors import ConfigurationError

History = List[Dict[str, str]]


class CompletionGateway(ABC):
    """Opaque text-completion collaborator"""

    provider: str = "unknown"

    def __init__(self, model: str = ""):
        self.model = model

    @abstractmethod
    async def complete(self, system_prompt: str, history: History) -> str:
        """
        Return one completion for the conversation.

        Raises:
            ConfigurationError: the provider credential is missing
            CompletionError: transport failure or non-success status
        """

    def _require_key(self, api_key: str, name: str) -> str:
        if not api_key:
            raise ConfigurationError(f"{name} not configured")
        return api_key


def get_completion_gateway(config: Optional[Settings] = None) -> CompletionGateway:
    """Build the gateway selected by COMPLETION_PROVIDER"""
    config = config or settings
    provider = config.COMPLETION_PROVIDER.lower()

    if provider == "anthropic":
        from landing_engine.services.claude_completion import ClaudeCompletionGateway
        return ClaudeCompletionGateway(
            api_key=config.ANTHROPIC_API_KEY,
            model=config.CLAUDE_MODEL,
            max_tokens=config.MAX_TOKENS,
            temperature=config.TEMPERATURE,
            timeout=config.COMPLETION_TIMEOUT,
        )
    if provider == "openrouter":
        from landing_engine.services.openrouter_completion import OpenRouterCompletionGateway
        return OpenRouterCompletionGateway(
            api_key=config.OPENROUTER_API_KEY,
            model=config.OPENROUTER_MODEL,
            max_tokens=config.MAX_TOKENS,
            temperature=config.TEMPERATURE,
            timeout=config.COMPLETION_TIMEOUT,
        )
    if provider == "gemini":
        from landing_engine.services.gemini_completion import GeminiCompletionGateway
        return GeminiCompletionGateway(
            api_key=config.GEMINI_API_KEY,
            model=config.GEMINI_MODEL,
            max_tokens=config.MAX_TOKENS,
            temperature=config.TEMPERATURE,
        )
    if provider == "scripted":
        from landing_engine.services.scripted_completion import ScriptedCompletionGateway
        return ScriptedCompletionGateway(delay_seconds=config.SCRIPTED_DELAY_SECONDS)

    raise ConfigurationError(f"Unknown COMPLETION_PROVIDER '{config.COMPLETION_PROVIDER}'")
