"""
Conversation Orchestrator - drives turn-taking between the user and the
completion gateway and publishes extracted landing pages.

Each session moves idle -> awaiting_completion -> idle. A submission made
while a completion is in flight is rejected, which is the only concurrency
control a single-user, single-conversation session needs.
"""
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from landing_engine.agents.page_lifecycle import PageLifecycleController
from landing_engine.agents.session_state import SessionState
from landing_engine.errors import CompletionError, ConfigurationError, SessionNotFoundError
from landing_engine.logging_config import logger
from landing_engine.models import (
    ConversationMessage,
    NotificationLevel,
    Sender,
    SessionStatus,
    View,
)
from landing_engine.services.completion_gateway import CompletionGateway, History
from landing_engine.services.extraction import InvalidPayload, extract
from landing_engine.services.landing_system_prompt import (
    ERROR_MESSAGE,
    GENERATED_MESSAGE,
    LANDING_SYSTEM_PROMPT,
    WELCOME_MESSAGE,
)


@dataclass
class SubmitResult:
    """Outcome of one submission"""
    accepted: bool
    messages: List[ConversationMessage] = field(default_factory=list)
    content_updated: bool = False
    error: Optional[str] = None


class ConversationOrchestrator:
    """
    Owns the chat sessions and runs the conversation state machine.
    The completion provider is injected, so provider choice is configuration.
    """

    def __init__(
        self,
        completion: CompletionGateway,
        lifecycle: PageLifecycleController,
        system_prompt: str = LANDING_SYSTEM_PROMPT,
        max_history: int = 20
    ):
        self.completion = completion
        self.lifecycle = lifecycle
        self.system_prompt = system_prompt
        self.max_history = max_history
        self.sessions: Dict[str, SessionState] = {}
        logger.info(
            "ConversationOrchestrator initialized",
            provider=completion.provider,
            model=completion.model
        )

    def create_session(self, session_id: Optional[str] = None) -> SessionState:
        """Start a session with the assistant's welcome message"""
        session_id = session_id or uuid.uuid4().hex
        state = SessionState(session_id=session_id)
        state.append(ConversationMessage(
            text=WELCOME_MESSAGE,
            sender=Sender.ASSISTANT,
            in_history=False
        ))
        self.sessions[session_id] = state
        logger.info(f"Created new session: {session_id}")
        return state

    def get_session(self, session_id: str) -> SessionState:
        state = self.sessions.get(session_id)
        if state is None:
            raise SessionNotFoundError(session_id)
        return state

    def history_for(self, state: SessionState) -> History:
        """Role-tagged turns sent to the model, oldest first, starting on a user turn"""
        turns = [m.to_history() for m in state.messages if m.in_history]
        if self.max_history and len(turns) > self.max_history:
            turns = turns[-self.max_history:]
        while turns and turns[0]["role"] != Sender.USER.value:
            turns.pop(0)
        return turns

    async def submit(self, session_id: str, text: str) -> SubmitResult:
        """Append the user's turn, ask for a completion and apply the reply"""
        state = self.get_session(session_id)

        if not text or not text.strip():
            return SubmitResult(accepted=False, error="empty message")
        if state.awaiting_completion:
            logger.warning("Submission rejected while awaiting completion", session_id=session_id)
            return SubmitResult(accepted=False, error="a reply is already being generated")

        # Everything up to the first await runs atomically on the event loop,
        # so the status flip below is what blocks a concurrent second submit.
        user_message = state.append(ConversationMessage(text=text, sender=Sender.USER))
        state.status = SessionStatus.AWAITING_COMPLETION
        result = SubmitResult(accepted=True, messages=[user_message])

        try:
            try:
                raw = await self.completion.complete(self.system_prompt, self.history_for(state))
            except (CompletionError, ConfigurationError) as e:
                logger.error(
                    "Completion failed",
                    session_id=session_id,
                    provider=self.completion.provider,
                    error=str(e)
                )
                result.messages.append(state.append(ConversationMessage(
                    text=ERROR_MESSAGE,
                    sender=Sender.ASSISTANT,
                    in_history=False
                )))
                state.notify(NotificationLevel.ERROR, str(e))
                result.error = str(e)
                return result

            extraction = extract(raw)
            content = extraction.content

            if isinstance(extraction.payload, InvalidPayload):
                logger.warning(
                    "Reply shown as text, payload undecodable",
                    session_id=session_id,
                    reason=extraction.payload.reason
                )

            display_text = extraction.display_text
            if content is not None and not display_text:
                display_text = GENERATED_MESSAGE

            result.messages.append(state.append(ConversationMessage(
                text=display_text,
                sender=Sender.ASSISTANT
            )))

            if content is not None:
                state.view = View.PREVIEW
                await self.lifecycle.on_new_content_model(state, content)
                result.content_updated = True
        finally:
            state.status = SessionStatus.IDLE

        return result
