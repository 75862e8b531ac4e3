"""
Shared request dependencies: the app-scoped orchestrator and the rate limiter
"""
from fastapi import HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from landing_engine.agents.conversation_orchestrator import ConversationOrchestrator
from landing_engine.agents.session_state import SessionState
from landing_engine.config import settings
from landing_engine.errors import SessionNotFoundError

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)


def get_orchestrator(request: Request) -> ConversationOrchestrator:
    return request.app.state.orchestrator


def load_session(orchestrator: ConversationOrchestrator, session_id: str) -> SessionState:
    """Fetch a session or answer 404"""
    try:
        return orchestrator.get_session(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
