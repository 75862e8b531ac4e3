"""
Chat API router.

A browser tab opens a session with /chat/init, then sends one message at a
time. While a reply is being generated further messages are rejected, so the
front-end keeps its input disabled until the response arrives.
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from typing import List, Optional

from landing_engine.agents.conversation_orchestrator import ConversationOrchestrator
from landing_engine.config import settings
from landing_engine.dependencies import get_orchestrator, limiter, load_session
from landing_engine.errors import SessionNotFoundError
from landing_engine.logging_config import logger
from landing_engine.models import ConversationMessage, SessionSnapshot

router = APIRouter()


class InitSessionRequest(BaseModel):
    """Request model for initializing a chat session"""
    session_id: Optional[str] = None


class InitSessionResponse(BaseModel):
    """Response model for session initialization"""
    success: bool
    session_id: str
    welcome_message: str
    session: SessionSnapshot


class ChatMessageRequest(BaseModel):
    """Request model for sending a chat message"""
    session_id: str
    message: str


class ChatMessageResponse(BaseModel):
    """Response model for one chat turn"""
    success: bool
    accepted: bool
    content_updated: bool = False
    error: Optional[str] = None
    messages: List[ConversationMessage] = []
    session: SessionSnapshot


@router.post("/chat/init", response_model=InitSessionResponse)
async def init_chat_session(
    data: Optional[InitSessionRequest] = None,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
):
    """
    Initialize a chat session.

    Creates the session with the assistant's welcome message and loads the
    list of saved landing pages for the sidebar.
    """
    requested_id = data.session_id if data else None
    if requested_id and requested_id in orchestrator.sessions:
        raise HTTPException(status_code=409, detail=f"Session {requested_id} already exists")

    state = orchestrator.create_session(requested_id)
    await orchestrator.lifecycle.refresh_records(state)

    logger.info("Chat session initialized", session_id=state.session_id)

    return InitSessionResponse(
        success=True,
        session_id=state.session_id,
        welcome_message=state.messages[0].text,
        session=state.snapshot()
    )


@router.post("/chat/send", response_model=ChatMessageResponse)
@limiter.limit(settings.CHAT_RATE_LIMIT)
async def send_chat_message(
    request: Request,
    data: ChatMessageRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
):
    """
    Send a message to the assistant and return the resulting turn.

    ``accepted`` is false when the message was empty or a reply was still
    being generated; the session is left untouched in that case.
    """
    try:
        result = await orchestrator.submit(data.session_id, data.message)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    state = orchestrator.get_session(data.session_id)
    return ChatMessageResponse(
        success=result.accepted and result.error is None,
        accepted=result.accepted,
        content_updated=result.content_updated,
        error=result.error,
        messages=result.messages,
        session=state.snapshot()
    )


@router.get("/chat/session/{session_id}", response_model=SessionSnapshot)
async def get_session_state(
    session_id: str,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
):
    """Get the full state of a chat session"""
    return load_session(orchestrator, session_id).snapshot()


@router.post("/chat/session/{session_id}/notifications/{notification_id}/dismiss")
async def dismiss_notification(
    session_id: str,
    notification_id: str,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
):
    """Dismiss a transient notification"""
    state = load_session(orchestrator, session_id)
    if not state.dismiss(notification_id):
        raise HTTPException(status_code=404, detail=f"Notification {notification_id} not found")
    return {"success": True}
