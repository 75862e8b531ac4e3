"""
Saved landing pages router: list, open, start over, customize and delete
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, ValidationError
from typing import Any, Dict, List, Optional

from landing_engine.agents.conversation_orchestrator import ConversationOrchestrator
from landing_engine.dependencies import get_orchestrator, load_session
from landing_engine.errors import NoContentError, RecordNotFoundError
from landing_engine.logging_config import logger
from landing_engine.models import PersistedRecord, SessionSnapshot

router = APIRouter()


class PagesResponse(BaseModel):
    """Response model for the saved pages list"""
    success: bool
    current_record_id: Optional[str] = None
    records: List[PersistedRecord]


class SessionRequest(BaseModel):
    session_id: str


class SelectPageRequest(BaseModel):
    session_id: str
    record_id: str


class EditContentRequest(BaseModel):
    """Partial content changes, camelCase or snake_case field names"""
    session_id: str
    changes: Dict[str, Any] = Field(default_factory=dict)


class EditFeatureRequest(BaseModel):
    session_id: str
    title: Optional[str] = None
    description: Optional[str] = None


class PageActionResponse(BaseModel):
    success: bool
    saved: bool = False
    session: SessionSnapshot


@router.get("/pages", response_model=PagesResponse)
async def list_pages(
    session_id: str,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
):
    """Reload and return the saved landing pages, newest first"""
    state = load_session(orchestrator, session_id)
    records = await orchestrator.lifecycle.refresh_records(state)
    return PagesResponse(
        success=True,
        current_record_id=state.current_record_id,
        records=records
    )


@router.post("/pages/select", response_model=PageActionResponse)
async def select_page(
    data: SelectPageRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
):
    """Open a saved page and switch the view to the preview"""
    state = load_session(orchestrator, data.session_id)
    try:
        content = await orchestrator.lifecycle.on_select(state, data.record_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return PageActionResponse(success=content is not None, session=state.snapshot())


@router.post("/pages/new", response_model=PageActionResponse)
async def new_page(
    data: SessionRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
):
    """Clear the current page and go back to the conversation"""
    state = load_session(orchestrator, data.session_id)
    orchestrator.lifecycle.on_new(state)
    return PageActionResponse(success=True, session=state.snapshot())


@router.patch("/pages/content", response_model=PageActionResponse)
async def edit_content(
    data: EditContentRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
):
    """
    Customize the current page (texts, theme or the whole feature list).
    The change is saved like a freshly generated page.
    """
    state = load_session(orchestrator, data.session_id)
    try:
        record = await orchestrator.lifecycle.on_edit(state, data.changes)
    except NoContentError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    logger.info("Landing page customized", session_id=state.session_id, fields=list(data.changes))
    return PageActionResponse(success=True, saved=record is not None, session=state.snapshot())


@router.patch("/pages/content/features/{index}", response_model=PageActionResponse)
async def edit_feature(
    index: int,
    data: EditFeatureRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
):
    """Edit one feature's title and/or description"""
    state = load_session(orchestrator, data.session_id)
    try:
        record = await orchestrator.lifecycle.on_feature_edit(
            state, index, title=data.title, description=data.description
        )
    except NoContentError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return PageActionResponse(success=True, saved=record is not None, session=state.snapshot())


@router.delete("/pages/{record_id}", response_model=PageActionResponse)
async def delete_page(
    record_id: str,
    session_id: str,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
):
    """Delete a saved page; there is no undo"""
    state = load_session(orchestrator, session_id)
    try:
        deleted = await orchestrator.lifecycle.on_delete(state, record_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return PageActionResponse(success=deleted, session=state.snapshot())
