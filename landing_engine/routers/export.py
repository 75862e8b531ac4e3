"""
Export router: download the current page as HTML or as a React component
"""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from landing_engine.agents.conversation_orchestrator import ConversationOrchestrator
from landing_engine.dependencies import get_orchestrator, load_session
from landing_engine.models import ContentModel, Theme
from landing_engine.services.exporters import (
    THEME_LABELS,
    export_filename,
    generate_component,
    generate_html,
    get_theme_colors,
)

router = APIRouter()


def _current_content(orchestrator: ConversationOrchestrator, session_id: str) -> ContentModel:
    state = load_session(orchestrator, session_id)
    if state.content is None:
        raise HTTPException(status_code=409, detail="No landing page generated yet")
    return state.content


def _download(body: str, media_type: str, filename: str) -> Response:
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/export/themes")
async def list_themes():
    """Available themes with their colors"""
    return {
        "success": True,
        "themes": [
            {
                "id": theme.value,
                "label": THEME_LABELS[theme],
                "colors": get_theme_colors(theme)
            }
            for theme in Theme
        ]
    }


@router.get("/export/{session_id}/html")
async def export_html(
    session_id: str,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
):
    """Complete HTML page with inline CSS, ready to deploy"""
    content = _current_content(orchestrator, session_id)
    return _download(generate_html(content), "text/html; charset=utf-8", export_filename(content, "html"))


@router.get("/export/{session_id}/component")
async def export_component(
    session_id: str,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator)
):
    """React/Tailwind component source"""
    content = _current_content(orchestrator, session_id)
    return _download(
        generate_component(content),
        "text/plain; charset=utf-8",
        export_filename(content, "component")
    )
