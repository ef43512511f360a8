from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from app.container import ServiceContainer, get_container
from app.sessions.models import SessionStatus


router = APIRouter(prefix="/api/chatbot/sessions", tags=["Sessions"])


@router.get("")
async def list_sessions(
    container: Annotated[ServiceContainer, Depends(get_container)],
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
    status: Optional[SessionStatus] = None,
) -> dict:
    sessions = await container.session_repo.list_sessions(limit=limit, status=status)
    return {
        "success": True,
        "count": len(sessions),
        "sessions": [s.summary() for s in sessions],
    }


@router.get("/stats")
async def session_stats(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> dict:
    return {
        "success": True,
        "stats": await container.session_repo.get_stats(),
        "active_conversations": len(container.store),
    }
