from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from app.container import ServiceContainer, get_container
from app.menus.models import MenuNode


router = APIRouter(prefix="/api/chatbot", tags=["Menus"])


def _node_summary(node: MenuNode) -> dict:
    return {
        "id": node.id,
        "order": node.order,
        "title": node.title,
        "type": node.kind.value,
    }


@router.get("/cache/stats")
async def cache_stats(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> dict:
    try:
        database_stats = await container.menu_repo.get_stats()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Could not read menu statistics: {e}",
        )
    return {
        "success": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "cache": container.cache.get_stats(),
        "database": database_stats,
    }


@router.post("/cache/refresh")
async def refresh_cache(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> dict:
    refreshed = await container.cache_scheduler.force_refresh()
    return {
        "success": refreshed,
        "message": "Cache reloaded" if refreshed else "Cache refresh failed, previous menus kept",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/debug/root-menus")
async def debug_root_menus(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> dict:
    roots = container.cache.get_root_nodes()
    return {
        "success": True,
        "count": len(roots),
        "menus": [_node_summary(node) for node in roots],
    }


@router.get("/debug/menu/{node_id}")
async def debug_menu(
    node_id: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> dict:
    node = container.cache.get_node(node_id)
    if node is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Menu not found in cache.",
        )
    return {
        "success": True,
        "menu": node.to_dict(),
        "children": [_node_summary(child) for child in container.cache.get_children(node.id)],
    }
