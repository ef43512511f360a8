import secrets
from datetime import date, datetime, timedelta, timezone
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from app.config import settings
from app.container import ServiceContainer, get_container


async def require_api_key(
    x_api_key: Annotated[Optional[str], Header()] = None,
    api_key: Annotated[Optional[str], Query(alias="apiKey")] = None,
) -> None:
    """Accept the key from the X-API-Key header or the apiKey query parameter."""
    expected = settings.ANALYTICS_API_KEY
    provided = x_api_key or api_key
    if not expected or not provided or not secrets.compare_digest(provided, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )


router = APIRouter(
    prefix="/api/analytics",
    tags=["Analytics"],
    dependencies=[Depends(require_api_key)],
)


@router.get("/today")
async def today_stats(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> dict:
    """Stored report for today, or the live counters when none is stored yet."""
    today = date.today().isoformat()
    report = await container.analytics_repo.get_report_by_date(today)
    if report is not None:
        stats = report.to_dict()
        stats.pop("user_phones", None)
        source = "database"
    else:
        stats = container.analytics.get_current_stats()
        source = "memory"
    return {"success": True, "date": today, "source": source, "stats": stats}


@router.get("/historical")
async def historical_stats(
    container: Annotated[ServiceContainer, Depends(get_container)],
    days: Annotated[int, Query(ge=1, le=90)] = 7,
) -> dict:
    end = date.today()
    start = end - timedelta(days=days - 1)
    reports = await container.analytics_repo.get_reports_by_date_range(start.isoformat(), end.isoformat())
    return {
        "success": True,
        "period": {"start": start.isoformat(), "end": end.isoformat(), "days": days},
        "totals": {
            "sessions": sum(r.total_sessions for r in reports),
            "messages": sum(r.total_messages for r in reports),
        },
        "reports": [
            {
                "date": r.date,
                "total_sessions": r.total_sessions,
                "total_messages": r.total_messages,
                "unique_users": r.unique_users,
            }
            for r in reports
        ],
    }


@router.get("/realtime")
async def realtime_stats(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> dict:
    return {
        "success": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "analytics": container.analytics.get_current_stats(),
        "active_conversations": len(container.store),
    }


@router.get("/report/{report_date}")
async def report_by_date(
    report_date: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> dict:
    try:
        date.fromisoformat(report_date)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Date must be in YYYY-MM-DD format.",
        )

    report = await container.analytics_repo.get_report_by_date(report_date)
    if report is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No report for {report_date}.",
        )
    data = report.to_dict()
    data.pop("user_phones", None)
    return {"success": True, "report": data}


@router.get("/popular-menus")
async def popular_menus(
    container: Annotated[ServiceContainer, Depends(get_container)],
    days: Annotated[int, Query(ge=1, le=90)] = 7,
) -> dict:
    menus = await container.analytics_repo.get_most_popular_menus(days=days)
    for entry in menus:
        node = container.cache.get_node(entry["menu_id"])
        entry["title"] = node.title if node else None
    return {"success": True, "days": days, "menus": menus}
