from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from typing import Dict, List, Optional
from datetime import timedelta
import json

from vibecheck.config import settings
from vibecheck.database import get_database
from vibecheck.models.event import CollectedEvent, DailyEventStats, EventKind
from vibecheck.utils.auth import get_current_admin
from vibecheck.utils.helpers import day_key, export_filename, last_n_days, utc_now

router = APIRouter(prefix="/admin", tags=["Admin"])


def _to_event(doc: dict) -> CollectedEvent:
    doc["_id"] = str(doc["_id"])
    return CollectedEvent(**doc)


# Event viewer
@router.get("/events", response_model=List[CollectedEvent])
async def get_events(
    action: Optional[EventKind] = None,
    user_id: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    admin: str = Depends(get_current_admin),
    db = Depends(get_database)
):
    """Collected events, newest first"""

    query = {}

    if action:
        query["action"] = action.value

    if user_id:
        query["userId"] = user_id

    cursor = db.events.find(query).sort("timestamp", -1).skip(skip).limit(limit)
    events = await cursor.to_list(length=limit)

    return [_to_event(event) for event in events]


@router.get("/events/stats", response_model=List[DailyEventStats])
async def get_daily_stats(
    days: int = Query(7, ge=1, le=90),
    admin: str = Depends(get_current_admin),
    db = Depends(get_database)
):
    """Per-day event counts by action, oldest day first"""

    now = utc_now()
    since = (now - timedelta(days=days - 1)).replace(hour=0, minute=0, second=0, microsecond=0)

    cursor = db.events.find(
        {"timestamp": {"$gte": since}},
        {"timestamp": 1, "action": 1}
    )
    events = await cursor.to_list(length=None)

    buckets: Dict[str, Dict[str, int]] = {day: {} for day in last_n_days(days, now)}
    for event in events:
        day = day_key(event["timestamp"])
        if day not in buckets:
            continue
        by_action = buckets[day]
        by_action[event["action"]] = by_action.get(event["action"], 0) + 1

    return [
        DailyEventStats(date=day, total=sum(counts.values()), by_action=counts)
        for day, counts in buckets.items()
    ]


@router.get("/events/export")
async def export_events(
    admin: str = Depends(get_current_admin),
    db = Depends(get_database)
):
    """Every collected event as a downloadable JSON file"""

    events = await db.events.find({}).sort("timestamp", 1).to_list(length=None)
    payload = [
        _to_event(event).model_dump(by_alias=True, mode="json")
        for event in events
    ]

    return Response(
        content=json.dumps(payload, ensure_ascii=False),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'}
    )
