# vibecheck/routes/events.py
from fastapi import APIRouter, Depends, HTTPException, Request, status
from datetime import datetime, timezone
from pydantic import ValidationError
import logging

from vibecheck.database import get_database
from vibecheck.models.event import EventRecord, IngestResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


def event_to_document(record: EventRecord) -> dict:
    """Mongo document for a received record; timestamps stay real dates"""
    doc = record.model_dump(by_alias=True, mode="json")
    doc["timestamp"] = record.timestamp
    doc["received_at"] = datetime.now(timezone.utc)
    return doc


# ============================================
# INGEST
# ============================================

@router.post("", response_model=IngestResponse, status_code=status.HTTP_202_ACCEPTED)
async def ingest_event(
    request: Request,
    db = Depends(get_database)
):
    """
    Receive one analytics event

    - Accepts application/json and text/plain bodies (browser beacons)
    - No authentication; the payload must be a valid event record
    """
    body = await request.body()

    try:
        record = EventRecord.model_validate_json(body)
    except ValidationError as e:
        errors = [
            {"loc": list(err["loc"]), "msg": err["msg"]}
            for err in e.errors()
        ]
        logger.warning(f"⚠️ Rejected event payload: {e.error_count()} validation errors")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=errors
        )

    result = await db.events.insert_one(event_to_document(record))
    logger.info(f"📥 Extracted {record.action.value} event for {record.user_email or 'anonymous'}")

    return IngestResponse(id=str(result.inserted_id))
