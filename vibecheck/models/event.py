# vibecheck/models/event.py
from pydantic import BaseModel, Field, TypeAdapter
from typing import Optional, Dict, List
from datetime import datetime
from enum import Enum
from bson import ObjectId

from vibecheck.models.user import BodyType, StyleVibe

class EventKind(str, Enum):
    """Closed set of analytics actions"""
    SIGN_UP = "SIGN_UP"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    SESSION_START = "SESSION_START"
    SESSION_END = "SESSION_END"
    IMAGE_UPLOAD = "IMAGE_UPLOAD"
    RECOMMENDATION_GEN = "RECOMMENDATION_GEN"
    FEEDBACK = "FEEDBACK"
    STYLE_SAVED = "STYLE_SAVED"
    COLOR_CHANGED = "COLOR_CHANGED"
    WARDROBE_ADD = "WARDROBE_ADD"
    CALENDAR_GEN = "CALENDAR_GEN"

    @property
    def is_session_terminating(self) -> bool:
        """True for kinds meaning the user is leaving"""
        return self in (EventKind.LOGOUT, EventKind.SESSION_END)

class ClientEnvironment(BaseModel):
    """Ambient device facts probed when an event is recorded"""
    platform: str = "unknown"
    user_agent: str = "unknown"
    language: str = "en-US"
    screen_resolution: str = "0x0"
    connection_type: str = "unknown"
    is_pwa: bool = False

    class Config:
        frozen = True

class EventContext(BaseModel):
    """Environment and actor facts frozen into a record at emission time"""
    platform: str
    user_agent: str = Field(alias="userAgent")
    language: str
    screen_resolution: str = Field(alias="screenResolution")
    body_type: Optional[BodyType] = Field(None, alias="bodyType")
    style_vibe: Optional[StyleVibe] = Field(None, alias="styleVibe")
    is_pwa: bool = Field(False, alias="isPWA")
    connection_type: str = Field("unknown", alias="connectionType")

    class Config:
        populate_by_name = True
        frozen = True

class EventRecord(BaseModel):
    """One immutable analytics fact"""
    timestamp: datetime
    user_id: str = Field("", alias="userId")
    user_email: str = Field("", alias="userEmail")
    user_name: str = Field("", alias="userName")
    action: EventKind
    details: str = ""
    metadata: EventContext

    class Config:
        populate_by_name = True
        frozen = True
        json_schema_extra = {
            "example": {
                "timestamp": "2026-01-01T10:00:00.000Z",
                "userId": "u1",
                "userEmail": "a@x.com",
                "userName": "Alex",
                "action": "SIGN_UP",
                "details": "New user registration captured",
                "metadata": {
                    "platform": "Linux x86_64",
                    "userAgent": "Mozilla/5.0",
                    "language": "en-US",
                    "screenResolution": "1920x1080",
                    "bodyType": "Athletic",
                    "styleVibe": "Streetwear",
                    "isPWA": False,
                    "connectionType": "4g"
                }
            }
        }

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

EventLog = TypeAdapter(List[EventRecord])

class CollectedEvent(EventRecord):
    """An event as stored by the collector"""
    id: str = Field(alias="_id")
    received_at: datetime

    class Config:
        populate_by_name = True
        frozen = True
        json_encoders = {ObjectId: str}

class IngestResponse(BaseModel):
    status: str = "extracted"
    id: str

class DailyEventStats(BaseModel):
    """Event counts for one UTC day"""
    date: str
    total: int
    by_action: Dict[str, int]
