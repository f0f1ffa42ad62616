from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime, timezone
from enum import Enum
import uuid

class BodyType(str, Enum):
    """Body type options offered at sign-up"""
    RECTANGLE = "Rectangle"
    HOURGLASS = "Hourglass"
    PEAR = "Pear"
    INVERTED_TRIANGLE = "Inverted Triangle"
    APPLE = "Apple"
    ATHLETIC = "Athletic"
    SLIM_PETITE = "Slim / Petite"
    PLUS_CURVY = "Plus / Curvy"
    TALL_LEAN = "Tall & Lean"
    MUSCULAR = "Muscular / Broad"

class StyleVibe(str, Enum):
    """Style preference options offered at sign-up"""
    STREETWEAR = "Streetwear"
    MINIMALIST = "Minimalist"
    Y2K = "Y2K / Retro"
    GORPCORE = "Gorpcore"
    OLD_MONEY = "Old Money"
    INDO_WESTERN = "Indo-Western Fusion"
    FORMAL = "Desi Formal / Sherwani-Core"
    DENIM_MAXIMALIST = "Denim Maximalist"
    ATHLEISURE = "Athleisure"
    GRUNGE = "Desi Grunge"
    PREPPY = "Academia / Preppy"

class UserProfile(BaseModel):
    """The signed-in user, as persisted under the profile storage key"""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:9])
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    body_type: BodyType = Field(alias="bodyType")
    style_vibe: StyleVibe = Field(alias="styleVibe")
    signed_up_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="signedUpAt"
    )

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Name must not be blank')
        return v

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "id": "u1",
                "name": "Alex",
                "email": "a@x.com",
                "bodyType": "Athletic",
                "styleVibe": "Streetwear",
                "signedUpAt": "2026-01-01T00:00:00Z"
            }
        }

class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    body_type: Optional[BodyType] = None
    style_vibe: Optional[StyleVibe] = None
