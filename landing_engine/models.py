"""
Landing page content model, conversation messages and persisted records
"""
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from landing_engine.logging_config import logger


class Theme(str, Enum):
    """Closed set of visual themes"""
    FINTECH = "fintech"
    SAAS = "saas"
    ECOMMERCE = "ecommerce"
    DEFAULT = "default"


def coerce_theme(value: Any) -> Theme:
    """Map any incoming theme value onto the closed set, falling back to default"""
    if isinstance(value, Theme):
        return value
    if isinstance(value, str):
        try:
            return Theme(value.strip().lower())
        except ValueError:
            pass
    logger.warning("Invalid theme coerced to default", theme=repr(value))
    return Theme.DEFAULT


class Feature(BaseModel):
    """One entry of the feature list"""
    model_config = ConfigDict(extra="ignore")

    title: str
    description: str


class ContentModel(BaseModel):
    """
    Generated landing page content.

    Attributes are snake_case; the wire form (completion payload and HTTP API)
    is camelCase, e.g. ``companyName``. Either name is accepted on input.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    company_name: str
    tagline: str
    description: str
    hero_title: str
    hero_subtitle: str
    features: List[Feature]
    cta: str
    theme: Theme = Theme.DEFAULT

    @field_validator("theme", mode="before")
    @classmethod
    def _validate_theme(cls, value: Any) -> Theme:
        return coerce_theme(value)

    def to_wire(self) -> Dict[str, Any]:
        """camelCase dict, the shape the model is asked to produce"""
        return self.model_dump(mode="json", by_alias=True)

    def to_record_fields(self) -> Dict[str, Any]:
        """snake_case dict matching the persisted record columns"""
        return self.model_dump(mode="json")

    @classmethod
    def from_record(cls, record: "PersistedRecord") -> "ContentModel":
        """Project a persisted record onto the content model (field names only)"""
        return cls.model_validate(record.model_dump(include=set(RECORD_FIELDS)))


RECORD_FIELDS = (
    "company_name",
    "tagline",
    "description",
    "hero_title",
    "hero_subtitle",
    "features",
    "cta",
    "theme",
)


class PersistedRecord(BaseModel):
    """Remote representation of a landing page"""
    model_config = ConfigDict(extra="ignore")

    id: str
    company_name: str
    tagline: str
    description: str
    hero_title: str
    hero_subtitle: str
    features: List[Feature] = Field(default_factory=list)
    cta: str
    theme: Theme = Theme.DEFAULT
    created_at: datetime
    updated_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("theme", mode="before")
    @classmethod
    def _validate_theme(cls, value: Any) -> Theme:
        return coerce_theme(value)


class Sender(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationMessage(BaseModel):
    """A chat bubble. Never mutated once appended to a session log."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    text: str
    sender: Sender
    timestamp: datetime = Field(default_factory=utcnow)
    # Local-only bubbles (welcome, error notices) are never sent to the model
    in_history: bool = Field(default=True, exclude=True)

    def to_history(self) -> Dict[str, str]:
        """Role-tagged form sent to the completion gateway"""
        return {"role": self.sender.value, "content": self.text}


class View(str, Enum):
    CHAT = "chat"
    PREVIEW = "preview"


class SessionStatus(str, Enum):
    IDLE = "idle"
    AWAITING_COMPLETION = "awaiting_completion"


class NotificationLevel(str, Enum):
    INFO = "info"
    ERROR = "error"


class Notification(BaseModel):
    """Transient, dismissable user-visible notice"""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    level: NotificationLevel
    text: str
    timestamp: datetime = Field(default_factory=utcnow)


class SessionSnapshot(BaseModel):
    """Read-only view of a session handed to the HTTP layer"""
    session_id: str
    status: SessionStatus
    view: View
    messages: List[ConversationMessage]
    content: Optional[Dict[str, Any]] = None
    current_record_id: Optional[str] = None
    records: List[PersistedRecord] = Field(default_factory=list)
    notifications: List[Notification] = Field(default_factory=list)
