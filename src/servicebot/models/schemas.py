"""Pydantic schemas."""
from typing import List, Optional

from pydantic import BaseModel

from servicebot.services.events import InboundEvent, Location


class LocationIn(BaseModel):
    lat: float
    long: float


class EventRequest(BaseModel):
    """Inbound event schema. Media fields carry already-resolved URLs."""
    session_id: str
    text: Optional[str] = None
    payload: Optional[str] = None
    image_url: Optional[str] = None
    audio_url: Optional[str] = None
    video_url: Optional[str] = None
    file_url: Optional[str] = None
    location: Optional[LocationIn] = None
    sender_id: Optional[str] = None

    def to_event(self) -> InboundEvent:
        return InboundEvent(
            session_id=self.session_id,
            text=self.text,
            payload=self.payload,
            image_url=self.image_url,
            audio_url=self.audio_url,
            video_url=self.video_url,
            file_url=self.file_url,
            location=Location(lat=self.location.lat, long=self.location.long) if self.location else None,
            sender_id=self.sender_id,
            channel="http",
        )


class ChoiceOut(BaseModel):
    label: str
    payload: str


class ReplyOut(BaseModel):
    """One reply produced while handling the event."""
    kind: str
    content: str
    caption: Optional[str] = None
    choices: List[ChoiceOut] = []


class EventResponse(BaseModel):
    """Event response schema."""
    session_id: str
    category: str
    replies: List[ReplyOut]


class ServiceParamOut(BaseModel):
    name: str
    type: str
    options: List[str] = []


class ServiceOut(BaseModel):
    """Registry entry."""
    id: int
    name: str
    type: str
    description: str = ""
    params: List[ServiceParamOut] = []
