"""Inbound events and the Event Classifier."""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

# "/cmd rest" or ".cmd rest"; the command token is a single word
COMMAND_PATTERN = re.compile(r"^[/.](?P<command>\w+)(?:\s(?P<content>.+))?", re.IGNORECASE | re.DOTALL)
SUBMISSION_PATTERN = re.compile(r"^ok$", re.IGNORECASE)


class EventCategory(Enum):
    """Categories in classification precedence order."""
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    FILE = "file"
    LOCATION = "location"
    PAYLOAD = "payload"
    COMMAND = "command"
    SUBMISSION = "submission"
    TEXT = "text"


@dataclass(frozen=True)
class Location:
    lat: float
    long: float


@dataclass(frozen=True)
class InboundEvent:
    """Channel-agnostic representation of one user action.

    Channels resolve media to URLs before building the event.
    """
    session_id: str
    text: Optional[str] = None
    payload: Optional[str] = None
    image_url: Optional[str] = None
    audio_url: Optional[str] = None
    video_url: Optional[str] = None
    file_url: Optional[str] = None
    location: Optional[Location] = None
    sender_id: Optional[str] = None
    channel: Optional[str] = None


def classify_event(event: InboundEvent) -> EventCategory:
    """Assign exactly one category; first match wins.

    Media is checked before any text pattern so a captioned upload is never
    taken for a command.
    """
    if event.image_url:
        return EventCategory.IMAGE
    if event.audio_url:
        return EventCategory.AUDIO
    if event.video_url:
        return EventCategory.VIDEO
    if event.file_url:
        return EventCategory.FILE
    if event.location is not None:
        return EventCategory.LOCATION
    if event.payload:
        return EventCategory.PAYLOAD

    text = event.text or ""
    if COMMAND_PATTERN.match(text):
        return EventCategory.COMMAND
    if SUBMISSION_PATTERN.match(text):
        return EventCategory.SUBMISSION
    return EventCategory.TEXT
