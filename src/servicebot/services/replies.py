"""Reply surface used by the engine.

Channels implement ``Responder``; the engine never talks to a transport
directly.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass(frozen=True)
class Choice:
    """A button: label shown to the user, payload sent back when pressed."""
    label: str
    payload: str


@dataclass
class Reply:
    """A reply captured by ``RecordingResponder``."""
    kind: str
    content: Union[str, bytes]
    caption: Optional[str] = None
    choices: List[Choice] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        content = self.content
        if isinstance(content, bytes):
            content = f"<{len(content)} bytes>"
        return {
            "kind": self.kind,
            "content": content,
            "caption": self.caption,
            "choices": [{"label": c.label, "payload": c.payload} for c in self.choices],
        }


class Responder(ABC):
    """Outbound side of a conversation."""

    @abstractmethod
    async def send_text(self, text: str) -> None:
        pass

    @abstractmethod
    async def send_image(self, url: str, caption: Optional[str] = None) -> None:
        pass

    @abstractmethod
    async def send_audio(self, audio: Union[str, bytes], caption: Optional[str] = None) -> None:
        """Send audio from a URL or raw bytes."""
        pass

    @abstractmethod
    async def send_choices(self, text: str, choices: List[Choice]) -> None:
        pass

    async def send_typing(self) -> None:
        """Show a typing indicator where the channel supports one."""
        return None


class RecordingResponder(Responder):
    """Collects replies in memory (HTTP channel and tests)."""

    def __init__(self):
        self.replies: List[Reply] = []

    async def send_text(self, text: str) -> None:
        self.replies.append(Reply(kind="text", content=text))

    async def send_image(self, url: str, caption: Optional[str] = None) -> None:
        self.replies.append(Reply(kind="image", content=url, caption=caption))

    async def send_audio(self, audio: Union[str, bytes], caption: Optional[str] = None) -> None:
        self.replies.append(Reply(kind="audio", content=audio, caption=caption))

    async def send_choices(self, text: str, choices: List[Choice]) -> None:
        self.replies.append(Reply(kind="choices", content=text, choices=list(choices)))

    @property
    def texts(self) -> List[str]:
        return [r.content for r in self.replies if r.kind in ("text", "choices")]

    @property
    def last_choices(self) -> List[Choice]:
        for reply in reversed(self.replies):
            if reply.kind == "choices":
                return reply.choices
        return []
