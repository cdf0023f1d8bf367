"""Contracts for backend collaborators."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from servicebot.services.handlers.base import EventContext
    from servicebot.services.registry import ServiceDescriptor


class OutputKind:
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"


@dataclass(frozen=True)
class Output:
    """One result item relayed to the user as text or media."""
    kind: str
    value: str


class ExecutionStrategy(ABC):
    """Runs a structured query against a request-style backend."""

    @abstractmethod
    async def invoke(self, descriptor: "ServiceDescriptor", query: Dict[str, Any]) -> List[Output]:
        """
        Execute the query.

        Args:
            descriptor: Active service
            query: Accumulated fields, passed through as-is

        Returns:
            Outputs to relay, in order

        Raises:
            BackendFailure: the backend rejected the request, failed or timed out
        """
        pass


class AnswerCapability(ABC):
    """Answers a conversational turn."""

    @abstractmethod
    async def get_answer(self, ctx: "EventContext", turns: List[Dict[str, str]]) -> Optional[str]:
        """
        Produce a reply for ``turns`` (prior context plus the new user turn).

        Returns:
            Response text, or None/empty on failure
        """
        pass
