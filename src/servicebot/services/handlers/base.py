"""Base classes for event handlers."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Type

from servicebot.core.logging import logger
from servicebot.services.events import EventCategory, InboundEvent
from servicebot.services.registry import ServiceDescriptor, ServiceRegistry
from servicebot.services.replies import Responder
from servicebot.services.session import Session

if TYPE_CHECKING:
    from servicebot.services.backends import Backends
    from servicebot.services.conversation import ConversationalTurnHandler


@dataclass
class EventContext:
    """Everything a handler needs for one event.

    ``session`` is the working copy; the engine persists it only when the
    handler returns normally.
    """
    event: InboundEvent
    category: EventCategory
    session: Session
    registry: ServiceRegistry
    backends: "Backends"
    responder: Responder
    conversation: "ConversationalTurnHandler"

    @property
    def session_id(self) -> str:
        return self.event.session_id

    @property
    def text(self) -> str:
        return (self.event.text or "").strip()

    @property
    def descriptor(self) -> Optional[ServiceDescriptor]:
        """Active descriptor, or None when unset or no longer registered."""
        return self.registry.get(self.session.service)

    async def reply(self, text: str) -> None:
        await self.responder.send_text(text)


class EventHandler(ABC):
    """Abstract base class for event handlers.

    Each handler processes one or more event categories.
    """

    # Categories this handler can process
    categories: List[EventCategory] = []

    @abstractmethod
    async def handle(self, ctx: EventContext) -> None:
        """
        Handle the event, replying through ``ctx.responder``.

        Args:
            ctx: EventContext with the event, the working session and backends

        Raises:
            UserInputError: corrective message for the user, state discarded
            BackendFailure: backend failed, state discarded
        """
        pass

    def can_handle(self, category: EventCategory) -> bool:
        return category in self.categories


class HandlerRegistry:
    """Registry for event handlers, looked up by category."""

    def __init__(self):
        self._handlers: Dict[EventCategory, EventHandler] = {}
        self._handler_instances: Dict[Type[EventHandler], EventHandler] = {}

    def register(self, handler_class: Type[EventHandler]) -> None:
        """Register a handler class for its declared categories."""
        if handler_class not in self._handler_instances:
            self._handler_instances[handler_class] = handler_class()

        handler = self._handler_instances[handler_class]

        for category in handler.categories:
            if category in self._handlers:
                logger.warning(
                    f"Category '{category.value}' already registered to {self._handlers[category].__class__.__name__}, "
                    f"overwriting with {handler_class.__name__}"
                )
            self._handlers[category] = handler
            logger.debug(f"Registered handler {handler_class.__name__} for category '{category.value}'")

    def get_handler(self, category: EventCategory) -> Optional[EventHandler]:
        return self._handlers.get(category)

    def list_handlers(self) -> Dict[str, str]:
        """List all registered handlers and their categories."""
        return {category.value: handler.__class__.__name__ for category, handler in self._handlers.items()}

    def clear(self) -> None:
        """Clear all registered handlers (useful for testing)."""
        self._handlers.clear()
        self._handler_instances.clear()
