"""Chat Engine - classifies inbound events and dispatches them to handlers.

This is the entry point every channel calls. For each event it:
1. Reads the session and works on a copy
2. Classifies the event and runs the handler for its category
3. Writes the whole session back only if the handler finished normally
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Optional

from servicebot.core.exceptions import BackendFailure, UserInputError
from servicebot.core.logging import logger
from servicebot.services.backends import Backends
from servicebot.services.conversation import ConversationalTurnHandler
from servicebot.services.events import EventCategory, InboundEvent, classify_event
from servicebot.services.handlers.base import EventContext, HandlerRegistry
from servicebot.services.registry import ServiceRegistry
from servicebot.services.replies import Responder
from servicebot.services.session import InMemorySessionStore, SessionStore

SOMETHING_WENT_WRONG = "Something went wrong. Please try again."
GENERIC_BACKEND_ERROR = "Error! Please try again."


class ChatEngine:
    """Routes each event through the handler registry against its session."""

    def __init__(
        self,
        registry: ServiceRegistry,
        store: Optional[SessionStore] = None,
        backends: Optional[Backends] = None,
        conversation: Optional[ConversationalTurnHandler] = None,
    ):
        self.registry = registry
        self.store = store or InMemorySessionStore()
        self.backends = backends or Backends()
        self.conversation = conversation or ConversationalTurnHandler()
        self.handlers = HandlerRegistry()
        # Per-session locks, dropped once no event for the session is in flight
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

        self._register_handlers()

    def _register_handlers(self) -> None:
        """Register a handler for every event category."""
        # Imported here to keep handler modules free of engine imports
        from servicebot.services.handlers.commands import CommandHandler
        from servicebot.services.handlers.media import (
            AudioHandler,
            FileHandler,
            ImageHandler,
            LocationHandler,
            VideoHandler,
        )
        from servicebot.services.handlers.payload import PayloadHandler
        from servicebot.services.handlers.submission import SubmissionHandler
        from servicebot.services.handlers.text import TextHandler

        for handler_class in (
            ImageHandler,
            AudioHandler,
            VideoHandler,
            FileHandler,
            LocationHandler,
            PayloadHandler,
            CommandHandler,
            SubmissionHandler,
            TextHandler,
        ):
            self.handlers.register(handler_class)

        logger.info(f"Registered {len(self.handlers.list_handlers())} handlers")

    async def handle_event(self, event: InboundEvent, responder: Responder) -> EventCategory:
        """
        Process one inbound event end to end.

        Events for the same session are handled one at a time. Nothing raised
        by a handler escapes; the user gets a reply and the stored session
        keeps its pre-event value.

        Returns:
            The category the event was classified as
        """
        category = classify_event(event)

        async with self._session_lock(event.session_id):
            session = self.store.get_state(event.session_id).copy()
            ctx = EventContext(
                event=event,
                category=category,
                session=session,
                registry=self.registry,
                backends=self.backends,
                responder=responder,
                conversation=self.conversation,
            )
            logger.debug(f"[Engine] {event.session_id}: {category.value} event")

            try:
                await self.handlers.get_handler(category).handle(ctx)
            except UserInputError as e:
                await self._safe_reply(responder, str(e))
                return category
            except BackendFailure as e:
                logger.error(f"[Engine] Backend failure for {event.session_id}: {e}")
                await self._safe_reply(responder, e.user_message or GENERIC_BACKEND_ERROR)
                return category
            except Exception as e:
                logger.error(f"[Engine] Error handling {category.value} event for {event.session_id}: {e}", exc_info=True)
                await self._safe_reply(responder, SOMETHING_WENT_WRONG)
                return category

            self.store.set_state(event.session_id, session)
        return category

    @asynccontextmanager
    async def _session_lock(self, session_id: str):
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[session_id] -= 1
            if not self._lock_users[session_id]:
                del self._lock_users[session_id]
                del self._locks[session_id]

    async def _safe_reply(self, responder: Responder, text: str) -> None:
        try:
            await responder.send_text(text)
        except Exception as e:
            logger.error(f"[Engine] Could not deliver reply: {e}")


def build_engine() -> ChatEngine:
    """Engine wired from ``settings``: catalog, session store and backends."""
    from servicebot.core.config import settings
    from servicebot.services.session import create_session_store

    return ChatEngine(
        registry=ServiceRegistry.load(settings.registry.services_file),
        store=create_session_store(),
        backends=Backends.from_settings(),
    )
