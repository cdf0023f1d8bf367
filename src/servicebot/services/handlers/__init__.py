"""Event handlers, one per event category."""
from servicebot.services.handlers.base import EventContext, EventHandler, HandlerRegistry

__all__ = ["EventContext", "EventHandler", "HandlerRegistry"]
