"""
Base classes for communication interfaces.

A channel turns transport updates into ``InboundEvent``s, hands them to the
engine together with a ``Responder`` bound to the conversation, and renders
the replies in the transport's own format.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from servicebot.services.engine import ChatEngine


class Channel(ABC):
    """
    Abstract base class for communication channels.

    All interfaces (Telegram, CLI) inherit from this class and implement
    its abstract methods.
    """

    def __init__(self, channel_id: str, engine: ChatEngine, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the channel.

        Args:
            channel_id: Unique identifier for this channel instance
            engine: Engine that handles the channel's events
            config: Channel-specific configuration
        """
        self.channel_id = channel_id
        self.engine = engine
        self.config = config or {}
        self._is_running = False
        self.logger = logging.getLogger(f"servicebot.interfaces.{self.__class__.__name__}")

    @abstractmethod
    async def start(self):
        """Start the channel (begin listening for incoming messages)."""
        pass

    @abstractmethod
    async def stop(self):
        """Stop the channel and release its resources."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if the channel is configured.

        Returns:
            True if the channel can be used, False otherwise
        """
        pass

    @property
    def is_running(self) -> bool:
        return self._is_running

    def __repr__(self):
        return f"<{self.__class__.__name__} id={self.channel_id} running={self._is_running}>"


class ChannelError(Exception):
    """Base exception for channel-related errors."""
    pass


class ChannelNotAvailableError(ChannelError):
    """Raised when trying to use a channel that is not available."""
    pass
