"""Exception hierarchy shared by the engine, parsers and backends."""
from typing import Optional


class ServiceBotError(Exception):
    """Base exception for servicebot errors."""
    pass


class UserInputError(ServiceBotError):
    """Raised for input the user can correct (unknown action, bad flags...).

    The message is safe to show to the user.
    """
    pass


class PayloadDecodeError(UserInputError):
    """Raised when a callback payload has an unknown tag or wrong arity."""
    pass


class ServiceNotFoundError(UserInputError):
    """Raised when a service id is not in the registry."""
    pass


class BackendFailure(ServiceBotError):
    """Raised when a backend capability fails, times out or rejects a request.

    Args:
        message: Log-oriented description of the failure
        user_message: Upstream message that may be relayed to the user
    """

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.user_message = user_message
