"""servicebot - pick an AI service in chat, feed it inputs, run it."""

__version__ = "1.0.0"
