"""Terminal channel."""
