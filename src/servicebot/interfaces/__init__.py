"""Communication channels."""
