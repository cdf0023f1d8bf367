"""Session state machine and event dispatch."""
