"""State machine engine."""
