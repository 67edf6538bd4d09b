"""Infrastructure around the engine."""
