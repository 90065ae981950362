"""Real-time fan-out of notifications through Redis pub/sub."""
