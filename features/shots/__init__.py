"""Shot boundary detection and timing."""
