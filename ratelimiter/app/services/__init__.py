"""Services backed by shared state."""
