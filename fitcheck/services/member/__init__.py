"""Member registry."""
