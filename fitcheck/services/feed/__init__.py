"""Public feed projection."""
