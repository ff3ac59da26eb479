"""Community daily aggregates."""
