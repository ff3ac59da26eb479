"""Domain services for the check-in engine."""
