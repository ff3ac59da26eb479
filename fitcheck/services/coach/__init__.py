"""Coach dashboard and engagement classification."""
