"""Photo uploads and blob storage."""
