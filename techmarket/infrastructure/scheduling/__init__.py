"""Timer scheduling."""
