"""External HTTP integrations."""
