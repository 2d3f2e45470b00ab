"""Core infrastructure: configuration, database, errors."""
