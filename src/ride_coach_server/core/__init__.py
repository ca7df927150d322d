"""Core infrastructure: configuration, logging, database, auth, errors."""
