"""Core infrastructure: database, external clients and exceptions."""
