"""Core infrastructure: logging, errors and HTTP client construction."""
