"""Shared helpers: logging, errors, config, caching."""
