"""Shared models, value helpers, configuration and error codes."""
