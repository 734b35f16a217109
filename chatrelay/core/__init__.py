"""Core infrastructure: configuration, logging, metrics and lifecycle."""
