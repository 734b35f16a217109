"""Real-time chat relay over HTTP and server-sent events."""

__version__ = "0.1.0"
