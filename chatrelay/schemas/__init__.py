"""Request and event schemas."""
