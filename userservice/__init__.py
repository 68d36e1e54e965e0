"""userservice: create, list and fetch users over HTTP with tracing and metrics."""

__version__ = "0.1.0"
