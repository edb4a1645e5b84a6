"""Private school directory: REST backend, HTTP client and data migration."""

__version__ = "1.0.0"
