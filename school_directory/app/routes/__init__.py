"""HTTP route modules mounted under ``/api``."""

from . import media, schools

__all__ = ["media", "schools"]
