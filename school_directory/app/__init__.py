"""Application helpers for the school directory backend service.

The ``server`` module assembles these building blocks into a FastAPI
application; each module here can also be imported on its own by scripts and
tests.
"""

from . import auth, config, database, media, models, phone, policy, sanitize, school_profiles

__all__ = [
    "auth",
    "config",
    "database",
    "media",
    "models",
    "phone",
    "policy",
    "sanitize",
    "school_profiles",
]
