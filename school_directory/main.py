"""ASGI entry point: ``uvicorn school_directory.main:app``."""

from __future__ import annotations

import os

import uvicorn

from .server import create_app

app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
