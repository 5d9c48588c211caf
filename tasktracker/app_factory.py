"""Entry point for uvicorn/gunicorn: ``uvicorn tasktracker.app_factory:app``."""
from tasktracker.app import create_app

app = create_app()

__all__ = ["app", "create_app"]
