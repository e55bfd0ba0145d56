"""HTTP API for the duplicate check."""

from .main import app, create_app

__all__ = ['app', 'create_app']
