"""
FastAPI server module for EditOrchestra.

Bridges a browser editor to the orchestration loop.
"""

from .main import create_app

__all__ = ["create_app"]
