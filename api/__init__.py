"""
API Module for the lead qualification bot.

FastAPI application with routes for:
- Lead intake, listing and CSV export
- Qualification chat turns
"""

from .main import create_app, app

__all__ = ["create_app", "app"]
