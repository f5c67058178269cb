"""
Reports Package

Bug reports submitted from the chat client, delivered to a webhook with a
log fallback.

Modules:
- routes: POST /api/report-bug
- formatting: subject/body rendering and message history formatting
"""

from .routes import reports_router

__all__ = ["reports_router"]
