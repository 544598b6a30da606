"""
API Routes

FastAPI route handlers organized by domain.
"""

from . import admin, jobs, messages

__all__ = ['admin', 'jobs', 'messages']
