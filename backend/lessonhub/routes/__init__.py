# backend/lessonhub/routes/__init__.py
"""
API routes for LessonHub.

Unversioned operational endpoints (health, metrics) live here; product
endpoints live under ``routes.v1`` and are mounted at /api/v1.
"""

from . import health, prometheus

__all__ = ["health", "prometheus"]
