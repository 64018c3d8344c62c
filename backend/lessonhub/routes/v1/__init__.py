# backend/lessonhub/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import availability, lesson_status, time_off, tutors

__all__ = [
    "availability",
    "lesson_status",
    "time_off",
    "tutors",
]
