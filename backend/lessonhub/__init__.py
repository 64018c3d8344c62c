"""LessonHub scheduling backend: availability, conflict resolution and lesson status."""

__version__ = "0.1.0"
