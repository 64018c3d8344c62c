"""Outbound integrations for LessonHub."""
