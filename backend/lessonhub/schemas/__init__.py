"""Pydantic request/response DTOs for LessonHub."""
