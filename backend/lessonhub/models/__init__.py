"""
Database models for LessonHub.

The models are organized by functionality:
- Tutors, subjects and students
- Weekly availability
- Lessons and enrolments
- Time-off requests
- Attendance and homework
"""

from .attendance import Homework, LessonAttendance
from .availability import TutorAvailability
from .lesson import Lesson, LessonStudent
from .time_off import TimeOffRequest
from .tutor import Student, Tutor, TutorSubject

__all__ = [
    "Homework",
    "Lesson",
    "LessonAttendance",
    "LessonStudent",
    "Student",
    "TimeOffRequest",
    "Tutor",
    "TutorAvailability",
    "TutorSubject",
]
