"""Derived per-lesson status rules and batching helpers.

None of these flags is stored. They are recomputed from attendance, roster and
homework rows every time they are needed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class CompletionInput:
    student_count: int
    attendance_count: int
    has_homework: bool


@dataclass(frozen=True)
class AttendanceFlags:
    is_cancelled: bool
    is_absent: bool
    total_students: int
    attendance_count: int


def is_lesson_completed(signal: CompletionInput) -> bool:
    """
    A lesson is done when every enrolled student has an attendance record and
    homework has been set, whatever its stored status says.
    """
    return (
        signal.student_count > 0
        and signal.attendance_count == signal.student_count
        and signal.has_homework
    )


def derive_attendance_flags(
    student_count: int, statuses: Sequence[str]
) -> AttendanceFlags:
    """Cancelled = every student excused; absent = every student absent."""
    excused = sum(1 for s in statuses if s == AttendanceStatus.EXCUSED.value)
    absent = sum(1 for s in statuses if s == AttendanceStatus.ABSENT.value)
    return AttendanceFlags(
        is_cancelled=student_count > 0 and excused == student_count,
        is_absent=student_count > 0 and absent == student_count,
        total_students=student_count,
        attendance_count=len(statuses),
    )


def stable_lesson_ids(lesson_ids: Optional[Iterable[Optional[str]]]) -> List[str]:
    """Sorted, de-duplicated ids with nulls and blanks removed."""
    if not lesson_ids:
        return []
    return sorted({lesson_id for lesson_id in lesson_ids if lesson_id})


def lesson_ids_key(lesson_ids: Optional[Iterable[Optional[str]]]) -> str:
    return "|".join(stable_lesson_ids(lesson_ids))


def partition(ids: Sequence[str], batch_size: int) -> List[List[str]]:
    if batch_size < 1:
        raise ValueError("batch_size must be positive")
    return [list(ids[i : i + batch_size]) for i in range(0, len(ids), batch_size)]
