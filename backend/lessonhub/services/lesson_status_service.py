# backend/lessonhub/services/lesson_status_service.py
"""
Lesson Status Service for LessonHub

Batched read-side aggregation of per-lesson status flags:

- attendance: cancelled (every enrolled student excused) and absent
  (every enrolled student absent)
- completion: every enrolled student has attendance and homework exists

Ids are normalised (null-filtered, de-duplicated, sorted) and split into
fixed-size batches that run one after another. A batch whose queries fail is
logged, counted and skipped; its ids are missing from the result rather than
failing the whole call.

The last result per kind is memoised against the normalised id key in a
process-wide ``StatusMemo``, and every fresh load gets a higher version number
so callers can drop superseded results.
"""

from datetime import date
import logging
import threading
import time
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union, cast

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import RepositoryException
from ..core.timezone_utils import local_day_bounds
from ..domain.lesson_status import (
    CompletionInput,
    derive_attendance_flags,
    is_lesson_completed as meets_completion_policy,
    lesson_ids_key,
    partition,
    stable_lesson_ids,
)
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.lesson_repository import LessonRepository
from ..repositories.lesson_status_repository import LessonStatusRepository
from ..schemas.lesson_status import (
    AttendanceStatusFlags,
    AttendanceStatusResponse,
    LessonCompletionFlags,
    LessonCompletionResponse,
)
from .base import BaseService
from .cache_service import Clock

logger = logging.getLogger(__name__)

ATTENDANCE = "attendance"
COMPLETION = "completion"

StatusResponse = Union[AttendanceStatusResponse, LessonCompletionResponse]


class StatusMemo:
    """
    Last result per aggregate kind, plus the version counter.

    One instance is shared by every request in the process, so versions keep
    increasing across calls and an unchanged id set is served from memory
    until ``ttl_seconds`` have passed.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Clock = time.monotonic):
        self.ttl_seconds = ttl_seconds or settings.status_memo_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[str, StatusResponse, float]] = {}
        self._version = 0

    def next_version(self) -> int:
        with self._lock:
            self._version += 1
            return self._version

    @property
    def version(self) -> int:
        return self._version

    def get(self, kind: str, key: str) -> Optional[StatusResponse]:
        with self._lock:
            entry = self._entries.get(kind)
            if entry is None or entry[0] != key:
                return None
            if self._clock() >= entry[2]:
                del self._entries[kind]
                return None
            return entry[1]

    def put(self, kind: str, key: str, result: StatusResponse) -> None:
        with self._lock:
            # Partial results are not memoised so the next call retries the failed batches.
            if result.failed_batches:
                self._entries.pop(kind, None)
            else:
                self._entries[kind] = (key, result, self._clock() + self.ttl_seconds)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class LessonStatusService(BaseService):
    """Batched attendance and completion flags keyed by lesson id."""

    def __init__(
        self,
        db: Session,
        repository: Optional[LessonStatusRepository] = None,
        lesson_repository: Optional[LessonRepository] = None,
        batch_size: Optional[int] = None,
        memo: Optional[StatusMemo] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_lesson_status_repository(db)
        self.lesson_repository = lesson_repository or RepositoryFactory.create_lesson_repository(db)
        self.batch_size = batch_size or settings.status_batch_size
        self.memo = memo if memo is not None else StatusMemo()

    # Memoisation

    @property
    def current_version(self) -> int:
        return self.memo.version

    def is_current(self, version: int) -> bool:
        """False once a newer load has started; callers discard stale results."""
        return version == self.memo.version

    def invalidate(self) -> None:
        self.memo.clear()

    # Batch runner

    def _run_batches(self, ids: Sequence[str], kind: str, fetch) -> Tuple[List[tuple], int]:
        """
        Run ``fetch(batch)`` for each batch in sequence.

        Returns:
            (per-batch results for the batches that succeeded, failed batch count)
        """
        batches = partition(list(ids), self.batch_size)
        self.logger.debug(f"{kind}: processing {len(ids)} lessons in {len(batches)} batches")

        succeeded: List[tuple] = []
        failed = 0
        for index, batch in enumerate(batches, start=1):
            try:
                succeeded.append((batch, fetch(batch)))
            except RepositoryException as e:
                failed += 1
                # A failed read aborts the transaction on Postgres; later batches need a clean one.
                self.db.rollback()
                prometheus_metrics.inc_status_batch_failure(kind)
                self.logger.warning(f"{kind}: batch {index}/{len(batches)} failed: {str(e)}")
        return succeeded, failed

    # Attendance

    def _fetch_attendance(self, batch: List[str]):
        return (
            self.repository.get_attendance_rows(batch),
            self.repository.get_roster_rows(batch),
        )

    @BaseService.measure_operation("get_attendance_status")
    def get_attendance_status(
        self, lesson_ids: Optional[Iterable[Optional[str]]]
    ) -> AttendanceStatusResponse:
        """Cancelled/absent flags for each lesson id whose batch loaded."""
        ids_list = list(lesson_ids or [])
        key = lesson_ids_key(ids_list)
        cached = self.memo.get(ATTENDANCE, key)
        if cached is not None:
            return cast(AttendanceStatusResponse, cached)

        version = self.memo.next_version()
        ids = stable_lesson_ids(ids_list)
        results, failed = self._run_batches(ids, ATTENDANCE, self._fetch_attendance)

        data: Dict[str, AttendanceStatusFlags] = {}
        for batch, (attendance_rows, roster_rows) in results:
            for lesson_id in batch:
                student_count = sum(1 for row in roster_rows if row[0] == lesson_id)
                statuses = [row[2] for row in attendance_rows if row[0] == lesson_id]
                flags = derive_attendance_flags(student_count, statuses)
                data[lesson_id] = AttendanceStatusFlags(
                    is_cancelled=flags.is_cancelled,
                    is_absent=flags.is_absent,
                    total_students=flags.total_students,
                    attendance_count=flags.attendance_count,
                )

        result = AttendanceStatusResponse(data=data, version=version, failed_batches=failed)
        self.memo.put(ATTENDANCE, key, result)
        return result

    # Completion

    def _fetch_completion(self, batch: List[str]):
        return (
            self.repository.get_roster_rows(batch),
            self.repository.get_attendance_rows(batch),
            set(self.repository.get_homework_lesson_ids(batch)),
        )

    @staticmethod
    def _completion_flags(
        lesson_id: str,
        roster_rows: Sequence[tuple],
        attendance_rows: Sequence[tuple],
        homework_ids: Set[str],
    ) -> LessonCompletionFlags:
        enrolled = {row[1] for row in roster_rows if row[0] == lesson_id}
        attended = {row[1] for row in attendance_rows if row[0] == lesson_id} & enrolled
        signal = CompletionInput(
            student_count=len(enrolled),
            attendance_count=len(attended),
            has_homework=lesson_id in homework_ids,
        )
        return LessonCompletionFlags(
            is_completed=meets_completion_policy(signal),
            student_count=signal.student_count,
            attendance_count=signal.attendance_count,
            has_homework=signal.has_homework,
        )

    def _load_completion(self, ids: Sequence[str], version: int) -> LessonCompletionResponse:
        results, failed = self._run_batches(ids, COMPLETION, self._fetch_completion)
        data: Dict[str, LessonCompletionFlags] = {}
        for batch, (roster_rows, attendance_rows, homework_ids) in results:
            for lesson_id in batch:
                data[lesson_id] = self._completion_flags(
                    lesson_id, roster_rows, attendance_rows, homework_ids
                )
        return LessonCompletionResponse(data=data, version=version, failed_batches=failed)

    @BaseService.measure_operation("get_lesson_completion")
    def get_lesson_completion(
        self, lesson_ids: Optional[Iterable[Optional[str]]]
    ) -> LessonCompletionResponse:
        """Completion flags for each lesson id whose batch loaded."""
        ids_list = list(lesson_ids or [])
        key = lesson_ids_key(ids_list)
        cached = self.memo.get(COMPLETION, key)
        if cached is not None:
            return cast(LessonCompletionResponse, cached)

        version = self.memo.next_version()
        result = self._load_completion(stable_lesson_ids(ids_list), version)
        self.memo.put(COMPLETION, key, result)
        return result

    @BaseService.measure_operation("is_lesson_completed")
    def is_lesson_completed(self, lesson_id: str) -> bool:
        """Single-lesson completion check; any read failure counts as not completed."""
        try:
            roster_rows, attendance_rows, homework_ids = self._fetch_completion([lesson_id])
        except RepositoryException as e:
            self.logger.error(f"Error checking completion for lesson {lesson_id}: {str(e)}")
            self.db.rollback()
            return False
        return self._completion_flags(
            lesson_id, roster_rows, attendance_rows, homework_ids
        ).is_completed

    @BaseService.measure_operation("get_completed_lessons")
    def get_completed_lessons(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        tutor_ids: Optional[Sequence[str]] = None,
        subjects: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """
        Ids of lessons matching the filters that satisfy the completion policy.

        Dates are local calendar days, inclusive: a lesson must start on or after
        ``date_from`` and end by the close of ``date_to``. Order follows lesson
        start, newest first.
        """
        start_from = local_day_bounds(date_from, date_from)[0] if date_from else None
        end_to = local_day_bounds(date_to, date_to)[1] if date_to else None
        lesson_ids = self.lesson_repository.find_lesson_ids(
            start_from=start_from, end_to=end_to, tutor_ids=tutor_ids, subjects=subjects
        )
        if not lesson_ids:
            return []

        version = self.memo.next_version()
        completion = self._load_completion(stable_lesson_ids(lesson_ids), version)
        return [
            lesson_id
            for lesson_id in lesson_ids
            if lesson_id in completion.data and completion.data[lesson_id].is_completed
        ]
