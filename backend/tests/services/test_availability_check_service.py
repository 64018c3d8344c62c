from datetime import date, time
from unittest.mock import MagicMock

import pytest

from lessonhub.core.enums import ConflictType, LessonStatus, LessonType, TimeOffStatus, Weekday
from lessonhub.core.exceptions import RepositoryException
from lessonhub.repositories.factory import RepositoryFactory
from lessonhub.services.availability_check_service import AvailabilityCheckService
from tests.helpers import utc

# 2030-01-14 is a Monday; January keeps Europe/London on UTC.
MONDAY = (2030, 1, 14)
TUESDAY = (2030, 1, 15)


@pytest.fixture
def service(db):
    return AvailabilityCheckService(db)


@pytest.fixture
def tutor(factory):
    tutor = factory.tutor("Tess", "Tutor")
    factory.window(tutor, Weekday.MONDAY, time(9), time(17))
    factory.window(tutor, Weekday.TUESDAY, time(9), time(17))
    return tutor


def _types(result):
    return [ConflictType(c.type) for c in result.conflicts]


class TestWeeklyAvailability:
    def test_request_inside_window_is_available(self, service, tutor):
        result = service.perform_full_availability_check(
            tutor.id, utc(*MONDAY, 10), utc(*MONDAY, 11)
        )
        assert result.is_available
        assert result.conflicts == []
        assert result.suggestions == []

    def test_request_starting_before_window_conflicts(self, service, tutor):
        result = service.perform_full_availability_check(
            tutor.id, utc(*MONDAY, 8), utc(*MONDAY, 9, 30)
        )
        assert not result.is_available
        assert _types(result) == [ConflictType.TUTOR_AVAILABILITY]
        assert "09:00 - 17:00" in result.conflicts[0].message

    def test_day_without_windows_conflicts(self, service, tutor):
        # 2030-01-16 is a Wednesday
        conflicts = service.check_tutor_availability(
            tutor.id, utc(2030, 1, 16, 10), utc(2030, 1, 16, 11)
        )
        assert len(conflicts) == 1
        assert conflicts[0].message == "Tutor is not available on wednesdays"

    def test_window_is_read_in_local_time(self, service, factory):
        tutor = factory.tutor("Summer", "Tutor")
        factory.window(tutor, Weekday.MONDAY, time(9), time(17))
        # 2030-07-15 08:30 UTC is 09:30 in London (BST)
        conflicts = service.check_tutor_availability(
            tutor.id, utc(2030, 7, 15, 8, 30), utc(2030, 7, 15, 9, 30)
        )
        assert conflicts == []

    def test_range_crossing_midnight_never_fits(self, service, factory):
        tutor = factory.tutor("Night", "Owl")
        factory.window(tutor, Weekday.MONDAY, time(0), time(23, 59))
        conflicts = service.check_tutor_availability(
            tutor.id, utc(*MONDAY, 23), utc(*TUESDAY, 0, 30)
        )
        assert [ConflictType(c.type) for c in conflicts] == [ConflictType.TUTOR_AVAILABILITY]


class TestLessonConflicts:
    def test_overlapping_lesson_conflicts_once(self, service, factory, tutor):
        factory.lesson(tutor, utc(*TUESDAY, 10), utc(*TUESDAY, 11), title="Algebra")
        conflicts = service.check_calendar_conflicts(
            tutor.id, utc(*TUESDAY, 10, 30), utc(*TUESDAY, 11, 30)
        )
        assert len(conflicts) == 1
        assert conflicts[0].message == (
            'Conflicts with existing lesson: "Algebra" (10:00 AM - 11:00 AM)'
        )

    def test_touching_lesson_does_not_conflict(self, service, factory, tutor):
        factory.lesson(tutor, utc(*TUESDAY, 10), utc(*TUESDAY, 11))
        assert service.check_calendar_conflicts(
            tutor.id, utc(*TUESDAY, 11), utc(*TUESDAY, 12)
        ) == []

    def test_demo_cancelled_and_excluded_lessons_are_ignored(self, service, factory, tutor):
        factory.lesson(
            tutor, utc(*TUESDAY, 10), utc(*TUESDAY, 11), lesson_type=LessonType.DEMO
        )
        factory.lesson(
            tutor, utc(*TUESDAY, 10), utc(*TUESDAY, 11), status=LessonStatus.CANCELLED
        )
        edited = factory.lesson(tutor, utc(*TUESDAY, 10), utc(*TUESDAY, 11))
        conflicts = service.check_calendar_conflicts(
            tutor.id, utc(*TUESDAY, 10), utc(*TUESDAY, 11), exclude_lesson_id=edited.id
        )
        assert conflicts == []

    def test_in_progress_lesson_blocks(self, service, factory, tutor):
        factory.lesson(
            tutor, utc(*TUESDAY, 10), utc(*TUESDAY, 11), status=LessonStatus.IN_PROGRESS
        )
        assert len(service.check_calendar_conflicts(
            tutor.id, utc(*TUESDAY, 10), utc(*TUESDAY, 11)
        )) == 1


class TestTimeOffConflicts:
    def test_last_day_of_time_off_is_blocked(self, service, factory, tutor):
        factory.time_off(tutor, date(2030, 12, 20), date(2030, 12, 22), reason="Family trip")
        conflicts = service.check_time_off_conflicts(
            tutor.id, utc(2030, 12, 22, 9), utc(2030, 12, 22, 10)
        )
        assert len(conflicts) == 1
        assert conflicts[0].message == (
            "Conflicts with approved time off: Dec 20 - Dec 22, 2030 (Family trip)"
        )

    def test_time_off_and_lesson_boundaries_differ(self, service, factory, tutor):
        factory.time_off(tutor, date(2030, 12, 20), date(2030, 12, 22))
        factory.lesson(tutor, utc(2030, 12, 22, 10), utc(2030, 12, 22, 11))
        start, end = utc(2030, 12, 22, 9), utc(2030, 12, 22, 10)

        assert len(service.check_time_off_conflicts(tutor.id, start, end)) == 1
        assert service.check_calendar_conflicts(tutor.id, start, end) == []

    def test_pending_and_rejected_time_off_do_not_block(self, service, factory, tutor):
        factory.time_off(tutor, date(2030, 12, 20), date(2030, 12, 22), TimeOffStatus.PENDING)
        factory.time_off(tutor, date(2030, 12, 20), date(2030, 12, 22), TimeOffStatus.REJECTED)
        assert service.check_time_off_conflicts(
            tutor.id, utc(2030, 12, 21, 9), utc(2030, 12, 21, 10)
        ) == []

    def test_day_after_time_off_is_free(self, service, factory, tutor):
        factory.time_off(tutor, date(2030, 12, 20), date(2030, 12, 22))
        assert service.check_time_off_conflicts(
            tutor.id, utc(2030, 12, 23, 9), utc(2030, 12, 23, 10)
        ) == []


class TestStudentConflicts:
    def test_names_the_double_booked_students(self, service, factory, tutor):
        other = factory.tutor("Other", "Tutor")
        alice = factory.student("Alice", "Able")
        bob = factory.student("Bob", "Baker")
        factory.lesson(
            other, utc(*MONDAY, 10), utc(*MONDAY, 11), title="Physics", students=[alice, bob]
        )
        conflicts = service.check_student_conflicts(
            [alice.id], utc(*MONDAY, 10, 30), utc(*MONDAY, 11, 30)
        )
        assert len(conflicts) == 1
        assert conflicts[0].message == (
            'Student conflict: Alice Able already has lesson "Physics" (10:00 AM - 11:00 AM)'
        )

    def test_no_students_no_query(self, db):
        repo = MagicMock()
        service = AvailabilityCheckService(db, conflict_repository=repo)
        assert service.check_student_conflicts([], utc(*MONDAY, 10), utc(*MONDAY, 11)) == []
        repo.get_overlapping_student_lessons.assert_not_called()

    def test_student_conflict_alone_does_not_search_alternatives(self, service, factory, tutor):
        other = factory.tutor("Other", "Tutor")
        factory.window(other, Weekday.MONDAY, time(9), time(17))
        alice = factory.student("Alice", "Able")
        factory.lesson(other, utc(*MONDAY, 10), utc(*MONDAY, 11), students=[alice])

        result = service.perform_full_availability_check(
            tutor.id, utc(*MONDAY, 10), utc(*MONDAY, 11), student_ids=[alice.id]
        )
        assert _types(result) == [ConflictType.STUDENT_CONFLICT]
        assert result.alternative_tutors == []
        assert not result.has_alternatives

    def test_demo_cancelled_and_excluded_lessons_are_ignored(self, service, factory, tutor):
        other = factory.tutor("Other", "Tutor")
        alice = factory.student("Alice", "Able")
        factory.lesson(
            other,
            utc(*MONDAY, 10),
            utc(*MONDAY, 11),
            lesson_type=LessonType.DEMO,
            students=[alice],
        )
        factory.lesson(
            other,
            utc(*MONDAY, 10),
            utc(*MONDAY, 11),
            status=LessonStatus.CANCELLED,
            students=[alice],
        )
        edited = factory.lesson(other, utc(*MONDAY, 10), utc(*MONDAY, 11), students=[alice])

        conflicts = service.check_student_conflicts(
            [alice.id], utc(*MONDAY, 10), utc(*MONDAY, 11), exclude_lesson_id=edited.id
        )

        assert conflicts == []

    def test_touching_lessons_do_not_conflict(self, service, factory, tutor):
        other = factory.tutor("Other", "Tutor")
        alice = factory.student("Alice", "Able")
        factory.lesson(other, utc(*MONDAY, 9), utc(*MONDAY, 10), students=[alice])
        factory.lesson(other, utc(*MONDAY, 11), utc(*MONDAY, 12), students=[alice])

        assert service.check_student_conflicts(
            [alice.id], utc(*MONDAY, 10), utc(*MONDAY, 11)
        ) == []

    def test_only_requested_students_are_named(self, service, factory, tutor):
        other = factory.tutor("Other", "Tutor")
        alice, bob = factory.student("Alice", "Able"), factory.student("Bob", "Baker")
        factory.lesson(other, utc(*MONDAY, 10), utc(*MONDAY, 11), students=[alice, bob])

        conflicts = service.check_student_conflicts(
            [bob.id], utc(*MONDAY, 10), utc(*MONDAY, 11)
        )

        assert [c.details["conflicting_students"] for c in conflicts] == [["Bob Baker"]]


class TestCheckFailures:
    def test_failing_query_reports_error_conflict(self, db, factory, tutor):
        repo = MagicMock()
        repo.get_overlapping_tutor_lessons.side_effect = RepositoryException("db down")
        repo.get_approved_time_off.return_value = []
        service = AvailabilityCheckService(db, conflict_repository=repo)

        result = service.perform_full_availability_check(
            tutor.id, utc(*MONDAY, 10), utc(*MONDAY, 11), include_alternatives=False
        )

        assert not result.is_available
        assert _types(result) == [ConflictType.LESSON_CONFLICT]
        conflict = result.conflicts[0]
        assert conflict.message == "Error checking calendar conflicts"
        assert conflict.details["error"] == "db down"
        assert conflict.is_check_error

    def test_conflicts_keep_check_order(self, db, tutor):
        availability = MagicMock()
        availability.get_windows_for_day.side_effect = RepositoryException("a")
        conflicts = MagicMock()
        conflicts.get_overlapping_tutor_lessons.side_effect = RepositoryException("b")
        conflicts.get_approved_time_off.side_effect = RepositoryException("c")
        conflicts.get_overlapping_student_lessons.side_effect = RepositoryException("d")
        service = AvailabilityCheckService(
            db, conflict_repository=conflicts, availability_repository=availability
        )

        result = service.perform_full_availability_check(
            tutor.id, utc(*MONDAY, 10), utc(*MONDAY, 11), student_ids=[1],
            include_alternatives=False,
        )

        assert _types(result) == [
            ConflictType.TUTOR_AVAILABILITY,
            ConflictType.LESSON_CONFLICT,
            ConflictType.TIME_OFF,
            ConflictType.STUDENT_CONFLICT,
        ]
        assert [c.details["error"] for c in result.conflicts] == ["a", "b", "c", "d"]

    def test_alternative_search_failure_yields_no_alternatives(self, db, factory, tutor):
        tutors = MagicMock()
        tutors.get_active_tutors.side_effect = RepositoryException("boom")
        service = AvailabilityCheckService(db, tutor_repository=tutors)

        result = service.perform_full_availability_check(
            tutor.id, utc(*MONDAY, 8), utc(*MONDAY, 9)
        )
        assert not result.is_available
        assert result.alternative_tutors == []

    def test_failed_check_rolls_back_and_later_checks_still_run(
        self, db, factory, tutor, monkeypatch
    ):
        other = factory.tutor("Other", "Tutor")
        alice = factory.student("Alice", "Able")
        factory.lesson(other, utc(*MONDAY, 10), utc(*MONDAY, 11), students=[alice])
        conflicts = MagicMock(wraps=RepositoryFactory.create_conflict_checker_repository(db))
        conflicts.get_overlapping_tutor_lessons.side_effect = RepositoryException("aborted")
        rollback = MagicMock(wraps=db.rollback)
        monkeypatch.setattr(db, "rollback", rollback)
        service = AvailabilityCheckService(db, conflict_repository=conflicts)

        result = service.perform_full_availability_check(
            tutor.id,
            utc(*MONDAY, 10),
            utc(*MONDAY, 11),
            student_ids=[alice.id],
            include_alternatives=False,
        )

        assert _types(result) == [ConflictType.LESSON_CONFLICT, ConflictType.STUDENT_CONFLICT]
        assert result.conflicts[0].is_check_error
        assert not result.conflicts[1].is_check_error
        rollback.assert_called_once()


class TestAlternativeTutors:
    def test_ranked_candidates_exclude_original_and_unavailable(self, service, factory, tutor):
        free = factory.tutor("Zoe", "Zephyr")
        factory.window(free, Weekday.MONDAY, time(8), time(12))
        busy = factory.tutor("Adam", "Able")
        factory.window(busy, Weekday.MONDAY, time(9), time(17))
        factory.lesson(busy, utc(*MONDAY, 10), utc(*MONDAY, 11))
        away = factory.tutor("Bea", "Beach")
        factory.window(away, Weekday.MONDAY, time(9), time(17))
        factory.time_off(away, date(2030, 1, 14), date(2030, 1, 14))
        no_window = factory.tutor("Carl", "Closed")
        factory.window(no_window, Weekday.MONDAY, time(13), time(17))
        factory.tutor("Ida", "Inactive", status="inactive")

        candidates = service.find_alternative_tutors(
            tutor.id, utc(*MONDAY, 10), utc(*MONDAY, 11)
        )

        assert [c.full_name for c in candidates] == ["Zoe Zephyr", "Adam Able", "Bea Beach"]
        assert [c.has_conflict for c in candidates] == [False, True, True]
        assert candidates[0].available_slots == ["08:00 - 12:00"]
        assert tutor.id not in {c.id for c in candidates}

    def test_full_check_attaches_alternatives_for_tutor_conflicts(self, service, factory, tutor):
        factory.lesson(tutor, utc(*MONDAY, 10), utc(*MONDAY, 11))
        other = factory.tutor("Olga", "Other")
        factory.window(other, Weekday.MONDAY, time(9), time(17))

        result = service.perform_full_availability_check(
            tutor.id, utc(*MONDAY, 10), utc(*MONDAY, 11)
        )
        assert result.has_alternatives
        assert [c.id for c in result.alternative_tutors] == [other.id]

    def test_alternatives_can_be_switched_off(self, service, factory, tutor):
        factory.lesson(tutor, utc(*MONDAY, 10), utc(*MONDAY, 11))
        other = factory.tutor("Olga", "Other")
        factory.window(other, Weekday.MONDAY, time(9), time(17))

        result = service.perform_full_availability_check(
            tutor.id, utc(*MONDAY, 10), utc(*MONDAY, 11), include_alternatives=False
        )
        assert result.alternative_tutors == []
