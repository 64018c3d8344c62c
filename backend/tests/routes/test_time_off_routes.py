from datetime import date

from lessonhub.core.enums import TimeOffStatus
from lessonhub.models import Lesson
from tests.helpers import utc


def _submit(client, tutor_id, start="2030-01-14", end="2030-01-15", reason="Holiday"):
    return client.post(
        "/api/v1/time-off/requests",
        json={"tutor_id": tutor_id, "start_date": start, "end_date": end, "reason": reason},
    )


def test_submit_review_and_list(client, factory):
    tutor = factory.tutor()
    lesson = factory.lesson(tutor, utc(2030, 1, 14, 10), utc(2030, 1, 14, 11))

    created = _submit(client, tutor.id)
    assert created.status_code == 201
    request_id = created.json()["id"]
    assert created.json()["status"] == "pending"

    pending = client.get(
        "/api/v1/time-off/requests", params={"tutor_id": tutor.id, "status": "pending"}
    )
    assert [r["id"] for r in pending.json()] == [request_id]

    reviewed = client.post(
        f"/api/v1/time-off/requests/{request_id}/review",
        json={"approve": True, "admin_user_id": "admin-1", "admin_notes": "ok"},
    )
    assert reviewed.status_code == 200
    body = reviewed.json()
    assert body["request"]["status"] == "approved"
    assert body["request"]["reviewed_by"] == "admin-1"
    assert [c["id"] for c in body["impact"]["conflicts"]] == [lesson.id]
    assert body["impact"]["can_approve"] is False


def test_rejection_has_no_impact(client, factory):
    tutor = factory.tutor()
    request_id = _submit(client, tutor.id).json()["id"]

    body = client.post(
        f"/api/v1/time-off/requests/{request_id}/review",
        json={"approve": False, "admin_user_id": "admin-1"},
    ).json()

    assert body["request"]["status"] == "rejected"
    assert body["impact"] is None


def test_reviewing_twice_is_a_business_rule_problem(client, factory):
    tutor = factory.tutor()
    request = factory.time_off(
        tutor, date(2030, 1, 14), date(2030, 1, 15), status=TimeOffStatus.APPROVED
    )

    response = client.post(
        f"/api/v1/time-off/requests/{request.id}/review",
        json={"approve": True, "admin_user_id": "admin-1"},
    )

    assert response.status_code == 422
    assert response.json()["code"] == "INVALID_STATE_TRANSITION"


def test_short_notice_is_refused(client, factory):
    tutor = factory.tutor()
    today = date.today().isoformat()

    response = _submit(client, tutor.id, start=today, end=today)

    assert response.status_code == 422
    assert response.json()["code"] == "INSUFFICIENT_NOTICE"


def test_cancel_is_limited_to_the_owner(client, factory):
    tutor, other = factory.tutor("Ada"), factory.tutor("Bob")
    request_id = _submit(client, tutor.id).json()["id"]

    forbidden = client.delete(
        f"/api/v1/time-off/requests/{request_id}", params={"tutor_id": other.id}
    )
    assert forbidden.status_code == 403

    cancelled = client.delete(
        f"/api/v1/time-off/requests/{request_id}", params={"tutor_id": tutor.id}
    )
    assert cancelled.status_code == 204
    assert client.get("/api/v1/time-off/requests").json() == []


def test_conflicts_requires_ordered_dates(client, factory):
    tutor = factory.tutor()

    response = client.get(
        "/api/v1/time-off/conflicts",
        params={"tutor_id": tutor.id, "start_date": "2030-01-15", "end_date": "2030-01-14"},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_DATE_RANGE"


def test_conflicts_preview(client, factory):
    tutor = factory.tutor()
    lesson = factory.lesson(tutor, utc(2030, 1, 14, 10), utc(2030, 1, 14, 11))

    body = client.get(
        "/api/v1/time-off/conflicts",
        params={"tutor_id": tutor.id, "start_date": "2030-01-14", "end_date": "2030-01-14"},
    ).json()

    assert body["has_conflicts"] is True
    assert [c["id"] for c in body["conflicts"]] == [lesson.id]


def test_resolutions_apply_in_order(client, factory, db, video_client):
    tutor, other = factory.tutor("Tess", "Tutor"), factory.tutor("Olga", "Other")
    moved = factory.lesson(tutor, utc(2030, 1, 14, 10), utc(2030, 1, 14, 11))
    cancelled = factory.lesson(tutor, utc(2030, 1, 14, 12), utc(2030, 1, 14, 13))

    response = client.post(
        "/api/v1/time-off/resolutions",
        json={
            "admin_user_id": "admin-1",
            "resolutions": [
                {"lesson_id": moved.id, "action": "reassign", "new_tutor_id": other.id},
                {"lesson_id": cancelled.id, "action": "cancel"},
                {"lesson_id": cancelled.id, "action": "reschedule"},
            ],
        },
    )

    assert response.status_code == 200
    assert [r["outcome"] for r in response.json()] == ["applied", "applied", "not_implemented"]
    db.expire_all()
    assert db.query(Lesson).filter_by(id=moved.id).one().tutor_id == other.id
    assert db.query(Lesson).filter_by(id=cancelled.id).one().status == "cancelled"
    assert [call["lesson_id"] for call in video_client.calls] == [moved.id]


def test_resolution_for_unknown_lesson_is_not_found(client):
    response = client.post(
        "/api/v1/time-off/resolutions",
        json={
            "admin_user_id": "admin-1",
            "resolutions": [{"lesson_id": "missing", "action": "cancel"}],
        },
    )
    assert response.status_code == 404


def test_alternative_tutors_for_lesson(client, factory):
    tutor = factory.tutor("Tess", "Tutor")
    lesson = factory.lesson(tutor, utc(2030, 1, 14, 10), utc(2030, 1, 14, 11))

    response = client.get(
        f"/api/v1/time-off/lessons/{lesson.id}/alternative-tutors",
        params={"exclude_tutor_id": tutor.id},
    )

    assert response.status_code == 200
    assert response.json() == []
