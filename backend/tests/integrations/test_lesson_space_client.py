from datetime import datetime, timezone
import json

import httpx
import pytest

from lessonhub.core.config import Settings
from lessonhub.integrations.lesson_space_client import (
    FakeLessonSpaceClient,
    LessonSpaceClient,
    LessonSpaceError,
    build_lesson_space_client,
)

FUNCTION_URL = "https://edge.example.test/functions/v1/lesson-space-integration"


def _client(handler, api_key="secret-key"):
    return LessonSpaceClient(
        function_url=FUNCTION_URL, api_key=api_key, transport=httpx.MockTransport(handler)
    )


def test_create_room_posts_action_and_bearer_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "roomId": "room-1"})

    started = datetime(2030, 1, 14, 10, tzinfo=timezone.utc)
    result = _client(handler).create_room(lesson_id="L1", start_time=started)

    assert result["roomId"] == "room-1"
    assert seen["url"] == FUNCTION_URL
    assert seen["auth"] == "Bearer secret-key"
    assert seen["body"] == {
        "action": "create-room",
        "lessonId": "L1",
        "title": "Reassigned Lesson Room",
        "startTime": "2030-01-14T10:00:00+00:00",
    }


def test_no_api_key_sends_no_authorization_header():
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Authorization" not in request.headers
        return httpx.Response(200, json={"success": True})

    _client(handler, api_key=None).create_room(lesson_id="L1")


def test_error_status_raises_with_status_code():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    with pytest.raises(LessonSpaceError) as exc_info:
        _client(handler).create_room(lesson_id="L1")

    assert exc_info.value.status_code == 502
    assert exc_info.value.message == "bad gateway"


def test_invalid_json_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>")

    with pytest.raises(LessonSpaceError, match="invalid JSON"):
        _client(handler).create_room(lesson_id="L1")


def test_unsuccessful_result_raises_with_details():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "error": "quota"})

    with pytest.raises(LessonSpaceError) as exc_info:
        _client(handler).create_room(lesson_id="L1")

    assert exc_info.value.details == {"success": False, "error": "quota"}


def test_transport_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(LessonSpaceError, match="unreachable"):
        _client(handler).create_room(lesson_id="L1")


class TestFakeClient:
    def test_records_calls_and_returns_room(self):
        fake = FakeLessonSpaceClient()

        result = fake.create_room(lesson_id="L1", title="Room")

        assert result["success"] is True
        assert result["roomId"].startswith("fake_room_")
        assert fake.calls == [{"method": "create_room", "lesson_id": "L1", "title": "Room"}]

    def test_configured_error_is_raised(self):
        fake = FakeLessonSpaceClient()
        fake.set_error(LessonSpaceError("down", status_code=503))

        with pytest.raises(LessonSpaceError):
            fake.create_room(lesson_id="L1")

        fake.set_error(None)
        assert fake.create_room(lesson_id="L1")["success"] is True
        assert len(fake.calls) == 2


def test_builder_picks_client_from_settings():
    disabled = Settings(lesson_space_enabled=False)
    enabled = Settings(lesson_space_enabled=True, lesson_space_api_key="k")

    assert isinstance(build_lesson_space_client(disabled), FakeLessonSpaceClient)
    assert isinstance(build_lesson_space_client(enabled), LessonSpaceClient)
