"""Route fixtures: the app runs against the test session and a fake video client."""

import pytest
from fastapi.testclient import TestClient

from lessonhub.api.dependencies import get_db, get_status_memo, get_video_room_client
from lessonhub.integrations.lesson_space_client import FakeLessonSpaceClient
from lessonhub.main import create_app
from lessonhub.services.lesson_status_service import StatusMemo


@pytest.fixture
def video_client():
    return FakeLessonSpaceClient()


@pytest.fixture
def client(db, video_client):
    app = create_app()
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_video_room_client] = lambda: video_client
    memo = StatusMemo()
    app.dependency_overrides[get_status_memo] = lambda: memo
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
