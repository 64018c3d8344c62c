"""LessonSpace video-room integration client.

Rooms are created through the ``lesson-space-integration`` edge function, which
holds the LessonSpace credentials. LessonHub only needs to (re)create a room
when a lesson changes tutor, so that participant URLs are regenerated.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, cast
import uuid

import httpx
from pydantic import SecretStr

from ..core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class LessonSpaceError(RuntimeError):
    """Raised when the edge function fails or reports an unsuccessful result."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class LessonSpaceClient:
    """HTTP client for the LessonSpace edge function."""

    def __init__(
        self,
        *,
        function_url: str,
        api_key: str | SecretStr | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._function_url = function_url
        self._api_key = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key
        self._timeout = timeout
        self._transport = transport

    def _invoke(self, body: dict[str, Any]) -> dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(self._function_url, headers=headers, json=body)
        except httpx.TransportError as exc:
            logger.error("LessonSpace function unreachable for %s: %s", body.get("action"), exc)
            raise LessonSpaceError(f"LessonSpace function unreachable: {exc}") from exc

        if response.status_code >= 400:
            logger.error(
                "LessonSpace function error %s for %s: %s",
                response.status_code,
                body.get("action"),
                response.text[:500],
            )
            raise LessonSpaceError(
                message=response.text[:500] or "LessonSpace function error",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise LessonSpaceError(
                "LessonSpace function returned invalid JSON", status_code=response.status_code
            ) from exc

        if not isinstance(data, dict) or not data.get("success"):
            raise LessonSpaceError(
                "LessonSpace room operation was not successful",
                status_code=response.status_code,
                details=data,
            )
        return cast(dict[str, Any], data)

    def create_room(
        self,
        *,
        lesson_id: str,
        title: str = "Reassigned Lesson Room",
        start_time: datetime | None = None,
    ) -> dict[str, Any]:
        """Create (or recreate) the room attached to ``lesson_id``."""
        started = start_time or datetime.now(timezone.utc)
        return self._invoke(
            {
                "action": "create-room",
                "lessonId": lesson_id,
                "title": title,
                "startTime": started.isoformat(),
            }
        )


class FakeLessonSpaceClient:
    """In-memory stub for testing/non-production environments."""

    def __init__(self, **kwargs: Any) -> None:
        self._calls: list[dict[str, Any]] = []
        self._error: LessonSpaceError | None = None

    def set_error(self, error: LessonSpaceError | None) -> None:
        """Make every subsequent call raise ``error`` (``None`` clears it)."""
        self._error = error

    @property
    def calls(self) -> list[dict[str, Any]]:
        return list(self._calls)

    def create_room(self, *, lesson_id: str, **kwargs: Any) -> dict[str, Any]:
        self._calls.append({"method": "create_room", "lesson_id": lesson_id, **kwargs})
        if self._error is not None:
            raise self._error
        return {
            "success": True,
            "roomId": f"fake_room_{uuid.uuid4().hex[:12]}",
            "lessonId": lesson_id,
        }


def build_lesson_space_client(
    config: Settings | None = None,
) -> LessonSpaceClient | FakeLessonSpaceClient:
    """Real client when the integration is enabled, otherwise the in-memory fake."""
    cfg = config or default_settings
    if not cfg.lesson_space_enabled:
        return FakeLessonSpaceClient()
    return LessonSpaceClient(
        function_url=cfg.lesson_space_function_url,
        api_key=cfg.lesson_space_api_key,
        timeout=cfg.lesson_space_timeout_seconds,
    )
