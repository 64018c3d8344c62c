import pytest

from lessonhub.core.exceptions import (
    BusinessRuleException,
    ConflictException,
    ForbiddenException,
    InsufficientNoticeException,
    NotFoundException,
    ServiceException,
    ValidationException,
)


@pytest.mark.parametrize(
    "exc_class,status_code",
    [
        (ValidationException, 400),
        (ForbiddenException, 403),
        (NotFoundException, 404),
        (ConflictException, 409),
        (BusinessRuleException, 422),
    ],
)
def test_http_status_mapping(exc_class, status_code):
    http_exc = exc_class("boom", code="SOME_CODE").to_http_exception()

    assert http_exc.status_code == status_code
    assert http_exc.detail == {"message": "boom", "code": "SOME_CODE", "details": {}}


def test_code_defaults_to_class_name():
    assert NotFoundException("gone").code == "NotFoundException"


def test_service_exception_is_a_server_error():
    assert ServiceException("db down").to_http_exception().status_code == 500


def test_insufficient_notice_never_reports_negative_days():
    exc = InsufficientNoticeException(required_days=6, provided_days=-3)

    assert exc.code == "INSUFFICIENT_NOTICE"
    assert exc.details == {"required_days": 6, "days_notice": 0}
