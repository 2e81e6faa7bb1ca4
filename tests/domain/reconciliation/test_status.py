from __future__ import annotations

from dataclasses import dataclass

import pytest

from pimsync.domain.errors import ServiceError, UnexpectedStatusError
from pimsync.domain.reconciliation import assert_status_code, check_status


@dataclass(frozen=True)
class _ErrorBody:
    error: str | None


@dataclass(frozen=True)
class _Response:
    status_code: int
    body: _ErrorBody | None = None
    operation: str = "create category"

    def error_body(self) -> _ErrorBody | None:
        return self.body


def test_expected_status_is_not_an_error() -> None:
    assert check_status(_Response(201), 201) is None
    assert_status_code(_Response(204), 204)


def test_other_success_status_is_still_an_error() -> None:
    error = check_status(_Response(200), 201)

    assert isinstance(error, UnexpectedStatusError)
    assert (error.expected, error.actual) == (201, 200)
    assert error.operation == "create category"


def test_client_error_uses_the_service_message() -> None:
    error = check_status(_Response(409, _ErrorBody("Name already taken")), 201)

    assert isinstance(error, ServiceError)
    assert error.message == "Name already taken"
    assert error.actual == 409


def test_client_error_without_body_falls_back_to_status() -> None:
    error = check_status(_Response(404), 200)

    assert type(error) is UnexpectedStatusError
    assert error.message == "Expected HTTP 200, got 404"


def test_client_error_with_empty_message_falls_back_to_status() -> None:
    error = check_status(_Response(400, _ErrorBody(None)), 204)

    assert type(error) is UnexpectedStatusError


def test_server_error_never_reads_the_body() -> None:
    response = _Response(500, _ErrorBody("boom"))

    with pytest.raises(UnexpectedStatusError) as exc:
        assert_status_code(response, 200)

    assert not isinstance(exc.value, ServiceError)
