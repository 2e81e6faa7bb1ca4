"""Classify remote responses against the documented success status."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pimsync.domain.errors import ServiceError, UnexpectedStatusError

if TYPE_CHECKING:
    from pimsync.domain.ports import StatusResponse


def check_status(response: StatusResponse, expected: int) -> UnexpectedStatusError | None:
    """Return the error describing ``response``, or ``None`` when it is the expected status.

    For client errors (4xx) the body is decoded through the response's
    status-keyed decoder table; when it carries an ``error`` string that
    string becomes the error message.
    """

    actual = response.status_code
    if actual == expected:
        return None

    if 400 <= actual < 500:
        body = response.error_body()
        if body is not None and body.error:
            return ServiceError(
                expected,
                actual,
                service_message=body.error,
                operation=response.operation,
            )

    return UnexpectedStatusError(expected, actual, operation=response.operation)


def assert_status_code(response: StatusResponse, expected: int) -> None:
    error = check_status(response, expected)
    if error is not None:
        raise error
