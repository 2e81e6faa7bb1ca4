"""Errors raised while reconciling an entity against the remote service.

Every error is terminal for the operation that raised it. The reconciler
attaches the entity kind, its key and the failed sub-step before the error
leaves the operation, so callers can tell which remote effects already
happened.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

if TYPE_CHECKING:
    from collections.abc import Sequence


class ReconcileError(RuntimeError):
    """Base class for reconciliation failures."""

    def __init__(
        self,
        message: str,
        *,
        kind: str | None = None,
        key: object | None = None,
        step: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.key = key
        self.step = step

    def bind(self, *, kind: str | None, key: object | None, step: str | None) -> Self:
        """Fill in missing context without overwriting what is already known."""

        if self.kind is None:
            self.kind = kind
        if self.key is None:
            self.key = key
        if self.step is None:
            self.step = step
        return self

    def __str__(self) -> str:
        context: list[str] = []
        if self.kind is not None:
            context.append(str(self.kind) if self.key is None else f"{self.kind} {self.key}")
        if self.step is not None:
            context.append(f"step={self.step}")
        if not context:
            return self.message
        return f"{self.message} [{', '.join(context)}]"


class TransportError(ReconcileError):
    """Network or serialization failure before a usable status code exists."""

    def __init__(self, message: str, *, operation: str) -> None:
        super().__init__(message)
        self.operation = operation


class UnexpectedStatusError(ReconcileError):
    """The service answered with a status other than the documented success status."""

    def __init__(
        self,
        expected: int,
        actual: int,
        *,
        message: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message or f"Expected HTTP {expected}, got {actual}")
        self.expected = expected
        self.actual = actual
        self.operation = operation


class ServiceError(UnexpectedStatusError):
    """Client error carrying the service's own error message."""

    def __init__(
        self,
        expected: int,
        actual: int,
        *,
        service_message: str,
        operation: str | None = None,
    ) -> None:
        super().__init__(expected, actual, message=service_message, operation=operation)
        self.service_message = service_message


class DataShapeError(ReconcileError):
    """The service answered successfully but the payload violates an invariant."""


class AmbiguousResultError(DataShapeError):
    """A query that should match at most one row matched several."""

    def __init__(self, *, expected: int, actual: int, what: str) -> None:
        super().__init__(f"Expected at most {expected} {what}, got {actual}")
        self.expected = expected
        self.actual = actual


class MissingIdentifierError(DataShapeError):
    """A create response did not carry the new identifier."""

    def __init__(self, *, header: str, operation: str) -> None:
        super().__init__(f"Missing resource id: expected header '{header}' on {operation} response")
        self.header = header
        self.operation = operation


class RestrictionConflictError(DataShapeError):
    """More than one restriction branch was populated in a payload."""

    def __init__(self, branches: Sequence[str]) -> None:
        super().__init__(
            f"Restrictions must populate exactly one branch, got: {', '.join(branches)}"
        )
        self.branches = tuple(branches)


class UnsupportedValueError(DataShapeError):
    """A payload field holds a value outside the modeled domain."""


class MissingEntityError(DataShapeError):
    """An entity that was just written (or explicitly requested) could not be read."""


class RequiresReplacementError(ReconcileError):
    """The planned change touches fields that can only change by recreating the entity."""

    def __init__(self, fields: Sequence[str]) -> None:
        super().__init__(f"Changing {', '.join(fields)} requires replacement")
        self.fields = tuple(fields)
