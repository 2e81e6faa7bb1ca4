"""Typed view over one Bluestone HTTP response."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from pydantic import BaseModel, ValidationError

from pimsync.domain.errors import TransportError

from .schema import ErrorResponse

if TYPE_CHECKING:
    import httpx

log = getLogger(__name__)

type ErrorBodyDecoder = Callable[[bytes], ErrorResponse]

ERROR_BODY_DECODERS: Final[Mapping[int, ErrorBodyDecoder]] = MappingProxyType(
    {
        400: ErrorResponse.model_validate_json,
        401: ErrorResponse.model_validate_json,
        403: ErrorResponse.model_validate_json,
        404: ErrorResponse.model_validate_json,
        409: ErrorResponse.model_validate_json,
        422: ErrorResponse.model_validate_json,
    }
)
"""Client-error statuses the service documents an error body for."""


@dataclass(frozen=True, slots=True)
class ApiResponse[T: BaseModel]:
    operation: str
    status_code: int
    headers: Mapping[str, str]
    content: bytes
    model: type[T] | None = None

    @classmethod
    def from_httpx(
        cls,
        operation: str,
        response: httpx.Response,
        model: type[T] | None = None,
    ) -> ApiResponse[T]:
        return cls(
            operation=operation,
            status_code=response.status_code,
            headers=response.headers,
            content=response.content,
            model=model,
        )

    def header(self, name: str) -> str | None:
        value = self.headers.get(name)
        if value is None:
            return None
        return value.strip() or None

    def body(self) -> T:
        """Decode the success body with the endpoint's model."""

        if self.model is None:
            raise TypeError(f"{self.operation} does not declare a response body")
        try:
            return self.model.model_validate_json(self.content)
        except ValidationError as exc:
            raise TransportError(
                f"Malformed {self.operation} response: {exc}", operation=self.operation
            ) from exc

    def error_body(self) -> ErrorResponse | None:
        decoder = ERROR_BODY_DECODERS.get(self.status_code)
        if decoder is None or not self.content:
            return None
        try:
            return decoder(self.content)
        except ValidationError:
            log.debug("%s: HTTP %s body is not an error document", self.operation, self.status_code)
            return None
