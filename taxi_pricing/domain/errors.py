from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")


class ErrorKind(str, Enum):
    INVALID_INPUT = "InvalidInput"
    NOT_FOUND = "NotFound"
    RATE_LIMITED = "RateLimited"
    UPSTREAM_UNAVAILABLE = "UpstreamUnavailable"
    INTERNAL = "Internal"


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    retry_after: float | None = None


class PricingError(Exception):
    """Typed failure raised by the quote path and by coordinate validation."""

    def __init__(self, failure: Failure):
        super().__init__(failure.message)
        self.failure = failure

    @property
    def kind(self) -> ErrorKind:
        return self.failure.kind


class InvalidCoordinate(PricingError):
    def __init__(self, message: str = "Invalid coordinates."):
        super().__init__(Failure(ErrorKind.INVALID_INPUT, message))


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def map(self, fn: Callable[[T], U]) -> "Ok[U]":
        return Ok(fn(self.value))

    def unwrap_or_else(self, fallback: Callable[[Failure], T]) -> T:
        return self.value

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    failure: Failure

    def is_ok(self) -> bool:
        return False

    def map(self, fn: Callable) -> "Err":
        return self

    def unwrap_or_else(self, fallback: Callable[[Failure], T]) -> T:
        return fallback(self.failure)

    def unwrap(self):
        raise PricingError(self.failure)


Result = Union[Ok[T], Err]
