"""Failure taxonomy and the result value returned by article sources.

Failures are plain values tagged with a :class:`FailureKind`. Every layer
returns a :class:`Result` instead of raising, so recovery decisions are made
by branching on ``result.failure.kind``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict


T = TypeVar("T")
U = TypeVar("U")


class FailureKind(str, Enum):
    SERVER = "server"
    API_KEY_NOT_CONFIGURED = "api_key_not_configured"
    CACHE_EMPTY = "cache_empty"


_USER_MESSAGES = {
    FailureKind.SERVER: "Failed to fetch articles. Please try again.",
    FailureKind.CACHE_EMPTY: "No cached data available. Please connect to the internet.",
    FailureKind.API_KEY_NOT_CONFIGURED: (
        "News API key is not configured.\n\n"
        "Please set NEWS_API_KEY in your environment or .env file.\n\n"
        "Get your free API key at: https://newsapi.org/register"
    ),
}


class Failure(BaseModel):
    """A classified failure. ``detail`` is only carried by ``SERVER``."""

    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    detail: Optional[str] = None

    @classmethod
    def server(cls, detail: Optional[str] = None) -> "Failure":
        return cls(kind=FailureKind.SERVER, detail=detail)

    @classmethod
    def api_key_not_configured(cls) -> "Failure":
        return cls(kind=FailureKind.API_KEY_NOT_CONFIGURED)

    @classmethod
    def cache_empty(cls) -> "Failure":
        return cls(kind=FailureKind.CACHE_EMPTY)

    @property
    def retryable(self) -> bool:
        # A misconfigured key cannot be fixed by trying again.
        return self.kind is not FailureKind.API_KEY_NOT_CONFIGURED

    @property
    def user_message(self) -> str:
        return _USER_MESSAGES[self.kind]


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a success carrying ``value`` or a failure carrying ``failure``."""

    value: Optional[T] = None
    failure: Optional[Failure] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, failure: Failure) -> "Result[T]":
        return cls(failure=failure)

    @property
    def is_success(self) -> bool:
        return self.failure is None

    @property
    def is_failure(self) -> bool:
        return self.failure is not None

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        if self.failure is not None:
            return Result(failure=self.failure)
        return Result(value=fn(self.value))
