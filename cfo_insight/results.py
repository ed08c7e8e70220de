from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class FallbackCause(str, Enum):
    DEMO_MODE = "demo_mode"
    UPSTREAM_FAILURE = "upstream_failure"
    NOT_IMPLEMENTED = "not_implemented"


@dataclass(frozen=True)
class Live(Generic[T]):
    value: T


@dataclass(frozen=True)
class DemoFallback(Generic[T]):
    """Demo data returned in place of a live value, with the reason recorded."""

    value: T
    cause: FallbackCause


IntegrationResult = Union[Live[T], DemoFallback[T]]


def source_name(result: IntegrationResult, live_source: str) -> str:
    return live_source if isinstance(result, Live) else "demo"


def fallback_cause(result: IntegrationResult) -> str | None:
    if isinstance(result, DemoFallback):
        return result.cause.value
    return None


def is_upstream_failure(result: IntegrationResult) -> bool:
    return isinstance(result, DemoFallback) and result.cause is FallbackCause.UPSTREAM_FAILURE
