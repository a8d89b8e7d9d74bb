"""Explicit success/failure values for calls whose failure drives a rollback"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    message: str
    error: Optional[BaseException] = None

    @property
    def is_ok(self) -> bool:
        return False


Result = Union[Ok[Any], Err]
