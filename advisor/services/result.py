from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E


@dataclass(frozen=True)
class Invalid:
    reasons: tuple[str, ...]


Validated = Union[Ok[Any], Invalid]
Result = Union[Ok[Any], Err[Any]]
