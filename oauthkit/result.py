# oauthkit/result.py
"""A minimal success-or-problem result used to thread protocol failures by return value."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar, Union

if TYPE_CHECKING:
    from .problems import ProblemReport

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    problem: "ProblemReport"

    @property
    def is_ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]
