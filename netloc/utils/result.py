"""
Tagged result type for operations with expected failure outcomes.

Solver non-convergence, missing consensus, or an unavailable data source are
routine outcomes rather than exceptional ones. Functions that can end this
way return either ``Ok(value)`` or ``Err(error)`` instead of raising.

Example:
    >>> def parse(text):
    ...     try:
    ...         return Ok(int(text))
    ...     except ValueError:
    ...         return Err("not a number")
    >>> result = parse("42")
    >>> result.is_ok()
    True
    >>> parse("x").unwrap_or(0)
    0
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome holding ``value``."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def ok(self) -> Optional[T]:
        return self.value

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed outcome holding ``error``."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def ok(self) -> None:
        return None

    def unwrap(self):
        raise ValueError(f"Called unwrap() on Err({self.error!r})")

    def unwrap_or(self, default: T) -> T:
        return default


Result = Union[Ok[T], Err[E]]
