"""
Result - A small Ok/Err type for operations that can fail without raising.

Used where a failure is an expected outcome the caller must branch on, such as
constructing a tracker client from a workspace connection.

Example:
    >>> result = connect_tracker(connection)
    >>> if result.is_ok():
    ...     tracker = result.unwrap()
    ... else:
    ...     print(result.unwrap_err())
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, TypeVar, Union


T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


class ResultError(Exception):
    """Raised when unwrapping the wrong variant of a Result."""


class Ok(Generic[T]):
    """Successful result holding a value."""

    __slots__ = ("_value",)

    def __init__(self, value: T):
        self._value = value

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def ok(self) -> T:
        return self._value

    def err(self) -> None:
        return None

    def unwrap(self) -> T:
        return self._value

    def unwrap_err(self) -> Any:
        raise ResultError(f"Called unwrap_err on Ok: {self._value!r}")

    def unwrap_or(self, default: T) -> T:
        return self._value

    def expect(self, message: str) -> T:
        return self._value

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        return Ok(fn(self._value))

    def and_then(self, fn: Callable[[T], Result[U, Any]]) -> Result[U, Any]:
        return fn(self._value)

    def __bool__(self) -> bool:
        return True

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Ok) and other._value == self._value

    def __hash__(self) -> int:
        return hash(("Ok", self._value))

    def __repr__(self) -> str:
        return f"Ok({self._value!r})"


class Err(Generic[E]):
    """Failed result holding an error."""

    __slots__ = ("_error",)

    def __init__(self, error: E):
        self._error = error

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def ok(self) -> None:
        return None

    def err(self) -> E:
        return self._error

    def unwrap(self) -> Any:
        raise ResultError(f"Called unwrap on Err: {self._error!r}")

    def unwrap_err(self) -> E:
        return self._error

    def unwrap_or(self, default: T) -> T:
        return default

    def expect(self, message: str) -> Any:
        raise ResultError(f"{message}: {self._error!r}")

    def map(self, fn: Callable[[Any], Any]) -> Err[E]:
        return self

    def and_then(self, fn: Callable[[Any], Any]) -> Err[E]:
        return self

    def __bool__(self) -> bool:
        return False

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Err) and other._error == self._error

    def __hash__(self) -> int:
        return hash(("Err", self._error))

    def __repr__(self) -> str:
        return f"Err({self._error!r})"


Result = Union[Ok[T], Err[E]]
