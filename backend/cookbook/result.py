"""
Four-state operation result.

Every repository call resolves to one of Loading, Success, Error or Idle.
Callers switch on the state to drive what they show.
"""

from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class RepositoryError(Exception):
    """Generic failure carrying the underlying message text."""

    @property
    def message(self) -> str:
        return str(self)


class Result(Generic[T]):
    """Base class for the four result states."""

    @property
    def is_success(self) -> bool:
        return isinstance(self, Success)

    @property
    def is_error(self) -> bool:
        return isinstance(self, Error)

    @property
    def is_loading(self) -> bool:
        return self is Loading

    @property
    def is_idle(self) -> bool:
        return self is Idle

    def map(self, transform: Callable[[Any], R]) -> "Result[R]":
        """Transform the Success value; every other state passes through."""
        if isinstance(self, Success):
            return Success(transform(self.data))
        return self

    def get_or_none(self) -> Optional[T]:
        if isinstance(self, Success):
            return self.data
        return None


class Success(Result[T]):
    __slots__ = ("data",)

    def __init__(self, data: T = None):
        self.data = data

    def __eq__(self, other):
        return isinstance(other, Success) and other.data == self.data

    def __hash__(self):
        return hash(("success", repr(self.data)))

    def __repr__(self):
        return f"Success({self.data!r})"


class Error(Result[Any]):
    __slots__ = ("exception",)

    def __init__(self, exception: Exception):
        self.exception = exception

    @classmethod
    def of(cls, message: str) -> "Error":
        return cls(RepositoryError(message))

    @property
    def message(self) -> str:
        return str(self.exception)

    def __eq__(self, other):
        return (
            isinstance(other, Error)
            and type(other.exception) is type(self.exception)
            and str(other.exception) == str(self.exception)
        )

    def __hash__(self):
        return hash(("error", str(self.exception)))

    def __repr__(self):
        return f"Error({self.message!r})"


class _Marker(Result[Any]):
    def __init__(self, name: str):
        self._name = name

    def __repr__(self):
        return self._name


Loading = _Marker("Loading")
Idle = _Marker("Idle")


def serialize(result: Optional[Result], encode: Callable[[Any], Any] = lambda value: value) -> Optional[dict]:
    """JSON-friendly form of a result, used by screen sessions."""
    if result is None:
        return None
    if result.is_loading:
        return {"status": "loading"}
    if result.is_idle:
        return {"status": "idle"}
    if isinstance(result, Error):
        return {"status": "error", "message": result.message}
    return {"status": "success", "data": encode(result.data)}
