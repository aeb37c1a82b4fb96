"""Result envelope returned by every directory operation."""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

HANDLED = "handled"
ERROR = "error"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Tagged success/error container.

    A ``handled`` result carries ``data`` and never a message; an ``error``
    result carries ``message`` and never data. Equality is structural.
    Build instances through :meth:`handled` and :meth:`error`.
    """

    kind: str
    data: Optional[T] = None
    message: Optional[str] = None

    def __post_init__(self):
        if self.kind == HANDLED:
            if self.message is not None:
                raise ValueError("handled result cannot carry an error message")
        elif self.kind == ERROR:
            if self.data is not None:
                raise ValueError("error result cannot carry data")
            if self.message is None:
                raise ValueError("error result requires a message")
        else:
            raise ValueError(f"unknown result kind: {self.kind!r}")

    @classmethod
    def handled(cls, data: T) -> "Result[T]":
        return cls(kind=HANDLED, data=data)

    @classmethod
    def error(cls, message: str) -> "Result[T]":
        return cls(kind=ERROR, message=message)

    @property
    def is_handled(self) -> bool:
        return self.kind == HANDLED

    @property
    def is_error(self) -> bool:
        return self.kind == ERROR

    def __repr__(self) -> str:
        if self.is_error:
            return f"Result.error({self.message!r})"
        return f"Result.handled({self.data!r})"
