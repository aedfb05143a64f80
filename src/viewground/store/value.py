"""Explicit representation of missing values.

Every cell of a column either holds a value or is missing.
Instead of relying on ``None`` or on sentinel values like ``NaN``,
which can be legit values for some kinds of data, reading a cell
always returns a :class:`Value`, which is either :data:`NA`
or :class:`Exists` wrapping the actual data:

>>> from viewground.store.value import NA, Exists
>>> Exists(5).exists()
True
>>> NA.is_na()
True
>>> Exists(5).unwrap()
5
>>> NA.unwrap_or(0)
0

Values are ordered the same way columns are sorted:
missing values come first, then ``NaN`` and then all
other values in ascending order:

>>> sorted([Exists(3.0), NA, Exists(float("nan")), Exists(1.0)])
[NA, Exists(nan), Exists(1.0), Exists(3.0)]
"""

import abc
import functools
import math
from typing import Any, Callable

__all__ = ("Value", "NA", "Exists", "NaValueError", "as_value")


class NaValueError(ValueError):
    """Raised when the content of a missing value is requested.

    Callers are expected to check :meth:`Value.exists` before
    unwrapping a value, so this signals a bug in the caller.
    """


@functools.total_ordering
class Value(abc.ABC):
    """A cell value, either :data:`NA` or :class:`Exists`."""

    __slots__ = ()

    @abc.abstractmethod
    def exists(self) -> bool:
        """If the value is present."""
        ...

    def is_na(self) -> bool:
        """If the value is missing."""
        return not self.exists()

    @abc.abstractmethod
    def unwrap(self) -> Any:
        """Return the wrapped data, raise :class:`NaValueError` if missing."""
        ...

    def unwrap_or(self, default: Any) -> Any:
        """Return the wrapped data or ``default`` when missing."""
        return self.unwrap() if self.exists() else default

    def map(self, func: Callable[[Any], Any]) -> "Value":
        """Apply ``func`` to the wrapped data, missing values stay missing."""
        if self.exists():
            return Exists(func(self.unwrap()))
        return self

    def sort_key(self) -> tuple:
        """Key ordering values as ``NA < NaN < everything else``."""
        if not self.exists():
            return (0,)
        value = self.unwrap()
        if isinstance(value, float) and math.isnan(value):
            return (1,)
        return (2, value)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self.sort_key() < other.sort_key()


class _NaType(Value):
    __slots__ = ()

    _instance = None

    def __new__(cls) -> "_NaType":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def exists(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise NaValueError("unwrap() called on NA value")

    def __eq__(self, other: object) -> bool:
        return other is self

    def __hash__(self) -> int:
        return hash(_NaType)

    def __repr__(self) -> str:
        return "NA"

    __str__ = __repr__


NA = _NaType()
"""The missing value."""


class Exists(Value):
    """A value that is present."""

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        """
        :param value: The actual data of the cell.
        """
        self.value = value

    def exists(self) -> bool:
        return True

    def unwrap(self) -> Any:
        return self.value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Exists):
            return False
        return self.value == other.value

    def __hash__(self) -> int:
        return hash((Exists, self.value))

    def __repr__(self) -> str:
        return f"Exists({self.value!r})"

    def __str__(self) -> str:
        return str(self.value)


def as_value(value: Any) -> Value:
    """Wrap raw data into a :class:`Value`.

    ``None`` is considered missing, instances of
    :class:`Value` are returned unchanged.
    """
    if isinstance(value, Value):
        return value
    if value is None:
        return NA
    return Exists(value)
