"""Errors raised by the data engine.

All the failures that can happen when looking up fields,
combining views or reading data are represented by a closed
set of exceptions, all subclasses of :class:`ViewgroundError`.

This allows callers to catch a single exception type when they
don't care about the specific failure, or to react to a specific
condition, for example trying an alternate field when
:class:`FieldNotFound` is raised:

>>> from viewground.errors import FieldNotFound, ViewgroundError
>>> try:
...     raise FieldNotFound("DeptName")
... except ViewgroundError as e:
...     print(e)
field not found: DeptName
"""

from typing import Any

__all__ = (
    "ViewgroundError",
    "FieldNotFound",
    "FieldCollision",
    "DimensionMismatch",
    "RowIndexError",
    "IncompatibleTypes",
    "ParseError",
)


class ViewgroundError(Exception):
    """Base class for all the errors of the data engine."""


class FieldNotFound(ViewgroundError):
    """A requested field doesn't exist in the store or view."""

    def __init__(self, ident: str | int) -> None:
        """
        :param ident: The identifier of the missing field.
        """
        super().__init__(ident)
        self.ident = ident

    def __str__(self) -> str:
        return f"field not found: {self.ident}"


class FieldCollision(ViewgroundError):
    """One or more fields would end up with the same name.

    Raised when merging or joining views that share field names
    or when renaming a field to a name that is already in use.
    """

    def __init__(self, idents: list[str | int]) -> None:
        """
        :param idents: All the field identifiers that collide.
        """
        super().__init__(idents)
        self.idents = list(idents)

    def __str__(self) -> str:
        return f"field collision: {', '.join(str(i) for i in self.idents)}"


class DimensionMismatch(ViewgroundError):
    """Data that should have the same number of rows doesn't."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"dimension mismatch: {self.message}"


class RowIndexError(ViewgroundError, IndexError):
    """A row index is out of the range of the data being read."""

    def __init__(self, index: int, length: int) -> None:
        """
        :param index: The requested row index.
        :param length: The number of rows that were available.
        """
        super().__init__(index, length)
        self.index = index
        self.length = length

    def __str__(self) -> str:
        return f"index {self.index} out of range for length {self.length}"


class IncompatibleTypes(ViewgroundError):
    """Data was requested or provided as a kind different from the stored one."""

    def __init__(self, expected: Any, actual: Any) -> None:
        """
        :param expected: The kind that was expected.
        :param actual: The kind (or python type) that was found instead.
        """
        super().__init__(expected, actual)
        self.expected = expected
        self.actual = actual

    def __str__(self) -> str:
        return f"incompatible types: expected {self.expected}, found {self.actual}"


class ParseError(ViewgroundError):
    """Source data could not be converted to the declared kind."""

    def __init__(self, inner: Exception) -> None:
        """
        :param inner: The exception raised by the conversion.
        """
        super().__init__(inner)
        self.inner = inner

    def __str__(self) -> str:
        return f"parse error: {self.inner}"
