"""Typed, nullable vectors of data.

A :class:`Column` holds the data of a single field.
The data is stored in an Arrow array, which is made of
two buffers: one with the actual values and one with a
validity bitmap telling which values exist. Missing values
take space in the values buffer like any other value
but have their validity bit cleared.

This means that reading a column cell by cell requires
checking the validity bit first, which is what
:meth:`Column.get` does, returning a :class:`Value`:

>>> from viewground.store import Column, Kind, NA, Exists
>>> column = Column.from_value_sequence(Kind.INT64, [Exists(3), NA, Exists(1)])
>>> len(column)
3
>>> column.get(0)
Exists(3)
>>> column.get(1)
NA
>>> column.to_pylist()
[3, None, 1]

Columns are immutable, to build a column incrementally
use a :class:`ColumnBuilder`.
"""

from typing import Any, Iterable, Iterator

import pyarrow as pa

from ..errors import IncompatibleTypes, RowIndexError
from .kinds import Kind
from .value import NA, Exists, Value, as_value

__all__ = ("Column", "ColumnBuilder")


class Column:
    """A single typed vector of data that can contain missing values."""

    __slots__ = ("kind", "array")

    def __init__(self, kind: Kind, array: pa.Array) -> None:
        """
        :param kind: The kind of data stored in the column.
        :param array: The Arrow array holding the data,
                      its type must match the Arrow type of ``kind``.
        """
        if isinstance(array, pa.ChunkedArray):
            array = array.combine_chunks()
        if not array.type.equals(kind.arrow_type):
            raise IncompatibleTypes(expected=kind, actual=array.type)
        self.kind = kind
        self.array = array

    @classmethod
    def from_existing_sequence(cls, kind: Kind, values: Iterable[Any]) -> "Column":
        """Build a column where all values are present.

        :param kind: The kind of data of the column.
        :param values: The raw values, none of them is considered missing.
        :raises IncompatibleTypes: if one of the values is ``None``
                                   or can't be represented by ``kind``.
        """
        builder = ColumnBuilder(kind)
        for value in values:
            if value is None or value is NA:
                raise IncompatibleTypes(expected=kind, actual=repr(value))
            builder.push(value)
        return builder.finish()

    @classmethod
    def from_value_sequence(cls, kind: Kind, values: Iterable[Any]) -> "Column":
        """Build a column from values that might be missing.

        :param kind: The kind of data of the column.
        :param values: :class:`Value` instances, raw values are
                       accepted too and ``None`` is considered missing.
        """
        builder = ColumnBuilder(kind)
        for value in values:
            builder.push(value)
        return builder.finish()

    def __len__(self) -> int:
        return len(self.array)

    def __iter__(self) -> Iterator[Value]:
        for scalar in self.array:
            yield Exists(scalar.as_py()) if scalar.is_valid else NA

    def __repr__(self) -> str:
        return f"Column(kind={self.kind}, len={len(self)})"

    def get(self, idx: int) -> Value:
        """Read the value at row ``idx``.

        :raises RowIndexError: if the row doesn't exist.
        """
        if idx < 0 or idx >= len(self.array):
            raise RowIndexError(idx, len(self.array))
        scalar = self.array[idx]
        if not scalar.is_valid:
            return NA
        return Exists(scalar.as_py())

    get_datum = get

    def exists(self, idx: int) -> bool:
        """If the value at row ``idx`` is present."""
        return self.get(idx).exists()

    def to_arrow(self) -> pa.Array:
        """The Arrow array backing the column."""
        return self.array

    def to_pylist(self) -> list[Any]:
        """The column values as python objects, missing values are ``None``."""
        return self.array.to_pylist()

    def take(self, indices: pa.Array) -> "Column":
        """Create a new column with the rows at ``indices``.

        Null indices lead to missing values in the new column.
        """
        return Column(self.kind, self.array.take(indices))


class ColumnBuilder:
    """Build a :class:`Column` one value at the time.

    The builder keeps the values and the existence flags in two
    separate sequences of equal length. Missing values are stored
    as the default value of the kind in the data sequence, with
    their existence flag cleared.

    >>> builder = ColumnBuilder(Kind.TEXT)
    >>> builder.push("Bob")
    >>> builder.push(None)
    >>> builder.push_front(Exists("Sally"))
    >>> builder.data, builder.exists
    (['Sally', 'Bob', ''], [True, True, False])
    >>> builder.finish().to_pylist()
    ['Sally', 'Bob', None]
    """

    def __init__(self, kind: Kind) -> None:
        """
        :param kind: The kind of data of the column being built.
        """
        self.kind = kind
        self.data: list[Any] = []
        self.exists: list[bool] = []

    def __len__(self) -> int:
        return len(self.data)

    def push(self, value: Any) -> None:
        """Append a value at the end of the column.

        :param value: A :class:`Value` or a raw value (``None`` means missing).
        """
        data, exists = self._unpack(value)
        self.data.append(data)
        self.exists.append(exists)

    def push_front(self, value: Any) -> None:
        """Prepend a value at the beginning of the column."""
        data, exists = self._unpack(value)
        self.data.insert(0, data)
        self.exists.insert(0, exists)

    def finish(self) -> Column:
        """Create the column with the values pushed so far.

        :raises IncompatibleTypes: if some of the values can't be
                                   represented by the kind of the column.
        """
        values = [
            data if exists else None for data, exists in zip(self.data, self.exists)
        ]
        try:
            array = pa.array(values, type=self.kind.arrow_type)
        except (pa.ArrowInvalid, pa.ArrowTypeError, OverflowError, TypeError) as e:
            actual = next(
                (type(v).__name__ for v in values if not _fits(self.kind, v)),
                str(e),
            )
            raise IncompatibleTypes(expected=self.kind, actual=actual) from e
        return Column(self.kind, array)

    def _unpack(self, value: Any) -> tuple[Any, bool]:
        value = as_value(value)
        if value.exists():
            return value.unwrap(), True
        return self.kind.default, False


def _fits(kind: Kind, value: Any) -> bool:
    """Rough check of which python values belong to a kind.

    Only used to report which value was rejected by Arrow.
    """
    if value is None:
        return True
    if kind is Kind.TEXT:
        return isinstance(value, str)
    if kind is Kind.BOOL:
        return isinstance(value, bool)
    if kind is Kind.FLOAT64:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind is Kind.UINT64:
        return isinstance(value, int) and not isinstance(value, bool) and value >= 0
    return isinstance(value, int) and not isinstance(value, bool)
