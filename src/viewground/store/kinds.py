"""The kinds of data that columns can hold.

The engine supports a closed set of primitive kinds,
each of them backed by an Arrow data type:

* ``UINT64`` -> :func:`pyarrow.uint64`
* ``INT64`` -> :func:`pyarrow.int64`
* ``TEXT`` -> :func:`pyarrow.string`
* ``BOOL`` -> :func:`pyarrow.bool_`
* ``FLOAT64`` -> :func:`pyarrow.float64`

>>> from viewground.store.kinds import Kind
>>> Kind.INT64.arrow_type
DataType(int64)
>>> Kind.from_arrow_type(pa.string())
<Kind.TEXT: 'text'>
"""

import enum
from typing import Any

import pyarrow as pa

from ..errors import IncompatibleTypes

__all__ = ("Kind",)


class Kind(enum.Enum):
    """Kind of data stored in a column."""

    UINT64 = "uint64"
    INT64 = "int64"
    TEXT = "text"
    BOOL = "bool"
    FLOAT64 = "float64"

    def __str__(self) -> str:
        return self.value

    @property
    def arrow_type(self) -> pa.DataType:
        """The Arrow type used to store data of this kind."""
        return _ARROW_TYPES[self]

    @property
    def default(self) -> Any:
        """The placeholder stored in place of missing values."""
        return _DEFAULTS[self]

    @classmethod
    def from_arrow_type(cls, arrow_type: pa.DataType) -> "Kind":
        """Get the kind matching an Arrow type.

        :param arrow_type: The type of an Arrow array or schema field.
        :raises IncompatibleTypes: if the type has no matching kind.
        """
        if pa.types.is_large_string(arrow_type):
            return cls.TEXT
        for kind, kind_type in _ARROW_TYPES.items():
            if kind_type.equals(arrow_type):
                return kind
        raise IncompatibleTypes(expected=[str(k) for k in cls], actual=arrow_type)


_ARROW_TYPES = {
    Kind.UINT64: pa.uint64(),
    Kind.INT64: pa.int64(),
    Kind.TEXT: pa.string(),
    Kind.BOOL: pa.bool_(),
    Kind.FLOAT64: pa.float64(),
}

_DEFAULTS = {
    Kind.UINT64: 0,
    Kind.INT64: 0,
    Kind.TEXT: "",
    Kind.BOOL: False,
    Kind.FLOAT64: 0.0,
}
