"""The ViewGround Storage Layer

The storage layer defines how data is kept in memory.
Data is organized by columns: each field of a table is
a :class:`Column`, a typed vector of values that can be
missing, and all the columns of a table are owned by a
:class:`ColumnStore`.

Columns can hold only a closed set of :class:`Kind` of data:
unsigned and signed 64 bit integers, text, booleans and 64 bit floats.
Each kind is stored in an Apache Arrow array of the matching type,
so the values and their validity bitmap live in contiguous buffers
that can be shared with any Arrow compatible library.

Reading a cell always returns a :class:`Value`, which makes
missing data explicit instead of relying on ``None``:

>>> from viewground.store import ColumnStore, Kind, NA
>>> store = ColumnStore()
>>> store.append_field("values", Kind.FLOAT64, [1.5, NA, 3.0])
>>> [v for v in store.column("values")]
[Exists(1.5), NA, Exists(3.0)]

Stores can be populated field by field with :meth:`ColumnStore.append_field`,
value by value with a :class:`ColumnStoreBuilder`, or loaded from an Arrow
table through a :class:`Schema` that declares the expected kinds.
"""

from .column import Column, ColumnBuilder
from .columnstore import ColumnStore, ColumnStoreBuilder, FieldIdent
from .kinds import Kind
from .schema import Schema
from .value import NA, Exists, NaValueError, Value, as_value

__all__ = (
    "Column",
    "ColumnBuilder",
    "ColumnStore",
    "ColumnStoreBuilder",
    "FieldIdent",
    "Kind",
    "Schema",
    "Value",
    "NA",
    "Exists",
    "NaValueError",
    "as_value",
)
