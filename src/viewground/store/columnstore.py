"""Stores owning the data of the engine.

A :class:`ColumnStore` is an ordered collection of named
:class:`Column` objects that all have the same number of rows.
It is the only place where data is actually kept, every
view over the data will just hold a reference to a store.

Stores are write once: columns can be added while the store
is being populated, but once a column is part of a store
it never changes. This makes possible to share the same
store across multiple views without having to copy or lock it.

>>> from viewground.store import ColumnStore, Kind, NA
>>> store = ColumnStore()
>>> store.append_field("EmpId", Kind.UINT64, [0, 2, 5])
>>> store.append_field("EmpName", Kind.TEXT, ["Sally", NA, "Bob"])
>>> store.nrows(), store.nfields()
(3, 2)
>>> store.fieldnames()
['EmpId', 'EmpName']
>>> store.column("EmpName").get(1)
NA
"""

from typing import Any, Iterable, Iterator

import pyarrow as pa

from ..config import get_logger
from ..errors import DimensionMismatch, FieldCollision, FieldNotFound
from .column import Column, ColumnBuilder
from .kinds import Kind

__all__ = ("ColumnStore", "ColumnStoreBuilder", "FieldIdent")

FieldIdent = str | int

logger = get_logger(__name__)


class ColumnStore:
    """Ordered collection of equally sized columns."""

    def __init__(self, columns: dict[FieldIdent, Column] | None = None) -> None:
        """
        :param columns: Initial columns of the store, in order.
                        All columns must have the same length.
        """
        self._columns: dict[FieldIdent, Column] = {}
        for ident, column in (columns or {}).items():
            self.append_column(ident, column)

    @classmethod
    def from_arrow(cls, table: pa.Table | pa.RecordBatch) -> "ColumnStore":
        """Create a store with the data of an Arrow table or record batch.

        The kinds of the fields are inferred from the Arrow types,
        see :meth:`Kind.from_arrow_type`.
        """
        store = cls()
        for name, array in zip(table.column_names, table.columns):
            kind = Kind.from_arrow_type(array.type)
            if not array.type.equals(kind.arrow_type):
                array = array.cast(kind.arrow_type)
            store.append_column(name, Column(kind, array))
        return store

    def __repr__(self) -> str:
        return f"ColumnStore(fields={self.fieldnames()}, rows={self.nrows()})"

    def __iter__(self) -> Iterator[FieldIdent]:
        return iter(self._columns)

    def __contains__(self, ident: object) -> bool:
        return ident in self._columns

    def nrows(self) -> int:
        """Number of rows of the store, 0 if it has no fields."""
        for column in self._columns.values():
            return len(column)
        return 0

    def nfields(self) -> int:
        """Number of fields in the store."""
        return len(self._columns)

    def fieldnames(self) -> list[FieldIdent]:
        """Identifiers of the fields in the store, in order."""
        return list(self._columns)

    def is_empty(self) -> bool:
        return self.nrows() == 0

    def has_field(self, ident: FieldIdent) -> bool:
        return ident in self._columns

    def get_field_type(self, ident: FieldIdent) -> Kind | None:
        """The kind of a field, ``None`` if the field doesn't exist."""
        column = self._columns.get(ident)
        if column is None:
            return None
        return column.kind

    def column(self, ident: FieldIdent) -> Column:
        """Get the column of a field.

        :raises FieldNotFound: if the field doesn't exist.
        """
        try:
            return self._columns[ident]
        except KeyError:
            raise FieldNotFound(ident) from None

    def append_field(self, ident: FieldIdent, kind: Kind, values: Iterable[Any]) -> None:
        """Add a new field to the store.

        :param ident: The identifier of the new field.
        :param kind: The kind of data of the field.
        :param values: The values of the field, :class:`Value` instances,
                       raw values or ``None`` for missing values.
        :raises DimensionMismatch: if the number of values differs from
                                   the number of rows of the store.
        :raises FieldCollision: if the field already exists.
        """
        self.append_column(ident, Column.from_value_sequence(kind, values))

    def append_column(self, ident: FieldIdent, column: Column) -> None:
        """Add an already built column to the store.

        See :meth:`append_field` for the possible failures.
        """
        if ident in self._columns:
            raise FieldCollision([ident])
        if self._columns and len(column) != self.nrows():
            raise DimensionMismatch(
                f"field {ident} has {len(column)} rows, store has {self.nrows()}"
            )
        self._columns[ident] = column

    def to_arrow(self) -> pa.Table:
        """Convert the store to an Arrow table.

        Field identifiers are converted to strings
        as Arrow only supports named columns.

        :raises FieldCollision: if two identifiers have the same
                                string form, like ``0`` and ``"0"``.
        """
        return pa.table(
            [column.array for column in self._columns.values()],
            names=arrow_names(self._columns),
        )


class ColumnStoreBuilder:
    """Populate a :class:`ColumnStore` one value at the time.

    Ingestion sources frequently produce data by row, or need
    to add values at the front of a field. The builder accumulates
    the values of each field and validates that all fields have
    the same length only once the store is built.

    >>> builder = ColumnStoreBuilder()
    >>> builder.add_field("DeptId", Kind.UINT64)
    >>> builder.add_field("DeptName", Kind.TEXT)
    >>> for dept_id, name in [(1, "Marketing"), (2, "Sales")]:
    ...     builder.push_back("DeptId", dept_id)
    ...     builder.push_back("DeptName", name)
    >>> builder.build()
    ColumnStore(fields=['DeptId', 'DeptName'], rows=2)
    """

    def __init__(self) -> None:
        self._builders: dict[FieldIdent, ColumnBuilder] = {}

    def add_field(self, ident: FieldIdent, kind: Kind) -> None:
        """Declare a new field.

        :raises FieldCollision: if the field was already declared.
        """
        if ident in self._builders:
            raise FieldCollision([ident])
        self._builders[ident] = ColumnBuilder(kind)

    def push_back(self, ident: FieldIdent, value: Any) -> None:
        """Append a value to a field."""
        self._builder(ident).push(value)

    def push_front(self, ident: FieldIdent, value: Any) -> None:
        """Prepend a value to a field."""
        self._builder(ident).push_front(value)

    def build(self) -> ColumnStore:
        """Create the store with all the fields.

        :raises DimensionMismatch: if fields have different lengths.
        """
        lengths = {ident: len(builder) for ident, builder in self._builders.items()}
        if len(set(lengths.values())) > 1:
            raise DimensionMismatch(f"fields have different lengths: {lengths}")
        store = ColumnStore(
            {ident: builder.finish() for ident, builder in self._builders.items()}
        )
        logger.debug("Built store with %d fields and %d rows", store.nfields(), store.nrows())
        return store

    def _builder(self, ident: FieldIdent) -> ColumnBuilder:
        try:
            return self._builders[ident]
        except KeyError:
            raise FieldNotFound(ident) from None


def arrow_names(idents: Iterable[FieldIdent]) -> list[str]:
    """Convert field identifiers to Arrow column names.

    :raises FieldCollision: if different identifiers lead to the same name.
    """
    names: dict[str, FieldIdent] = {}
    collisions = []
    for ident in idents:
        name = str(ident)
        if name in names:
            collisions.append(ident)
        else:
            names[name] = ident
    if collisions:
        raise FieldCollision(collisions)
    return list(names)
