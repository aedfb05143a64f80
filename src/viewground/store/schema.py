"""Declare the fields of a store and load data according to them.

Data coming from external sources (files, databases, other libraries)
frequently doesn't have the exact types we want to work with.
For example CSV files only contain text that needs to be parsed.

A :class:`Schema` is the explicit declaration of which fields
a store should have and their kind. It is validated once when
it's created and then used to load data from a source, converting
each field to the declared kind:

>>> import pyarrow as pa
>>> from viewground.store import Kind, Schema
>>> schema = Schema([("DeptId", Kind.UINT64), ("DeptName", Kind.TEXT)])
>>> source = pa.table({"DeptId": ["1", "2"], "DeptName": ["Marketing", "Sales"]})
>>> store = schema.load(source)
>>> store.get_field_type("DeptId")
<Kind.UINT64: 'uint64'>
>>> store.column("DeptId").to_pylist()
[1, 2]
"""

from typing import Any, Iterable, Iterator

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import FieldCollision, FieldNotFound, ParseError
from .column import Column
from .columnstore import ColumnStore, FieldIdent
from .kinds import Kind

__all__ = ("Schema",)


class Schema:
    """Ordered declaration of ``(field, kind)`` pairs."""

    def __init__(self, fields: Iterable[tuple[FieldIdent, Kind]]) -> None:
        """
        :param fields: The fields in the order they should appear in the store.
        :raises FieldCollision: if the same field is declared more than once.
        """
        self.fields: dict[FieldIdent, Kind] = {}
        duplicates = []
        for ident, kind in fields:
            if ident in self.fields:
                duplicates.append(ident)
                continue
            self.fields[ident] = Kind(kind)
        if duplicates:
            raise FieldCollision(duplicates)

    @classmethod
    def from_arrow(cls, arrow_schema: pa.Schema) -> "Schema":
        """Infer a schema from the types of an Arrow schema.

        :raises IncompatibleTypes: if some field has a type
                                   that doesn't map to any kind.
        """
        return cls((field.name, Kind.from_arrow_type(field.type)) for field in arrow_schema)

    def __iter__(self) -> Iterator[tuple[FieldIdent, Kind]]:
        return iter(self.fields.items())

    def __len__(self) -> int:
        return len(self.fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schema):
            return NotImplemented
        return list(self) == list(other)

    def __repr__(self) -> str:
        fields = ", ".join(f"{ident}: {kind}" for ident, kind in self)
        return f"Schema({fields})"

    def load(self, source: pa.Table | pa.RecordBatch | dict[Any, Any]) -> ColumnStore:
        """Create a store with the declared fields of ``source``.

        Fields of the source that are not part of the schema are ignored.

        :param source: An Arrow table or record batch, or a dictionary
                       of ``{field: values}``.
        :raises FieldNotFound: if a declared field is missing in the source.
        :raises ParseError: if the data of a field can't be converted to
                            the declared kind.
        """
        if isinstance(source, dict):
            columns = source
        else:
            columns = dict(zip(source.column_names, source.columns))

        store = ColumnStore()
        for ident, kind in self:
            if ident not in columns:
                raise FieldNotFound(ident)
            store.append_column(ident, Column(kind, self._convert(columns[ident], kind)))
        return store

    def _convert(self, data: Any, kind: Kind) -> pa.Array:
        """Convert data of a source field to an array of the given kind."""
        try:
            if not isinstance(data, (pa.Array, pa.ChunkedArray)):
                data = pa.array(data)
            if isinstance(data, pa.ChunkedArray):
                data = data.combine_chunks()
            if pa.types.is_null(data.type):
                # Fields made only of missing values have no type yet.
                return pa.nulls(len(data), type=kind.arrow_type)
            if kind is Kind.BOOL and pa.types.is_string(data.type):
                return _parse_bool(data)
            return data.cast(kind.arrow_type)
        except (pa.ArrowInvalid, pa.ArrowTypeError, pa.ArrowNotImplementedError) as e:
            raise ParseError(e) from e


_TRUE_VALUES = pa.array(["true", "t", "yes", "y", "1"])
_FALSE_VALUES = pa.array(["false", "f", "no", "n", "0"])


def _parse_bool(data: pa.Array) -> pa.Array:
    """Parse text to booleans.

    Arrow only recognizes a limited set of spellings,
    this accepts the most common ones in any case.
    """
    normalized = pc.utf8_lower(pc.utf8_trim_whitespace(data))
    is_true = pc.is_in(normalized, value_set=_TRUE_VALUES)
    is_false = pc.is_in(normalized, value_set=_FALSE_VALUES)
    unknown = pc.and_(pc.is_valid(normalized), pc.invert(pc.or_(is_true, is_false)))
    if pc.any(unknown).as_py():
        text = data.filter(unknown)[0].as_py()
        raise pa.ArrowInvalid(f"Failed to parse '{text}' as a boolean")
    return pc.if_else(pc.is_null(normalized), pa.scalar(None, type=pa.bool_()), is_true)
