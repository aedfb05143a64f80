"""Read access to a single field of a view."""

from typing import Any, Iterator

import pyarrow as pa

from ..store import FieldIdent, Kind, Value
from .frame import FrameView


class Selection:
    """The data of one field as exposed by a view.

    A selection reads through the frame that owns the field,
    so it honours any filtering or sorting applied to the view.
    It's the interface used by consumers that need to read
    the data, like statistics or display functions, which
    are expected to check if each value exists before using it:

    >>> from viewground.store import ColumnStore, Kind, NA
    >>> from viewground.view import MultiFrameView
    >>> store = ColumnStore()
    >>> store.append_field("hours", Kind.FLOAT64, [47.0, NA, 2.5])
    >>> hours = MultiFrameView.from_store(store).field("hours")
    >>> sum(v.unwrap() for v in hours if v.exists())
    49.5
    """

    __slots__ = ("frame", "ident", "name")

    def __init__(self, frame: FrameView, ident: FieldIdent, name: FieldIdent) -> None:
        """
        :param frame: The frame that owns the data.
        :param ident: The identifier of the field in the store.
        :param name: The identifier of the field in the view,
                     which differs from ``ident`` for renamed fields.
        """
        self.frame = frame
        self.ident = ident
        self.name = name

    def __repr__(self) -> str:
        return f"Selection({self.name}, kind={self.kind}, len={len(self)})"

    @property
    def kind(self) -> Kind:
        return self.frame.store.column(self.ident).kind

    def __len__(self) -> int:
        return self.frame.nrows()

    def __iter__(self) -> Iterator[Value]:
        column = self.frame.store.column(self.ident)
        if self.frame.permutation is None:
            yield from column
        else:
            for row in self.frame.permutation.to_pylist():
                yield column.get(row)

    def get_datum(self, idx: int) -> Value:
        """Read the value at row ``idx`` of the view.

        :raises RowIndexError: if the row doesn't exist.
        """
        return self.frame.get_datum(self.ident, idx)

    def to_arrow(self) -> pa.Array:
        """The values as an Arrow array, in the order of the view."""
        return self.frame.values(self.ident)

    def to_pylist(self) -> list[Any]:
        """The values as python objects, missing values are ``None``."""
        return self.to_arrow().to_pylist()
