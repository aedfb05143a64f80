"""Row level overlay on top of a store.

A :class:`FrameView` is a reference to a :class:`ColumnStore`
together with the details of which rows of the store are
visible and in which order.

The rows are described by a *permutation*: an array where
the entry at position ``i`` is the row of the store that
the frame exposes as its row ``i``. When no permutation
is present the frame exposes all the rows of the store
in their original order::

    store rows:   [Sally, Jamie, Bob, Cara]
    permutation:  [3, 0]
    frame rows:   [Cara, Sally]

Filtering or sorting a frame never touches the store,
it only computes a new permutation. As permutations are
immutable Arrow arrays, copying a frame is cheap and
the copy can be filtered or sorted independently.

>>> from viewground.store import ColumnStore, Kind
>>> store = ColumnStore()
>>> store.append_field("values", Kind.INT64, [3, 1, 2, 1])
>>> frame = FrameView(store)
>>> frame.sort_by("values").to_pylist()
[1, 3, 2, 0]
>>> frame.values("values").to_pylist()
[1, 1, 2, 3]
"""

from typing import Any

import pyarrow as pa
import pyarrow.compute as pc

from ..compute.filtering import RowPredicate, filter_indices
from ..compute.sorting import sort_indices
from ..config import get_logger
from ..errors import RowIndexError
from ..store import ColumnStore, FieldIdent, Kind, Value

__all__ = ("FrameView", "as_indices")

logger = get_logger(__name__)


def as_indices(indices: pa.Array | pa.ChunkedArray | list[Any]) -> pa.UInt64Array:
    """Convert row positions to an Arrow array of unsigned integers."""
    if isinstance(indices, pa.ChunkedArray):
        indices = indices.combine_chunks()
    if not isinstance(indices, pa.Array):
        return pa.array(indices, type=pa.uint64())
    if not indices.type.equals(pa.uint64()):
        indices = indices.cast(pa.uint64())
    return indices


class FrameView:
    """A store with a filtering and sorting overlay."""

    __slots__ = ("store", "permutation")

    def __init__(
        self, store: ColumnStore, permutation: pa.Array | list[int] | None = None
    ) -> None:
        """
        :param store: The store providing the data.
        :param permutation: The rows of the store exposed by the frame.
                            ``None`` means all rows in their original order.
        :raises RowIndexError: if the permutation refers to rows
                               that don't exist in the store.
        """
        if permutation is not None:
            permutation = as_indices(permutation)
            if len(permutation):
                highest = pc.max(permutation).as_py()
                if highest >= store.nrows():
                    raise RowIndexError(highest, store.nrows())
        self.store = store
        self.permutation = permutation

    def __repr__(self) -> str:
        return f"FrameView(store={self.store!r}, rows={self.nrows()})"

    def copy(self) -> "FrameView":
        """Create a new frame over the same store with the same rows.

        No data is copied, and as the permutation is never modified
        in place the two frames can evolve independently.
        """
        frame = FrameView.__new__(FrameView)
        frame.store = self.store
        frame.permutation = self.permutation
        return frame

    __copy__ = copy

    def nrows(self) -> int:
        """Number of rows visible in the frame."""
        if self.permutation is not None:
            return len(self.permutation)
        return self.store.nrows()

    def has_field(self, ident: FieldIdent) -> bool:
        return self.store.has_field(ident)

    def get_field_type(self, ident: FieldIdent) -> Kind | None:
        return self.store.get_field_type(ident)

    def has_same_store(self, other: "FrameView") -> bool:
        """If the two frames are backed by the very same store object."""
        return self.store is other.store

    def has_same_rows(self, other: "FrameView") -> bool:
        """If the two frames expose the same rows of the same store."""
        if not self.has_same_store(other):
            return False
        if self.permutation is None or other.permutation is None:
            return self.permutation is other.permutation
        return self.permutation is other.permutation or self.permutation.equals(
            other.permutation
        )

    def map_index(self, idx: int) -> int:
        """Translate a frame row to the row of the store.

        :raises RowIndexError: if the frame doesn't have row ``idx``.
        """
        nrows = self.nrows()
        if idx < 0 or idx >= nrows:
            raise RowIndexError(idx, nrows)
        if self.permutation is None:
            return idx
        return self.permutation[idx].as_py()

    def get_datum(self, ident: FieldIdent, idx: int) -> Value:
        """Read the value of a field at row ``idx`` of the frame."""
        return self.store.column(ident).get(self.map_index(idx))

    def values(self, ident: FieldIdent) -> pa.Array:
        """The values of a field for the visible rows, in order.

        :raises FieldNotFound: if the field isn't in the store.
        """
        array = self.store.column(ident).array
        if self.permutation is None:
            return array
        return array.take(self.permutation)

    def filter(self, ident: FieldIdent, predicate: RowPredicate) -> pa.UInt64Array:
        """Only keep the rows for which ``predicate`` is true.

        Returns the positions, relative to the rows visible
        before the filter, of the rows that were kept. The
        same positions can be used to apply the filter to
        other frames with the same number of rows through
        :meth:`update_permutation`.

        :param ident: The field the predicate is applied to.
        :param predicate: See :func:`viewground.compute.filtering.filter_indices`.
        :raises FieldNotFound: if the field isn't in the store.
        """
        local_indices = filter_indices(self.values(ident), predicate)
        logger.debug(
            "Filter on %s kept %d of %d rows", ident, len(local_indices), self.nrows()
        )
        self.update_permutation(local_indices)
        return local_indices

    def sort_by(self, ident: FieldIdent) -> pa.UInt64Array:
        """Sort the visible rows by the values of a field.

        Returns the sort order relative to the rows visible
        before the sort, like :meth:`filter` does.

        :raises FieldNotFound: if the field isn't in the store.
        """
        local_indices = sort_indices(self.values(ident))
        logger.debug("Sorted %d rows by %s", len(local_indices), ident)
        self.update_permutation(local_indices)
        return local_indices

    def update_permutation(self, local_indices: pa.Array | list[Any]) -> None:
        """Only expose the given rows, in the given order.

        ``local_indices`` are positions among the currently
        visible rows, so they are composed with the existing
        permutation::

            permutation:    [6, 4, 2, 0]
            local_indices:  [3, 1]
            new permutation [0, 4]
        """
        local_indices = as_indices(local_indices)
        if self.permutation is None:
            self.permutation = local_indices
        else:
            self.permutation = self.permutation.take(local_indices)
