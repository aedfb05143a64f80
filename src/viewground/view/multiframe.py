"""The main user facing table abstraction.

A :class:`MultiFrameView` is a logical table whose fields
can come from multiple stores. It's made of a list of
:class:`FrameView` objects, each one providing the rows
of one store, and of a map that tells for each field of the
view which frame provides its data and under which name.

Supposing we have two stores with data about the same employees::

    store 1:                      store 2:
    +-------+--------+---------+  +--------------+-------------+
    | EmpId | DeptId | EmpName |  | SalaryOffset | DidTraining |
    +-------+--------+---------+  +--------------+-------------+
    | 0     | 1      | Sally   |  | -5           | false       |
    | 2     | 2      | Jamie   |  | 4            | false       |
    | 5     | 1      | Bob     |  | 12           | true        |
    +-------+--------+---------+  +--------------+-------------+

Merging the views of the two stores leads to a view with
two frames and all five fields, without copying any data::

    frames: [FrameView(store 1), FrameView(store 2)]
    fields:
        EmpId        -> frame 0, EmpId
        DeptId       -> frame 0, DeptId
        EmpName      -> frame 0, EmpName
        SalaryOffset -> frame 1, SalaryOffset
        DidTraining  -> frame 1, DidTraining

Filtering or sorting the view by one field computes the rows to keep
on the frame owning that field, and then applies the same
rows to all the other frames, so the frames stay aligned:

>>> import pyarrow.compute as pc
>>> from viewground.store import ColumnStore, Kind
>>> emp = ColumnStore()
>>> emp.append_field("EmpId", Kind.UINT64, [0, 2, 5])
>>> emp.append_field("EmpName", Kind.TEXT, ["Sally", "Jamie", "Bob"])
>>> extra = ColumnStore()
>>> extra.append_field("DidTraining", Kind.BOOL, [False, False, True])
>>> view = MultiFrameView.from_store(emp).merge(MultiFrameView.from_store(extra))
>>> view.fieldnames()
['EmpId', 'EmpName', 'DidTraining']
>>> view.filter("DidTraining", lambda v: v).to_pylist()
[2]
>>> view.field("EmpName").to_pylist()
['Bob']
"""

import dataclasses
from typing import Any, Callable, Iterable

import pyarrow as pa

from ..compute.filtering import RowPredicate
from ..compute.join import Join, hash_join, sort_merge_join
from ..config import get_logger
from ..errors import (
    DimensionMismatch,
    FieldCollision,
    FieldNotFound,
    IncompatibleTypes,
)
from ..store import Column, ColumnStore, FieldIdent, Kind, Value
from ..store.columnstore import arrow_names
from .frame import FrameView
from .selection import Selection

__all__ = ("MultiFrameView", "ViewField")

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True)
class ViewField:
    """Where the data of a field of a view comes from."""

    frame_index: int
    """Position of the frame owning the data in the view frames."""

    ident: FieldIdent
    """Identifier of the field in the store of the frame."""

    rename: FieldIdent | None = None
    """New name of the field, if it was renamed."""

    @property
    def name(self) -> FieldIdent:
        """The identifier of the field within the view."""
        return self.ident if self.rename is None else self.rename


class MultiFrameView:
    """Logical table over the data of one or more stores."""

    def __init__(
        self,
        frames: Iterable[FrameView] | None = None,
        fields: dict[FieldIdent, ViewField] | None = None,
    ) -> None:
        """
        :param frames: The frames providing the data of the view.
                       All the frames must expose the same number of rows.
        :param fields: The fields of the view in order, mapping the
                       identifier of each field to where its data comes from.
        :raises DimensionMismatch: if the frames have different number of rows.
        """
        self.frames: list[FrameView] = list(frames or [])
        self.fields: dict[FieldIdent, ViewField] = dict(fields or {})

        frame_rows = {frame.nrows() for frame in self.frames}
        if len(frame_rows) > 1:
            raise DimensionMismatch(f"frames have different number of rows: {frame_rows}")
        for name, view_field in self.fields.items():
            if not 0 <= view_field.frame_index < len(self.frames):
                raise ValueError(
                    f"Field {name} refers to frame {view_field.frame_index}, "
                    f"view has {len(self.frames)} frames"
                )

    @classmethod
    def from_store(cls, store: ColumnStore) -> "MultiFrameView":
        """Create a view exposing all the fields and rows of a store."""
        return cls(
            [FrameView(store)],
            {ident: ViewField(0, ident) for ident in store.fieldnames()},
        )

    @classmethod
    def from_arrow(cls, table: pa.Table | pa.RecordBatch) -> "MultiFrameView":
        """Create a view with the data of an Arrow table or record batch."""
        return cls.from_store(ColumnStore.from_arrow(table))

    def __repr__(self) -> str:
        return f"MultiFrameView(fields={self.fieldnames()}, rows={self.nrows()})"

    def __contains__(self, ident: object) -> bool:
        return ident in self.fields

    def copy(self) -> "MultiFrameView":
        """Create an independent view with the same fields and rows.

        The stores are shared, so no data is copied.
        """
        return MultiFrameView([frame.copy() for frame in self.frames], self.fields)

    __copy__ = copy

    def nrows(self) -> int:
        """Number of rows in the view."""
        if not self.frames:
            return 0
        return self.frames[0].nrows()

    def nfields(self) -> int:
        """Number of fields in the view."""
        return len(self.fields)

    def fieldnames(self) -> list[FieldIdent]:
        """Identifiers of the fields of the view, in order."""
        return list(self.fields)

    def is_empty(self) -> bool:
        """If the view has no rows."""
        return self.nrows() == 0

    def has_field(self, ident: FieldIdent) -> bool:
        return ident in self.fields

    def get_field_type(self, ident: FieldIdent) -> Kind | None:
        """The kind of a field, ``None`` if the view has no such field."""
        view_field = self.fields.get(ident)
        if view_field is None:
            return None
        return self.frames[view_field.frame_index].get_field_type(view_field.ident)

    def view_field(self, ident: FieldIdent) -> ViewField:
        """Where the data of a field comes from.

        :raises FieldNotFound: if the view has no such field.
        """
        try:
            return self.fields[ident]
        except KeyError:
            raise FieldNotFound(ident) from None

    def field(self, ident: FieldIdent, kind: Kind | None = None) -> Selection:
        """Access the data of a field.

        :param ident: The field to read.
        :param kind: The kind the caller expects the field to be,
                     ``None`` to accept any kind.
        :raises FieldNotFound: if the view has no such field.
        :raises IncompatibleTypes: if ``kind`` doesn't match
                                   the kind of the field.
        """
        view_field = self.view_field(ident)
        frame = self.frames[view_field.frame_index]
        if kind is not None:
            stored_kind = frame.get_field_type(view_field.ident)
            if stored_kind is not Kind(kind):
                raise IncompatibleTypes(expected=Kind(kind), actual=stored_kind)
        return Selection(frame.copy(), view_field.ident, ident)

    def map(
        self,
        ident: FieldIdent,
        func: Callable[[Selection], Any],
        kind: Kind | None = None,
    ) -> Any:
        """Apply a function to the data of a field.

        The function receives the :class:`Selection` of the field,
        so it reads the rows as exposed by the view, and its
        result is returned unchanged:

        >>> from viewground.store import ColumnStore, Kind
        >>> store = ColumnStore()
        >>> store.append_field("EmpName", Kind.TEXT, ["Sally", "Jamie"])
        >>> view = MultiFrameView.from_store(store)
        >>> view.map("EmpName", lambda names: "Jamie" in names.to_pylist())
        True

        :param ident: The field to read.
        :param func: The function to apply.
        :param kind: The kind the function expects, see :meth:`field`.
        :raises FieldNotFound: if the view has no such field.
        :raises IncompatibleTypes: if ``kind`` doesn't match
                                   the kind of the field.
        """
        return func(self.field(ident, kind))

    def record(
        self, idx: int, fields: FieldIdent | Iterable[FieldIdent] | None = None
    ) -> dict[FieldIdent, Value]:
        """Read one row of the view.

        :param idx: The row to read.
        :param fields: The fields to read, all of them when ``None``.
        :raises RowIndexError: if the row doesn't exist.
        :raises FieldNotFound: if one of the fields doesn't exist.
        """
        idents = self.fieldnames() if fields is None else _field_list(fields)
        view_fields = {ident: self.view_field(ident) for ident in idents}
        return {
            ident: self.frames[vf.frame_index].get_datum(vf.ident, idx)
            for ident, vf in view_fields.items()
        }

    def subview(
        self, fields: FieldIdent | Iterable[FieldIdent], strict: bool = True
    ) -> "MultiFrameView":
        """Create a new view with only some of the fields.

        The new view shares the stores of this one.

        :param fields: The fields to keep, in the order they should have.
        :param strict: When ``True`` requesting a field that doesn't
                       exist is an error, otherwise it's ignored.
        :raises FieldNotFound: if ``strict`` and a field doesn't exist.
        """
        sub_fields = {}
        for ident in _field_list(fields):
            view_field = self.fields.get(ident)
            if view_field is None:
                if strict:
                    raise FieldNotFound(ident)
                continue
            sub_fields[ident] = view_field
        return MultiFrameView([frame.copy() for frame in self.frames], sub_fields)

    def rename(self, old: FieldIdent, new: FieldIdent) -> None:
        """Rename a field of the view.

        Only the view is affected, the underlying store keeps
        the original name. The field keeps its position.

        :raises FieldCollision: if the view already has a field named ``new``.
        :raises FieldNotFound: if the view has no field named ``old``.
        """
        if new in self.fields:
            raise FieldCollision([new])
        if old not in self.fields:
            raise FieldNotFound(old)
        self.fields = {
            (new if ident == old else ident): (
                dataclasses.replace(view_field, rename=new) if ident == old else view_field
            )
            for ident, view_field in self.fields.items()
        }

    def merge(self, other: "MultiFrameView") -> "MultiFrameView":
        """Combine the fields of two views with the same number of rows.

        The resulting view has all the fields of this view followed
        by all the fields of ``other``. When the two views have frames
        exposing the same rows of the same store, the frame is
        included only once.

        :raises DimensionMismatch: if the views have a different number of rows.
        :raises FieldCollision: if the views have fields with the same names,
                                all the colliding names are reported.
        """
        if self.nrows() != other.nrows():
            raise DimensionMismatch(
                f"number of rows mismatch in merge: {self.nrows()} != {other.nrows()}"
            )
        collisions = [ident for ident in other.fields if ident in self.fields]
        if collisions:
            raise FieldCollision(collisions)

        frames, other_frame_indices = merge_frames(self.frames, other.frames)
        fields = dict(self.fields)
        for ident, view_field in other.fields.items():
            fields[ident] = dataclasses.replace(
                view_field, frame_index=other_frame_indices[view_field.frame_index]
            )
        logger.debug(
            "Merged views into %d fields over %d frames", len(fields), len(frames)
        )
        return MultiFrameView(frames, fields)

    def filter(self, ident: FieldIdent, predicate: RowPredicate) -> pa.UInt64Array:
        """Only keep the rows for which ``predicate`` is true on a field.

        All the frames of the view are filtered, so that all
        fields keep exposing the same rows.

        :returns: The positions of the kept rows among the rows
                  that were visible before filtering.
        :raises FieldNotFound: if the view has no such field.
        """
        view_field = self.view_field(ident)
        local_indices = self.frames[view_field.frame_index].filter(
            view_field.ident, predicate
        )
        self._propagate(view_field.frame_index, local_indices)
        return local_indices

    def sort_by(self, ident: FieldIdent) -> pa.UInt64Array:
        """Sort the rows of the view by the values of a field.

        The sort is stable and ascending, missing values first.

        :returns: The sort order relative to the rows that were
                  visible before sorting.
        :raises FieldNotFound: if the view has no such field.
        """
        view_field = self.view_field(ident)
        local_indices = self.frames[view_field.frame_index].sort_by(view_field.ident)
        self._propagate(view_field.frame_index, local_indices)
        return local_indices

    def join(
        self, other: "MultiFrameView", join: Join, algorithm: str = "sort_merge"
    ) -> ColumnStore:
        """Join this view with another one.

        This creates a new store, as the rows of the result can't be
        expressed as a permutation of the rows of the two views.
        See :mod:`viewground.compute.join` for the details.

        :param other: The right side of the join.
        :param join: The join kind, predicate and fields.
        :param algorithm: ``"sort_merge"`` or ``"hash"``,
                          the hash join only supports equality predicates.
        """
        if algorithm == "sort_merge":
            return sort_merge_join(self, other, join)
        elif algorithm == "hash":
            return hash_join(self, other, join)
        raise ValueError(f"Unsupported join algorithm: {algorithm}")

    def append(self, other: "MultiFrameView") -> ColumnStore:
        """Create a new store with the rows of this view followed by those of ``other``.

        The two views must have the same fields with the same kinds,
        the order of the fields in the result is the one of this view.

        :raises FieldNotFound: if a field of this view is missing in ``other``.
        :raises FieldCollision: if ``other`` has fields this view doesn't have.
        :raises IncompatibleTypes: if the same field has different kinds.
        """
        for ident in self.fields:
            if ident not in other.fields:
                raise FieldNotFound(ident)
        extra = [ident for ident in other.fields if ident not in self.fields]
        if extra:
            raise FieldCollision(extra)
        for ident in self.fields:
            left_kind, right_kind = self.get_field_type(ident), other.get_field_type(ident)
            if left_kind is not right_kind:
                raise IncompatibleTypes(expected=left_kind, actual=right_kind)

        store = ColumnStore()
        for ident in self.fields:
            array = pa.concat_arrays(
                [self.field(ident).to_arrow(), other.field(ident).to_arrow()]
            )
            store.append_column(ident, Column(self.get_field_type(ident), array))
        return store

    def to_arrow(self) -> pa.Table:
        """Collect the data of the view in an Arrow table.

        :raises FieldCollision: if two fields have the same
                                string form, like ``0`` and ``"0"``.
        """
        names = arrow_names(self.fields)
        return pa.table(
            [self.field(ident).to_arrow() for ident in self.fields], names=names
        )

    def _propagate(self, source_frame: int, local_indices: pa.Array) -> None:
        """Apply to all other frames the rows selected on ``source_frame``."""
        for frame_index, frame in enumerate(self.frames):
            if frame_index != source_frame:
                frame.update_permutation(local_indices)


def merge_frames(
    left: list[FrameView], right: list[FrameView]
) -> tuple[list[FrameView], list[int]]:
    """Combine two lists of frames, skipping duplicates.

    Returns the combined frames and, for each frame of ``right``,
    its position in the combined list.
    """
    frames = [frame.copy() for frame in left]
    right_indices = []
    for right_frame in right:
        for frame_index, frame in enumerate(frames):
            if frame.has_same_rows(right_frame):
                right_indices.append(frame_index)
                break
        else:
            right_indices.append(len(frames))
            frames.append(right_frame.copy())
    return frames, right_indices


def _field_list(fields: Any) -> list[FieldIdent]:
    if isinstance(fields, (str, int)):
        return [fields]
    return list(fields)
