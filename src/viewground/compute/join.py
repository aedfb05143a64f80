"""Join operations between views.

The join operations combine the rows of two views
according to a predicate on one field of each view.

The default implementation is a sort-merge join, which
sorts the keys of the two views and then scans them together.
An alternative implementation is provided as a hash join,
built on top of the Arrow hash join, which only
supports equality predicates.

Differently from filtering and sorting, the result of a join
can repeat the rows of the inputs or contain rows that
exist in only one of them, so it can't be represented as a
view over the existing stores. Joins always create a new
:class:`ColumnStore` with a copy of the resulting data.

Inner Join
==========

>>> from viewground.store import ColumnStore, Kind
>>> from viewground.view import MultiFrameView
>>> left = ColumnStore()
>>> left.append_field("id", Kind.INT64, [1, 2, 3])
>>> left.append_field("name", Kind.TEXT, ["Alice", "Bob", "Charlie"])
>>> right = ColumnStore()
>>> right.append_field("id", Kind.INT64, [3, 2])
>>> right.append_field("age", Kind.INT64, [25, 30])
>>> joined = sort_merge_join(
...     MultiFrameView.from_store(left),
...     MultiFrameView.from_store(right),
...     Join.equal(JoinKind.INNER, "id", "id"),
... )
>>> joined.to_arrow().to_pydict()
{'id': [2, 3], 'name': ['Bob', 'Charlie'], 'age': [30, 25]}

Outer Join
==========

Outer joins are *left outer* joins: rows of the left view
that have no match are preserved, and the fields coming
from the right view are missing for them. Swapping the two
views provides a right outer join.

Rows whose key is missing (or ``NaN``) never match any other row.
"""

import bisect
import dataclasses
import enum
import operator
from typing import TYPE_CHECKING, Any, Callable

import pyarrow as pa
import pyarrow.compute as pc

from ..config import get_logger
from ..errors import FieldCollision, IncompatibleTypes
from ..store import Column, ColumnStore, FieldIdent
from .sorting import count_leading_unordered, sort_indices

if TYPE_CHECKING:
    from ..view.multiframe import MultiFrameView

__all__ = (
    "Join",
    "JoinKind",
    "Predicate",
    "sort_merge_join",
    "hash_join",
    "cross_join",
)

logger = get_logger(__name__)


class JoinKind(enum.Enum):
    """Which rows are preserved by a join."""

    INNER = "inner"
    """Only rows matching the predicate."""

    OUTER = "outer"
    """Matching rows, plus the rows of the left view without a match."""

    CROSS = "cross"
    """Every row of the left view with every row of the right view."""


class Predicate(enum.Enum):
    """Comparison between the left key and the right key of a join.

    The predicate always reads as ``left_key OP right_key``,
    so ``LESS_THAN`` matches the rows of the right view
    whose key is greater than the key of the left row.
    """

    EQUAL = "=="
    LESS_THAN = "<"
    LESS_THAN_EQUAL = "<="
    GREATER_THAN = ">"
    GREATER_THAN_EQUAL = ">="

    def __call__(self, left: Any, right: Any) -> bool:
        return _OPERATORS[self](left, right)


_OPERATORS: dict[Predicate, Callable[[Any, Any], bool]] = {
    Predicate.EQUAL: operator.eq,
    Predicate.LESS_THAN: operator.lt,
    Predicate.LESS_THAN_EQUAL: operator.le,
    Predicate.GREATER_THAN: operator.gt,
    Predicate.GREATER_THAN_EQUAL: operator.ge,
}


@dataclasses.dataclass(frozen=True)
class Join:
    """The details of a join: its kind, predicate and key fields.

    Key fields are part of the output like any other field. Only
    equality joins on keys with the same name merge the two keys in
    a single field, for the other predicates two keys with the same
    name collide. Cross joins ignore the key fields entirely,
    they are neither looked up nor compared.

    >>> Join.less_than(JoinKind.INNER, "start", "date")
    Join(kind=<JoinKind.INNER: 'inner'>, predicate=<Predicate.LESS_THAN: '<'>, left_field='start', right_field='date')
    """

    kind: JoinKind
    predicate: Predicate
    left_field: FieldIdent | None
    right_field: FieldIdent | None

    @classmethod
    def equal(cls, kind: JoinKind, left_field: FieldIdent, right_field: FieldIdent) -> "Join":
        return cls(kind, Predicate.EQUAL, left_field, right_field)

    @classmethod
    def less_than(
        cls, kind: JoinKind, left_field: FieldIdent, right_field: FieldIdent
    ) -> "Join":
        return cls(kind, Predicate.LESS_THAN, left_field, right_field)

    @classmethod
    def less_than_equal(
        cls, kind: JoinKind, left_field: FieldIdent, right_field: FieldIdent
    ) -> "Join":
        return cls(kind, Predicate.LESS_THAN_EQUAL, left_field, right_field)

    @classmethod
    def greater_than(
        cls, kind: JoinKind, left_field: FieldIdent, right_field: FieldIdent
    ) -> "Join":
        return cls(kind, Predicate.GREATER_THAN, left_field, right_field)

    @classmethod
    def greater_than_equal(
        cls, kind: JoinKind, left_field: FieldIdent, right_field: FieldIdent
    ) -> "Join":
        return cls(kind, Predicate.GREATER_THAN_EQUAL, left_field, right_field)

    @classmethod
    def cross(cls) -> "Join":
        """A cross join, which has no key fields."""
        return cls(JoinKind.CROSS, Predicate.EQUAL, None, None)

    def merges_keys(self) -> bool:
        """If the right key is redundant in the output.

        That's the case for equality joins where both keys have
        the same name: for every matching row the two keys have
        the same value, so only the left one is preserved.
        """
        return (
            self.kind is not JoinKind.CROSS
            and self.predicate is Predicate.EQUAL
            and self.left_field == self.right_field
        )


def sort_merge_join(left: "MultiFrameView", right: "MultiFrameView", join: Join) -> ColumnStore:
    """Join two views by sorting and scanning their keys.

    Supposing we have two views::

        left:                 right:
        +------+-------+      +------+-----+
        | key  | name  |      | key  | age |
        +------+-------+      +------+-----+
        | 2    | Bob   |      | 2    | 30  |
        | 1    | Alice |      | 1    | 25  |
        | 1    | Ann   |      | 2    | 40  |
        +------+-------+      +------+-----+

    We would perform the following steps:

    1. Compute the sort order of the keys of both views,
       this doesn't modify the views themselves::

        left order:  [1, 2, 0]  -> keys [1, 1, 2]
        right order: [1, 0, 2]  -> keys [1, 2, 2]

    2. For equality predicates, scan the two sorted keys
       with a cursor each. When the keys under the cursors
       are equal, find where the group of rows with that key
       ends on both sides (the *tie group*) and emit every
       row of the left group with every row of the right group.
       When they differ, move forward the cursor on the
       smaller key::

        key 1: left rows [1, 2] x right rows [1]    -> (1, 1), (2, 1)
        key 2: left rows [0]    x right rows [0, 2] -> (0, 0), (0, 2)

       For the other predicates, for each left row a binary
       search on the sorted right keys finds the range of rows
       satisfying the predicate. As the right keys are sorted
       the range is always a prefix (for ``>`` and ``>=``) or
       a suffix (for ``<`` and ``<=``) of the right rows.

    3. For outer joins, every left row that didn't match any
       right row is emitted once, paired with no right row.

    4. Copy the values of the emitted rows into a new store::

        +------+-------+-----+
        | key  | name  | age |
        +------+-------+-----+
        | 1    | Alice | 25  |
        | 1    | Ann   | 25  |
        | 2    | Bob   | 30  |
        | 2    | Bob   | 40  |
        +------+-------+-----+

    Cross joins skip the keys entirely and pair every left
    row with every right row.

    :raises FieldNotFound: if a key field doesn't exist.
    :raises IncompatibleTypes: if the two key fields have different kinds.
    :raises FieldCollision: if the two views have fields with the same name.
    """
    if join.kind is not JoinKind.CROSS:
        left_keys, right_keys = _key_values(left, right, join)
    left_names, right_names = _output_fields(left, right, join)

    if join.kind is JoinKind.CROSS:
        left_rows, right_rows = _cross_rows(left.nrows(), right.nrows())
    else:
        left_order = sort_indices(left_keys)
        right_order = sort_indices(right_keys)
        outer = join.kind is JoinKind.OUTER
        if join.predicate is Predicate.EQUAL:
            left_rows, right_rows = _merge_scan(
                left_keys, left_order, right_keys, right_order, outer
            )
        else:
            left_rows, right_rows = _range_scan(
                left_keys, left_order, right_keys, right_order, join.predicate, outer
            )

    logger.debug(
        "Sort-merge %s join (%s) of %d x %d rows produced %d rows",
        join.kind.value,
        join.predicate.value,
        left.nrows(),
        right.nrows(),
        len(left_rows),
    )
    return _materialize(left, right, left_names, right_names, left_rows, right_rows)


def hash_join(left: "MultiFrameView", right: "MultiFrameView", join: Join) -> ColumnStore:
    """Join two views on equal keys using a hash table.

    The matching is delegated to the Arrow hash join: two small
    tables made of the keys and of the position of each row are
    joined, which gives the pairs of matching rows::

        left:              right:
        +-----+----------+ +-----+-----------+
        | key | left_row | | key | right_row |
        +-----+----------+ +-----+-----------+
        | 2   | 0        | | 1   | 0         |
        | 1   | 1        | | 2   | 1         |
        +-----+----------+ +-----+-----------+

        pairs: (0, 1), (1, 0)

    The pairs are then sorted by row position, so the result
    follows the order of the left view (and for each left row the
    order of the right view), while the sort-merge join produces
    them ordered by key.

    :raises ValueError: if the predicate isn't an equality
                        or the join is a cross join.
    """
    if join.kind is JoinKind.CROSS or join.predicate is not Predicate.EQUAL:
        raise ValueError("hash_join only supports equality joins")

    left_keys, right_keys = _key_values(left, right, join)
    left_names, right_names = _output_fields(left, right, join)

    left_table = pa.table(
        {"key": _hash_keys(left_keys), "left_row": _row_positions(len(left_keys))}
    )
    right_table = pa.table(
        {"key": _hash_keys(right_keys), "right_row": _row_positions(len(right_keys))}
    )
    pairs = left_table.join(
        right_table,
        keys="key",
        join_type="left outer" if join.kind is JoinKind.OUTER else "inner",
    ).sort_by([("left_row", "ascending"), ("right_row", "ascending")])

    logger.debug(
        "Hash %s join of %d x %d rows produced %d rows",
        join.kind.value,
        left.nrows(),
        right.nrows(),
        pairs.num_rows,
    )
    return _materialize(
        left, right, left_names, right_names, pairs["left_row"], pairs["right_row"]
    )


def _hash_keys(keys: pa.Array) -> pa.Array:
    """Prepare the keys for the Arrow hash join.

    Missing keys never match in the Arrow join, ``NaN`` keys are
    turned into missing keys so that they don't match either.
    Adding ``0.0`` turns ``-0.0`` into ``0.0``, as the two are equal.
    """
    if not pa.types.is_floating(keys.type):
        return keys
    keys = pc.add(keys, 0.0)
    return pc.if_else(pc.is_nan(keys), pa.scalar(None, type=keys.type), keys)


def _row_positions(length: int) -> pa.Array:
    return pa.array(range(length), type=pa.uint64())


def cross_join(left: "MultiFrameView", right: "MultiFrameView") -> ColumnStore:
    """Pair every row of ``left`` with every row of ``right``."""
    return sort_merge_join(left, right, Join.cross())


def _output_fields(
    left: "MultiFrameView", right: "MultiFrameView", join: Join
) -> tuple[list[FieldIdent], list[FieldIdent]]:
    """Compute the fields of the join result.

    The result has all the fields of the left view followed
    by the fields of the right view, and the same names can't
    appear on both sides. The only exception is the key of
    equality joins when it has the same name on both sides,
    see :meth:`Join.merges_keys`. Keys compared by the other
    predicates, and every field of cross joins, follow the same
    rule as any other field and raise :class:`FieldCollision`.
    """
    right_names = [
        ident
        for ident in right.fieldnames()
        if not (join.merges_keys() and ident == join.right_field)
    ]
    collisions = [ident for ident in right_names if left.has_field(ident)]
    if collisions:
        raise FieldCollision(collisions)
    return left.fieldnames(), right_names


def _key_values(
    left: "MultiFrameView", right: "MultiFrameView", join: Join
) -> tuple[pa.Array, pa.Array]:
    """Get the values of the join keys, as visible in the two views."""
    left_keys = left.field(join.left_field)
    right_keys = right.field(join.right_field)
    if left_keys.kind is not right_keys.kind:
        raise IncompatibleTypes(expected=left_keys.kind, actual=right_keys.kind)
    return left_keys.to_arrow(), right_keys.to_arrow()


def _merge_scan(
    left_keys: pa.Array,
    left_order: pa.Array,
    right_keys: pa.Array,
    right_order: pa.Array,
    outer: bool,
) -> tuple[list[int], list[int | None]]:
    """Find the pairs of rows with equal keys scanning the two sorted keys."""
    left_sorted = left_keys.take(left_order).to_pylist()
    right_sorted = right_keys.take(right_order).to_pylist()
    left_order = left_order.to_pylist()
    right_order = right_order.to_pylist()
    left_len, right_len = len(left_sorted), len(right_sorted)

    left_rows: list[int] = []
    right_rows: list[int | None] = []

    # Missing and NaN keys are at the beginning of the sort order,
    # they can't match anything so both cursors start after them.
    lpos = count_leading_unordered(left_keys)
    rpos = count_leading_unordered(right_keys)
    if outer:
        left_rows.extend(left_order[:lpos])
        right_rows.extend([None] * lpos)

    while lpos < left_len and rpos < right_len:
        lkey, rkey = left_sorted[lpos], right_sorted[rpos]
        if lkey == rkey:
            lend = _tie_group_end(left_sorted, lpos)
            rend = _tie_group_end(right_sorted, rpos)
            for left_row in left_order[lpos:lend]:
                left_rows.extend([left_row] * (rend - rpos))
                right_rows.extend(right_order[rpos:rend])
            lpos, rpos = lend, rend
        elif lkey < rkey:
            if outer:
                left_rows.append(left_order[lpos])
                right_rows.append(None)
            lpos += 1
        else:
            rpos += 1

    if outer:
        left_rows.extend(left_order[lpos:])
        right_rows.extend([None] * (left_len - lpos))
    return left_rows, right_rows


def _tie_group_end(sorted_keys: list[Any], start: int) -> int:
    """Position right after the last key equal to the one at ``start``."""
    end = start + 1
    while end < len(sorted_keys) and sorted_keys[end] == sorted_keys[start]:
        end += 1
    return end


def _range_scan(
    left_keys: pa.Array,
    left_order: pa.Array,
    right_keys: pa.Array,
    right_order: pa.Array,
    predicate: Predicate,
    outer: bool,
) -> tuple[list[int], list[int | None]]:
    """Find the pairs of rows satisfying an ordering predicate.

    Each left row, in sorted order, is matched against a
    range of the sorted right keys found through binary search.
    """
    right_start = count_leading_unordered(right_keys)
    right_sorted = right_keys.take(right_order).to_pylist()[right_start:]
    right_rows_sorted = right_order.to_pylist()[right_start:]
    left_start = count_leading_unordered(left_keys)
    left_sorted = left_keys.take(left_order).to_pylist()

    left_rows: list[int] = []
    right_rows: list[int | None] = []
    for pos, left_row in enumerate(left_order.to_pylist()):
        if pos < left_start:
            begin = end = 0
        else:
            begin, end = _matching_range(right_sorted, left_sorted[pos], predicate)
        if end > begin:
            left_rows.extend([left_row] * (end - begin))
            right_rows.extend(right_rows_sorted[begin:end])
        elif outer:
            left_rows.append(left_row)
            right_rows.append(None)
    return left_rows, right_rows


def _matching_range(sorted_keys: list[Any], key: Any, predicate: Predicate) -> tuple[int, int]:
    """Range of ``sorted_keys`` for which ``key OP sorted_key`` holds."""
    if predicate is Predicate.LESS_THAN:
        return bisect.bisect_right(sorted_keys, key), len(sorted_keys)
    elif predicate is Predicate.LESS_THAN_EQUAL:
        return bisect.bisect_left(sorted_keys, key), len(sorted_keys)
    elif predicate is Predicate.GREATER_THAN:
        return 0, bisect.bisect_left(sorted_keys, key)
    elif predicate is Predicate.GREATER_THAN_EQUAL:
        return 0, bisect.bisect_right(sorted_keys, key)
    return bisect.bisect_left(sorted_keys, key), bisect.bisect_right(sorted_keys, key)


def _cross_rows(left_len: int, right_len: int) -> tuple[list[int], list[int | None]]:
    left_rows = [row for row in range(left_len) for _ in range(right_len)]
    right_rows: list[int | None] = list(range(right_len)) * left_len
    return left_rows, right_rows


def _materialize(
    left: "MultiFrameView",
    right: "MultiFrameView",
    left_names: list[FieldIdent],
    right_names: list[FieldIdent],
    left_rows: list[int] | pa.ChunkedArray,
    right_rows: list[int | None] | pa.ChunkedArray,
) -> ColumnStore:
    """Copy the values of the matched rows into a new store.

    ``None`` entries in ``right_rows`` are rows without
    a match, taking a null index leads to a missing value.
    """
    left_indices = _row_indices(left_rows)
    right_indices = _row_indices(right_rows)

    store = ColumnStore()
    for view, names, indices in (
        (left, left_names, left_indices),
        (right, right_names, right_indices),
    ):
        for ident in names:
            selection = view.field(ident)
            store.append_column(
                ident, Column(selection.kind, selection.to_arrow().take(indices))
            )
    return store


def _row_indices(rows: list[int | None] | pa.ChunkedArray) -> pa.Array:
    if isinstance(rows, pa.ChunkedArray):
        return rows.combine_chunks().cast(pa.uint64())
    return pa.array(rows, type=pa.uint64())
