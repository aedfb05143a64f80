"""Compute the order that sorts the values of a field.

Sorting a view doesn't move any data, it computes the
order in which the rows have to be read so that the
values of a field appear in ascending order.

The order must satisfy a few requirements, which are
relied upon by both the sorting of views and the joins:

1. Missing values come before any other value.
2. For floating point data, ``NaN`` values come right after
   the missing values and before any other value.
3. All other values are sorted in ascending order.
4. The sort is **stable**: rows with equal values preserve
   their original relative order. This makes the result of
   sorts and joins reproducible.

>>> import pyarrow as pa
>>> values = pa.array([2.1, float("nan"), None, 1.1, 8.2])
>>> sort_indices(values).to_pylist()
[2, 1, 3, 0, 4]
"""

import pyarrow as pa
import pyarrow.compute as pc

__all__ = ("sort_indices", "count_leading_unordered")


def sort_indices(values: pa.Array) -> pa.UInt64Array:
    """Compute the indices that would stably sort ``values``.

    The values are split in three partitions, missing values,
    ``NaN`` values and all the others. The first two are kept
    in their original order, the last one is sorted and then
    the three partitions are concatenated::

        values:  [2.1, NaN, NA, 1.1, 8.2]
        missing: [2]
        nan:     [1]
        others:  [0, 3, 4] -> sorted -> [3, 0, 4]
        result:  [2, 1, 3, 0, 4]

    Arrow is able to place nulls at the start of the sort,
    but being explicit about the partitions guarantees the
    ordering of ``NaN`` regardless of the Arrow version.
    """
    if isinstance(values, pa.ChunkedArray):
        values = values.combine_chunks()

    missing_mask = pc.is_null(values)
    if pa.types.is_floating(values.type):
        nan_mask = pc.fill_null(pc.is_nan(values), False)
    else:
        nan_mask = pa.array([False] * len(values), type=pa.bool_())
    others_mask = pc.invert(pc.or_(missing_mask, nan_mask))

    missing_indices = pc.indices_nonzero(missing_mask)
    nan_indices = pc.indices_nonzero(nan_mask)
    others_indices = pc.indices_nonzero(others_mask)

    # sort_indices is a stable sort, so rows with the same
    # value will preserve the order they had in others_indices.
    others_order = pc.sort_indices(values.take(others_indices))
    sorted_others = others_indices.take(others_order)

    return pa.concat_arrays([missing_indices, nan_indices, sorted_others])


def count_leading_unordered(values: pa.Array) -> int:
    """Count the values that come before any comparable value in the sort order.

    Those are the missing values and the ``NaN`` values,
    which can't be compared to any other value and thus
    never satisfy comparison predicates.
    """
    unordered = values.null_count
    if pa.types.is_floating(values.type):
        unordered += pc.sum(pc.fill_null(pc.is_nan(values), False)).as_py() or 0
    return unordered
