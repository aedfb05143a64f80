"""Compute which rows satisfy a filter predicate.

A common request when analysing data is to pick
only the rows that respect a specific condition.
An example is the ``WHERE`` condition in SQL queries.

Filtering a view doesn't copy any data, it only computes
the positions of the rows that satisfy the predicate,
the view will then only expose those rows.

The predicate can be an :class:`Expression` or any callable
that accepts the values of the field as a :class:`pyarrow.Array`
and returns a mask (an array of only true/false values):

>>> import pyarrow as pa
>>> import pyarrow.compute as pc
>>> values = pa.array([1, 2, None, 4, 1])
>>> filter_indices(values, lambda v: pc.equal(v, 1)).to_pylist()
[0, 4]
"""

from typing import Callable, Union

import pyarrow as pa
import pyarrow.compute as pc

from ..errors import DimensionMismatch
from .base import Expression

__all__ = ("RowPredicate", "filter_indices")

RowPredicate = Union[Expression, Callable[[pa.Array], pa.Array]]


def filter_indices(values: pa.Array, predicate: RowPredicate) -> pa.UInt64Array:
    """Compute the positions of the values satisfying the predicate.

    Rows for which the predicate returns ``null``, which
    usually happens for missing values, are not selected.

    :param values: The values of the field being filtered.
    :param predicate: The predicate to apply to the values.
    :raises DimensionMismatch: if the predicate doesn't return
                               exactly one entry for each value.
    """
    if isinstance(predicate, Expression):
        mask = predicate.apply(values)
    else:
        mask = predicate(values)

    if isinstance(mask, pa.ChunkedArray):
        mask = mask.combine_chunks()
    elif not isinstance(mask, pa.Array):
        mask = pa.array(mask, type=pa.bool_())

    if len(mask) != len(values):
        raise DimensionMismatch(
            f"predicate returned {len(mask)} entries for {len(values)} rows"
        )
    return pc.indices_nonzero(pc.fill_null(mask, False))
