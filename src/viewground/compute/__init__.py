"""The ViewGround Compute Engine

The compute engine implements the algorithms that
views rely on to filter, sort and join data.

The compute engine is tightly bound to Apache Arrow,
thus the algorithms always deal with :class:`pyarrow.Array`
objects containing the values of a field, and emit arrays
of row positions telling which rows are involved in the result.

This allows views to apply the result of the computation
without copying any data::

    (values)-->sort_indices--(positions)-->FrameView.update_permutation

Filtering requires a predicate, which is usually built by
combining expressions that invoke :mod:`pyarrow.compute` functions
on the values of the field being filtered:

>>> import pyarrow as pa
>>> import pyarrow.compute as pc
>>> from viewground.compute import FunctionCallExpression, filter_indices, this
>>> # WHERE n_legs >= 5
>>> n_legs = pa.array([2, 4, 5, 100])
>>> filter_indices(n_legs, FunctionCallExpression(pc.greater_equal, this(), 5)).to_pylist()
[2, 3]

Joins are the only operation that creates new data,
see :mod:`viewground.compute.join`.
"""

from .base import Expression, Literal, ValuesRef, lit, this
from .expressions import FunctionCallExpression
from .filtering import RowPredicate, filter_indices
from .join import Join, JoinKind, Predicate, cross_join, hash_join, sort_merge_join
from .sorting import count_leading_unordered, sort_indices

__all__ = (
    "Expression",
    "Literal",
    "ValuesRef",
    "lit",
    "this",
    "FunctionCallExpression",
    "RowPredicate",
    "filter_indices",
    "sort_indices",
    "count_leading_unordered",
    "Join",
    "JoinKind",
    "Predicate",
    "sort_merge_join",
    "hash_join",
    "cross_join",
)
