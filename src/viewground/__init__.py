"""ViewGround

An in-memory columnar data engine built on Apache Arrow.

ViewGround stores typed tabular data, exposes filtered, sorted
and renamed *views* over that data without copying it,
and computes merges and joins across views.

The engine is constituted by multiple components, each isolated within its own
package and each self documented in literate programming style.

The primary components are:

* The Storage Layer (:mod:`viewground.store`), which owns the data
  as typed, nullable columns.
* The Views (:mod:`viewground.view`), which provide the table abstraction
  used to filter, sort, rename and merge data.
* The Compute Engine (:mod:`viewground.compute`), which implements
  the sorting, filtering and join algorithms.

A quick tour of the engine:

>>> import pyarrow.compute as pc
>>> from viewground import ColumnStore, Kind, MultiFrameView
>>> store = ColumnStore()
>>> store.append_field("EmpId", Kind.UINT64, [0, 2, 5, 6])
>>> store.append_field("EmpName", Kind.TEXT, ["Sally", "Jamie", "Bob", "Cara"])
>>> view = MultiFrameView.from_store(store)
>>> _ = view.filter("EmpId", lambda v: pc.greater_equal(v, 2))
>>> _ = view.sort_by("EmpName")
>>> view.field("EmpName").to_pylist()
['Bob', 'Cara', 'Jamie']

For the user guide and code documentation of each component, refer to the
component itself.
"""

from . import compute, store, view
from .compute import Join, JoinKind, Predicate
from .errors import (
    DimensionMismatch,
    FieldCollision,
    FieldNotFound,
    IncompatibleTypes,
    ParseError,
    RowIndexError,
    ViewgroundError,
)
from .store import NA, ColumnStore, ColumnStoreBuilder, Exists, Kind, Schema, Value
from .view import FrameView, MultiFrameView

__all__ = (
    "compute",
    "store",
    "view",
    "ColumnStore",
    "ColumnStoreBuilder",
    "Kind",
    "Schema",
    "Value",
    "NA",
    "Exists",
    "FrameView",
    "MultiFrameView",
    "Join",
    "JoinKind",
    "Predicate",
    "ViewgroundError",
    "FieldNotFound",
    "FieldCollision",
    "DimensionMismatch",
    "RowIndexError",
    "IncompatibleTypes",
    "ParseError",
)
