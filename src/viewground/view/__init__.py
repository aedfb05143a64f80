"""Views over the data of the stores.

Views are the primary way to work with data in ViewGround.
They provide a table abstraction that can be filtered, sorted,
renamed and combined with other views without ever copying
the data kept in the stores.

The views are organized in two levels:

* :class:`FrameView` exposes the rows of a single store,
  possibly filtered or reordered.
* :class:`MultiFrameView` combines one or more frames into
  a logical table and routes each field to the frame owning it.

The typical workflow involves creating a view from a store,
and then working on it::

    view = MultiFrameView.from_store(employees)
    view.filter("DeptId", lambda v: pyarrow.compute.equal(v, 1))
    view.sort_by("EmpName")
    names = view.field("EmpName", Kind.TEXT)

Multiple views over the same store are independent,
filtering one of them has no effect on the others.
"""

from .frame import FrameView
from .multiframe import MultiFrameView, ViewField
from .selection import Selection

__all__ = ("FrameView", "MultiFrameView", "ViewField", "Selection")
