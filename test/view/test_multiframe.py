import math

import pyarrow as pa
import pyarrow.compute as pc
import pytest

from viewground.compute import FunctionCallExpression, this
from viewground.errors import (
    DimensionMismatch,
    FieldCollision,
    FieldNotFound,
    IncompatibleTypes,
    RowIndexError,
)
from viewground.store import NA, ColumnStore, Exists, Kind
from viewground.view import FrameView, MultiFrameView, ViewField


@pytest.fixture
def emp_view(emp_store):
    return MultiFrameView.from_store(emp_store)


@pytest.fixture
def full_view(emp_store, emp_extra_store):
    return MultiFrameView.from_store(emp_store).merge(
        MultiFrameView.from_store(emp_extra_store)
    )


def test_from_store(emp_view):
    assert emp_view.nrows() == 7
    assert emp_view.nfields() == 3
    assert emp_view.fieldnames() == ["EmpId", "DeptId", "EmpName"]
    assert not emp_view.is_empty()
    assert emp_view.has_field("EmpName")
    assert "EmpName" in emp_view
    assert emp_view.get_field_type("EmpName") is Kind.TEXT
    assert emp_view.get_field_type("Salary") is None


def test_empty_view():
    view = MultiFrameView()
    assert view.nrows() == 0
    assert view.nfields() == 0
    assert view.is_empty()


def test_frames_must_have_same_rows(emp_store, dept_store):
    with pytest.raises(DimensionMismatch):
        MultiFrameView([FrameView(emp_store), FrameView(dept_store)])


def test_fields_must_refer_to_frames(emp_store):
    with pytest.raises(ValueError):
        MultiFrameView([FrameView(emp_store)], {"EmpId": ViewField(1, "EmpId")})


def test_from_arrow():
    view = MultiFrameView.from_arrow(pa.table({"a": [1, 2], "b": ["x", None]}))
    assert view.get_field_type("a") is Kind.INT64
    assert view.field("b").get_datum(1) is NA


def test_field(emp_view):
    names = emp_view.field("EmpName", Kind.TEXT)
    assert names.kind is Kind.TEXT
    assert len(names) == 7
    assert names.get_datum(0) == Exists("Sally")
    assert list(names)[:2] == [Exists("Sally"), Exists("Jamie")]


def test_field_kind_mismatch(emp_view):
    with pytest.raises(IncompatibleTypes) as err:
        emp_view.field("EmpName", Kind.INT64)
    assert err.value.expected is Kind.INT64
    assert err.value.actual is Kind.TEXT


def test_field_not_found(emp_view):
    with pytest.raises(FieldNotFound):
        emp_view.field("Salary")


def test_field_selection_is_a_snapshot(emp_view):
    names = emp_view.field("EmpName")
    emp_view.filter("DeptId", lambda v: pc.equal(v, 2))
    assert len(names) == 7
    assert emp_view.field("EmpName").to_pylist() == ["Jamie"]


def test_record(full_view):
    assert full_view.record(2, ["EmpName", "DidTraining"]) == {
        "EmpName": Exists("Bob"),
        "DidTraining": Exists(True),
    }
    assert full_view.record(0, "EmpId") == {"EmpId": Exists(0)}
    assert len(full_view.record(6)) == 6
    with pytest.raises(RowIndexError):
        full_view.record(7)
    with pytest.raises(FieldNotFound):
        full_view.record(0, ["Salary"])


def test_merge(full_view, emp_store, emp_extra_store):
    assert full_view.nrows() == 7
    assert full_view.fieldnames() == [
        "EmpId", "DeptId", "EmpName", "SalaryOffset", "DidTraining", "VacationHrs",
    ]
    assert len(full_view.frames) == 2
    assert full_view.frames[0].store is emp_store
    assert full_view.frames[1].store is emp_extra_store
    assert full_view.field("VacationHrs").get_datum(3) == Exists(12.2)


def test_merge_dimension_mismatch(emp_view, dept_store):
    with pytest.raises(DimensionMismatch):
        emp_view.merge(MultiFrameView.from_store(dept_store))


def test_merge_field_collision(emp_view, emp_store):
    with pytest.raises(FieldCollision) as err:
        emp_view.merge(MultiFrameView.from_store(emp_store))
    assert err.value.idents == ["EmpId", "DeptId", "EmpName"]


def test_merge_partial_collision(emp_view):
    other = ColumnStore()
    other.append_field("Salary", Kind.INT64, range(7))
    other.append_field("EmpName", Kind.TEXT, ["x"] * 7)
    with pytest.raises(FieldCollision) as err:
        emp_view.merge(MultiFrameView.from_store(other))
    assert err.value.idents == ["EmpName"]


def test_merge_subviews_of_same_view(emp_view):
    ids = emp_view.subview(["EmpId"])
    names = emp_view.subview(["EmpName"])
    merged = ids.merge(names)
    assert len(merged.frames) == 1
    assert merged.fieldnames() == ["EmpId", "EmpName"]
    assert merged.view_field("EmpName").frame_index == 0


def test_merge_same_store_different_rows(emp_store):
    by_id = MultiFrameView.from_store(emp_store).subview(["EmpId"])
    by_name = MultiFrameView.from_store(emp_store).subview(["EmpName"])
    by_name.sort_by("EmpName")
    merged = by_id.merge(by_name)
    assert len(merged.frames) == 2
    assert merged.record(0) == {"EmpId": Exists(0), "EmpName": Exists("Ann")}


def test_merge_leaves_inputs_unchanged(emp_view, emp_extra_store):
    extra = MultiFrameView.from_store(emp_extra_store)
    merged = emp_view.merge(extra)
    merged.filter("DidTraining", lambda v: v)
    assert emp_view.nrows() == 7
    assert extra.nrows() == 7
    assert emp_view.fieldnames() == ["EmpId", "DeptId", "EmpName"]


def test_filter_scenario(emp_view):
    emp_view.filter("DeptId", FunctionCallExpression(pc.equal, this(), 1))
    assert sorted(emp_view.field("EmpName").to_pylist()) == ["Bob", "Cara", "Sally"]
    emp_view.filter("EmpId", FunctionCallExpression(pc.greater_equal, this(), 6))
    assert emp_view.field("EmpName").to_pylist() == ["Cara"]
    assert emp_view.nrows() == 1


def test_filter_directly(emp_view):
    emp_view.filter("EmpId", lambda v: pc.greater_equal(v, 6))
    assert emp_view.nrows() == 4
    assert emp_view.field("EmpName").to_pylist() == ["Cara", "Louis", "Louise", "Ann"]


def test_filter_propagates_to_all_frames(full_view):
    kept = full_view.filter("DidTraining", lambda v: v)
    assert kept.to_pylist() == [2, 3, 4, 6]
    assert full_view.field("EmpName").to_pylist() == ["Bob", "Cara", "Louis", "Ann"]
    assert full_view.field("SalaryOffset").to_pylist() == [12, -33, 10, -1]


def test_filter_composition(full_view):
    in_steps = full_view.copy()
    in_steps.filter("SalaryOffset", lambda v: pc.greater(v, -10))
    in_steps.filter("DeptId", lambda v: pc.less_equal(v, 3))

    at_once = full_view.copy()
    salary = full_view.field("SalaryOffset").to_arrow()
    at_once.filter(
        "DeptId",
        lambda v: pc.and_(pc.greater(salary, -10), pc.less_equal(v, 3)),
    )
    assert in_steps.to_arrow().equals(at_once.to_arrow())
    assert in_steps.field("EmpName").to_pylist() == ["Sally", "Jamie", "Bob", "Louis"]


def test_filter_missing_values(missing_store):
    view = MultiFrameView.from_store(missing_store)
    view.filter("unsigned", lambda v: pc.greater(v, 1))
    assert view.field("unsigned").to_pylist() == [3, 2]
    assert view.field("text").to_pylist() == ["b", None]


def test_filter_missing_field(emp_view):
    with pytest.raises(FieldNotFound):
        emp_view.filter("Salary", lambda v: v)


def test_sort_by(full_view):
    full_view.sort_by("VacationHrs")
    hours = full_view.field("VacationHrs").to_pylist()
    assert hours == sorted(hours)
    assert full_view.field("EmpName").to_pylist() == [
        "Louis", "Louise", "Cara", "Ann", "Sally", "Jamie", "Bob",
    ]


def test_sort_missing_and_nan_first(missing_store):
    view = MultiFrameView.from_store(missing_store)
    view.sort_by("number")
    numbers = view.field("number").to_pylist()
    assert numbers[0] is None
    assert math.isnan(numbers[1])
    assert numbers[2:] == [-1.0, 2.5]
    assert view.field("signed").to_pylist() == [None, 5, 0, -1]


def test_sort_is_stable(emp_view):
    emp_view.sort_by("DeptId")
    assert emp_view.field("EmpName").to_pylist() == [
        "Sally", "Bob", "Cara", "Jamie", "Louis", "Louise", "Ann",
    ]


def test_subview(full_view):
    sub = full_view.subview(["VacationHrs", "EmpName"])
    assert sub.fieldnames() == ["VacationHrs", "EmpName"]
    assert sub.nrows() == 7
    assert sub.field("EmpName").get_datum(1) == Exists("Jamie")
    assert full_view.subview("EmpId").fieldnames() == ["EmpId"]


def test_subview_strict(full_view):
    with pytest.raises(FieldNotFound):
        full_view.subview(["EmpName", "Salary"])
    lenient = full_view.subview(["EmpName", "Salary"], strict=False)
    assert lenient.fieldnames() == ["EmpName"]


def test_subview_is_independent(emp_view):
    sub = emp_view.subview(["EmpName", "DeptId"])
    sub.filter("DeptId", lambda v: pc.equal(v, 4))
    assert sub.nrows() == 2
    assert emp_view.nrows() == 7


def test_copy_is_independent(emp_view):
    other = emp_view.copy()
    other.sort_by("EmpName")
    other.rename("EmpName", "Name")
    assert emp_view.field("EmpName").get_datum(0) == Exists("Sally")
    assert other.field("Name").get_datum(0) == Exists("Ann")
    assert emp_view.fieldnames() == ["EmpId", "DeptId", "EmpName"]


def test_rename(emp_view, emp_store):
    emp_view.rename("EmpName", "Name")
    assert emp_view.fieldnames() == ["EmpId", "DeptId", "Name"]
    assert not emp_view.has_field("EmpName")
    assert emp_view.field("Name").to_pylist() == emp_store.column("EmpName").to_pylist()
    assert emp_store.has_field("EmpName")
    assert not emp_store.has_field("Name")


def test_rename_twice(emp_view):
    emp_view.rename("EmpName", "Name")
    emp_view.rename("Name", "FirstName")
    assert emp_view.view_field("FirstName").ident == "EmpName"
    assert emp_view.field("FirstName").get_datum(0) == Exists("Sally")


def test_rename_collision(emp_view):
    with pytest.raises(FieldCollision) as err:
        emp_view.rename("EmpName", "EmpId")
    assert err.value.idents == ["EmpId"]
    assert emp_view.fieldnames() == ["EmpId", "DeptId", "EmpName"]


def test_rename_missing(emp_view):
    with pytest.raises(FieldNotFound):
        emp_view.rename("Salary", "Pay")


def test_rename_allows_merge(emp_view, emp_store):
    other = MultiFrameView.from_store(emp_store).subview(["EmpName"])
    other.rename("EmpName", "OtherName")
    merged = emp_view.merge(other)
    assert merged.fieldnames()[-1] == "OtherName"
    assert len(merged.frames) == 1


def test_append(emp_store):
    first = MultiFrameView.from_store(emp_store)
    first.filter("DeptId", lambda v: pc.equal(v, 1))
    second = MultiFrameView.from_store(emp_store)
    second.filter("DeptId", lambda v: pc.equal(v, 4))

    store = first.append(second)
    assert store.fieldnames() == ["EmpId", "DeptId", "EmpName"]
    assert store.column("EmpName").to_pylist() == ["Sally", "Bob", "Cara", "Louise", "Ann"]
    assert store.get_field_type("EmpId") is Kind.UINT64


def test_append_field_mismatch(emp_view, dept_store):
    dept_view = MultiFrameView.from_store(dept_store)
    with pytest.raises(FieldNotFound):
        emp_view.append(dept_view)
    with pytest.raises(FieldCollision):
        emp_view.subview(["DeptId"]).append(dept_view)


def test_append_kind_mismatch(emp_view):
    other = ColumnStore()
    other.append_field("EmpId", Kind.INT64, [1])
    with pytest.raises(IncompatibleTypes):
        emp_view.subview(["EmpId"]).append(MultiFrameView.from_store(other))


def test_to_arrow(full_view):
    full_view.filter("DeptId", lambda v: pc.equal(v, 4))
    table = full_view.to_arrow()
    assert table.num_rows == 2
    assert table.column_names == full_view.fieldnames()
    assert table.column("EmpName").to_pylist() == ["Louise", "Ann"]
    assert table.column("VacationHrs").to_pylist() == [5.4, 22.5]


def test_merge_equal_content_different_stores(emp_store, emp_store_copy):
    ids = MultiFrameView.from_store(emp_store).subview(["EmpId"])
    names = MultiFrameView.from_store(emp_store_copy).subview(["EmpName"])
    merged = ids.merge(names)
    assert len(merged.frames) == 2
    assert merged.frames[0].store is emp_store
    assert merged.frames[1].store is emp_store_copy
    assert merged.view_field("EmpName").frame_index == 1


def test_map(full_view):
    has_jamie = full_view.map("EmpName", lambda names: Exists("Jamie") in list(names))
    assert has_jamie
    has_james = full_view.map("EmpName", lambda names: Exists("James") in list(names))
    assert not has_james


def test_map_follows_view_rows(full_view):
    full_view.filter("DidTraining", lambda v: v)
    total = full_view.map(
        "VacationHrs", lambda hours: pc.sum(hours.to_arrow()).as_py(), Kind.FLOAT64
    )
    assert total == pytest.approx(98.3 + 12.2 - 1.2 + 22.5)


def test_map_errors(full_view):
    with pytest.raises(FieldNotFound):
        full_view.map("Salary", len)
    with pytest.raises(IncompatibleTypes):
        full_view.map("EmpName", len, Kind.UINT64)


def test_to_arrow_name_collision():
    store = ColumnStore()
    store.append_field(1, Kind.INT64, [1, 2])
    store.append_field("one", Kind.INT64, [3, 4])
    view = MultiFrameView.from_store(store)
    view.rename("one", "1")
    with pytest.raises(FieldCollision) as err:
        view.to_arrow()
    assert err.value.idents == ["1"]
