import pytest

from viewground.store import NA, ColumnStore, Kind

EMP_IDS = [0, 2, 5, 6, 8, 9, 10]
EMP_DEPT_IDS = [1, 2, 1, 1, 3, 4, 4]
EMP_NAMES = ["Sally", "Jamie", "Bob", "Cara", "Louis", "Louise", "Ann"]


def make_emp_store():
    store = ColumnStore()
    store.append_field("EmpId", Kind.UINT64, EMP_IDS)
    store.append_field("DeptId", Kind.UINT64, EMP_DEPT_IDS)
    store.append_field("EmpName", Kind.TEXT, EMP_NAMES)
    return store


@pytest.fixture
def emp_store():
    return make_emp_store()


@pytest.fixture
def emp_store_copy():
    """A distinct store with the same content as emp_store."""
    return make_emp_store()


@pytest.fixture
def emp_extra_store():
    store = ColumnStore()
    store.append_field("SalaryOffset", Kind.INT64, [-5, 4, 12, -33, 10, 0, -1])
    store.append_field(
        "DidTraining", Kind.BOOL, [False, False, True, True, True, False, True]
    )
    store.append_field(
        "VacationHrs", Kind.FLOAT64, [47.0, 54.1, 98.3, 12.2, -1.2, 5.4, 22.5]
    )
    return store


@pytest.fixture
def dept_store():
    store = ColumnStore()
    store.append_field("DeptId", Kind.UINT64, [1, 2, 3, 4])
    store.append_field("DeptName", Kind.TEXT, ["Marketing", "Sales", "Manufacturing", "R&D"])
    return store


@pytest.fixture
def missing_store():
    """A store with missing values in every kind."""
    store = ColumnStore()
    store.append_field("unsigned", Kind.UINT64, [3, NA, 1, 2])
    store.append_field("signed", Kind.INT64, [-1, 5, NA, 0])
    store.append_field("text", Kind.TEXT, ["b", "a", "c", NA])
    store.append_field("flag", Kind.BOOL, [NA, True, False, True])
    store.append_field("number", Kind.FLOAT64, [2.5, float("nan"), NA, -1.0])
    return store
