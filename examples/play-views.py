import logging

import pyarrow.compute as pc

from viewground import ColumnStore, Join, JoinKind, Kind, MultiFrameView, config
from viewground.compute import FunctionCallExpression, this

config.set_log_level(logging.DEBUG)

employees = ColumnStore()
employees.append_field("EmpId", Kind.UINT64, [0, 2, 5, 6, 8, 9, 10])
employees.append_field("DeptId", Kind.UINT64, [1, 2, 1, 1, 3, 4, 4])
employees.append_field(
    "EmpName", Kind.TEXT, ["Sally", "Jamie", "Bob", "Cara", "Louis", "Louise", "Ann"]
)

training = ColumnStore()
training.append_field("DidTraining", Kind.BOOL, [False, False, True, True, True, False, True])
training.append_field("VacationHrs", Kind.FLOAT64, [47.0, 54.1, 98.3, 12.2, -1.2, 5.4, 22.5])

departments = ColumnStore()
departments.append_field("DeptId", Kind.UINT64, [1, 2, 3, 4])
departments.append_field("DeptName", Kind.TEXT, ["Marketing", "Sales", "Manufacturing", "R&D"])

view = MultiFrameView.from_store(employees).merge(MultiFrameView.from_store(training))
view.filter("DidTraining", FunctionCallExpression(pc.equal, this(), True))
view.sort_by("VacationHrs")
print(view.to_arrow())

joined = view.join(
    MultiFrameView.from_store(departments), Join.equal(JoinKind.OUTER, "DeptId", "DeptId")
)
print(joined.to_arrow())
