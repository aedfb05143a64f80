"""Expressions executed when filtering views.

Filters need a ``predicate``, so an expression that
returns ``true`` or ``false`` for each row that has to be
filtered. The most flexible way to express predicates is
to invoke one of the :mod:`pyarrow.compute` functions
on the values of the field:

>>> import pyarrow as pa
>>> import pyarrow.compute as pc
>>> from viewground.compute import FunctionCallExpression, this
>>> predicate = FunctionCallExpression(pc.greater_equal, this(), 6)
>>> str(predicate)
'greater_equal(ValuesRef(),6)'
>>> predicate.apply(pa.array([0, 2, 5, 6, 8])).to_pylist()
[False, False, False, True, True]
"""

from typing import Any, Callable

import pyarrow as pa

from .base import Expression


def apply_expression_if_needed(values: pa.Array, o: Expression | Any) -> Any:
    """Invoke Apply on expressions when needed

    If the provided object is an Expression,
    it will be applied to the target values.

    Otherwise it will treat it as if it's
    already the result of an expression
    or a literal value.

    This allows us to apply all arguments
    we receive without having to care if
    they are the data we need or if they
    are the expression resulting in that data.
    """
    if isinstance(o, Expression):
        o = o.apply(values)
    return o


class FunctionCallExpression(Expression):
    """Call a compute function on its arguments.

    Given a compute function, and a set of arguments
    (other expressions, literals or data), execute
    the function on the provided arguments and return
    the resulting data.

    For example to check which values are in a range::

        FunctionCallExpression(
            pyarrow.compute.and_,
            FunctionCallExpression(pyarrow.compute.greater_equal, this(), 2),
            FunctionCallExpression(pyarrow.compute.less, this(), 6),
        )
    """

    def __init__(self, func: Callable[..., Any], *args: Expression | Any) -> None:
        """
        :param func: The function accepting the arguments.
        :param *args: The arguments for the function.
        """
        self.func = func
        self.args = args

    def __str__(self) -> str:
        func_name = getattr(self.func, "__name__", repr(self.func))
        return f"{func_name}({','.join(map(str, self.args))})"

    def apply(self, values: pa.Array) -> pa.Array:
        """Invoke the function resolving all arguments on the values.

        When the function arguments are expressions themselves,
        this will apply the expressions on the provided values
        and the resulting data will be used as the arguments for the
        function.
        """
        args = tuple(apply_expression_if_needed(values, arg) for arg in self.args)
        return self.func(*args)
