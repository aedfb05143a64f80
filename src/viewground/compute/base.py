"""Base classes and interfaces for predicates.

Filtering a view requires a predicate: something that
given the values of a field tells which rows have to be kept.

This module defines the base :class:`Expression` interface
and the leaf expressions that predicates are composed of.
"""

import abc
from typing import Any

import pyarrow as pa


class Expression(abc.ABC):
    """Expression to apply to the values of a field.

    Expressions are some form of operation that
    has to be applied to the values of a field to
    compute new data.

    Typical example of expressions are: ``values >= 6``
    which is expected to compare each value of the field
    against 6 and return the result.

    As our engine is Column Major, applying an expression
    always results in a new column, thus in a
    :class:`pyarrow.Array` that contains one entry per row.
    When the expression is used as a filter predicate
    the resulting array is expected to contain booleans.
    """

    @abc.abstractmethod
    def apply(self, values: pa.Array) -> pa.Array:
        """Apply the expression to the values of a field.

        Expression classes must implement this method
        to dictate what will happen when an expression
        is applied.

        Suppose want to implement a ``IsEvenExpression`` class
        that might look like::

            class IsEvenExpression(Expression):
                def apply(self, values):
                    return pyarrow.compute.equal(
                        pyarrow.compute.bit_wise_and(values, 1), 0
                    )
        """
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """Human readable representation of the expression."""
        ...


class ValuesRef(Expression):
    """References the values of the field being filtered.

    When an expression needs to operate on the data
    of the field, it will need a way to reference that data.

    This expression when applied returns the values themselves.
    """

    def apply(self, values: pa.Array) -> pa.Array:
        """Get the values of the field."""
        return values

    def __str__(self) -> str:
        return "ValuesRef()"


class Literal(Expression):
    """A constant value.

    Literals are usually not necessary, as functions
    accept scalar python values as they are, but they make
    the intention explicit when composing expressions.
    """

    def __init__(self, value: Any) -> None:
        """
        :param value: The constant value.
        """
        self.value = value

    def apply(self, values: pa.Array) -> pa.Scalar:
        """Get the value as an Arrow scalar."""
        return pa.scalar(self.value)

    def __str__(self) -> str:
        return f"Literal({self.value!r})"


this = ValuesRef
lit = Literal
