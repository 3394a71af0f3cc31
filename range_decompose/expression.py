"""
Symbolic Polynomial Expressions

Gates and lookups are declared once, symbolically, over column queries at
relative rotations. The mock prover later evaluates the same expression on
every row of a concrete assignment.
"""

from typing import Any, List, Set, Tuple, Union


class Expression:
    """
    Base class for polynomial expressions over queried cells.

    Supports +, -, * with other expressions and with plain ints (lifted to
    constants). Every node knows its degree and evaluates against a context
    exposing `field`, `cell(column, rotation)` and `selector(selector)`.
    """

    def degree(self) -> int:
        raise NotImplementedError

    def evaluate(self, ctx: Any) -> int:
        raise NotImplementedError

    def children(self) -> Tuple["Expression", ...]:
        return ()

    def walk(self):
        """Yield every node of the expression tree, depth first."""
        yield self
        for child in self.children():
            yield from child.walk()

    def queried_cells(self) -> Set[Tuple[Any, int]]:
        """Set of (column, rotation) pairs read by this expression."""
        return {
            (node.column, node.rotation)
            for node in self.walk()
            if isinstance(node, Query)
        }

    def queried_selectors(self) -> Set[Any]:
        return {node.selector for node in self.walk() if isinstance(node, SelectorQuery)}

    def __add__(self, other) -> "Expression":
        return Sum(self, _lift(other))

    def __radd__(self, other) -> "Expression":
        return Sum(_lift(other), self)

    def __sub__(self, other) -> "Expression":
        return Sum(self, Negated(_lift(other)))

    def __rsub__(self, other) -> "Expression":
        return Sum(_lift(other), Negated(self))

    def __mul__(self, other) -> "Expression":
        if isinstance(other, int) and not isinstance(other, bool):
            return Scaled(self, other)
        return Product(self, _lift(other))

    def __rmul__(self, other) -> "Expression":
        if isinstance(other, int) and not isinstance(other, bool):
            return Scaled(self, other)
        return Product(_lift(other), self)

    def __neg__(self) -> "Expression":
        return Negated(self)


class Constant(Expression):

    def __init__(self, value: int):
        self.value = value

    def degree(self) -> int:
        return 0

    def evaluate(self, ctx: Any) -> int:
        return ctx.field.reduce(self.value)

    def __repr__(self) -> str:
        return f"Constant({self.value})"


class Query(Expression):
    """Cell of `column` at `rotation` rows from the current row."""

    def __init__(self, column: Any, rotation: int = 0):
        self.column = column
        self.rotation = rotation

    def degree(self) -> int:
        return 1

    def evaluate(self, ctx: Any) -> int:
        return ctx.cell(self.column, self.rotation)

    def __repr__(self) -> str:
        return f"Query({self.column!r}, rot={self.rotation})"


class SelectorQuery(Expression):

    def __init__(self, selector: Any):
        self.selector = selector

    def degree(self) -> int:
        return 1

    def evaluate(self, ctx: Any) -> int:
        return ctx.selector(self.selector)

    def __repr__(self) -> str:
        return f"SelectorQuery({self.selector!r})"


class Sum(Expression):

    def __init__(self, left: Expression, right: Expression):
        self.left = left
        self.right = right

    def children(self) -> Tuple[Expression, ...]:
        return (self.left, self.right)

    def degree(self) -> int:
        return max(self.left.degree(), self.right.degree())

    def evaluate(self, ctx: Any) -> int:
        return ctx.field.add(self.left.evaluate(ctx), self.right.evaluate(ctx))

    def __repr__(self) -> str:
        return f"({self.left!r} + {self.right!r})"


class Product(Expression):

    def __init__(self, left: Expression, right: Expression):
        self.left = left
        self.right = right

    def children(self) -> Tuple[Expression, ...]:
        return (self.left, self.right)

    def degree(self) -> int:
        return self.left.degree() + self.right.degree()

    def evaluate(self, ctx: Any) -> int:
        return ctx.field.mul(self.left.evaluate(ctx), self.right.evaluate(ctx))

    def __repr__(self) -> str:
        return f"({self.left!r} * {self.right!r})"


class Negated(Expression):

    def __init__(self, inner: Expression):
        self.inner = inner

    def children(self) -> Tuple[Expression, ...]:
        return (self.inner,)

    def degree(self) -> int:
        return self.inner.degree()

    def evaluate(self, ctx: Any) -> int:
        return ctx.field.neg(self.inner.evaluate(ctx))

    def __repr__(self) -> str:
        return f"-{self.inner!r}"


class Scaled(Expression):
    """Expression multiplied by a constant; does not raise the degree."""

    def __init__(self, inner: Expression, factor: int):
        self.inner = inner
        self.factor = factor

    def children(self) -> Tuple[Expression, ...]:
        return (self.inner,)

    def degree(self) -> int:
        return self.inner.degree()

    def evaluate(self, ctx: Any) -> int:
        return ctx.field.mul(self.inner.evaluate(ctx), ctx.field.reduce(self.factor))

    def __repr__(self) -> str:
        return f"({self.inner!r} * {self.factor})"


def _lift(value: Union[Expression, int]) -> Expression:
    if isinstance(value, Expression):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return Constant(value)
    raise TypeError(f"Cannot use {type(value).__name__} in a constraint expression")


def sum_expressions(terms: List[Expression]) -> Expression:
    """Fold a list of expressions into one sum (zero for an empty list)."""
    total: Expression = Constant(0)
    for term in terms:
        total = total + term
    return total


def with_selector(
    selector: Expression,
    constraints: List[Tuple[str, Expression]]
) -> List[Tuple[str, Expression]]:
    """
    Gate every named constraint by a selector expression.

    Args:
        selector: Queried selector (or any boolean expression)
        constraints: (name, expression) pairs that must vanish when enabled

    Returns:
        (name, selector * expression) pairs
    """
    return [(name, selector * expression) for name, expression in constraints]

