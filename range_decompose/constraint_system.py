"""
Constraint System

Declares the shape of a relation: advice columns, lookup-table columns,
selectors, named gates and named lookups. Nothing here holds witness data;
a ConstraintSystem is built once at setup and shared by every assignment
checked against it.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Tuple, Union

from .expression import Expression, Query, SelectorQuery
from .field import DEFAULT_FIELD, PrimeField

logger = logging.getLogger(__name__)


ADVICE = 'advice'
TABLE = 'table'


@dataclass(frozen=True)
class Column:
    """A column of the relation; identity is (kind, index)."""
    kind: str
    index: int
    name: str = field(default='', compare=False)

    def __repr__(self) -> str:
        label = f" '{self.name}'" if self.name else ''
        return f"{self.kind.capitalize()}Column({self.index}{label})"


@dataclass(frozen=True)
class Selector:
    """
    Per-row boolean switch.

    Complex selectors may appear inside lookup inputs; simple selectors
    may only gate polynomial constraints.
    """
    index: int
    is_complex: bool = False
    name: str = field(default='', compare=False)

    def __repr__(self) -> str:
        label = f" '{self.name}'" if self.name else ''
        return f"Selector({self.index}{label})"


@dataclass
class Gate:
    index: int
    name: str
    constraints: List[Tuple[str, Expression]]

    def degree(self) -> int:
        return max((expr.degree() for _, expr in self.constraints), default=0)

    def queried_cells(self):
        cells = set()
        for _, expr in self.constraints:
            cells |= expr.queried_cells()
        return cells

    def queried_selectors(self):
        selectors = set()
        for _, expr in self.constraints:
            selectors |= expr.queried_selectors()
        return selectors


@dataclass
class Lookup:
    """Every row's input tuple must appear as a row of the table columns."""
    index: int
    name: str
    inputs: List[Expression]
    tables: List[Column]

    def degree(self) -> int:
        # Input degree plus the table query and the grand-product factor
        input_degree = max((expr.degree() for expr in self.inputs), default=1)
        return max(3, input_degree + 2)


class VirtualCells:
    """Query recorder handed to gate and lookup builders."""

    def __init__(self, cs: "ConstraintSystem"):
        self.cs = cs

    def query_advice(self, column: Column, rotation: int = 0) -> Query:
        self.cs._require_column(column, ADVICE)
        return Query(column, rotation)

    def query_selector(self, selector: Selector) -> SelectorQuery:
        if selector not in self.cs.selectors:
            raise ValueError(f"{selector!r} was not allocated by this constraint system")
        return SelectorQuery(selector)


class ConstraintSystem:
    """
    Registry of columns, selectors, gates and lookups for one relation.

    Example:
        >>> cs = ConstraintSystem()
        >>> a = cs.advice_column('a')
        >>> q = cs.selector('q')
        >>> cs.create_gate('a is zero', lambda meta: [
        ...     ('zero', meta.query_selector(q) * meta.query_advice(a))])
    """

    def __init__(self, field: PrimeField = DEFAULT_FIELD):
        self.field = field
        self.advice_columns: List[Column] = []
        self.table_columns: List[Column] = []
        self.selectors: List[Selector] = []
        self.gates: List[Gate] = []
        self.lookups: List[Lookup] = []

    def advice_column(self, name: str = '') -> Column:
        column = Column(ADVICE, len(self.advice_columns), name)
        self.advice_columns.append(column)
        return column

    def lookup_table_column(self, name: str = '') -> Column:
        column = Column(TABLE, len(self.table_columns), name)
        self.table_columns.append(column)
        return column

    def selector(self, name: str = '') -> Selector:
        selector = Selector(len(self.selectors), False, name)
        self.selectors.append(selector)
        return selector

    def complex_selector(self, name: str = '') -> Selector:
        selector = Selector(len(self.selectors), True, name)
        self.selectors.append(selector)
        return selector

    def create_gate(
        self,
        name: str,
        builder: Callable[[VirtualCells], Iterable[Union[Tuple[str, Expression], Expression]]]
    ) -> Gate:
        """
        Register a polynomial gate.

        Args:
            name: Gate name used in failure reports
            builder: Called once with a VirtualCells recorder; returns the
                constraints as (name, expression) pairs or bare expressions

        Returns:
            The registered gate

        Raises:
            ValueError: If the builder returns no constraints
        """
        constraints = []
        for i, item in enumerate(builder(VirtualCells(self))):
            if isinstance(item, Expression):
                item = (f"constraint {i}", item)
            constraints.append(item)

        if not constraints:
            raise ValueError(f"Gate '{name}' has no constraints")

        gate = Gate(len(self.gates), name, constraints)
        self.gates.append(gate)

        logger.debug(f"Registered gate '{name}' ({len(constraints)} constraints, degree {gate.degree()})")
        return gate

    def lookup(
        self,
        name: str,
        builder: Callable[[VirtualCells], Iterable[Tuple[Expression, Column]]]
    ) -> Lookup:
        """
        Register a lookup argument.

        Args:
            name: Lookup name used in failure reports
            builder: Returns (input expression, table column) pairs

        Raises:
            ValueError: If an input uses a simple selector, or a target is
                not a table column
        """
        inputs, tables = [], []
        for expression, table in builder(VirtualCells(self)):
            self._require_column(table, TABLE)
            for selector in expression.queried_selectors():
                if not selector.is_complex:
                    raise ValueError(
                        f"Lookup '{name}' uses simple {selector!r}; use a complex selector"
                    )
            inputs.append(expression)
            tables.append(table)

        if not inputs:
            raise ValueError(f"Lookup '{name}' has no inputs")

        lookup = Lookup(len(self.lookups), name, inputs, tables)
        self.lookups.append(lookup)

        logger.debug(f"Registered lookup '{name}' into {tables}")
        return lookup

    def degree(self) -> int:
        """Maximum degree over all gates and lookups (at least 1)."""
        degrees = [gate.degree() for gate in self.gates]
        degrees += [lookup.degree() for lookup in self.lookups]
        return max(degrees, default=1)

    def columns(self) -> List[Column]:
        return self.advice_columns + self.table_columns

    def _require_column(self, column: Column, kind: str):
        owned = {
            ADVICE: self.advice_columns,
            TABLE: self.table_columns,
        }[kind]
        if not isinstance(column, Column) or column.kind != kind or column not in owned:
            raise ValueError(f"{column!r} is not a {kind} column of this constraint system")

    def summary(self) -> dict:
        return {
            'advice_columns': len(self.advice_columns),
            'table_columns': len(self.table_columns),
            'selectors': len(self.selectors),
            'gates': [gate.name for gate in self.gates],
            'lookups': [lookup.name for lookup in self.lookups],
            'degree': self.degree(),
        }
