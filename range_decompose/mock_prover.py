"""
Mock Prover

Checks an assignment against its constraint system by direct evaluation:
every gate constraint on every row must vanish and every lookup input row
must appear in its table. No commitments or proofs are produced; failures
come back as structured records with their region location.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

from .constraint_system import Column, ConstraintSystem, Gate, Lookup, Selector
from .field import PrimeField
from .layouter import Assignment, Layouter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InRegion:
    region_index: int
    region_name: str
    offset: int

    def __str__(self) -> str:
        return f"in region {self.region_index} ('{self.region_name}') at offset {self.offset}"


@dataclass(frozen=True)
class OutsideRegion:
    row: int

    def __str__(self) -> str:
        return f"outside any region, on row {self.row}"


FailureLocation = Union[InRegion, OutsideRegion]


@dataclass(frozen=True)
class ConstraintNotSatisfied:
    """A gate constraint evaluated to a non-zero value."""
    gate_index: int
    gate_name: str
    constraint_index: int
    constraint_name: str
    location: FailureLocation
    cell_values: Tuple[Tuple[str, str], ...] = ()

    @property
    def kind(self) -> str:
        return 'constraint'

    def __str__(self) -> str:
        lines = [
            f"Constraint {self.constraint_index} ('{self.constraint_name}') in gate "
            f"{self.gate_index} ('{self.gate_name}') is not satisfied {self.location}"
        ]
        for cell, value in self.cell_values:
            lines.append(f"  {cell} = {value}")
        return "\n".join(lines)


@dataclass(frozen=True)
class LookupFailure:
    """A lookup input row is not present in the table."""
    lookup_index: int
    lookup_name: str
    location: FailureLocation
    inputs: Tuple[str, ...] = ()

    @property
    def kind(self) -> str:
        return 'lookup'

    def __str__(self) -> str:
        return (
            f"Lookup {self.lookup_index} ('{self.lookup_name}') input "
            f"({', '.join(self.inputs)}) is not in the table {self.location}"
        )


@dataclass(frozen=True)
class CellNotAssigned:
    """An enabled gate queried a cell that was never assigned."""
    gate_index: int
    gate_name: str
    location: FailureLocation
    column: Column
    offset: int

    @property
    def kind(self) -> str:
        return 'unassigned'

    def __str__(self) -> str:
        return (
            f"Gate {self.gate_index} ('{self.gate_name}') {self.location} queries "
            f"{self.column!r} at offset {self.offset}, which is not assigned"
        )


VerifyFailure = Union[ConstraintNotSatisfied, LookupFailure, CellNotAssigned]


class _RowContext:
    """Evaluation context bound to one row; unassigned cells read as zero."""

    def __init__(self, assignment: Assignment, row: int):
        self.assignment = assignment
        self.field = assignment.cs.field
        self.row = row

    def cell(self, column: Column, rotation: int) -> int:
        value = self.assignment.cell(column, self.row + rotation)
        return 0 if value is None else value

    def selector(self, selector: Selector) -> int:
        return 1 if self.assignment.is_enabled(selector, self.row) else 0


class MockProver:
    """
    Direct-evaluation checker for one assignment.

    Example:
        >>> prover = MockProver(cs, assignment)
        >>> failures = prover.verify()
        >>> prover.assert_satisfied()
    """

    def __init__(self, cs: ConstraintSystem, assignment: Assignment):
        if assignment.cs is not cs:
            raise ValueError("Assignment was built for a different constraint system")
        self.cs = cs
        self.assignment = assignment

    @classmethod
    def run(cls, k: int, circuit: Any, field: Optional[PrimeField] = None) -> "MockProver":
        """
        Configure, synthesize and wrap a circuit in one call.

        Args:
            k: log2 of the number of rows
            circuit: Object with configure(cs) and synthesize(config, layouter)
            field: Field to evaluate over; defaults to circuit.params.prime_field

        Returns:
            MockProver ready for verify()
        """
        if field is None:
            field = circuit.params.prime_field
        cs = ConstraintSystem(field)
        config = circuit.configure(cs)
        assignment = Assignment(cs, k)
        circuit.synthesize(config, Layouter(assignment))
        return cls(cs, assignment)

    def verify(self) -> List[VerifyFailure]:
        """
        Evaluate every gate and lookup.

        Returns:
            List of failures; empty when the assignment satisfies the relation
        """
        failures: List[VerifyFailure] = []

        for gate in self.cs.gates:
            failures.extend(self._check_gate(gate))

        for lookup in self.cs.lookups:
            failures.extend(self._check_lookup(lookup))

        logger.debug(f"Mock prover: {len(failures)} failure(s) over {self.assignment.n} rows")
        return failures

    def is_satisfied(self) -> bool:
        return not self.verify()

    def assert_satisfied(self):
        failures = self.verify()
        if failures:
            rendered = "\n".join(str(failure) for failure in failures)
            raise AssertionError(f"{len(failures)} verification failure(s):\n{rendered}")

    def _check_gate(self, gate: Gate) -> List[VerifyFailure]:
        failures = []
        assignment = self.assignment
        selectors = gate.queried_selectors()
        queried = sorted(gate.queried_cells(), key=lambda item: (item[0].kind, item[0].index, item[1]))
        columns = {column for column, _ in queried}

        for row in range(assignment.n):
            if selectors and not any(assignment.is_enabled(s, row) for s in selectors):
                continue

            missing = [
                (column, rotation) for column, rotation in queried
                if assignment.cell(column, row + rotation) is None
            ]
            if missing:
                for column, rotation in missing:
                    failures.append(CellNotAssigned(
                        gate_index=gate.index,
                        gate_name=gate.name,
                        location=self._locate(row, columns),
                        column=column,
                        offset=self._offset(row + rotation, columns),
                    ))
                continue

            ctx = _RowContext(assignment, row)
            for constraint_index, (name, expression) in enumerate(gate.constraints):
                if expression.evaluate(ctx) == 0:
                    continue
                cell_values = tuple(
                    (f"{column!r} @ rotation {rotation}",
                     self.cs.field.format(ctx.cell(column, rotation)))
                    for column, rotation in queried
                )
                failures.append(ConstraintNotSatisfied(
                    gate_index=gate.index,
                    gate_name=gate.name,
                    constraint_index=constraint_index,
                    constraint_name=name,
                    location=self._locate(row, columns),
                    cell_values=cell_values,
                ))

        return failures

    def _check_lookup(self, lookup: Lookup) -> List[VerifyFailure]:
        assignment = self.assignment
        field = self.cs.field

        table_rows = set()
        for row in range(assignment.n):
            entry = tuple(assignment.cell(column, row) for column in lookup.tables)
            if None not in entry:
                table_rows.add(entry)

        columns = set()
        for expression in lookup.inputs:
            columns |= {column for column, _ in expression.queried_cells()}

        failures = []
        for row in range(assignment.n):
            ctx = _RowContext(assignment, row)
            inputs = tuple(expression.evaluate(ctx) for expression in lookup.inputs)
            if inputs in table_rows:
                continue
            failures.append(LookupFailure(
                lookup_index=lookup.index,
                lookup_name=lookup.name,
                location=self._locate(row, columns),
                inputs=tuple(field.format(value) for value in inputs),
            ))
        return failures

    def _locate(self, row: int, columns) -> FailureLocation:
        row = row % self.assignment.n
        region = self.assignment.region_at(row, set(columns))
        if region is None:
            return OutsideRegion(row)
        return InRegion(region.index, region.name, row - region.start)

    def _offset(self, row: int, columns) -> int:
        location = self._locate(row, columns)
        if isinstance(location, InRegion):
            return location.offset
        return location.row
