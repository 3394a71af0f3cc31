"""
Cell Assignment and Region Layout

An Assignment is the concrete witness for one ConstraintSystem: a grid of
2^k rows of write-once cells plus per-row selector flags. Regions are laid
out by a simple column-aware floor planner: a region starts at the first
row below everything already placed in the columns it touches.

Region writes are buffered and committed only when the region closure
returns, so a region that raises leaves no partial assignment behind.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from .constraint_system import ADVICE, TABLE, Column, ConstraintSystem, Selector
from .exceptions import SynthesisError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignedCell:
    """Handle to a committed cell."""
    column: Column
    row: int
    value: int


@dataclass
class RegionRecord:
    """Placement of a committed region, used to locate failures."""
    index: int
    name: str
    start: int
    num_rows: int
    columns: Set[Column] = field(default_factory=set)
    selectors: Set[Selector] = field(default_factory=set)

    def contains(self, row: int) -> bool:
        return self.start <= row < self.start + self.num_rows


class Assignment:
    """
    Witness grid for one check.

    Cells are None until assigned and may be written exactly once.
    """

    def __init__(self, cs: ConstraintSystem, k: int):
        """
        Initialize an empty assignment.

        Args:
            cs: Constraint system the assignment is for
            k: log2 of the number of rows
        """
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")

        self.cs = cs
        self.k = k
        self.n = 1 << k

        self.cells: Dict[Column, List[Optional[int]]] = {
            column: [None] * self.n for column in cs.columns()
        }
        self.enabled: Dict[Selector, List[bool]] = {
            selector: [False] * self.n for selector in cs.selectors
        }
        self.regions: List[RegionRecord] = []

        # Next free row per column for the floor planner
        self._column_heights: Dict[Column, int] = {column: 0 for column in cs.columns()}

    def cell(self, column: Column, row: int) -> Optional[int]:
        return self.cells[column][row % self.n]

    def is_enabled(self, selector: Selector, row: int) -> bool:
        return self.enabled[selector][row % self.n]

    def assign_cell(self, column: Column, row: int, value: int) -> AssignedCell:
        """
        Write one cell.

        Raises:
            SynthesisError: Unknown column, row out of bounds, value not a
                canonical field element, or cell already assigned
        """
        if column not in self.cells:
            raise SynthesisError(f"{column!r} is not allocated in this constraint system")
        if not 0 <= row < self.n:
            raise SynthesisError(f"Row {row} outside the {self.n} available rows")
        if not self.cs.field.is_canonical(value):
            raise SynthesisError(f"Value {value} is not a canonical field element")
        if self.cells[column][row] is not None:
            raise SynthesisError(f"Cell ({column!r}, row {row}) is already assigned")

        self.cells[column][row] = value
        return AssignedCell(column, row, value)

    def enable_selector(self, selector: Selector, row: int):
        if selector not in self.enabled:
            raise SynthesisError(f"{selector!r} is not allocated in this constraint system")
        if not 0 <= row < self.n:
            raise SynthesisError(f"Row {row} outside the {self.n} available rows")
        self.enabled[selector][row] = True

    def region_at(self, row: int, columns: Set[Column]) -> Optional[RegionRecord]:
        """First region covering `row` that uses any of `columns`."""
        for region in self.regions:
            if region.contains(row) and region.columns & columns:
                return region
        return None

    def _place(self, columns: Set[Column], num_rows: int) -> int:
        start = max((self._column_heights[column] for column in columns), default=0)
        if start + num_rows > self.n:
            raise SynthesisError(
                f"Region of {num_rows} rows does not fit: rows {start}..{start + num_rows - 1} "
                f"exceed the {self.n} available rows"
            )
        for column in columns:
            self._column_heights[column] = start + num_rows
        return start


class Region:
    """
    Buffered view of one region, addressed by offsets from its start.

    Writes are recorded here and replayed onto the assignment on commit.
    """

    def __init__(self, assignment: Assignment, name: str):
        self.assignment = assignment
        self.name = name
        self._cells: Dict[Tuple[Column, int], Tuple[str, int]] = {}
        self._selectors: List[Tuple[Selector, int]] = []

    def assign_advice(self, annotation: str, column: Column, offset: int, value: int) -> int:
        """
        Stage an advice cell.

        Args:
            annotation: Human-readable label for the cell
            column: Advice column
            offset: Row offset within the region
            value: Integer value (reduced into the field)

        Returns:
            The canonical field value staged
        """
        if column.kind != ADVICE:
            raise SynthesisError(f"'{annotation}': {column!r} is not an advice column")
        return self._stage(annotation, column, offset, value)

    def enable_selector(self, selector: Selector, offset: int):
        if offset < 0:
            raise SynthesisError(f"Negative offset {offset} in region '{self.name}'")
        self._selectors.append((selector, offset))

    def _stage(self, annotation: str, column: Column, offset: int, value: int) -> int:
        if offset < 0:
            raise SynthesisError(f"Negative offset {offset} in region '{self.name}'")
        if (column, offset) in self._cells:
            previous, _ = self._cells[(column, offset)]
            raise SynthesisError(
                f"'{annotation}' overwrites '{previous}' at ({column!r}, offset {offset}) "
                f"in region '{self.name}'"
            )
        value = self.assignment.cs.field.reduce(value)
        self._cells[(column, offset)] = (annotation, value)
        return value

    def num_rows(self) -> int:
        offsets = [offset for _, offset in self._cells]
        offsets += [offset for _, offset in self._selectors]
        return max(offsets, default=-1) + 1

    def commit(self) -> RegionRecord:
        """Place the region and write every staged cell and selector."""
        assignment = self.assignment
        columns = {column for column, _ in self._cells}
        selectors = {selector for selector, _ in self._selectors}
        num_rows = self.num_rows()

        # Validate everything before touching the grid
        for column, _ in self._cells:
            if column not in assignment.cells:
                raise SynthesisError(f"{column!r} is not allocated in this constraint system")
        for selector in selectors:
            if selector not in assignment.enabled:
                raise SynthesisError(f"{selector!r} is not allocated in this constraint system")

        heights = dict(assignment._column_heights)
        start = assignment._place(columns, num_rows)
        for (column, offset) in self._cells:
            if assignment.cells[column][start + offset] is not None:
                assignment._column_heights = heights
                raise SynthesisError(
                    f"Cell ({column!r}, row {start + offset}) is already assigned"
                )

        for (column, offset), (_, value) in self._cells.items():
            assignment.assign_cell(column, start + offset, value)
        for selector, offset in self._selectors:
            assignment.enable_selector(selector, start + offset)

        record = RegionRecord(
            index=len(assignment.regions),
            name=self.name,
            start=start,
            num_rows=num_rows,
            columns=columns,
            selectors=selectors,
        )
        assignment.regions.append(record)
        return record


class TableRegion:
    """Writes into lookup-table columns, always starting at row 0."""

    def __init__(self, assignment: Assignment, name: str):
        self.assignment = assignment
        self.name = name
        self._cells: Dict[Column, Dict[int, int]] = {}

    def assign_cell(self, annotation: str, column: Column, offset: int, value: int):
        if column.kind != TABLE:
            raise SynthesisError(f"'{annotation}': {column!r} is not a table column")
        if not 0 <= offset < self.assignment.n:
            raise SynthesisError(
                f"'{annotation}': table row {offset} outside the {self.assignment.n} available rows"
            )
        column_cells = self._cells.setdefault(column, {})
        if offset in column_cells:
            raise SynthesisError(f"'{annotation}': table row {offset} of {column!r} assigned twice")
        column_cells[offset] = self.assignment.cs.field.reduce(value)

    def commit(self):
        assignment = self.assignment
        for column, rows in self._cells.items():
            if any(value is not None for value in assignment.cells[column]):
                raise SynthesisError(f"{column!r} has already been loaded")
            if sorted(rows) != list(range(len(rows))):
                raise SynthesisError(f"{column!r} must be filled contiguously from row 0")

        for column, rows in self._cells.items():
            # Unused table rows repeat the first entry
            default = rows[0]
            for row in range(assignment.n):
                assignment.assign_cell(column, row, rows.get(row, default))


class Layouter:
    """
    Entry point used by chips to lay out regions and tables.

    Namespaces only prefix region names; they share the same assignment.
    """

    def __init__(self, assignment: Assignment, prefix: str = ''):
        self.assignment = assignment
        self.prefix = prefix

    def namespace(self, name: str) -> "Layouter":
        prefix = f"{self.prefix}{name}/"
        return Layouter(self.assignment, prefix)

    def assign_region(self, name: str, assign: Callable[[Region], Any]) -> Any:
        """
        Lay out one region atomically.

        Args:
            name: Region name reported in failure locations
            assign: Closure receiving the Region; its return value is
                passed through

        Returns:
            Whatever `assign` returns
        """
        region = Region(self.assignment, self.prefix + name)
        result = assign(region)
        record = region.commit()

        logger.debug(f"Region '{record.name}' placed at row {record.start} ({record.num_rows} rows)")
        return result

    def assign_table(self, name: str, assign: Callable[[TableRegion], Any]) -> Any:
        table = TableRegion(self.assignment, self.prefix + name)
        result = assign(table)
        table.commit()
        return result
