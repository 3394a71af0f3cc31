"""
Range Lookup Table

Builds the fixed table {0, ..., LOOKUP_RANGE - 1} of admissible digit values
and loads it into a lookup-table column. The table is built once, is
read-only, and is shared by every check run against the configured relation.
"""

import logging
from typing import Optional

import numpy as np

from .constraint_system import Column, ConstraintSystem
from .exceptions import ConfigurationError
from .layouter import Layouter, TableRegion

logger = logging.getLogger(__name__)


class RangeTable:
    """
    Immutable set of admissible digit values.

    Stored as a read-only numpy array so that no caller can alter the table
    after it has been built.
    """

    def __init__(self, lookup_range: int, capacity: Optional[int] = None, modulus: Optional[int] = None):
        """
        Build the table.

        Args:
            lookup_range: Number of entries (values 0..lookup_range-1)
            capacity: Rows available to hold the table, if bounded
            modulus: Field modulus the entries must stay below, if known

        Raises:
            ConfigurationError: If the table is empty or exceeds capacity
        """
        if lookup_range < 1:
            raise ConfigurationError(f"Lookup range must be positive, got {lookup_range}")
        if capacity is not None and lookup_range > capacity:
            raise ConfigurationError(
                f"Lookup table of {lookup_range} entries exceeds the {capacity} available rows"
            )
        if modulus is not None and lookup_range > modulus:
            raise ConfigurationError(
                f"Lookup table of {lookup_range} entries exceeds the field size"
            )

        self.lookup_range = lookup_range

        values = np.array(range(lookup_range), dtype=object)
        values.setflags(write=False)
        self._values = values

        # Membership index; np.object_ entries are plain ints
        self._members = frozenset(int(v) for v in values)

        logger.info(f"Range table built: {lookup_range} entries")

    @property
    def values(self) -> np.ndarray:
        return self._values

    def __len__(self) -> int:
        return self.lookup_range

    def __contains__(self, value) -> bool:
        return value in self._members

    def __repr__(self) -> str:
        return f"RangeTable(lookup_range={self.lookup_range})"


class RangeTableConfig:
    """
    Table column of the relation plus the shared table it is loaded from.

    configure() allocates the column once; load() writes the table into a
    fresh assignment and must run before the assignment is verified.
    """

    def __init__(self, column: Column, table: RangeTable):
        self.value = column
        self.table = table

    @classmethod
    def configure(cls, meta: ConstraintSystem, table: RangeTable) -> "RangeTableConfig":
        column = meta.lookup_table_column('range table')
        return cls(column, table)

    def load(self, layouter: Layouter):
        """
        Load every table entry into the table column.

        Args:
            layouter: Layouter of the assignment being built
        """
        def assign(region: TableRegion):
            for offset, value in enumerate(self.table.values):
                region.assign_cell("range table value", self.value, offset, int(value))

        layouter.assign_table("load range-check table", assign)
