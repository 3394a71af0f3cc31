"""
Decomposed Range Check Chip

Declares the bounded-range relation and assigns its witness.

Layout, one region per checked value:

      value  |  digit  | q_decompose | q_lookup
    ---------+---------+-------------+----------
        v    |   d_0   |      1      |    1
        -    |   d_1   |      0      |    1
       ...   |   ...   |     ...     |   ...
        -    | d_{W-1} |      0      |    1

Gate "decompose" (where q_decompose = 1):
    sum_i d_i * LOOKUP_RANGE^i - v = 0

Lookup "digit in range" (every row):
    q_lookup * digit  is an entry of the range table

The gate alone cannot bound the digits; only the lookup does. Disabled rows
look up zero, which is always a table entry.
"""

import logging
from dataclasses import dataclass
from typing import List

from .constraint_system import Column, ConstraintSystem, Selector
from .decompose import decompose
from .expression import sum_expressions, with_selector
from .layouter import Layouter, Region
from .params import RangeCheckParams
from .table import RangeTable, RangeTableConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecomposedValue:
    """Field values written by one assignment of the relation."""
    value: int
    digits: List[int]


class DecomposeRangeCheckConfig:
    """
    Columns, selectors, gate and lookup of the decomposition relation.

    Built once by configure(); holds layout only, never witness values.
    """

    def __init__(
        self,
        params: RangeCheckParams,
        value: Column,
        digit: Column,
        q_decompose: Selector,
        q_lookup: Selector,
        table: RangeTableConfig
    ):
        self.params = params
        self.value = value
        self.digit = digit
        self.q_decompose = q_decompose
        self.q_lookup = q_lookup
        self.table = table

    @classmethod
    def configure(
        cls,
        meta: ConstraintSystem,
        params: RangeCheckParams,
        table: RangeTable
    ) -> "DecomposeRangeCheckConfig":
        """
        Declare the relation on a constraint system.

        Args:
            meta: Constraint system to register columns, gate and lookup on
            params: Relation parameters (validated here)
            table: Shared range table; its size must match params.lookup_range

        Returns:
            The configuration

        Raises:
            ConfigurationError: If params violate a setup precondition
            ValueError: If the table does not match params
        """
        params.validate()
        if len(table) != params.lookup_range:
            raise ValueError(
                f"Table has {len(table)} entries, relation expects {params.lookup_range}"
            )

        value = meta.advice_column('value')
        digit = meta.advice_column('digit')
        q_decompose = meta.selector('q_decompose')
        q_lookup = meta.complex_selector('q_lookup')
        table_config = RangeTableConfig.configure(meta, table)

        weights = params.weights

        meta.lookup("digit in range", lambda vc: [
            (vc.query_selector(q_lookup) * vc.query_advice(digit, 0), table_config.value)
        ])

        def recomposition(vc):
            q = vc.query_selector(q_decompose)
            v = vc.query_advice(value, 0)
            terms = [
                vc.query_advice(digit, i) * int(weight)
                for i, weight in enumerate(weights)
            ]
            return with_selector(q, [("recompose", sum_expressions(terms) - v)])

        meta.create_gate("decompose", recomposition)

        logger.info(
            f"Configured decomposition: range={params.range}, "
            f"{params.num_windows} windows of {params.num_bits} bits"
        )

        return cls(params, value, digit, q_decompose, q_lookup, table_config)

    def assign(self, layouter: Layouter, value: int) -> DecomposedValue:
        """
        Assign a value and its digits in one atomic region.

        The arithmetic is the same whether or not the value is in range;
        an out-of-range value is left for the lookup to reject.

        Args:
            layouter: Layouter of a fresh assignment
            value: Integer in [0, p)

        Returns:
            DecomposedValue with the field values written

        Raises:
            TypeError: If value is not an int
            ValueError: If value is not a canonical field element
        """
        field = self.params.prime_field
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Value must be an int, got {type(value).__name__}")
        if not field.is_canonical(value):
            raise ValueError(f"Value {value} is not a field element (must lie in [0, p))")

        digits = decompose(value, self.params)

        def assign_region(region: Region) -> DecomposedValue:
            offset = 0
            region.enable_selector(self.q_decompose, offset)
            assigned_value = region.assign_advice("value", self.value, offset, value)

            assigned_digits = []
            for i, digit in enumerate(digits):
                region.enable_selector(self.q_lookup, i)
                assigned_digits.append(
                    region.assign_advice(f"digit {i}", self.digit, i, digit)
                )
            return DecomposedValue(assigned_value, assigned_digits)

        decomposed = layouter.assign_region("decompose value", assign_region)
        logger.debug(f"Assigned value {value} as digits {digits}")
        return decomposed
