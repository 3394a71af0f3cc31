"""
Relation Parameters

The decomposition relation is fully determined by three sizes: the total
range proved, the digit width in bits and the lookup-table size. They are
gathered in one validated value, checked once at setup, so that impossible
or unsound shapes are rejected before any column is allocated.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .exceptions import ConfigurationError
from .field import DEFAULT_FIELD, PrimeField


@dataclass(frozen=True)
class RangeCheckParams:
    """
    Shape of the bounded-range decomposition.

    Attributes:
        range: Size of the proved range; values in [0, range) are accepted
        num_bits: Width of one digit in bits
        lookup_range: Lookup table size, 2^num_bits
        max_degree: Maximum constraint degree supported by the proving system
        native_bits: Native arithmetic width the weights must fit in
        k: log2 of the row count; derived from the table size when None
        prime_field: Prime field the relation is defined over
    """
    range: int
    num_bits: int
    lookup_range: int
    max_degree: int = 9
    native_bits: int = 64
    k: Optional[int] = None
    prime_field: PrimeField = field(default=DEFAULT_FIELD, compare=False)

    @property
    def num_windows(self) -> int:
        """
        Number of digits W with lookup_range^W == range.

        Raises:
            ConfigurationError: If range is not a positive power of lookup_range
        """
        if self.lookup_range < 2 or self.range < self.lookup_range:
            raise ConfigurationError(
                f"Range {self.range} must be a positive power of lookup range {self.lookup_range}"
            )
        windows, remaining = 0, self.range
        while remaining % self.lookup_range == 0:
            remaining //= self.lookup_range
            windows += 1
        if remaining != 1:
            raise ConfigurationError(
                f"Range {self.range} is not a power of lookup range {self.lookup_range}; "
                f"values up to the next power would pass the check"
            )
        return windows

    @property
    def weights(self) -> np.ndarray:
        """Positional weights lookup_range^i, shared by gate and witness."""
        return np.array(
            [self.lookup_range ** i for i in range(self.num_windows)],
            dtype=object
        )

    @property
    def num_rows(self) -> int:
        return 1 << self.resolved_k()

    def resolved_k(self) -> int:
        """
        Row-count exponent: explicit k, or the smallest k whose rows hold
        the table and the digit rows.
        """
        if self.k is not None:
            return self.k
        needed = max(self.lookup_range, self.num_windows, 2)
        return max((needed - 1).bit_length(), 1)

    def validate(self) -> "RangeCheckParams":
        """
        Check every setup-time precondition.

        Returns:
            self, for chaining

        Raises:
            ConfigurationError: Describing the first violated precondition
        """
        for name in ('range', 'num_bits', 'lookup_range', 'max_degree', 'native_bits'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")

        if self.lookup_range != 1 << self.num_bits:
            raise ConfigurationError(
                f"Lookup range {self.lookup_range} does not match digit width "
                f"{self.num_bits} bits (expected {1 << self.num_bits})"
            )

        windows = self.num_windows

        if self.num_bits * windows > self.native_bits:
            raise ConfigurationError(
                f"{windows} windows of {self.num_bits} bits need {self.num_bits * windows} bits, "
                f"more than the native {self.native_bits}-bit arithmetic width"
            )

        if self.lookup_range > self.max_degree - 1:
            raise ConfigurationError(
                f"Lookup range {self.lookup_range} exceeds the degree bound: at most "
                f"{self.max_degree - 1} for maximum constraint degree {self.max_degree}"
            )

        if self.lookup_range >= self.prime_field.q or self.range >= self.prime_field.q:
            raise ConfigurationError("Range does not fit in the field")

        if self.k is not None:
            if isinstance(self.k, bool) or not isinstance(self.k, int) or self.k < 1:
                raise ConfigurationError(f"k must be a positive integer, got {self.k!r}")
            if self.lookup_range > self.num_rows:
                raise ConfigurationError(
                    f"Lookup table of {self.lookup_range} entries does not fit in "
                    f"{self.num_rows} rows (k={self.k})"
                )
            if windows > self.num_rows:
                raise ConfigurationError(
                    f"{windows} digit rows do not fit in {self.num_rows} rows (k={self.k})"
                )

        return self

    def describe(self) -> dict:
        return {
            'range': self.range,
            'num_bits': self.num_bits,
            'lookup_range': self.lookup_range,
            'num_windows': self.num_windows,
            'k': self.resolved_k(),
            'max_degree': self.max_degree,
        }
