"""
Positional Decomposition

Base-LOOKUP_RANGE digit decomposition used by the witness assigner, and the
matching recomposition. Both read their weights from RangeCheckParams, the
same vector the recomposition gate is built from.
"""

from typing import List, Sequence

import numpy as np

from .params import RangeCheckParams


def decompose(value: int, params: RangeCheckParams) -> List[int]:
    """
    Split a value into W base-LOOKUP_RANGE digits, least significant first.

    The low W-1 digits are reduced modulo LOOKUP_RANGE; the top digit keeps
    the whole remaining quotient, so the digits always recompose to `value`.
    For value >= RANGE the top digit is therefore >= LOOKUP_RANGE and fails
    the table lookup.

    Args:
        value: Non-negative integer
        params: Relation parameters

    Returns:
        List of W digits

    Example:
        >>> decompose(10, RangeCheckParams(range=16, num_bits=2, lookup_range=4))
        [2, 2]
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Value must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"Cannot decompose negative value {value}")

    weights = params.weights
    digits = []
    for i, weight in enumerate(weights):
        quotient = value // weight
        if i < len(weights) - 1:
            quotient %= params.lookup_range
        digits.append(quotient)
    return digits


def recompose(digits: Sequence[int], params: RangeCheckParams) -> int:
    """
    Weighted sum of digits: sum_i digits[i] * LOOKUP_RANGE^i.

    Raises:
        ValueError: If the digit count does not match the window count
    """
    weights = params.weights
    if len(digits) != len(weights):
        raise ValueError(f"Expected {len(weights)} digits, got {len(digits)}")
    return int(np.dot(np.array(list(digits), dtype=object), weights))
