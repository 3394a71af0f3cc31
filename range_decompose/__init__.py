"""
Decomposed Range Check

Proves that a private value lies in [0, RANGE) by splitting it into
base-LOOKUP_RANGE digits, looking each digit up in a fixed range table and
constraining the weighted digits to recompose to the value.
"""

from .chip import DecomposeRangeCheckConfig, DecomposedValue
from .circuit import CheckResult, DecomposeRangeCheckCircuit, RangeChecker
from .constraint_system import ConstraintSystem
from .decompose import decompose, recompose
from .exceptions import ConfigurationError, RangeDecomposeError, SynthesisError
from .field import DEFAULT_FIELD, MODULUS, PrimeField
from .layouter import Assignment, Layouter
from .mock_prover import (
    CellNotAssigned,
    ConstraintNotSatisfied,
    InRegion,
    LookupFailure,
    MockProver,
    OutsideRegion,
)
from .params import RangeCheckParams
from .table import RangeTable, RangeTableConfig

__version__ = "0.1.0"

__all__ = [
    'RangeChecker',
    'RangeCheckParams',
    'CheckResult',
    'DecomposeRangeCheckCircuit',
    'DecomposeRangeCheckConfig',
    'DecomposedValue',
    'RangeTable',
    'RangeTableConfig',
    'ConstraintSystem',
    'Assignment',
    'Layouter',
    'MockProver',
    'ConstraintNotSatisfied',
    'LookupFailure',
    'CellNotAssigned',
    'InRegion',
    'OutsideRegion',
    'PrimeField',
    'DEFAULT_FIELD',
    'MODULUS',
    'ConfigurationError',
    'SynthesisError',
    'RangeDecomposeError',
    'decompose',
    'recompose',
]
