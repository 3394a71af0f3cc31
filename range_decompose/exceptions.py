"""
Exception types raised by the range decomposition package.

Verification failures are never raised: they are returned as data by the
mock prover. Exceptions cover misconfiguration and misuse of the
constraint-system substrate.
"""


class RangeDecomposeError(Exception):
    """Base class for all package errors."""


class ConfigurationError(RangeDecomposeError, ValueError):
    """
    Relation parameters violate a setup-time precondition.

    Raised before any column is allocated, e.g. when the digit width times
    the window count overflows the native arithmetic width, or when the
    lookup range exceeds the degree bound.
    """


class SynthesisError(RangeDecomposeError, RuntimeError):
    """
    Cell assignment could not be completed.

    Raised for writes outside the usable rows, double assignment of a
    write-once cell, or use of a column that was never allocated. A region
    that raises leaves the assignment untouched.
    """
