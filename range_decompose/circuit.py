"""
Range Check Circuit and Driver

Composition root of the package. The circuit pairs the shared range table
with the decomposition chip; RangeChecker builds the table and configures
the relation once, then checks any number of values against it, each in
its own fresh assignment.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .chip import DecomposeRangeCheckConfig, DecomposedValue
from .constraint_system import ConstraintSystem
from .decompose import decompose, recompose
from .layouter import Assignment, Layouter
from .mock_prover import MockProver, VerifyFailure
from .params import RangeCheckParams
from .table import RangeTable

logger = logging.getLogger(__name__)


class DecomposeRangeCheckCircuit:
    """
    Circuit proving that `value` lies in [0, params.range).

    A circuit without a value describes layout only; configure() is the
    same for both and synthesize() skips the witness when value is None.
    """

    def __init__(self, params: RangeCheckParams, table: RangeTable, value: Optional[int] = None):
        self.params = params
        self.table = table
        self.value = value

    def without_witnesses(self) -> "DecomposeRangeCheckCircuit":
        return DecomposeRangeCheckCircuit(self.params, self.table)

    def with_value(self, value: int) -> "DecomposeRangeCheckCircuit":
        return DecomposeRangeCheckCircuit(self.params, self.table, value)

    def configure(self, meta: ConstraintSystem) -> DecomposeRangeCheckConfig:
        return DecomposeRangeCheckConfig.configure(meta, self.params, self.table)

    def synthesize(self, config: DecomposeRangeCheckConfig, layouter: Layouter) -> Optional[DecomposedValue]:
        """Load the table, then assign the value if there is one."""
        config.table.load(layouter)
        if self.value is None:
            return None
        return config.assign(layouter.namespace("range check"), self.value)


@dataclass
class CheckResult:
    """
    Verdict for one checked value.

    Attributes:
        value: The checked value
        digits: Digits witnessed for the value
        failures: Every failed constraint or lookup; empty when accepted
        check_time: Seconds spent assigning and verifying
    """
    value: int
    digits: List[int]
    failures: List[VerifyFailure] = field(default_factory=list)
    check_time: float = 0.0

    @property
    def accepted(self) -> bool:
        return not self.failures

    @property
    def location(self) -> Optional[Any]:
        """Location of the first failure, or None when accepted."""
        if self.accepted:
            return None
        return self.failures[0].location

    @property
    def reason(self) -> str:
        if self.accepted:
            return "Range check passed"
        return str(self.failures[0])

    def to_dict(self) -> Dict[str, Any]:
        return {
            'value': self.value,
            'accepted': self.accepted,
            'digits': list(self.digits),
            'reason': self.reason,
            'failures': [str(failure) for failure in self.failures],
            'check_time': self.check_time,
        }


class RangeChecker:
    """
    Checks values against one configured decomposition relation.

    The table is built and the relation configured exactly once, in the
    constructor; every call to check() allocates its own assignment, so
    results never depend on earlier checks.

    Example:
        >>> checker = RangeChecker(RangeCheckParams(range=16, num_bits=2, lookup_range=4))
        >>> checker.check(10).accepted
        True
        >>> checker.check(16).accepted
        False
    """

    def __init__(self, params: RangeCheckParams, verbose: bool = False):
        """
        Initialize checker.

        Args:
            params: Relation parameters
            verbose: Print setup and per-check progress

        Raises:
            ConfigurationError: If params violate a setup precondition
        """
        self.params = params.validate()
        self.verbose = verbose
        self.k = params.resolved_k()

        start_time = time.time()

        self.table = RangeTable(
            params.lookup_range,
            capacity=params.num_rows,
            modulus=params.prime_field.q
        )
        self.circuit = DecomposeRangeCheckCircuit(params, self.table)
        self.cs = ConstraintSystem(params.prime_field)
        self.config = self.circuit.configure(self.cs)

        setup_time = time.time() - start_time

        logger.info(f"Range checker ready: {params.describe()} in {setup_time:.3f}s")
        if verbose:
            print(f"Range checker initialized: range={params.range}, "
                  f"windows={params.num_windows}, rows={params.num_rows}")

    def check(self, value: int) -> CheckResult:
        """
        Assign a value and evaluate every gate and lookup.

        Args:
            value: Integer in [0, p) to range-check

        Returns:
            CheckResult; accepted iff every identity vanishes and every
            lookup succeeds

        Raises:
            TypeError: If value is not an int
            ValueError: If value is not a field element
        """
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Value must be an int, got {type(value).__name__}")

        start_time = time.time()

        assignment = Assignment(self.cs, self.k)
        decomposed = self.circuit.with_value(value).synthesize(self.config, Layouter(assignment))

        prover = MockProver(self.cs, assignment)
        failures = prover.verify()

        result = CheckResult(
            value=value,
            digits=list(decomposed.digits),
            failures=failures,
            check_time=time.time() - start_time,
        )

        if result.accepted:
            logger.debug(f"Value {value} accepted")
        else:
            logger.debug(f"Value {value} rejected: {result.reason}")

        if self.verbose:
            verdict = 'ACCEPT' if result.accepted else f'REJECT ({result.location})'
            print(f"check({value}): {verdict}")

        return result

    def check_batch(self, values: Iterable[int]) -> Dict[str, Any]:
        """
        Check several values independently.

        Args:
            values: Values to check

        Returns:
            Dictionary containing:
                - results: value -> {'accepted', 'reason'}
                - num_accepted: Number of accepted values
                - num_total: Number of values checked
                - all_accepted: True if every value was accepted
        """
        results = {}
        num_accepted = 0
        num_total = 0

        for value in values:
            num_total += 1
            result = self.check(value)
            results[value] = {
                'accepted': result.accepted,
                'reason': result.reason,
            }
            if result.accepted:
                num_accepted += 1

        return {
            'results': results,
            'num_accepted': num_accepted,
            'num_total': num_total,
            'all_accepted': num_accepted == num_total,
        }

    def decompose(self, value: int) -> List[int]:
        return decompose(value, self.params)

    def recompose(self, digits: List[int]) -> int:
        return recompose(digits, self.params)
