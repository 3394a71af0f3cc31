"""
Range check end-to-end tests.

This tests the decomposition relation through RangeChecker to ensure:
1. Every value in [0, RANGE) is accepted
2. Every value >= RANGE is rejected, including values near the modulus
3. Rejections are located at the failing lookup row or gate
4. Forged witnesses are caught by the gate or by the lookup
5. The table and configuration are built once and shared across checks
"""

import logging

import pytest

from range_decompose import (
    MODULUS,
    Assignment,
    CellNotAssigned,
    ConfigurationError,
    ConstraintNotSatisfied,
    DecomposeRangeCheckCircuit,
    InRegion,
    Layouter,
    LookupFailure,
    MockProver,
    PrimeField,
    RangeChecker,
    RangeCheckParams,
    RangeTable,
)


SMALL = RangeCheckParams(range=16, num_bits=2, lookup_range=4)
EIGHT = RangeCheckParams(range=64, num_bits=3, lookup_range=8)
THREE_WINDOWS = RangeCheckParams(range=64, num_bits=2, lookup_range=4)


@pytest.fixture(scope="module")
def small_checker():
    return RangeChecker(SMALL)


def assign_forged(checker, value, digits):
    """Lay out an arbitrary (value, digits) witness and verify it."""
    config = checker.config
    assignment = Assignment(checker.cs, checker.k)
    layouter = Layouter(assignment)
    config.table.load(layouter)

    def assign(region):
        region.enable_selector(config.q_decompose, 0)
        region.assign_advice("value", config.value, 0, value)
        for i, digit in enumerate(digits):
            region.enable_selector(config.q_lookup, i)
            region.assign_advice(f"digit {i}", config.digit, i, digit)

    layouter.assign_region("forged", assign)
    return MockProver(checker.cs, assignment).verify()


@pytest.mark.parametrize("params", [SMALL, EIGHT, THREE_WINDOWS])
def test_every_value_in_range_is_accepted(params):
    checker = RangeChecker(params)
    for value in range(params.range):
        result = checker.check(value)
        assert result.accepted, f"{value}: {result.reason}"


@pytest.mark.parametrize("params", [SMALL, EIGHT, THREE_WINDOWS])
def test_values_past_the_range_are_rejected(params):
    checker = RangeChecker(params)
    for value in range(params.range, 4 * params.range + 3):
        result = checker.check(value)
        assert not result.accepted, f"{value} was accepted"
        assert result.location is not None


def test_boundaries(small_checker):
    assert small_checker.check(0).accepted
    assert small_checker.check(SMALL.range - 1).accepted
    assert not small_checker.check(SMALL.range).accepted


def test_ten_decomposes_to_two_two_and_passes(small_checker):
    result = small_checker.check(10)

    assert result.digits == [2, 2]
    assert small_checker.recompose(result.digits) == 10
    assert result.accepted
    assert result.failures == []
    assert result.location is None
    assert result.reason == "Range check passed"


def test_sixteen_fails_the_lookup_on_the_second_digit_row(small_checker):
    result = small_checker.check(16)

    assert result.digits == [0, 4]
    assert not result.accepted
    assert len(result.failures) == 1

    failure = result.failures[0]
    assert isinstance(failure, LookupFailure)
    assert failure.lookup_name == "digit in range"
    assert failure.inputs == ('0x4',)
    assert failure.location == InRegion(0, "range check/decompose value", 1)
    assert result.location == failure.location


@pytest.mark.parametrize("value", [
    MODULUS - 1,
    MODULUS - 2,
    MODULUS - SMALL.range,
    MODULUS - SMALL.range + 1,
    MODULUS // 2,
])
def test_values_near_the_modulus_do_not_wrap_into_range(small_checker, value):
    result = small_checker.check(value)

    assert not result.accepted
    assert small_checker.recompose(result.digits) == value
    assert any(isinstance(f, LookupFailure) for f in result.failures)


@pytest.mark.parametrize("value", [MODULUS, MODULUS + 5, -1])
def test_non_field_values_are_refused(small_checker, value):
    with pytest.raises(ValueError):
        small_checker.check(value)


@pytest.mark.parametrize("value", [True, 3.0, "3", None])
def test_non_integer_values_are_refused(small_checker, value):
    with pytest.raises(TypeError):
        small_checker.check(value)


def test_missing_value_is_refused_before_synthesis(small_checker):
    with pytest.raises(TypeError, match="NoneType"):
        small_checker.check(None)

    assert small_checker.check(3).accepted


def test_repeated_checks_give_the_same_verdict(small_checker):
    for value in (0, 7, 15, 16, 63, MODULUS - 1):
        first = small_checker.check(value)
        second = small_checker.check(value)
        assert first.accepted == second.accepted
        assert first.digits == second.digits
        assert [str(f) for f in first.failures] == [str(f) for f in second.failures]


def test_configuration_is_built_once(small_checker):
    cs = small_checker.cs
    for value in range(40):
        small_checker.check(value)

    assert len(cs.gates) == 1
    assert len(cs.lookups) == 1
    assert len(cs.advice_columns) == 2
    assert len(cs.table_columns) == 1
    assert [int(v) for v in small_checker.table.values] == [0, 1, 2, 3]


def test_shared_table_cannot_be_modified(small_checker):
    with pytest.raises(ValueError):
        small_checker.table.values[0] = 7
    assert small_checker.check(3).accepted


def test_relation_degrees(small_checker):
    cs = small_checker.cs
    assert cs.gates[0].name == "decompose"
    assert cs.gates[0].constraints[0][0] == "recompose"
    assert cs.gates[0].degree() == 2
    assert cs.lookups[0].degree() == 4
    assert cs.degree() == 4


def test_forged_digits_fail_the_recomposition_gate(small_checker):
    failures = assign_forged(small_checker, 10, [1, 2])

    assert len(failures) == 1
    failure = failures[0]
    assert isinstance(failure, ConstraintNotSatisfied)
    assert failure.gate_name == "decompose"
    assert failure.constraint_name == "recompose"
    assert failure.location == InRegion(0, "forged", 0)


def test_recomposing_digits_outside_the_table_fail_the_lookup(small_checker):
    # 6 + 1 * 4 == 10, but 6 is not a digit
    failures = assign_forged(small_checker, 10, [6, 1])

    assert len(failures) == 1
    assert isinstance(failures[0], LookupFailure)
    assert failures[0].location == InRegion(0, "forged", 0)


def test_wrapped_digits_satisfy_the_gate_but_fail_the_lookup(small_checker):
    # 7 + 4 * (p - 1) == 3 in the field
    failures = assign_forged(small_checker, 3, [7, MODULUS - 1])

    assert all(isinstance(f, LookupFailure) for f in failures)
    assert [f.location.offset for f in failures] == [0, 1]
    assert failures[1].inputs == ('-0x1',)


def test_missing_digits_are_reported_as_unassigned(small_checker):
    config = small_checker.config
    assignment = Assignment(small_checker.cs, small_checker.k)
    layouter = Layouter(assignment)
    config.table.load(layouter)

    def assign(region):
        region.enable_selector(config.q_decompose, 0)
        region.assign_advice("value", config.value, 0, 5)

    layouter.assign_region("value only", assign)
    failures = MockProver(small_checker.cs, assignment).verify()

    assert len(failures) == 2
    assert all(isinstance(f, CellNotAssigned) for f in failures)
    assert {f.column for f in failures} == {config.digit}


def test_unloaded_table_rejects_every_row(small_checker):
    assignment = Assignment(small_checker.cs, small_checker.k)
    small_checker.config.assign(Layouter(assignment), 5)

    failures = MockProver(small_checker.cs, assignment).verify()

    assert len(failures) == assignment.n
    assert all(isinstance(f, LookupFailure) for f in failures)


def test_circuit_runs_through_the_mock_prover():
    table = RangeTable(EIGHT.lookup_range)
    circuit = DecomposeRangeCheckCircuit(EIGHT, table)

    for value in (0, 9, 63):
        prover = MockProver.run(EIGHT.resolved_k(), circuit.with_value(value))
        prover.assert_satisfied()

    prover = MockProver.run(EIGHT.resolved_k(), circuit.with_value(64))
    assert not prover.is_satisfied()
    with pytest.raises(AssertionError, match="digit in range"):
        prover.assert_satisfied()


def test_circuit_without_witnesses_lays_out_the_table_only():
    table = RangeTable(SMALL.lookup_range)
    circuit = DecomposeRangeCheckCircuit(SMALL, table, 10).without_witnesses()
    assert circuit.value is None

    prover = MockProver.run(SMALL.resolved_k(), circuit)
    assert prover.assignment.regions == []
    assert prover.verify() == []


def test_custom_field_is_shared_by_checker_and_prover():
    small_field = PrimeField(101)
    params = RangeCheckParams(range=16, num_bits=2, lookup_range=4, prime_field=small_field)
    checker = RangeChecker(params)
    circuit = DecomposeRangeCheckCircuit(params, RangeTable(params.lookup_range))

    prover = MockProver.run(params.resolved_k(), circuit.with_value(10))

    assert checker.cs.field == small_field
    assert prover.cs.field == small_field
    prover.assert_satisfied()

    assert not checker.check(100).accepted
    with pytest.raises(ValueError):
        checker.check(101)
    with pytest.raises(ValueError):
        MockProver.run(params.resolved_k(), circuit.with_value(101))


def test_table_size_must_match_params():
    circuit = DecomposeRangeCheckCircuit(SMALL, RangeTable(8))
    with pytest.raises(ValueError):
        MockProver.run(SMALL.resolved_k(), circuit)


def test_invalid_params_fail_at_setup():
    with pytest.raises(ConfigurationError):
        RangeChecker(RangeCheckParams(range=10, num_bits=2, lookup_range=4))


def test_check_batch_summary(small_checker):
    summary = small_checker.check_batch([0, 5, 15, 16, 17])

    assert summary['num_total'] == 5
    assert summary['num_accepted'] == 3
    assert not summary['all_accepted']
    assert summary['results'][5]['accepted']
    assert not summary['results'][16]['accepted']

    assert small_checker.check_batch(range(16))['all_accepted']


def test_result_to_dict(small_checker):
    data = small_checker.check(16).to_dict()

    assert data['value'] == 16
    assert data['accepted'] is False
    assert data['digits'] == [0, 4]
    assert len(data['failures']) == 1
    assert "digit in range" in data['reason']


def test_setup_is_logged(caplog):
    with caplog.at_level(logging.INFO, logger="range_decompose"):
        RangeChecker(SMALL)
    assert "Range checker ready" in caplog.text
    assert "Range table built: 4 entries" in caplog.text


def test_verbose_prints_verdicts(capsys):
    checker = RangeChecker(SMALL, verbose=True)
    checker.check(3)
    checker.check(16)

    out = capsys.readouterr().out
    assert "Range checker initialized" in out
    assert "check(3): ACCEPT" in out
    assert "check(16): REJECT" in out
