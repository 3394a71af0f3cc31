"""
Digit decomposition tests.

Checks the positional base-LOOKUP_RANGE decomposition against the weights
used by the recomposition gate.
"""

import pytest

from range_decompose import MODULUS, RangeCheckParams, decompose, recompose


SMALL = RangeCheckParams(range=16, num_bits=2, lookup_range=4)
THREE_WINDOWS = RangeCheckParams(range=64, num_bits=2, lookup_range=4)


@pytest.mark.parametrize("value, digits", [
    (0, [0, 0]),
    (3, [3, 0]),
    (4, [0, 1]),
    (10, [2, 2]),
    (15, [3, 3]),
    (16, [0, 4]),
    (17, [1, 4]),
    (63, [3, 15]),
])
def test_small_decompositions(value, digits):
    assert decompose(value, SMALL) == digits


def test_three_windows():
    assert decompose(27, THREE_WINDOWS) == [3, 2, 1]
    assert decompose(63, THREE_WINDOWS) == [3, 3, 3]
    assert decompose(64, THREE_WINDOWS) == [0, 0, 4]


def test_in_range_digits_fit_the_table():
    for params in (SMALL, THREE_WINDOWS):
        for value in range(params.range):
            assert all(0 <= d < params.lookup_range for d in decompose(value, params))


def test_out_of_range_top_digit_leaves_the_table():
    for value in range(SMALL.range, 200):
        digits = decompose(value, SMALL)
        assert all(0 <= d < SMALL.lookup_range for d in digits[:-1])
        assert digits[-1] >= SMALL.lookup_range


def test_recompose_inverts_decompose():
    for params in (SMALL, THREE_WINDOWS):
        for value in range(4 * params.range):
            assert recompose(decompose(value, params), params) == value

    assert recompose(decompose(MODULUS - 1, SMALL), SMALL) == MODULUS - 1


def test_recompose_uses_positional_weights():
    assert recompose([1, 2, 3], THREE_WINDOWS) == 1 + 2 * 4 + 3 * 16


def test_recompose_requires_one_digit_per_window():
    with pytest.raises(ValueError):
        recompose([1, 2, 3], SMALL)


def test_decompose_rejects_bad_values():
    with pytest.raises(ValueError):
        decompose(-1, SMALL)
    with pytest.raises(TypeError):
        decompose(2.5, SMALL)
    with pytest.raises(TypeError):
        decompose(False, SMALL)
