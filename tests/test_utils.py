"""Tests for number theory and continued fraction utilities."""

from fractions import Fraction

import numpy as np
import pytest

from shorq import (
    gcd, is_coprime, mod_inverse, register_width,
    continued_fraction_expansion, convergents, find_period_candidate,
    int_to_bits, bits_to_int, allclose_up_to_global_phase, state_fidelity,
)
from shorq.utils import integer_root, perfect_power_base


class TestGCD:
    """Tests for the Euclidean algorithm."""

    @pytest.mark.parametrize(
        "a,b,expected",
        [(12, 18, 6), (17, 5, 1), (0, 9, 9), (9, 0, 9), (-12, 8, 4), (21, 14, 7)],
    )
    def test_values(self, a, b, expected):
        assert gcd(a, b) == expected

    def test_divides_both_and_is_symmetric(self):
        for a in range(1, 40):
            for b in range(1, 40):
                g = gcd(a, b)
                assert a % g == 0 and b % g == 0
                assert gcd(b, a) == g

    def test_is_coprime(self):
        assert is_coprime(7, 15)
        assert not is_coprime(6, 15)


class TestModInverse:
    """Tests for modular inverse."""

    @pytest.mark.parametrize("a,N", [(7, 15), (2, 21), (13, 15), (3, 7), (20, 21)])
    def test_inverse(self, a, N):
        inverse = mod_inverse(a, N)
        assert 0 < inverse < N
        assert (a * inverse) % N == 1

    def test_no_inverse(self):
        assert mod_inverse(6, 15) is None


class TestPerfectPowers:
    """Tests for integer roots and perfect power detection."""

    @pytest.mark.parametrize(
        "n,k,expected",
        [(0, 2, 0), (1, 3, 1), (15, 2, 3), (16, 2, 4), (26, 3, 2), (27, 3, 3), (2 ** 64, 4, 2 ** 16)],
    )
    def test_integer_root(self, n, k, expected):
        assert integer_root(n, k) == expected

    @pytest.mark.parametrize(
        "n,expected",
        [(9, 3), (27, 3), (16, 2), (64, 2), (125, 5), (15, None), (21, None), (2, None)],
    )
    def test_perfect_power_base(self, n, expected):
        assert perfect_power_base(n) == expected


class TestRegisterWidth:
    """ceil(log2 N) for register sizing."""

    @pytest.mark.parametrize(
        "N,expected",
        [(2, 1), (3, 2), (4, 2), (5, 3), (15, 4), (16, 4), (17, 5), (21, 5)],
    )
    def test_width(self, N, expected):
        assert register_width(N) == expected

    def test_rejects_small_modulus(self):
        with pytest.raises(ValueError):
            register_width(1)


class TestContinuedFractions:
    """Tests for continued fraction expansion and convergents."""

    def test_expansion(self):
        # 415/93 = 4 + 1/(2 + 1/(6 + 1/7))
        assert continued_fraction_expansion(415, 93) == [4, 2, 6, 7]

    def test_expansion_of_integer(self):
        assert continued_fraction_expansion(8, 4) == [2]

    def test_convergents_approach_value(self):
        coeffs = continued_fraction_expansion(415, 93)
        convs = convergents(coeffs)
        assert convs == [(4, 1), (9, 2), (58, 13), (415, 93)]

    @pytest.mark.parametrize("numerator,denominator", [(5, 8), (192, 256), (683, 1024), (1, 3)])
    def test_last_convergent_is_exact(self, numerator, denominator):
        h, k = convergents(continued_fraction_expansion(numerator, denominator))[-1]
        assert Fraction(h, k) == Fraction(numerator, denominator)

    def test_rejects_zero_denominator(self):
        with pytest.raises(ValueError):
            continued_fraction_expansion(1, 0)


class TestFindPeriodCandidate:
    """Tests for recovering the period from a measured frequency."""

    @pytest.mark.parametrize(
        "numerator,denominator,threshold,expected",
        [
            (64, 256, 15, (1, 4)),
            (192, 256, 15, (3, 4)),
            (128, 256, 15, (1, 2)),
            (0, 256, 15, (0, 1)),
            (683, 1024, 21, (2, 3)),
            (171, 1024, 21, (1, 6)),
            (853, 1024, 21, (5, 6)),
        ],
    )
    def test_known_measurements(self, numerator, denominator, threshold, expected):
        assert find_period_candidate(numerator, denominator, threshold) == expected

    @pytest.mark.parametrize("N,Q", [(15, 256), (21, 1024), (33, 4096)])
    def test_close_fractions_are_recovered(self, N, Q):
        """Any s/r with r <= N is recovered from the nearest multiple of 1/Q."""
        for r in range(2, N + 1):
            for s in range(1, r):
                if gcd(s, r) != 1:
                    continue
                measured = round(s * Q / r)
                h, k = find_period_candidate(measured, Q, N)
                assert (h, k) == (s, r)

    def test_result_is_close_and_small(self):
        for numerator in range(0, 1024, 7):
            h, k = find_period_candidate(numerator, 1024, 21)
            assert 1 <= k <= 21
            assert abs(Fraction(numerator, 1024) - Fraction(h, k)) <= Fraction(1, k)

    def test_threshold_one(self):
        # 700/1024 = [0; 1, 2, ...] so 1/1 is already a convergent
        assert find_period_candidate(700, 1024, 1) == (1, 1)
        assert find_period_candidate(300, 1024, 1) == (0, 1)

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            find_period_candidate(1, 0, 5)
        with pytest.raises(ValueError):
            find_period_candidate(1, 8, 0)


class TestBitsAndStates:
    """Tests for bit conversion and state comparison."""

    def test_bits_round_trip(self):
        assert int_to_bits(6, 4) == [0, 1, 1, 0]
        assert bits_to_int([0, 1, 1, 0]) == 6

    def test_global_phase_is_ignored(self):
        v = np.array([1, 1j]) / np.sqrt(2)
        assert allclose_up_to_global_phase(v, np.exp(0.3j) * v)
        assert not allclose_up_to_global_phase(v, np.array([1, -1j]) / np.sqrt(2))

    def test_fidelity(self):
        plus = np.array([1, 1]) / np.sqrt(2)
        assert state_fidelity(plus, np.exp(1j) * plus) == pytest.approx(1.0)
        assert state_fidelity([1, 0], plus) == pytest.approx(0.5)
