"""
Classical helpers around the simulator.

- comparing state vectors while ignoring a global phase
- number theory for Shor's algorithm (gcd, inverses, perfect powers)
- continued fractions, used to turn a measured frequency into a period

Everything on the number theory side is exact integer arithmetic; the
measured fraction is never converted to a float.
"""

from itertools import takewhile
from typing import List, Optional, Tuple

import numpy as np


# =============================================================================
# State comparison
# =============================================================================

def allclose_up_to_global_phase(v, w, atol: float = 1e-9) -> bool:
    """
    True if v = e^{iφ}·w for some φ, within ``atol``.

    Two state vectors that differ only by a global phase describe the same
    physical state, so gate tests compare with this rather than np.allclose.
    Comparing magnitudes alone would miss relative phases.
    """
    v = np.ravel(np.asarray(v))
    w = np.ravel(np.asarray(w))

    # Largest amplitude of w fixes the phase
    pivot = int(np.argmax(np.abs(w)))
    if abs(w[pivot]) < atol:
        return bool(np.allclose(v, w, atol=atol))
    return bool(np.allclose(v, (v[pivot] / w[pivot]) * w, atol=atol))


def state_fidelity(v, w) -> float:
    """Fidelity |⟨v|w⟩|² between two pure states, from 0 to 1."""
    overlap = np.vdot(np.ravel(np.asarray(v)), np.ravel(np.asarray(w)))
    return float(abs(overlap) ** 2)


# =============================================================================
# Number theory
# =============================================================================

def gcd(a: int, b: int) -> int:
    """Euclid's algorithm; gcd(a, 0) = |a|."""
    a, b = abs(a), abs(b)
    while b:
        a, b = b, a % b
    return a


def is_coprime(a: int, N: int) -> bool:
    return gcd(a, N) == 1


def mod_inverse(a: int, N: int) -> Optional[int]:
    """
    Inverse of a modulo N.

    Returns:
        x in [0, N) with a·x ≡ 1 (mod N), or None when gcd(a, N) > 1
    """
    if not is_coprime(a, N):
        return None
    return pow(a, -1, N)


def integer_root(n: int, k: int) -> int:
    """Largest integer x with x^k <= n."""
    if n < 0 or k < 1:
        raise ValueError("integer_root needs n >= 0 and k >= 1")
    if n < 2:
        return n
    # Newton's iteration from above
    x = 1 << ((n.bit_length() + k - 1) // k)
    while True:
        y = ((k - 1) * x + n // x ** (k - 1)) // k
        if y >= x:
            return x
        x = y


def perfect_power_base(n: int) -> Optional[int]:
    """
    Smallest base b > 1 with b^k = n for some k >= 2, or None.

    Shor's algorithm cannot split prime powers, so they are peeled off
    classically before any quantum work.
    """
    for k in range(2, n.bit_length() + 1):
        root = integer_root(n, k)
        if root > 1 and root ** k == n:
            return perfect_power_base(root) or root
    return None


def register_width(N: int) -> int:
    """ceil(log2 N): the number of qubits needed to hold every value below N."""
    if N < 2:
        raise ValueError(f"N must be at least 2, got {N}")
    return (N - 1).bit_length()


# =============================================================================
# Continued fractions
# =============================================================================

def continued_fraction_expansion(numerator: int, denominator: int) -> List[int]:
    """
    Continued fraction coefficients of numerator/denominator.

    Returns [a0, a1, a2, ...] where
    numerator/denominator = a0 + 1/(a1 + 1/(a2 + ...)).
    The expansion is the Euclidean algorithm, so it has O(log denominator)
    terms.
    """
    if denominator <= 0:
        raise ValueError(f"Denominator must be positive, got {denominator}")
    coeffs = []
    while denominator:
        quotient, numerator, denominator = (
            numerator // denominator, denominator, numerator % denominator)
        coeffs.append(quotient)
    return coeffs


def convergents(coeffs: List[int]) -> List[Tuple[int, int]]:
    """
    Successive convergents p_i/q_i of a continued fraction.

    p_i = a_i·p_{i-1} + p_{i-2} and likewise for q, starting from
    p_{-1}/q_{-1} = 1/0 and p_{-2}/q_{-2} = 0/1.

    Returns:
        [(p_0, q_0), (p_1, q_1), ...]
    """
    result = []
    p_prev, p = 0, 1
    q_prev, q = 1, 0
    for a in coeffs:
        p_prev, p = p, a * p + p_prev
        q_prev, q = q, a * q + q_prev
        result.append((p, q))
    return result


def find_period_candidate(numerator: int, denominator: int,
                          threshold: int) -> Tuple[int, int]:
    """
    Best low-denominator approximation of a measured fraction.

    Runs the continued fraction expansion of numerator/denominator and
    returns the last convergent whose denominator does not exceed
    ``threshold``. In Shor's algorithm the fraction is the measured
    frequency over 2^(2n), the threshold is N, and the returned denominator
    is the period candidate.

    Args:
        numerator: Measured value
        denominator: Positive denominator, typically a power of two
        threshold: Largest acceptable denominator (>= 1)

    Returns:
        (convergent numerator, convergent denominator)
    """
    if threshold < 1:
        raise ValueError(f"Threshold must be at least 1, got {threshold}")
    coeffs = continued_fraction_expansion(numerator, denominator)

    # Denominators never decrease and the first one is 1
    kept = list(takewhile(lambda pq: pq[1] <= threshold, convergents(coeffs)))
    return kept[-1]


# =============================================================================
# Bits
# =============================================================================

def int_to_bits(x: int, n: int) -> List[int]:
    """The n lowest bits of x, least significant first."""
    return [(x >> i) & 1 for i in range(n)]


def bits_to_int(bits: List[int]) -> int:
    """Inverse of int_to_bits."""
    return sum(bit << i for i, bit in enumerate(bits))
