"""
Quantum Fourier Transform (QFT) implementation.

The QFT is the quantum analog of the discrete Fourier transform and is the
step of Shor's algorithm that turns the period of a^x mod N into a
measurable frequency.

With registers stored least significant qubit first, ``QFT`` implements

    |j⟩ → (1/√2^n) Σₖ exp(2πijk/2^n) |k⟩

exactly; no rotations are truncated.
"""

from typing import List

import numpy as np

from .core import QuantumRegister
from .engine import GateEngine
from .gates import CP, H, SWAP


def _msb_first(register: QuantumRegister) -> List[int]:
    return list(reversed(register.qubits))


def QFT(engine: GateEngine, register: QuantumRegister):
    """
    Quantum Fourier Transform on a register.

    Walks the qubits from most to least significant: H on qubit i, then a
    controlled phase of 2π/2^(j-i+1) from every later qubit j, and finally
    reverses the qubit order with swaps.

    Args:
        engine: Engine of the session
        register: Register to transform (LSB first)
    """
    qubits = _msb_first(register)
    n = len(qubits)

    for i in range(n):
        engine.apply(H(qubits[i]))
        for j in range(i + 1, n):
            theta = 2 * np.pi / (2 ** (j - i + 1))
            engine.apply(CP(theta, qubits[j], qubits[i]))

    for i in range(n // 2):
        engine.apply(SWAP(qubits[i], qubits[n - 1 - i]))


def QFT_inverse(engine: GateEngine, register: QuantumRegister):
    """
    Inverse Quantum Fourier Transform.

    The adjoint of :func:`QFT`: the same gates in reverse order with the
    phase angles negated.

    Args:
        engine: Engine of the session
        register: Register to transform (LSB first)
    """
    qubits = _msb_first(register)
    n = len(qubits)

    for i in range(n // 2):
        engine.apply(SWAP(qubits[i], qubits[n - 1 - i]))

    for i in range(n - 1, -1, -1):
        for j in range(n - 1, i, -1):
            theta = -2 * np.pi / (2 ** (j - i + 1))
            engine.apply(CP(theta, qubits[j], qubits[i]))
        engine.apply(H(qubits[i]))
