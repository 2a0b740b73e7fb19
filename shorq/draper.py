"""
Draper QFT Adder - Addition of a classical constant in the Fourier basis.

After a QFT, a register holding a is a product state in which qubit j
(LSB first) carries the phase 2π·a·2^j/2^n. Adding a constant c is then
just a phase rotation of 2π·c·2^j/2^n on every qubit, and the inverse QFT
brings the register back to |a + c mod 2^n⟩.

Controls are put on the phase rotations only; the QFT pair around them
cancels when the controls do not fire.

References:
- T. G. Draper, "Addition on a Quantum Computer", 2000. arXiv:quant-ph/0008033
"""

from typing import Sequence

import numpy as np

from .core import QuantumRegister
from .engine import GateEngine
from .gates import ControlLike, P, controlled
from .qft import QFT, QFT_inverse


def phi_add_constant(engine: GateEngine, register: QuantumRegister, constant: int,
                     controls: Sequence[ControlLike] = (), inverse: bool = False):
    """
    Add a classical constant to a register already in the Fourier basis.

    Args:
        engine: Engine of the session
        register: Register after QFT (LSB first)
        constant: Integer to add; any sign, reduced mod 2^n
        controls: Qubits that must fire for the addition to happen
        inverse: If True, subtract instead of add
    """
    n = len(register)
    size = 2 ** n
    if inverse:
        constant = -constant

    for j, qubit in enumerate(register):
        # Only the residue matters; it keeps the angle exact for large constants
        residue = (constant << j) % size
        if residue == 0:
            continue
        theta = 2 * np.pi * residue / size
        engine.apply(controlled(P(theta, qubit), controls))


def add_constant(engine: GateEngine, register: QuantumRegister, constant: int,
                 controls: Sequence[ControlLike] = (), inverse: bool = False):
    """
    Add a classical constant to a register: |a⟩ → |a + constant mod 2^n⟩.

    Example:
        # Add 3 to a 4-qubit register holding 5
        reg = store.allocate(4)
        engine.prepare(reg, 5)
        add_constant(engine, reg, 3)   # register now holds 8
    """
    if constant % (2 ** len(register)) == 0:
        return
    QFT(engine, register)
    phi_add_constant(engine, register, constant, controls=controls, inverse=inverse)
    QFT_inverse(engine, register)


def subtract_constant(engine: GateEngine, register: QuantumRegister, constant: int,
                      controls: Sequence[ControlLike] = ()):
    """|a⟩ → |a - constant mod 2^n⟩. Wrapper for add_constant with inverse=True."""
    add_constant(engine, register, constant, controls=controls, inverse=True)
