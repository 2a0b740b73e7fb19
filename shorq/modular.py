"""
Modular arithmetic circuits for Shor's algorithm.

Everything is built from the Draper constant adder:

- modular addition of a classical constant, with one borrowed carry qubit
- shift-and-add modular multiplication by a classical constant, which
  leaves no garbage by computing into a scratch register, swapping, and
  uncomputing with the modular inverse
- modular exponentiation as a chain of controlled multiplications by
  classically precomputed constants a^(2^i) mod M

Controls: every operation takes an optional list of controls. Two or more
controls are first ANDed into one scratch qubit, and that single qubit then
drives the whole body, instead of every inner gate carrying all controls.

References:
- Beauregard, "Circuit for Shor's algorithm using 2n+3 qubits", 2002
- Draper, "Addition on a Quantum Computer", 2000
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Sequence, Tuple

from .core import QuantumRegister
from .draper import add_constant
from .engine import GateEngine
from .errors import NotInvertible
from .gates import MCX, SWAP, X, Control, ControlLike, as_control, controlled
from .utils import gcd, mod_inverse, register_width

logger = logging.getLogger(__name__)


# =============================================================================
# Control reduction
# =============================================================================

@contextmanager
def reduced_controls(engine: GateEngine,
                     controls: Sequence[ControlLike]) -> Iterator[Tuple[Control, ...]]:
    """
    Collapse a control set to at most one control.

    With two or more controls, their AND is computed into a scratch qubit,
    which is yielded as the only control and uncomputed and released when
    the ``with`` block exits, early returns included. Zero or one control is
    yielded unchanged.
    """
    controls = tuple(as_control(c) for c in controls)
    if len(controls) < 2:
        yield controls
        return

    with engine.store.borrowed(1) as scratch:
        flag = scratch[0]
        engine.apply(MCX(controls, flag))
        yield (Control(flag),)
        engine.apply(MCX(controls, flag))


# =============================================================================
# Modular addition
# =============================================================================

def modular_add_constant(engine: GateEngine, modulus: int, constant: int,
                         register: QuantumRegister,
                         controls: Sequence[ControlLike] = ()):
    """
    |y⟩ → |(y + constant) mod modulus⟩ for y < modulus.

    Args:
        engine: Engine of the session
        modulus: Classical modulus M > 1
        constant: Classical constant with 0 <= constant < M
        register: Register holding y < M (LSB first), 2^len >= M
        controls: Qubits that must all fire for the addition to happen

    Raises:
        ValueError: If the constant is out of range or the register too small
    """
    _check_modulus(modulus, register)
    if not 0 <= constant < modulus:
        raise ValueError(f"Constant {constant} is not in [0, {modulus})")
    if constant == 0:
        return

    with reduced_controls(engine, controls) as control:
        _modular_add_body(engine, modulus, constant, register, control)


def _modular_add_body(engine: GateEngine, modulus: int, constant: int,
                      register: QuantumRegister, control: Tuple[Control, ...]):
    with engine.store.borrowed(1) as carry_register:
        carry = carry_register[0]
        extended = register + carry_register

        # y + c - M over n+1 bits: the carry reads 1 exactly when y + c < M
        add_constant(engine, extended, constant - modulus, controls=control)

        # Undo the subtraction of M on the low bits where it went negative
        add_constant(engine, register, modulus, controls=(Control(carry),))

        # Clear the carry. With r the result, r - c over n+1 bits has its top
        # bit set in both branches (carry=1 and r >= c, or carry=0 and r < c),
        # so flipping it returns the carry to 0; adding c back on the low bits
        # restores r.
        add_constant(engine, extended, -constant, controls=control)
        engine.apply(controlled(X(carry), control))
        add_constant(engine, register, constant, controls=control)


def modular_subtract_constant(engine: GateEngine, modulus: int, constant: int,
                              register: QuantumRegister,
                              controls: Sequence[ControlLike] = ()):
    """|y⟩ → |(y - constant) mod modulus⟩, the inverse of modular_add_constant."""
    if not 0 <= constant < modulus:
        raise ValueError(f"Constant {constant} is not in [0, {modulus})")
    modular_add_constant(engine, modulus, (modulus - constant) % modulus,
                         register, controls)


# =============================================================================
# Shift-and-add modular multiplication
# =============================================================================

def modular_multiply_by_constant(engine: GateEngine, modulus: int, constant: int,
                                 register: QuantumRegister,
                                 controls: Sequence[ControlLike] = ()):
    """
    |y⟩ → |(constant · y) mod modulus⟩ in place, for y < modulus.

    Algorithm (shift-and-add):
    1. Borrow a scratch register s = |0⟩ of the same width
    2. For each bit i of y: s += (c · 2^i) mod M, controlled on y_i
    3. Swap y and s, so the register holds c·y mod M and s holds y
    4. For each bit i of the new register value: s -= (c⁻¹ · 2^i) mod M,
       controlled on that bit. This removes c⁻¹ · c·y = y and leaves s = 0
    5. Release s

    The swap carries the outer controls; the adds carry the outer controls
    plus their bit, which reduced_controls folds into one scratch qubit.

    Args:
        engine: Engine of the session
        modulus: Classical modulus M > 1
        constant: Multiplier with 0 < constant < M and gcd(constant, M) = 1
        register: Register holding y < M (LSB first)
        controls: Qubits that must all fire for the multiplication to happen

    Raises:
        NotInvertible: If constant and modulus are not coprime
    """
    _check_modulus(modulus, register)
    if not 0 < constant < modulus:
        raise ValueError(f"Constant {constant} is not in (0, {modulus})")
    inverse = mod_inverse(constant, modulus)
    if inverse is None:
        raise NotInvertible(f"{constant} has no inverse mod {modulus}")
    if constant == 1:
        return

    controls = tuple(as_control(c) for c in controls)
    with engine.store.borrowed(len(register)) as scratch:
        for i, qubit in enumerate(register):
            coeff = (constant << i) % modulus
            modular_add_constant(engine, modulus, coeff, scratch,
                                 controls + (Control(qubit),))

        for qubit_a, qubit_b in zip(register, scratch):
            engine.apply(controlled(SWAP(qubit_a, qubit_b), controls))

        for i, qubit in enumerate(register):
            coeff = (inverse << i) % modulus
            modular_subtract_constant(engine, modulus, coeff, scratch,
                                      controls + (Control(qubit),))


# =============================================================================
# Modular exponentiation
# =============================================================================

def mod_exp(engine: GateEngine, base: int, modulus: int,
            input_register: QuantumRegister, output_register: QuantumRegister):
    """
    |x⟩|0⟩ → |x⟩|base^x mod modulus⟩.

    Sets the output to 1, then for each input bit i, from the most
    significant down, multiplies the output by base^(2^i) mod M controlled
    on that bit. The constants are computed classically; multiplications
    by 1 are skipped.

    Args:
        engine: Engine of the session
        base: Base a > 0, coprime with the modulus
        modulus: Modulus N > 1
        input_register: Exponent register (LSB first)
        output_register: Clean register with at least ceil(log2 N) qubits

    Raises:
        NotInvertible: If base and modulus are not coprime
    """
    if base <= 0:
        raise ValueError(f"Base must be positive, got {base}")
    _check_modulus(modulus, output_register)
    if gcd(base, modulus) != 1:
        raise NotInvertible(f"{base} and {modulus} must be coprime")

    engine.apply(X(output_register[0]))

    for bit in reversed(range(len(input_register))):
        constant = pow(base, 1 << bit, modulus)
        if constant == 1:
            logger.debug("bit %d: multiplier %d^(2^%d) mod %d is 1, skipped",
                         bit, base, bit, modulus)
            continue
        modular_multiply_by_constant(engine, modulus, constant, output_register,
                                     controls=(input_register[bit],))


def _check_modulus(modulus: int, register: QuantumRegister):
    if modulus < 2:
        raise ValueError(f"Modulus must be at least 2, got {modulus}")
    if len(register) < register_width(modulus):
        raise ValueError(
            f"Register of {len(register)} qubit(s) cannot hold values mod {modulus}"
        )
