"""
Gate application on top of the amplitude store.

The engine is the only component that hands gates to the store. It turns
negative controls into positive ones by surrounding the gate with X gates,
and offers short methods for the gates circuits use most.
"""

from typing import Iterable, Sequence

from .core import AmplitudeStore, QuantumRegister
from .gates import (
    CCNOT, CNOT, CP, H, MCX, SWAP, X, Z, Control, ControlLike, Gate, Ry, controlled,
)


class GateEngine:
    """
    Applies gates to one store.

    Args:
        store: The session's amplitude store
    """

    def __init__(self, store: AmplitudeStore):
        self.store = store

    def apply(self, gate: Gate):
        """
        Apply a gate, honouring negative controls.

        A negative control is flipped with X, the gate is applied with the
        control treated as positive, and the control is flipped back.
        """
        negative = [c.qubit for c in gate.controls if not c.positive]
        if not negative:
            self.store.apply_unitary(gate)
            return

        for qubit in negative:
            self.store.apply_unitary(X(qubit))
        positive = tuple(Control(c.qubit) for c in gate.controls)
        self.store.apply_unitary(Gate(gate.matrix, gate.targets, positive, gate.name))
        for qubit in negative:
            self.store.apply_unitary(X(qubit))

    def apply_all(self, gates: Iterable[Gate]):
        for gate in gates:
            self.apply(gate)

    def apply_controlled(self, gate: Gate, controls: Iterable[ControlLike]):
        self.apply(controlled(gate, controls))

    # =========================================================================
    # Common gates
    # =========================================================================

    def x(self, qubit: int):
        self.apply(X(qubit))

    def h(self, qubit: int):
        self.apply(H(qubit))

    def z(self, qubit: int):
        self.apply(Z(qubit))

    def ry(self, theta: float, qubit: int):
        self.apply(Ry(theta, qubit))

    def cnot(self, control: ControlLike, target: int):
        self.apply(CNOT(control, target))

    def ccnot(self, control1: ControlLike, control2: ControlLike, target: int):
        self.apply(CCNOT(control1, control2, target))

    def mcx(self, controls: Sequence[ControlLike], target: int):
        self.apply(MCX(controls, target))

    def swap(self, qubit_a: int, qubit_b: int):
        self.apply(SWAP(qubit_a, qubit_b))

    def cphase(self, theta: float, control: ControlLike, target: int):
        self.apply(CP(theta, control, target))

    # =========================================================================
    # Registers
    # =========================================================================

    def hadamard_all(self, register: QuantumRegister):
        """Put a clean register into the uniform superposition."""
        for qubit in register:
            self.h(qubit)

    def prepare(self, register: QuantumRegister, value: int):
        """
        Load a classical value into a register that is in |0...0⟩.

        Args:
            register: Target register (LSB first)
            value: Integer with 0 <= value < 2^len(register)
        """
        if not 0 <= value < 2 ** len(register):
            raise ValueError(f"{value} does not fit in {len(register)} qubit(s)")
        for bit, qubit in enumerate(register):
            if (value >> bit) & 1:
                self.x(qubit)
