"""
Quantum gate definitions.

Gates are plain values: a unitary matrix, the qubits it acts on and an
optional set of control qubits. Nothing here touches a state vector; gates
are applied by :class:`shorq.engine.GateEngine`.

Matrix convention: for a gate on targets ``(t0, t1, ...)`` the first target
is the most significant bit of the matrix row/column index, so ``SWAP_gate``
and ``CNOT_gate`` read the same way as in the textbook.
"""

from dataclasses import dataclass, field
from typing import Iterable, Tuple, Union

import numpy as np

# =============================================================================
# Single-qubit matrices
# =============================================================================

X_gate = np.array([[0, 1],      # Pauli X gate (NOT gate)
                   [1, 0]], dtype=complex)

Y_gate = np.array([[ 0, -1j],   # Pauli Y gate
                   [1j,   0]], dtype=complex)

Z_gate = np.array([[1,  0],     # Pauli Z gate = P(π)
                   [0, -1]], dtype=complex)

H_gate = np.array([[1,  1],     # Hadamard gate
                   [1, -1]], dtype=complex) * np.sqrt(1/2)

S_gate = np.array([[1,  0],     # Phase gate = P(π/2)
                   [0, 1j]], dtype=complex)

T_gate = np.array([[1,                  0],   # T gate = P(π/4)
                   [0, np.exp(np.pi / -4j)]], dtype=complex)


def P_gate(phi: float) -> np.ndarray:
    """Phase shift gate P(φ) = diag(1, e^{iφ})"""
    return np.array([[1,                0],
                     [0, np.exp(phi * 1j)]], dtype=complex)


def Ry_gate(theta: float) -> np.ndarray:
    """Y rotation gate Ry(θ)"""
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return np.array([[c, -s],
                     [s,  c]], dtype=complex)


def Rx_gate(theta: float) -> np.ndarray:
    """X rotation gate Rx(θ)"""
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return np.array([[c,       -1j * s],
                     [-1j * s,       c]], dtype=complex)


def Rz_gate(theta: float) -> np.ndarray:
    """Z rotation gate Rz(θ)"""
    return np.array([[np.exp(-1j * theta / 2),                      0],
                     [                      0, np.exp(1j * theta / 2)]], dtype=complex)


# =============================================================================
# Two-qubit matrices
# =============================================================================

CNOT_gate = np.array([[1, 0, 0, 0],   # Controlled NOT gate (XOR)
                      [0, 1, 0, 0],
                      [0, 0, 0, 1],
                      [0, 0, 1, 0]], dtype=complex)

SWAP_gate = np.array([[1, 0, 0, 0],   # Swap gate
                      [0, 0, 1, 0],
                      [0, 1, 0, 0],
                      [0, 0, 0, 1]], dtype=complex)


# =============================================================================
# Gate values
# =============================================================================

@dataclass(frozen=True)
class Control:
    """A control qubit that fires on |1⟩ (positive) or on |0⟩ (negative)."""

    qubit: int
    positive: bool = True

    def __invert__(self) -> "Control":
        return Control(self.qubit, not self.positive)


ControlLike = Union[int, Control]


def as_control(control: ControlLike) -> Control:
    """Promote a bare qubit index to a positive control."""
    if isinstance(control, Control):
        return control
    return Control(int(control))


def negated(qubit: int) -> Control:
    """A control that fires when ``qubit`` is |0⟩."""
    return Control(qubit, positive=False)


@dataclass(frozen=True, eq=False)
class Gate:
    """
    An immutable unitary action.

    Attributes:
        matrix: 2^k x 2^k unitary acting on ``targets``
        targets: The k target qubits, first target = most significant
        controls: Qubits that must all fire for the matrix to be applied
        name: Label used in logs and reprs
    """

    matrix: np.ndarray
    targets: Tuple[int, ...]
    controls: Tuple[Control, ...] = ()
    name: str = field(default="U")

    def __post_init__(self):
        matrix = np.array(self.matrix, dtype=complex)
        targets = tuple(int(t) for t in self.targets)
        controls = tuple(as_control(c) for c in self.controls)

        dim = 2 ** len(targets)
        if not targets:
            raise ValueError("A gate needs at least one target qubit")
        if matrix.shape != (dim, dim):
            raise ValueError(
                f"Gate on {len(targets)} qubit(s) needs a {dim}x{dim} matrix, "
                f"got shape {matrix.shape}"
            )
        if not np.allclose(matrix @ matrix.conj().T, np.eye(dim), atol=1e-9):
            raise ValueError(f"Matrix of gate {self.name} is not unitary")

        qubits = list(targets) + [c.qubit for c in controls]
        if len(qubits) != len(set(qubits)):
            raise ValueError("The same qubit cannot occur twice in a gate")

        matrix.setflags(write=False)
        object.__setattr__(self, "matrix", matrix)
        object.__setattr__(self, "targets", targets)
        object.__setattr__(self, "controls", controls)

    @property
    def qubits(self) -> Tuple[int, ...]:
        return self.targets + tuple(c.qubit for c in self.controls)

    def adjoint(self) -> "Gate":
        """The inverse gate: conjugate transpose on the same qubits."""
        return Gate(self.matrix.conj().T, self.targets, self.controls, self.name + "†")

    def __repr__(self):
        ctrl = ""
        if self.controls:
            ctrl = " ctrl=" + ",".join(
                ("" if c.positive else "~") + str(c.qubit) for c in self.controls
            )
        return f"<Gate {self.name} targets={self.targets}{ctrl}>"


def controlled(gate: Gate, controls: Iterable[ControlLike]) -> Gate:
    """
    Add control qubits to a gate.

    The result applies ``gate.matrix`` only on basis states where every
    control (old and new) fires.

    Args:
        gate: Gate to augment
        controls: Qubit indices (positive controls) or :class:`Control` values

    Returns:
        New gate with the extra controls appended
    """
    extra = tuple(as_control(c) for c in controls)
    if not extra:
        return gate
    return Gate(gate.matrix, gate.targets, gate.controls + extra, "C" + gate.name)


# =============================================================================
# Gate constructors
# =============================================================================

def X(qubit: int) -> Gate:
    return Gate(X_gate, (qubit,), name="X")


def Y(qubit: int) -> Gate:
    return Gate(Y_gate, (qubit,), name="Y")


def Z(qubit: int) -> Gate:
    return Gate(Z_gate, (qubit,), name="Z")


def H(qubit: int) -> Gate:
    return Gate(H_gate, (qubit,), name="H")


def S(qubit: int) -> Gate:
    return Gate(S_gate, (qubit,), name="S")


def T(qubit: int) -> Gate:
    return Gate(T_gate, (qubit,), name="T")


def P(phi: float, qubit: int) -> Gate:
    return Gate(P_gate(phi), (qubit,), name="P")


def Rx(theta: float, qubit: int) -> Gate:
    return Gate(Rx_gate(theta), (qubit,), name="Rx")


def Ry(theta: float, qubit: int) -> Gate:
    return Gate(Ry_gate(theta), (qubit,), name="Ry")


def Rz(theta: float, qubit: int) -> Gate:
    return Gate(Rz_gate(theta), (qubit,), name="Rz")


def CNOT(control: ControlLike, target: int) -> Gate:
    return controlled(X(target), [control])


def CCNOT(control1: ControlLike, control2: ControlLike, target: int) -> Gate:
    """Toffoli gate: target ^= control1 AND control2."""
    return controlled(X(target), [control1, control2])


def MCX(controls: Iterable[ControlLike], target: int) -> Gate:
    """X on ``target`` controlled by any number of qubits."""
    return controlled(X(target), controls)


def SWAP(qubit_a: int, qubit_b: int) -> Gate:
    return Gate(SWAP_gate, (qubit_a, qubit_b), name="SWAP")


def CP(theta: float, control: ControlLike, target: int) -> Gate:
    """Controlled phase CP(θ) = diag(1, 1, 1, e^{iθ})"""
    return controlled(P(theta, target), [control])


controlled_phase = CP
TOFF = CCNOT
