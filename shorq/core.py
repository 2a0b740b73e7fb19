"""
Core quantum simulation functionality.

This module provides the state-vector store that every other component
mutates. The store owns one dense complex vector of 2^N amplitudes for the
N live qubits of a session, and keeps a table mapping each qubit id to its
bit position in the basis-state index.

Bit convention is little-endian throughout: the qubit at position p is bit p
of the basis index, and a register's qubit 0 is the least significant bit of
the integer the register encodes.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Sequence, Tuple, Union

import numpy as np

from .config import DEFAULT_MAX_QUBITS, DEFAULT_RENORMALIZE_INTERVAL, DEFAULT_TOLERANCE
from .errors import CapacityError, InvariantViolation, SimulationInvariantError
from .gates import Gate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuantumRegister:
    """
    An ordered group of qubit ids, least significant qubit first.

    Registers are views: they own no amplitudes and stay valid only while
    their qubits are allocated in the store that issued them.
    """

    qubits: Tuple[int, ...]

    def __len__(self):
        return len(self.qubits)

    def __iter__(self) -> Iterator[int]:
        return iter(self.qubits)

    def __getitem__(self, index: Union[int, slice]):
        if isinstance(index, slice):
            return QuantumRegister(self.qubits[index])
        return self.qubits[index]

    def __add__(self, other: "QuantumRegister") -> "QuantumRegister":
        return QuantumRegister(self.qubits + tuple(other))

    def __repr__(self):
        return f"QuantumRegister{self.qubits}"


class AmplitudeStore:
    """
    Dense state vector for a growing and shrinking set of qubits.

    Args:
        max_qubits: Qubit budget; allocating past it raises CapacityError
        tolerance: Allowed norm drift and allowed weight outside |0...0⟩
                   when releasing a register
        renormalize_interval: Number of gates between norm checks
    """

    def __init__(self, max_qubits: int = DEFAULT_MAX_QUBITS,
                 tolerance: float = DEFAULT_TOLERANCE,
                 renormalize_interval: int = DEFAULT_RENORMALIZE_INTERVAL):
        self.max_qubits = max_qubits
        self.tolerance = tolerance
        self.renormalize_interval = renormalize_interval

        self._amplitudes = np.ones(1, dtype=complex)
        self._order: List[int] = []          # bit position -> qubit id
        self._positions: Dict[int, int] = {}  # qubit id -> bit position
        self._next_id = 0
        self._gates_since_check = 0

    @classmethod
    def from_config(cls, config) -> "AmplitudeStore":
        return cls(max_qubits=config.max_qubits,
                   tolerance=config.tolerance,
                   renormalize_interval=config.renormalize_interval)

    @property
    def num_qubits(self) -> int:
        return len(self._order)

    # =========================================================================
    # Register lifetime
    # =========================================================================

    def allocate(self, n: int) -> QuantumRegister:
        """
        Add n qubits in |0⟩ to the state.

        The new qubits take the highest bit positions, so the existing
        amplitudes keep their indices and the vector is simply zero-padded.

        Args:
            n: Number of qubits

        Returns:
            Register of the new qubits

        Raises:
            CapacityError: If the qubit budget would be exceeded
        """
        if n < 0:
            raise ValueError(f"Cannot allocate {n} qubits")
        total = self.num_qubits + n
        if total > self.max_qubits:
            raise CapacityError(
                f"Allocating {n} qubits would need {total} qubits, "
                f"budget is {self.max_qubits}"
            )

        grown = np.zeros(2 ** total, dtype=complex)
        grown[:self._amplitudes.size] = self._amplitudes
        self._amplitudes = grown

        ids = tuple(range(self._next_id, self._next_id + n))
        self._next_id += n
        for qubit in ids:
            self._positions[qubit] = len(self._order)
            self._order.append(qubit)

        logger.debug("allocated %d qubit(s) %s, %d live", n, ids, total)
        return QuantumRegister(ids)

    def release(self, register: QuantumRegister):
        """
        Remove a register that has been returned to |0...0⟩.

        Raises:
            InvariantViolation: If more than ``tolerance`` of the probability
                                lies outside the register's |0...0⟩ subspace
        """
        if not len(register):
            return
        axes = self._axes(register)

        tensor = self._tensor()
        index = [slice(None)] * tensor.ndim
        for axis in axes:
            index[axis] = 0
        kept = tensor[tuple(index)]

        leaked = 1.0 - float(np.vdot(kept, kept).real)
        if leaked > self.tolerance:
            raise InvariantViolation(
                f"Register {register} released with probability {leaked:.3g} "
                f"outside |0...0⟩"
            )

        self._amplitudes = np.ascontiguousarray(kept).reshape(-1)
        released = set(register)
        self._order = [q for q in self._order if q not in released]
        self._positions = {q: p for p, q in enumerate(self._order)}
        logger.debug("released %s, %d live", register, self.num_qubits)

    @contextmanager
    def borrowed(self, n: int) -> Iterator[QuantumRegister]:
        """
        Scratch register that is released when the ``with`` block ends.

        The body must leave the register clean; release raises
        InvariantViolation otherwise.
        """
        register = self.allocate(n)
        yield register
        self.release(register)

    # =========================================================================
    # Evolution
    # =========================================================================

    def apply_unitary(self, gate: Gate):
        """
        Apply a gate in place.

        Works on tensor views of the state: the control axes are fixed at 1,
        leaving exactly the amplitudes the gate acts on, and the matrix is
        applied along the target axes. Each call is O(2^N).

        Negative controls must already have been turned into positive ones;
        that is the engine's job.
        """
        if any(not c.positive for c in gate.controls):
            raise ValueError(f"{gate!r} has negative controls; apply it through GateEngine")

        tensor = self._tensor()
        index: List[Union[int, slice]] = [slice(None)] * tensor.ndim
        control_axes = sorted(self._axis(c.qubit) for c in gate.controls)
        for axis in control_axes:
            index[axis] = 1
        sub = tensor[tuple(index)]

        # Axis numbers shift left by one for every removed control axis
        target_axes = []
        for t in gate.targets:
            axis = self._axis(t)
            target_axes.append(axis - sum(1 for c in control_axes if c < axis))

        u = gate.matrix
        if len(target_axes) == 1:
            lo: List[Union[int, slice]] = [slice(None)] * sub.ndim
            hi: List[Union[int, slice]] = [slice(None)] * sub.ndim
            lo[target_axes[0]] = 0
            hi[target_axes[0]] = 1
            lo, hi = tuple(lo), tuple(hi)
            if u[0, 1] == 0 and u[1, 0] == 0:
                if u[0, 0] != 1:
                    sub[lo] *= u[0, 0]
                if u[1, 1] != 1:
                    sub[hi] *= u[1, 1]
            else:
                a0 = sub[lo].copy()
                a1 = sub[hi].copy()
                sub[lo] = u[0, 0] * a0 + u[0, 1] * a1
                sub[hi] = u[1, 0] * a0 + u[1, 1] * a1
        else:
            k = len(target_axes)
            tail = list(range(sub.ndim - k, sub.ndim))
            moved = np.moveaxis(sub, target_axes, tail)
            result = moved.reshape(-1, 2 ** k) @ u.T
            sub[...] = np.moveaxis(result.reshape(moved.shape), tail, target_axes)

        self._gates_since_check += 1
        if self._gates_since_check >= self.renormalize_interval:
            self.renormalize()

    def renormalize(self):
        """
        Rescale the state to unit norm.

        Raises:
            SimulationInvariantError: If the drift exceeds tolerance, which
                                      points at a bad gate rather than at
                                      rounding
        """
        self._gates_since_check = 0
        norm2 = float(np.vdot(self._amplitudes, self._amplitudes).real)
        drift = abs(norm2 - 1.0)
        if drift > self.tolerance:
            raise SimulationInvariantError(
                f"State norm² is {norm2!r}, drift {drift:.3g} exceeds {self.tolerance}"
            )
        if drift:
            self._amplitudes /= np.sqrt(norm2)
            logger.debug("renormalized state, drift was %.3g", drift)

    # =========================================================================
    # Inspection and collapse
    # =========================================================================

    def probabilities(self, register: QuantumRegister) -> np.ndarray:
        """
        Marginal Born-rule distribution of a register.

        Returns:
            Array p of length 2^len(register) where p[v] is the probability
            of reading v, summed over all other qubits
        """
        axes = self._axes(register)
        weights = np.abs(self._tensor()) ** 2
        others = tuple(a for a in range(weights.ndim) if a not in axes)
        marginal = weights.sum(axis=others) if others else weights

        # Remaining axes are in ascending order; put the register's most
        # significant qubit first so the flattened index is its value
        remaining = sorted(axes)
        perm = [remaining.index(a) for a in reversed(axes)]
        return np.transpose(marginal, perm).reshape(-1)

    def collapse(self, register: QuantumRegister, value: int) -> float:
        """
        Project onto ``register == value`` and renormalize.

        Returns:
            The probability of the outcome before projection
        """
        if not 0 <= value < 2 ** len(register):
            raise ValueError(f"{value} does not fit in {len(register)} qubit(s)")

        indices = np.arange(self._amplitudes.size)
        consistent = np.ones(self._amplitudes.size, dtype=bool)
        for bit, qubit in enumerate(register):
            position = self._position(qubit)
            consistent &= ((indices >> position) & 1) == ((value >> bit) & 1)

        survivors = self._amplitudes[consistent]
        prob = float(np.vdot(survivors, survivors).real)
        if prob <= 0.0:
            raise ValueError(f"Outcome {value} of {register} has zero probability")

        self._amplitudes[~consistent] = 0
        self._amplitudes[consistent] = survivors / np.sqrt(prob)
        return prob

    def is_clean(self, register: QuantumRegister) -> bool:
        """True if the register is in |0...0⟩ within tolerance."""
        return 1.0 - self.probabilities(register)[0] <= self.tolerance

    def amplitudes(self) -> np.ndarray:
        """Copy of the state vector, indexed by little-endian basis state."""
        return self._amplitudes.copy()

    def norm(self) -> float:
        return float(np.linalg.norm(self._amplitudes))

    # =========================================================================
    # Index bookkeeping
    # =========================================================================

    def _tensor(self) -> np.ndarray:
        # View with one axis per qubit; axis 0 is the highest bit position
        return self._amplitudes.reshape((2,) * self.num_qubits)

    def _position(self, qubit: int) -> int:
        try:
            return self._positions[qubit]
        except KeyError:
            raise ValueError(f"Qubit {qubit} is not allocated") from None

    def _axis(self, qubit: int) -> int:
        return self.num_qubits - 1 - self._position(qubit)

    def _axes(self, register: Sequence[int]) -> List[int]:
        axes = [self._axis(q) for q in register]
        if len(axes) != len(set(axes)):
            raise ValueError(f"{register} names the same qubit twice")
        return axes
