"""
Measurement: Born-rule sampling with collapse.

This is the only non-deterministic part of the simulator. All randomness
comes from one ``numpy.random.Generator`` so that a seeded session replays
bit for bit.
"""

import logging
from typing import Optional, Union

import numpy as np

from .core import QuantumRegister
from .engine import GateEngine

logger = logging.getLogger(__name__)

SeedLike = Union[None, int, np.random.Generator]


class Measurement:
    """
    Measures registers of one session.

    Args:
        engine: Engine of the session (its store is measured, and it applies
                the X gates that reset qubits)
        seed: Seed or generator for the outcome sampling
    """

    def __init__(self, engine: GateEngine, seed: SeedLike = None):
        self.engine = engine
        self.rng = np.random.default_rng(seed)

    @property
    def store(self):
        return self.engine.store

    def measure_integer(self, register: QuantumRegister) -> int:
        """
        Measure a register as a little-endian integer.

        Samples from the register's marginal distribution, then zeroes every
        amplitude that disagrees with the outcome and renormalizes the rest.

        Returns:
            The measured value
        """
        probs = self.store.probabilities(register)
        probs = probs / probs.sum()
        outcome = int(self.rng.choice(probs.size, p=probs))
        prob = self.store.collapse(register, outcome)
        logger.debug("measured %s = %d (p=%.4f)", register, outcome, prob)
        return outcome

    def measure_qubit(self, qubit: int) -> int:
        return self.measure_integer(QuantumRegister((qubit,)))

    def reset(self, qubit: int):
        """Measure a qubit and flip it back to |0⟩ if it read 1."""
        if self.measure_qubit(qubit):
            self.engine.x(qubit)

    def reset_register(self, register: QuantumRegister):
        for qubit in register:
            self.reset(qubit)

    def peek(self, register: QuantumRegister, value: Optional[int] = None):
        """
        Probabilities without collapsing.

        Returns:
            The full marginal distribution, or the probability of ``value``
            when one is given
        """
        probs = self.store.probabilities(register)
        if value is None:
            return probs
        return float(probs[value])
