"""
Exceptions raised by the simulator.

Only genuine faults are exceptions. The routine failure modes of a single
period-finding shot (odd period, trivial gcd) are ordinary results, see
:mod:`shorq.shor`.
"""


class ShorqError(Exception):
    """Base class for all simulator errors."""


class CapacityError(ShorqError):
    """Allocating more qubits than the configured budget allows."""


class NotInvertible(ShorqError, ValueError):
    """A multiplier that is not coprime with the modulus."""


class InvariantViolation(ShorqError):
    """A scratch register was released without being returned to |0...0⟩."""


class SimulationInvariantError(ShorqError):
    """The state vector norm drifted beyond tolerance."""
