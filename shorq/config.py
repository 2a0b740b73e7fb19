"""
Simulator configuration.

The qubit budget and the measurement seed are the only knobs the algorithms
need; the remaining fields tune numerical housekeeping. Values can be taken
from the environment:

    SHORQ_MAX_QUBITS            qubit budget (default 24)
    SHORQ_SEED                  measurement seed (default: unseeded)
    SHORQ_TOLERANCE             norm / clean-ancilla tolerance (default 1e-9)
    SHORQ_RENORMALIZE_INTERVAL  gates between norm checks (default 256)
"""

import dataclasses
import os
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

DEFAULT_MAX_QUBITS = 24
DEFAULT_TOLERANCE = 1e-9
DEFAULT_RENORMALIZE_INTERVAL = 256

ENV_PREFIX = "SHORQ_"


@dataclass(frozen=True)
class SimulatorConfig:
    """Settings shared by a simulation session."""

    max_qubits: int = DEFAULT_MAX_QUBITS
    seed: Optional[int] = None
    tolerance: float = DEFAULT_TOLERANCE
    renormalize_interval: int = DEFAULT_RENORMALIZE_INTERVAL

    def __post_init__(self):
        if self.max_qubits < 1:
            raise ValueError(f"max_qubits must be positive, got {self.max_qubits}")
        if self.tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}")
        if self.renormalize_interval < 1:
            raise ValueError(
                f"renormalize_interval must be positive, got {self.renormalize_interval}"
            )

    def replace(self, **changes) -> "SimulatorConfig":
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SimulatorConfig":
        """
        Build a config from ``SHORQ_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            Config with unset variables left at their defaults

        Raises:
            ValueError: If a variable is set but cannot be parsed
        """
        if environ is None:
            environ = os.environ

        values = {}
        parsers = {
            "max_qubits": int,
            "seed": int,
            "tolerance": float,
            "renormalize_interval": int,
        }
        for field, parse in parsers.items():
            value = _read(environ, ENV_PREFIX + field.upper(), parse)
            if value is not None:
                values[field] = value
        return cls(**values)


def _read(environ: Mapping[str, str], name: str, parse: Callable):
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return parse(raw)
    except ValueError:
        raise ValueError(f"{name}={raw!r} is not a valid {parse.__name__}") from None
