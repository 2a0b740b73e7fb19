"""
Shorq - Shor's algorithm on a state-vector simulator in Python.

This package provides a small dense state-vector simulator and the circuits
needed to run Shor's factoring algorithm end to end on it.

Modules:
    gates       - Gate matrices, Gate values and the controlled() combinator
    core        - Amplitude store and quantum registers
    engine      - Gate application with positive and negative controls
    measurement - Seeded Born-rule measurement with collapse
    qft         - Quantum Fourier Transform
    draper      - Fourier-basis constant adder
    modular     - Modular addition, multiplication and exponentiation
    shor        - Period finding pipeline and factoring
    utils       - Continued fractions, number theory, state comparison

Quick Start:
    >>> from shorq import *
    >>> store = AmplitudeStore()
    >>> engine = GateEngine(store)
    >>> q = store.allocate(1)
    >>> engine.apply(H(q[0]))
    >>> Measurement(engine, seed=1).measure_integer(q)  # 0 or 1, 50% each
"""

# Errors and configuration
from .errors import (
    ShorqError,
    CapacityError,
    NotInvertible,
    InvariantViolation,
    SimulationInvariantError,
)
from .config import SimulatorConfig

# Gates
from .gates import (
    Gate,
    Control,
    controlled,
    negated,
    X,
    Y,
    Z,
    H,
    S,
    T,
    P,
    Rx,
    Ry,
    Rz,
    CNOT,
    CCNOT,
    TOFF,
    MCX,
    SWAP,
    CP,
    controlled_phase,
)

# Simulation core
from .core import AmplitudeStore, QuantumRegister
from .engine import GateEngine
from .measurement import Measurement

# QFT and arithmetic
from .qft import QFT, QFT_inverse
from .draper import add_constant, subtract_constant, phi_add_constant
from .modular import (
    modular_add_constant,
    modular_subtract_constant,
    modular_multiply_by_constant,
    mod_exp,
)

# Utilities
from .utils import (
    allclose_up_to_global_phase,
    state_fidelity,
    gcd,
    is_coprime,
    mod_inverse,
    register_width,
    continued_fraction_expansion,
    convergents,
    find_period_candidate,
    int_to_bits,
    bits_to_int,
)

# Shor's algorithm
from .shor import (
    ClassicalFraction,
    FactorResult,
    Factor,
    PeriodOdd,
    TrivialGCD,
    NotFound,
    PipelineState,
    ShorPipeline,
    find_approx_period,
    find_factor,
    find_period,
    factorize,
    required_qubits,
)

__version__ = "0.1.0"
__all__ = [
    # Errors and config
    "ShorqError",
    "CapacityError",
    "NotInvertible",
    "InvariantViolation",
    "SimulationInvariantError",
    "SimulatorConfig",
    # Gates
    "Gate",
    "Control",
    "controlled",
    "negated",
    "X",
    "Y",
    "Z",
    "H",
    "S",
    "T",
    "P",
    "Rx",
    "Ry",
    "Rz",
    "CNOT",
    "CCNOT",
    "TOFF",
    "MCX",
    "SWAP",
    "CP",
    "controlled_phase",
    # Core
    "AmplitudeStore",
    "QuantumRegister",
    "GateEngine",
    "Measurement",
    # QFT and arithmetic
    "QFT",
    "QFT_inverse",
    "add_constant",
    "subtract_constant",
    "phi_add_constant",
    "modular_add_constant",
    "modular_subtract_constant",
    "modular_multiply_by_constant",
    "mod_exp",
    # Utils
    "allclose_up_to_global_phase",
    "state_fidelity",
    "gcd",
    "is_coprime",
    "mod_inverse",
    "register_width",
    "continued_fraction_expansion",
    "convergents",
    "find_period_candidate",
    "int_to_bits",
    "bits_to_int",
    # Shor
    "ClassicalFraction",
    "FactorResult",
    "Factor",
    "PeriodOdd",
    "TrivialGCD",
    "NotFound",
    "PipelineState",
    "ShorPipeline",
    "find_approx_period",
    "find_factor",
    "find_period",
    "factorize",
    "required_qubits",
]
