"""
Shor's factoring algorithm.

One shot of the algorithm is a :class:`ShorPipeline`: given N and a guess
coprime with N it estimates a frequency of guess^x mod N on the simulator,
recovers a period candidate with continued fractions and tries to turn it
into a factor. The outcome is a :class:`FactorResult`; an odd period or a
trivial gcd is an ordinary outcome that calls for another guess, not an
error.

:func:`factorize` is the retry loop around single shots, with the usual
classical pre-processing (even N, perfect powers, lucky gcds).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional

import numpy as np

from .config import SimulatorConfig
from .core import AmplitudeStore
from .engine import GateEngine
from .errors import CapacityError, NotInvertible
from .measurement import Measurement, SeedLike
from .modular import mod_exp
from .qft import QFT_inverse
from .utils import find_period_candidate, gcd, perfect_power_base, register_width

logger = logging.getLogger(__name__)


# =============================================================================
# Results
# =============================================================================

class ClassicalFraction(NamedTuple):
    """A measured or approximated rational numerator/denominator."""

    numerator: int
    denominator: int

    def __str__(self):
        return f"{self.numerator}/{self.denominator}"


@dataclass(frozen=True)
class FactorResult:
    """Outcome of one factoring attempt."""

    @property
    def found(self) -> bool:
        return False


@dataclass(frozen=True)
class Factor(FactorResult):
    """A non-trivial factor of N."""

    value: int

    @property
    def found(self) -> bool:
        return True


@dataclass(frozen=True)
class PeriodOdd(FactorResult):
    """The period candidate is odd; guess^(r/2) does not exist."""

    period: Optional[int] = None


@dataclass(frozen=True)
class TrivialGCD(FactorResult):
    """gcd(guess^(r/2) - 1, N) is 1 or N."""

    period: Optional[int] = None


@dataclass(frozen=True)
class NotFound(FactorResult):
    """No usable period, or every attempt failed."""


class PipelineState(Enum):
    INIT = "init"
    SUPERPOSITION = "superposition"
    EXPONENTIATED = "exponentiated"
    FOURIER_TRANSFORMED = "fourier_transformed"
    MEASURED = "measured"
    CLASSICAL_POST_PROCESS = "classical_post_process"
    FACTORED = "factored"
    RETRY = "retry"
    FAILED = "failed"


# =============================================================================
# Classical parts
# =============================================================================

def required_qubits(N: int) -> int:
    """
    Peak qubit count of one shot for N.

    2n input + n output + n multiplication scratch + one carry + one
    AND-of-controls qubit, with n = ceil(log2 N).
    """
    return 4 * register_width(N) + 2


def find_period(N: int, guess: int) -> int:
    """
    Period of guess^x mod N by brute force.

    Linear search over exponents; a ground truth for checking the quantum
    pipeline on small N.

    Raises:
        NotInvertible: If guess and N are not coprime (no period exists)
    """
    if gcd(guess, N) != 1:
        raise NotInvertible(f"{guess} and {N} are not coprime")

    r = 1
    x = guess % N
    while x != 1 % N:
        x = (x * guess) % N
        r += 1
    return r


def find_factor(N: int, guess: int, period: int) -> FactorResult:
    """
    Turn a period candidate into a factor.

    Args:
        N: Number to factor
        guess: Base the period belongs to
        period: Period candidate r

    Returns:
        Factor(f) with f = gcd(guess^(r/2) - 1, N) if f is non-trivial,
        PeriodOdd for odd r, TrivialGCD for f in {1, N}, NotFound for r < 1
    """
    if period < 1:
        return NotFound()
    if period % 2 == 1:
        return PeriodOdd(period)

    x = pow(guess, period // 2, N)
    f = gcd(x - 1, N)
    if f == 1 or f == N:
        return TrivialGCD(period)
    return Factor(f)


# =============================================================================
# Quantum period finding
# =============================================================================

class ShorPipeline:
    """
    One shot of Shor's algorithm on a fresh simulation session.

    The pipeline walks Init → Superposition → Exponentiated →
    FourierTransformed → Measured → ClassicalPostProcess and ends in
    Factored, Retry or Failed. It never loops over guesses.

    Args:
        number_to_factor: N > 1
        guess: Base coprime with N
        config: Qubit budget, seed and tolerances
        seed: Seed or generator overriding ``config.seed``

    Raises:
        NotInvertible: If guess and N are not coprime
        CapacityError: If one shot for N needs more qubits than the budget
    """

    def __init__(self, number_to_factor: int, guess: int,
                 config: Optional[SimulatorConfig] = None, seed: SeedLike = None):
        if number_to_factor < 2:
            raise ValueError(f"Number to factor must be at least 2, got {number_to_factor}")
        if gcd(guess, number_to_factor) != 1:
            raise NotInvertible(f"Guess {guess} shares a factor with {number_to_factor}")

        self.config = config or SimulatorConfig.from_env()
        needed = required_qubits(number_to_factor)
        if needed > self.config.max_qubits:
            raise CapacityError(
                f"Factoring {number_to_factor} needs {needed} qubits, "
                f"budget is {self.config.max_qubits}"
            )

        self.number_to_factor = number_to_factor
        self.guess = guess
        self.width = register_width(number_to_factor)
        self.seed = self.config.seed if seed is None else seed

        self.state = PipelineState.INIT
        self.fraction: Optional[ClassicalFraction] = None
        self.convergent: Optional[ClassicalFraction] = None
        self.result: Optional[FactorResult] = None

    def _enter(self, state: PipelineState):
        logger.info("N=%d guess=%d: %s -> %s", self.number_to_factor, self.guess,
                    self.state.value, state.value)
        self.state = state

    def find_approx_period(self) -> ClassicalFraction:
        """
        Quantum part: measure an estimate of s/r as estFreq / 2^(2n).

        Returns:
            (estFreq, 2^(2n))
        """
        N, n = self.number_to_factor, self.width

        store = AmplitudeStore.from_config(self.config)
        engine = GateEngine(store)
        measurement = Measurement(engine, seed=self.seed)

        input_register = store.allocate(2 * n)
        output_register = store.allocate(n)

        engine.hadamard_all(input_register)
        self._enter(PipelineState.SUPERPOSITION)

        mod_exp(engine, self.guess, N, input_register, output_register)
        self._enter(PipelineState.EXPONENTIATED)

        QFT_inverse(engine, input_register)
        self._enter(PipelineState.FOURIER_TRANSFORMED)

        estimate = measurement.measure_integer(input_register)
        measurement.reset_register(input_register)
        measurement.reset_register(output_register)
        store.release(output_register)
        store.release(input_register)

        self.fraction = ClassicalFraction(estimate, 2 ** (2 * n))
        self._enter(PipelineState.MEASURED)
        logger.info("measured frequency %s", self.fraction)
        return self.fraction

    def post_process(self, fraction: ClassicalFraction) -> FactorResult:
        """Classical part: continued fractions, then gcd."""
        self._enter(PipelineState.CLASSICAL_POST_PROCESS)
        self.convergent = ClassicalFraction(*find_period_candidate(
            fraction.numerator, fraction.denominator, self.number_to_factor))
        period = self.convergent.denominator
        logger.info("convergent %s, period candidate %d", self.convergent, period)

        self.result = find_factor(self.number_to_factor, self.guess, period)
        if isinstance(self.result, Factor):
            self._enter(PipelineState.FACTORED)
        elif isinstance(self.result, NotFound):
            self._enter(PipelineState.FAILED)
        else:
            self._enter(PipelineState.RETRY)
        return self.result

    def run(self) -> FactorResult:
        if self.state is not PipelineState.INIT:
            raise RuntimeError("A pipeline runs once; create a new one for another shot")
        return self.post_process(self.find_approx_period())


def find_approx_period(N: int, guess: int, config: Optional[SimulatorConfig] = None,
                       seed: SeedLike = None) -> ClassicalFraction:
    """Run the quantum half of one shot; see ShorPipeline.find_approx_period."""
    return ShorPipeline(N, guess, config=config, seed=seed).find_approx_period()


# =============================================================================
# Full factoring loop
# =============================================================================

def factorize(N: int, attempts: int = 10, config: Optional[SimulatorConfig] = None,
              seed: SeedLike = None) -> FactorResult:
    """
    Find a non-trivial factor of N, retrying with fresh guesses.

    Args:
        N: Number to factor (composite; primes end in NotFound)
        attempts: Maximum number of quantum shots
        config: Simulator settings shared by all shots
        seed: Seed or generator for guesses and measurements

    Returns:
        Factor(f) on success, NotFound once the attempts are used up
    """
    if N < 4:
        return NotFound()
    if N % 2 == 0:
        return Factor(2)

    base = perfect_power_base(N)
    if base is not None:
        return Factor(base)

    config = config or SimulatorConfig.from_env()
    rng = np.random.default_rng(config.seed if seed is None else seed)

    for attempt in range(1, attempts + 1):
        guess = int(rng.integers(2, N))
        g = gcd(guess, N)
        if g > 1:
            logger.info("attempt %d: guess %d shares factor %d with %d", attempt, guess, g, N)
            return Factor(g)

        logger.info("attempt %d/%d: guess %d", attempt, attempts, guess)
        result = ShorPipeline(N, guess, config=config, seed=rng).run()
        if result.found:
            return result

    logger.warning("no factor of %d found in %d attempts", N, attempts)
    return NotFound()
