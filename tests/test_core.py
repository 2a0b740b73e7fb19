"""Tests for the amplitude store, measurement and configuration."""

import numpy as np
import pytest

from shorq import (
    AmplitudeStore, GateEngine, Measurement, QuantumRegister, SimulatorConfig,
    CapacityError, InvariantViolation, SimulationInvariantError,
)


class TestAllocation:
    """Tests for register lifetime."""

    def test_new_register_is_zero(self, store):
        reg = store.allocate(3)
        assert len(reg) == 3
        assert store.num_qubits == 3
        assert store.is_clean(reg)
        assert np.allclose(store.amplitudes(), np.eye(8)[0])

    def test_allocation_is_tensor_product(self, store, engine):
        """Growing the state keeps existing amplitudes at their indices."""
        a = store.allocate(1)
        engine.ry(0.8, a[0])
        before = store.amplitudes()
        store.allocate(2)
        after = store.amplitudes()
        assert after.size == 8
        assert np.allclose(after[:2], before)
        assert np.allclose(after[2:], 0)

    def test_registers_do_not_overlap(self, store):
        a = store.allocate(2)
        b = store.allocate(3)
        assert not set(a) & set(b)

    def test_capacity_error(self):
        store = AmplitudeStore(max_qubits=4)
        store.allocate(3)
        with pytest.raises(CapacityError):
            store.allocate(2)
        assert store.num_qubits == 3

    def test_negative_size_rejected(self, store):
        with pytest.raises(ValueError):
            store.allocate(-1)

    def test_release_clean_register(self, store, engine):
        a = store.allocate(1)
        b = store.allocate(2)
        engine.h(a[0])
        store.release(b)
        assert store.num_qubits == 1
        assert np.allclose(store.amplitudes(), np.array([1, 1]) / np.sqrt(2))

    def test_release_from_the_middle_keeps_other_qubits(self, store, engine, measurement):
        low = store.allocate(2)
        middle = store.allocate(2)
        high = store.allocate(2)
        engine.prepare(low, 2)
        engine.prepare(high, 3)
        store.release(middle)
        assert store.num_qubits == 4
        assert measurement.measure_integer(low) == 2
        assert measurement.measure_integer(high) == 3

    def test_release_dirty_register_raises(self, store, engine):
        a = store.allocate(2)
        engine.h(a[1])
        with pytest.raises(InvariantViolation):
            store.release(a)

    def test_release_after_reset(self, store, engine, measurement):
        a = store.allocate(3)
        engine.hadamard_all(a)
        measurement.reset_register(a)
        store.release(a)
        assert store.num_qubits == 0

    def test_released_qubits_cannot_be_used(self, store, engine):
        a = store.allocate(1)
        store.release(a)
        with pytest.raises(ValueError):
            engine.x(a[0])

    def test_borrowed_register_is_released(self, store, engine):
        with store.borrowed(2) as scratch:
            assert store.num_qubits == 2
            engine.x(scratch[0])
            engine.x(scratch[0])
        assert store.num_qubits == 0

    def test_borrowed_register_left_dirty_raises(self, store, engine):
        with pytest.raises(InvariantViolation):
            with store.borrowed(1) as scratch:
                engine.x(scratch[0])


class TestRegister:
    """Tests for QuantumRegister views."""

    def test_indexing_and_slicing(self):
        reg = QuantumRegister((4, 5, 6, 7))
        assert reg[0] == 4
        assert reg[-1] == 7
        assert reg[1:3] == QuantumRegister((5, 6))

    def test_concatenation(self):
        assert QuantumRegister((1,)) + QuantumRegister((2, 3)) == QuantumRegister((1, 2, 3))


class TestProbabilities:
    """Tests for marginal distributions."""

    def test_marginal_of_definite_value(self, store, engine):
        a = store.allocate(3)
        b = store.allocate(2)
        engine.prepare(a, 5)
        engine.prepare(b, 2)
        assert np.allclose(store.probabilities(a), np.eye(8)[5])
        assert np.allclose(store.probabilities(b), np.eye(4)[2])

    def test_marginal_uses_register_order(self, store, engine):
        """The first qubit of a register is its least significant bit."""
        q0, q1 = store.allocate(2)
        engine.x(q1)
        reversed_register = QuantumRegister((q1, q0))
        assert np.allclose(store.probabilities(reversed_register), [0, 1, 0, 0])

    def test_marginal_sums_over_other_qubits(self, store, engine):
        a = store.allocate(1)
        b = store.allocate(1)
        engine.h(a[0])
        engine.cnot(a[0], b[0])
        assert np.allclose(store.probabilities(b), [0.5, 0.5])
        assert np.isclose(store.probabilities(a + b).sum(), 1.0)


class TestRenormalization:
    """Tests for norm drift handling."""

    def test_small_drift_is_corrected(self, engine):
        store = engine.store
        store.allocate(2)
        store._amplitudes *= 1 + 1e-11
        store.renormalize()
        assert np.isclose(store.norm(), 1.0, atol=1e-14)

    def test_large_drift_raises(self, engine):
        store = engine.store
        store.allocate(1)
        store._amplitudes *= 1.01
        with pytest.raises(SimulationInvariantError):
            store.renormalize()

    def test_periodic_check_runs_during_gates(self):
        store = AmplitudeStore(renormalize_interval=4)
        engine = GateEngine(store)
        q = store.allocate(1)
        store._amplitudes *= 2
        engine.h(q[0])
        engine.h(q[0])
        engine.h(q[0])
        with pytest.raises(SimulationInvariantError):
            engine.h(q[0])

    def test_norm_preserved_by_long_sequence(self, store, engine):
        reg = store.allocate(4)
        for step in range(300):
            engine.ry(0.1 * step, reg[step % 4])
            engine.cnot(reg[step % 4], reg[(step + 1) % 4])
        assert np.isclose(store.norm(), 1.0, atol=1e-9)


class TestMeasurement:
    """Tests for measurement."""

    def test_measurement_collapses_state(self, store, engine, measurement):
        """Measurement should collapse superposition to basis state."""
        q = store.allocate(1)
        engine.h(q[0])
        result = measurement.measure_qubit(q[0])
        assert result in (0, 1)
        assert np.allclose(store.probabilities(q), np.eye(2)[result])

    def test_collapse_of_entangled_partner(self, store, engine, measurement):
        a, b = store.allocate(2)
        engine.h(a)
        engine.cnot(a, b)
        first = measurement.measure_qubit(a)
        assert measurement.measure_qubit(b) == first

    def test_collapse_renormalizes(self, store, engine, measurement):
        reg = store.allocate(3)
        engine.hadamard_all(reg)
        measurement.measure_integer(reg[:2])
        assert np.isclose(store.norm(), 1.0)
        assert np.allclose(store.probabilities(reg[2:]), [0.5, 0.5])

    def test_measurement_statistics(self, store, engine):
        """Measurement statistics should match probabilities."""
        measurement = Measurement(engine, seed=7)
        q = store.allocate(1)
        counts = [0, 0]
        n_trials = 1000
        for _ in range(n_trials):
            engine.h(q[0])
            result = measurement.measure_qubit(q[0])
            counts[result] += 1
            measurement.reset(q[0])

        # Should be approximately 50/50, allow 10% margin
        assert 0.4 < counts[0] / n_trials < 0.6
        assert 0.4 < counts[1] / n_trials < 0.6

    def test_same_seed_same_outcomes(self):
        outcomes = []
        for _ in range(2):
            store = AmplitudeStore()
            engine = GateEngine(store)
            measurement = Measurement(engine, seed=1234)
            reg = store.allocate(4)
            run = []
            for _ in range(20):
                engine.hadamard_all(reg)
                run.append(measurement.measure_integer(reg))
                measurement.reset_register(reg)
            outcomes.append(run)
        assert outcomes[0] == outcomes[1]

    def test_reset_returns_qubit_to_zero(self, store, engine, measurement):
        q = store.allocate(1)
        engine.x(q[0])
        measurement.reset(q[0])
        assert store.is_clean(q)

    def test_peek_does_not_collapse(self, store, engine, measurement):
        reg = store.allocate(2)
        engine.hadamard_all(reg)
        assert np.isclose(measurement.peek(reg, 3), 0.25)
        assert np.allclose(store.probabilities(reg), 0.25)


class TestConfig:
    """Tests for SimulatorConfig."""

    def test_defaults(self):
        config = SimulatorConfig()
        assert config.max_qubits == 24
        assert config.seed is None
        assert config.tolerance == 1e-9

    def test_from_env(self):
        config = SimulatorConfig.from_env({
            "SHORQ_MAX_QUBITS": "20",
            "SHORQ_SEED": "5",
            "SHORQ_TOLERANCE": "1e-8",
        })
        assert config.max_qubits == 20
        assert config.seed == 5
        assert config.tolerance == 1e-8
        assert config.renormalize_interval == 256

    def test_from_env_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("SHORQ_MAX_QUBITS", "18")
        monkeypatch.delenv("SHORQ_SEED", raising=False)
        assert SimulatorConfig.from_env().max_qubits == 18

    def test_from_env_rejects_garbage(self):
        with pytest.raises(ValueError, match="SHORQ_SEED"):
            SimulatorConfig.from_env({"SHORQ_SEED": "abc"})

    @pytest.mark.parametrize(
        "field,value",
        [("max_qubits", 0), ("tolerance", 0.0), ("renormalize_interval", 0)],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValueError):
            SimulatorConfig(**{field: value})

    def test_store_from_config(self):
        config = SimulatorConfig(max_qubits=3)
        store = AmplitudeStore.from_config(config)
        with pytest.raises(CapacityError):
            store.allocate(4)

    def test_replace(self):
        assert SimulatorConfig().replace(seed=3).seed == 3
