import numpy as np
import pytest

from qasampler.core.errors import ConvergenceError
from qasampler.core.ising import IsingModel
from qasampler.solver.annealing import AnnealingConfig, AnnealingSampler
from qasampler.solver.pennylane.simulator import PennyLaneAnnealingSimulator, num_variables
from qasampler.solver.schedules import AnnealingSchedule, get_schedule


def _is_density_matrix(rho):
    return (
        np.allclose(rho, rho.conj().T, atol=1e-8)
        and np.isclose(np.trace(rho).real, 1.0, atol=1e-8)
        and np.all(np.linalg.eigvalsh(rho) > -1e-8)
    )


def test_num_variables_reads_largest_index():
    assert num_variables({(1,): 0.0, (2,): 1.0, (1, 3): 0.5}) == 3
    assert num_variables({}) == 0


def test_empty_model_returns_trivial_state():
    rho = PennyLaneAnnealingSimulator().simulate({}, 1.0, "linear", steps=4)
    assert rho.shape == (1, 1)
    assert rho[0, 0] == 1.0


@pytest.mark.parametrize("order", [1, 2, 4])
def test_fixed_steps_yield_valid_density_matrix(order):
    model = IsingModel(h={1: 0.5, 2: -0.3}, J={(1, 2): 1.0}).merged()
    rho = PennyLaneAnnealingSimulator().simulate(model, 2.0, "linear", steps=8, order=order)

    assert rho.shape == (4, 4)
    assert _is_density_matrix(rho)


def test_slow_anneal_finds_ground_state():
    # E(s) = s_1 is minimized by s_1 = -1, i.e. basis state 0
    model = IsingModel(h={1: 1.0}).merged()
    rho = PennyLaneAnnealingSimulator().simulate(model, 10.0, "linear", steps=200, order=2)

    assert rho[0, 0].real > 0.9


def test_ground_state_of_coupled_pair():
    # Field pins variable 1 to +1, ferromagnetic coupling pulls variable 2 along
    model = IsingModel(h={1: -1.0}, J={(1, 2): -1.0}).merged()
    rho = PennyLaneAnnealingSimulator().simulate(model, 10.0, "circular", steps=200, order=2)

    assert int(np.argmax(np.real(np.diag(rho)))) == 3


def test_adaptive_refinement_converges():
    model = IsingModel(h={1: 1.0}).merged()
    rho = PennyLaneAnnealingSimulator().simulate(
        model, 1.0, "linear", steps=0, order=2, mean_tol=1e-4, max_tol=1e-3, silence=True
    )

    assert _is_density_matrix(rho)


def test_adaptive_refinement_raises_when_tolerance_unreachable():
    model = IsingModel(h={1: 1.0}).merged()

    with pytest.raises(ConvergenceError) as excinfo:
        PennyLaneAnnealingSimulator().simulate(
            model, 1.0, "linear", steps=0, mean_tol=1e-300, max_tol=1e-300, iteration_limit=2
        )

    assert excinfo.value.iteration_limit == 2
    assert excinfo.value.max_delta > 1e-300


def test_custom_schedule_is_accepted():
    schedule = AnnealingSchedule(A=lambda s: 1.0 - s, B=lambda s: s, name="ramp")
    assert get_schedule(schedule) is schedule

    model = IsingModel(h={1: 1.0}).merged()
    rho = PennyLaneAnnealingSimulator().simulate(model, 1.0, schedule, steps=4)
    assert _is_density_matrix(rho)


def test_unknown_schedule_name():
    with pytest.raises(ValueError):
        get_schedule("exponential")


def test_sampler_with_default_simulator_prefers_ground_state():
    sampler = AnnealingSampler(
        IsingModel(h={1: 1.0}),
        AnnealingConfig(num_reads=200, annealing_time=10.0, steps=200, order=2, seed=0),
    )
    result = sampler.sample()

    assert len(result) == 200
    assert result.best.state == (-1,)
    assert result.counts().get("0", 0) > 150
