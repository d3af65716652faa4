import numpy as np
import pytest

from qasampler.core.distribution import cumulative_distribution, num_qubits
from qasampler.core.errors import DimensionError, SimulationError


def _random_density_matrix(n, seed):
    rng = np.random.default_rng(seed)
    dim = 2**n
    A = rng.normal(size=(dim, dim)) + 1j * rng.normal(size=(dim, dim))
    rho = A @ A.conj().T
    return rho / np.trace(rho)


@pytest.mark.parametrize("n", [0, 1, 2, 3, 5])
def test_cumulative_is_non_decreasing_and_ends_at_one(n):
    rho = _random_density_matrix(n, seed=n)
    P = cumulative_distribution(rho, n)

    assert P.shape == (2**n,)
    assert np.all(np.diff(P) >= 0.0)
    assert P[-1] == pytest.approx(1.0, abs=1e-9)
    assert np.allclose(np.diff(P, prepend=0.0), np.real(np.diag(rho)))


def test_negative_noise_is_clamped():
    rho = np.diag([0.5 + 0.0j, -1e-17, 0.5, 0.0])
    P = cumulative_distribution(rho)

    assert list(P) == [0.5, 0.5, 1.0, 1.0]


def test_last_entry_is_exactly_one_despite_rounding():
    rho = np.diag([0.25, 0.25, 0.25, 0.2499999999])
    P = cumulative_distribution(rho, 2)
    assert P[-1] == 1.0


def test_imaginary_part_is_ignored():
    rho = np.array([[0.5 + 0.1j, 0.2j], [-0.2j, 0.5 - 0.1j]])
    assert list(cumulative_distribution(rho, 1)) == [0.5, 1.0]


def test_non_square_matrix_is_rejected():
    with pytest.raises(DimensionError):
        cumulative_distribution(np.zeros((2, 4)))

    with pytest.raises(DimensionError):
        cumulative_distribution(np.zeros(4))


def test_mismatched_qubit_count_is_rejected():
    rho = np.eye(4) / 4
    with pytest.raises(DimensionError):
        cumulative_distribution(rho, 3)


@pytest.mark.parametrize("dim, n", [(1, 0), (2, 1), (8, 3), (1024, 10)])
def test_num_qubits(dim, n):
    assert num_qubits(dim) == n


@pytest.mark.parametrize("dim", [0, 3, 6, 12])
def test_num_qubits_rejects_non_powers_of_two(dim):
    with pytest.raises(DimensionError):
        num_qubits(dim)


@pytest.mark.parametrize("bad", [np.nan, np.inf, -np.inf])
def test_non_finite_diagonal_is_rejected(bad):
    rho = np.diag([bad, 0.5, 0.5, 0.0])

    with pytest.raises(SimulationError):
        cumulative_distribution(rho, 2)


def test_diagonal_without_mass_is_rejected():
    with pytest.raises(SimulationError):
        cumulative_distribution(np.diag([0.0, -1e-17, 0.0, 0.0]))
