from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pennylane as qml

from qasampler.core.errors import ConvergenceError
from qasampler.solver.schedules import AnnealingSchedule, ScheduleLike, get_schedule
from qasampler.solver.simulation import IsingInput, Simulator


_LOG = logging.getLogger(__name__)

INITIAL_STEPS = 2


def num_variables(ising_model: IsingInput) -> int:
    return max((i for key in ising_model for i in key), default=0)


class PennyLaneAnnealingSimulator(Simulator):
    """
    Closed-system annealing simulation on a PennyLane device.

    The register starts in |+>^n, the ground state of the driver
    -sum_w X_w, and evolves under

        H(s) = -A(s) sum_w X_w + B(s) H_problem,    s = t / annealing_time

    approximated by piecewise-constant slices, each one applied as a
    Suzuki-Trotter product of order ``order``.

    Variable i lives on wire i - 1. The spin of a variable is +1 for bit 1,
    which is the -1 eigenstate of PauliZ, so s_i = -Z_{i-1} and

        H_problem = sum_i h_i (-Z_{i-1}) + sum_{i<j} J_ij Z_{i-1} Z_{j-1}
    """

    def __init__(self, device_name: str = "default.qubit") -> None:
        self.device_name = device_name

    # ---------- Hamiltonian ----------

    @staticmethod
    def _hamiltonian(
        ising_model: IsingInput,
        schedule: AnnealingSchedule,
        s: float,
        n: int,
    ) -> qml.Hamiltonian:
        a = float(schedule.A(s))
        b = float(schedule.B(s))

        coeffs: list[float] = []
        ops: list[qml.operation.Operator] = []

        # Driver -A(s) X_w
        if abs(a) >= 1e-12:
            for w in range(n):
                coeffs.append(-a)
                ops.append(qml.PauliX(w))

        for key, bias in ising_model.items():
            coef = b * bias
            if abs(coef) < 1e-12:
                continue
            if len(key) == 1:
                coeffs.append(-coef)
                ops.append(qml.PauliZ(key[0] - 1))
            else:
                i, j = key
                coeffs.append(coef)
                ops.append(qml.PauliZ(i - 1) @ qml.PauliZ(j - 1))

        return qml.Hamiltonian(coeffs, ops)

    # ---------- Evolution ----------

    def _evolve(
        self,
        ising_model: IsingInput,
        annealing_time: float,
        schedule: AnnealingSchedule,
        n: int,
        steps: int,
        order: int,
        state_steps: Optional[int],
    ) -> np.ndarray:
        dev = qml.device(self.device_name, wires=n)
        dt = annealing_time / steps
        hamiltonians = [
            self._hamiltonian(ising_model, schedule, (k + 0.5) / steps, n)
            for k in range(steps)
        ]
        repetitions = state_steps or 1

        @qml.qnode(dev)
        def circuit():
            for w in range(n):
                qml.Hadamard(wires=w)

            for H in hamiltonians:
                if len(H.ops) == 0:
                    continue
                if len(H.ops) == 1 or order == 1:
                    qml.ApproxTimeEvolution(H, dt, repetitions)
                else:
                    qml.TrotterProduct(H, dt, n=repetitions, order=order)

            return qml.density_matrix(wires=list(range(n)))

        return np.asarray(circuit(), dtype=complex)

    def simulate(
        self,
        ising_model: IsingInput,
        annealing_time: float,
        annealing_schedule: ScheduleLike,
        *,
        silence: bool = False,
        steps: int = 0,
        order: int = 4,
        mean_tol: float = 1e-6,
        max_tol: float = 1e-4,
        iteration_limit: int = 100,
        state_steps: Optional[int] = None,
    ) -> np.ndarray:
        """
        Return the density matrix at the end of the anneal.

        ``steps > 0`` runs exactly that many slices. ``steps == 0`` starts
        from two slices and doubles them until the mean and max absolute
        change of the density matrix fall within ``mean_tol`` and
        ``max_tol``, raising ConvergenceError after ``iteration_limit``
        doublings.
        """
        schedule = get_schedule(annealing_schedule)
        n = num_variables(ising_model)

        if n == 0:
            return np.ones((1, 1), dtype=complex)

        if steps > 0:
            return self._evolve(ising_model, annealing_time, schedule, n, steps, order, state_steps)

        current = INITIAL_STEPS
        rho_prev = self._evolve(ising_model, annealing_time, schedule, n, current, order, state_steps)
        mean_delta = max_delta = float("inf")

        for iteration in range(1, iteration_limit + 1):
            current *= 2
            rho = self._evolve(ising_model, annealing_time, schedule, n, current, order, state_steps)

            delta = np.abs(rho - rho_prev)
            mean_delta = float(delta.mean())
            max_delta = float(delta.max())

            if not silence:
                _LOG.info(
                    "iteration %d: steps=%d mean_delta=%.3e max_delta=%.3e",
                    iteration, current, mean_delta, max_delta,
                )

            if mean_delta <= mean_tol and max_delta <= max_tol:
                return rho

            rho_prev = rho

        raise ConvergenceError(
            f"Tolerances mean_tol={mean_tol}, max_tol={max_tol} not met after "
            f"{iteration_limit} iterations ({current} steps).",
            iteration_limit=iteration_limit,
            mean_delta=mean_delta,
            max_delta=max_delta,
        )
