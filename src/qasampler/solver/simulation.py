from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np

from qasampler.core.errors import ConvergenceError, SimulationError
from qasampler.solver.schedules import ScheduleLike


_LOG = logging.getLogger(__name__)

IsingInput = Dict[Tuple[int, ...], float]


class Simulator(ABC):
    """
    Simulation primitive evolving a spin register under an annealing schedule.

    Implementations receive the merged Ising model ``{(i,): h_i, (i, j): J_ij}``
    (1-based indices), the annealing time, the schedule and the tuning
    options, and return the final 2^n x 2^n density matrix.
    """

    @abstractmethod
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
        ...


def run_simulation(
    simulator: Simulator,
    ising_model: IsingInput,
    annealing_time: float,
    annealing_schedule: ScheduleLike,
    attributes: Mapping[str, Any],
    silent: bool = False,
) -> Tuple[np.ndarray, float]:
    """
    Call the simulator once and time it.

    Returns the density matrix and the wall-clock duration in seconds.
    ConvergenceError is surfaced as is; any other failure of the
    simulator is wrapped in SimulationError with the original cause.
    """
    start = time.perf_counter()
    try:
        rho = simulator.simulate(
            ising_model,
            annealing_time,
            annealing_schedule,
            silence=silent,
            **attributes,
        )
    except ConvergenceError:
        raise
    except Exception as exc:
        raise SimulationError(
            f"{type(simulator).__name__} failed: {exc}", cause=exc
        ) from exc
    elapsed = time.perf_counter() - start

    _LOG.debug("Simulation finished in %.3fs", elapsed)

    return np.asarray(rho), elapsed
