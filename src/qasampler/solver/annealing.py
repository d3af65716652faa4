from __future__ import annotations

import logging
import numbers
import time
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

import numpy as np

from qasampler.core.distribution import cumulative_distribution
from qasampler.core.ising import IsingModel, extract_ising
from qasampler.core.sampling import sample_states
from qasampler.solver.pennylane.simulator import PennyLaneAnnealingSimulator
from qasampler.solver.schedules import AnnealingSchedule, SCHEDULES, ScheduleLike
from qasampler.solver.simulation import Simulator, run_simulation
from qasampler.solver.types import ORIGIN, SampleSet


_LOG = logging.getLogger(__name__)

# Options forwarded verbatim to the simulation primitive
SIMULATION_ATTRIBUTES = (
    "steps",
    "order",
    "mean_tol",
    "max_tol",
    "iteration_limit",
    "state_steps",
)


@dataclass(frozen=True)
class AnnealingConfig:
    """
    Configuration of one annealing sampler.

    Attributes
    ----------
    num_reads:
        Number of samples returned per invocation.
    annealing_time:
        Duration of the simulated anneal.
    annealing_schedule:
        Schedule name ("linear", "quadratic", "circular") or an
        AnnealingSchedule.
    steps:
        Number of time slices; 0 lets the simulator refine adaptively.
    order:
        Suzuki-Trotter order of each slice (1 or even).
    mean_tol, max_tol:
        Convergence tolerances of the adaptive refinement.
    iteration_limit:
        Maximum number of adaptive refinements.
    state_steps:
        Trotter repetitions per slice; None lets the simulator decide.
    seed:
        Seed of the draw source. None draws fresh OS entropy.
    workers:
        Threads used to draw the reads.
    """
    num_reads: int = 1_000
    annealing_time: float = 1.0
    annealing_schedule: ScheduleLike = "linear"
    steps: int = 0
    order: int = 4
    mean_tol: float = 1e-6
    max_tol: float = 1e-4
    iteration_limit: int = 100
    state_steps: Optional[int] = None
    seed: Optional[int] = None
    workers: int = 1

    def __post_init__(self) -> None:
        for name in _INTEGER_FIELDS:
            value = getattr(self, name)
            if value is None and name in _OPTIONAL_FIELDS:
                continue
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ValueError(f"{name} must be an integer, got {value!r}.")

        if self.num_reads < 1:
            raise ValueError(f"num_reads must be positive, got {self.num_reads}.")
        if not self.annealing_time > 0:
            raise ValueError(f"annealing_time must be positive, got {self.annealing_time}.")
        if not (
            isinstance(self.annealing_schedule, AnnealingSchedule)
            or self.annealing_schedule in SCHEDULES
        ):
            raise ValueError(
                f"Unknown annealing schedule {self.annealing_schedule!r}; "
                f"expected one of {sorted(SCHEDULES)} or an AnnealingSchedule."
            )
        if self.steps < 0:
            raise ValueError(f"steps must be non-negative, got {self.steps}.")
        if self.order < 1 or (self.order > 1 and self.order % 2):
            raise ValueError(f"order must be 1 or an even number, got {self.order}.")
        if not (self.mean_tol > 0 and self.max_tol > 0):
            raise ValueError("mean_tol and max_tol must be positive.")
        if self.iteration_limit < 1:
            raise ValueError(f"iteration_limit must be positive, got {self.iteration_limit}.")
        if self.state_steps is not None and self.state_steps < 1:
            raise ValueError(f"state_steps must be positive or None, got {self.state_steps}.")
        if self.workers < 1:
            raise ValueError(f"workers must be positive, got {self.workers}.")

    def simulation_attributes(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in SIMULATION_ATTRIBUTES}


_INTEGER_FIELDS = ("num_reads", "steps", "order", "iteration_limit", "state_steps", "seed", "workers")
_OPTIONAL_FIELDS = ("state_steps", "seed")


class AnnealingSampler:
    """
    Sampler turning a simulated anneal into ranked spin assignments.

    Responsibilities
    ----------------
    - Hold the problem model and the annealing configuration.
    - Extract the Ising form (h, J, alpha, beta) of the model.
    - Run the simulation primitive once per invocation.
    - Draw ``num_reads`` basis states from the final density matrix and
      score them with the original objective.
    """

    def __init__(
        self,
        model: Any,
        config: Optional[AnnealingConfig] = None,
        simulator: Optional[Simulator] = None,
        silent: bool = False,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.model = model
        self.config = config or AnnealingConfig()
        self.simulator = simulator or PennyLaneAnnealingSimulator()
        self.silent = silent
        self._rng = rng

    # ---------- Model / attributes ----------

    @property
    def num_variables(self) -> int:
        """
        Variable count of the model. Read from its ``num_vars`` when it has
        one, so only models without it pay for an Ising extraction.
        """
        n = self._declared_num_vars()
        if n is not None:
            return n
        return extract_ising(self.model).num_vars

    def _declared_num_vars(self) -> Optional[int]:
        n = getattr(self.model, "num_vars", None)
        if isinstance(n, numbers.Integral) and not isinstance(n, bool):
            return int(n)
        return None

    def ising(self) -> IsingModel:
        return extract_ising(self.model, self._declared_num_vars())

    def get_attribute(self, name: str) -> Any:
        if name not in _CONFIG_FIELDS:
            raise KeyError(f"Unknown sampler attribute {name!r}.")
        return getattr(self.config, name)

    def set_attribute(self, name: str, value: Any) -> None:
        if name not in _CONFIG_FIELDS:
            raise KeyError(f"Unknown sampler attribute {name!r}.")
        self.config = replace(self.config, **{name: value})

    def attributes(self) -> Dict[str, Any]:
        return {name: getattr(self.config, name) for name in _CONFIG_FIELDS}

    def _draw_source(self) -> np.random.Generator:
        if self._rng is not None:
            return self._rng
        return np.random.default_rng(self.config.seed)

    # ---------- Main interface ----------

    def sample(self) -> SampleSet:
        cfg = self.config
        ising = self.ising()
        n = ising.num_vars

        rho, simulation_time = run_simulation(
            self.simulator,
            ising.merged(),
            cfg.annealing_time,
            cfg.annealing_schedule,
            cfg.simulation_attributes(),
            silent=self.silent,
        )

        P = cumulative_distribution(rho, n)

        start = time.perf_counter()
        samples = sample_states(
            P, ising, cfg.num_reads, rng=self._draw_source(), workers=cfg.workers
        )
        sampling_time = time.perf_counter() - start

        metadata = {
            "origin": ORIGIN,
            "time": {
                "simulation": simulation_time,
                "sampling": sampling_time,
                "effective": simulation_time + sampling_time,
            },
        }

        _LOG.info(
            "Sampled %d reads over %d variables (simulation %.3fs, sampling %.3fs)",
            len(samples), n, simulation_time, sampling_time,
        )

        return SampleSet(samples, metadata, sense="min" if ising.alpha >= 0 else "max")


_CONFIG_FIELDS = tuple(f.name for f in fields(AnnealingConfig))


def sample(sampler: AnnealingSampler) -> SampleSet:
    """Run the full annealing pipeline of ``sampler`` and return its samples."""
    return sampler.sample()


# ----------------------------------------------------------------------
# Example usage
if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    from qasampler.core.qubo import QUBOModel

    # Ferromagnetic pair with a field favouring x_1 = 1
    qubo = QUBOModel.from_arrays(
        Q=[[0.0, -2.0], [0.0, 0.0]],
        c=[-1.0, 1.0],
    )

    sampler = AnnealingSampler(
        qubo,
        AnnealingConfig(num_reads=100, annealing_time=5.0, seed=42),
    )
    result = sample(sampler)

    print(f"Collected {len(result)} samples")
    for bits, count in result.counts().items():
        print(f"{bits}: {count}")
    print(f"Best sample {result.best.state} value={result.best.value}")
    print(f"Assignment {qubo.assignment(result.best.state)}")
