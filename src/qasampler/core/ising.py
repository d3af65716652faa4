from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from qasampler.core.errors import ModelExtractionError


Index = int                      # 1-based variable index
Coupling = Tuple[Index, Index]   # unordered pair, stored as (min, max)
Spin = int                       # -1 or +1
LinearBiases = Dict[Index, float]
QuadraticBiases = Dict[Coupling, float]


def ising_value(
    h: LinearBiases,
    J: QuadraticBiases,
    spins: Sequence[Spin],
    alpha: float = 1.0,
    beta: float = 0.0,
) -> float:
    """
    Evaluate the Ising objective

        alpha * (sum_i h_i s_i + sum_{(i,j)} J_ij s_i s_j) + beta

    for a spin vector ``spins`` where ``spins[i - 1]`` is the spin of
    variable ``i``.
    """
    energy = 0.0

    for i, bias in h.items():
        energy += bias * spins[i - 1]

    for (i, j), bias in J.items():
        energy += bias * spins[i - 1] * spins[j - 1]

    return float(alpha * energy + beta)


@dataclass
class IsingModel:
    """
    Ising model in the spin domain with affine scale factors.

    The objective represented is

        f(s) = alpha * (sum_i h_i s_i + sum_{i<j} J_ij s_i s_j) + beta

    with s in {-1, +1}^n and 1-based variable indices.

    Attributes
    ----------
    h:
        Linear biases. After construction it covers every index 1..n
        (missing entries are set to 0).
    J:
        Quadratic biases keyed by (i, j) with i < j. Keys given as (j, i)
        are normalized and duplicates are summed.
    alpha:
        Objective scale. A value of -1 encodes a maximization problem
        whose biases were negated.
    beta:
        Objective offset.
    num_vars:
        Number of spin variables. Inferred from the largest index when None.
    """

    h: LinearBiases = field(default_factory=dict)
    J: QuadraticBiases = field(default_factory=dict)
    alpha: float = 1.0
    beta: float = 0.0
    num_vars: Optional[int] = None

    def __post_init__(self) -> None:
        h: LinearBiases = {}
        for i, bias in self.h.items():
            h[int(i)] = float(bias)

        J: QuadraticBiases = {}
        for key, bias in self.J.items():
            if len(key) != 2:
                raise ModelExtractionError(f"Quadratic key {key!r} is not a pair.")
            i, j = int(key[0]), int(key[1])
            if i == j:
                raise ModelExtractionError(
                    f"Self-coupling ({i}, {j}) cannot be expressed as a spin interaction."
                )
            pair = (min(i, j), max(i, j))
            J[pair] = J.get(pair, 0.0) + float(bias)

        indices = set(h) | {i for pair in J for i in pair}
        n = self.num_vars if self.num_vars is not None else max(indices, default=0)

        bad = sorted(i for i in indices if not 1 <= i <= n)
        if bad:
            raise ModelExtractionError(
                f"Variable indices {bad} fall outside the valid range 1..{n}."
            )

        coefficients = list(h.values()) + list(J.values()) + [self.alpha, self.beta]
        if not np.all(np.isfinite(coefficients)):
            raise ModelExtractionError("Ising coefficients must be finite.")

        for i in range(1, n + 1):
            h.setdefault(i, 0.0)

        self.h = dict(sorted(h.items()))
        self.J = dict(sorted(J.items()))
        self.alpha = float(self.alpha)
        self.beta = float(self.beta)
        self.num_vars = int(n)

    def value(self, spins: Sequence[Spin]) -> float:
        """Objective value of a spin vector of length ``num_vars``."""
        if len(spins) != self.num_vars:
            raise ValueError(
                f"Spin vector length {len(spins)} does not match model size {self.num_vars}."
            )
        return ising_value(self.h, self.J, spins, self.alpha, self.beta)

    def merged(self) -> Dict[Tuple[Index, ...], float]:
        """
        Linear and quadratic biases in a single mapping, as consumed by the
        simulation primitive: ``{(i,): h_i, (i, j): J_ij}``.
        """
        model: Dict[Tuple[Index, ...], float] = {(i,): bias for i, bias in self.h.items()}
        model.update(self.J)
        return model

    def biases(self) -> Tuple[LinearBiases, QuadraticBiases, float, float]:
        return dict(self.h), dict(self.J), self.alpha, self.beta


def extract_ising(model: Any, num_vars: Optional[int] = None) -> IsingModel:
    """
    Ising model accessor.

    Accepts an ``IsingModel`` directly or any problem model exposing
    ``to_ising()``; checks the resulting variable count against
    ``num_vars`` when given.
    """
    if isinstance(model, IsingModel):
        ising = model
    elif callable(getattr(model, "to_ising", None)):
        ising = model.to_ising()
        if not isinstance(ising, IsingModel):
            raise ModelExtractionError(
                f"{type(model).__name__}.to_ising() returned {type(ising).__name__}, "
                "expected IsingModel."
            )
    else:
        raise ModelExtractionError(
            f"Cannot extract Ising biases from {type(model).__name__}."
        )

    if num_vars is not None and ising.num_vars != num_vars:
        raise ModelExtractionError(
            f"Model has {ising.num_vars} spin variables, expected {num_vars}."
        )

    return ising
