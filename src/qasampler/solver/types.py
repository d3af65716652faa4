# solver/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Tuple

import numpy as np


SpinState = Tuple[int, ...]
Energy = float
Counts = Dict[str, int]
SamplerMetadata = Mapping[str, Any]

ORIGIN = "Quantum Annealing Simulation"


@dataclass(frozen=True)
class Sample:
    """
    One measured assignment.

    Attributes
    ----------
    state:
        Spin vector, ``state[i - 1]`` being the spin (-1 or +1) of variable i.
    value:
        Objective value of ``state`` in the original problem's convention.
    """
    state: SpinState
    value: Energy

    def bitstring(self) -> str:
        """Bit 1 for spin +1, variable 1 first."""
        return "".join("1" if s == 1 else "0" for s in self.state)


def _freeze(metadata: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(
        {
            key: _freeze(value) if isinstance(value, Mapping) else value
            for key, value in metadata.items()
        }
    )


@dataclass(frozen=True)
class SampleSet:
    """
    Result of one sampling invocation.

    Attributes
    ----------
    samples:
        Samples in draw order, one per read.
    metadata:
        Read-only run information:
            - "origin": where the samples come from,
            - "time": {"simulation", "sampling", "effective"} wall-times
              in seconds.
    sense:
        "min" or "max"; decides which samples `best` and `ranked` favour.
    """
    samples: Tuple[Sample, ...]
    metadata: SamplerMetadata = field(default_factory=dict)
    sense: str = "min"

    def __post_init__(self) -> None:
        if self.sense not in ("min", "max"):
            raise ValueError(f"sense must be 'min' or 'max', got {self.sense!r}.")
        object.__setattr__(self, "samples", tuple(self.samples))
        object.__setattr__(self, "metadata", _freeze(self.metadata))

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self.samples)

    def __getitem__(self, index: int) -> Sample:
        return self.samples[index]

    @property
    def best(self) -> Sample:
        """Sample with the best objective value for `sense` (first one on ties)."""
        if not self.samples:
            raise ValueError("Empty sample set has no best sample.")
        return self.ranked()[0]

    def ranked(self) -> List[Sample]:
        return sorted(self.samples, key=lambda s: s.value, reverse=self.sense == "max")

    def values(self) -> np.ndarray:
        return np.array([s.value for s in self.samples], dtype=float)

    def counts(self) -> Counts:
        """Occurrences per bitstring, in order of first appearance."""
        counts: Counts = {}
        for s in self.samples:
            key = s.bitstring()
            counts[key] = counts.get(key, 0) + 1
        return counts
