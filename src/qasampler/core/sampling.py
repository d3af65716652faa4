"""
Inverse-transform sampling over the 2^n basis states of a register.

Basis-state index k is decoded most-significant-bit first: variable 1 is
the leading bit of k, variable n the trailing one. Bit b maps to spin
2b - 1 (0 -> -1, 1 -> +1).
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

import numpy as np

from qasampler.core.ising import IsingModel, Spin
from qasampler.solver.types import Sample


def search_indices(P: Sequence[float], draws: Sequence[float]) -> np.ndarray:
    """
    Map uniform draws in [0, 1) to 0-based basis-state indices.

    For a draw p > 0 the result k satisfies P[k-1] < p <= P[k] (with
    P[-1] := 0), i.e. a lower-bound search on the non-decreasing vector P.
    A draw of exactly 0 resolves to the first state with positive mass.
    """
    P = np.asarray(P, dtype=float)
    draws = np.atleast_1d(np.asarray(draws, dtype=float))

    if np.any(draws < 0.0) or np.any(draws >= 1.0):
        raise ValueError("Draws must lie in [0, 1).")

    indices = np.searchsorted(P, draws, side="left")

    at_zero = draws == 0.0
    if np.any(at_zero):
        indices[at_zero] = np.searchsorted(P, 0.0, side="right")

    return indices


def sample_index(P: Sequence[float], p: float) -> int:
    return int(search_indices(P, [p])[0])


def index_to_spins(index: int, num_vars: int) -> List[Spin]:
    """Decode a basis-state index into a spin vector of length ``num_vars``."""
    if not 0 <= index < 2**num_vars:
        raise ValueError(f"Index {index} out of range for {num_vars} variables.")
    return [2 * ((index >> (num_vars - 1 - i)) & 1) - 1 for i in range(num_vars)]


def spins_to_index(spins: Sequence[Spin]) -> int:
    """
    Inverse of ``index_to_spins``: encode a spin vector as its basis-state
    index. Not used by the sampling pipeline; it pins down the bit order
    that decoding relies on.
    """
    index = 0
    for s in spins:
        if s not in (-1, 1):
            raise ValueError(f"Spin values must be -1 or +1, got {s!r}.")
        index = (index << 1) | (1 if s == 1 else 0)
    return index


def sample_state(
    P: Sequence[float],
    num_vars: int,
    rng: Optional[np.random.Generator] = None,
) -> List[Spin]:
    """Draw one basis state from P and return it as a spin vector."""
    rng = rng if rng is not None else np.random.default_rng()
    return index_to_spins(sample_index(P, rng.random()), num_vars)


def _chunk_sizes(total: int, parts: int) -> List[int]:
    base, extra = divmod(total, parts)
    return [base + 1 if k < extra else base for k in range(parts)]


def draw_indices(
    P: Sequence[float],
    num_draws: int,
    rng: Optional[np.random.Generator] = None,
    workers: int = 1,
) -> np.ndarray:
    """
    Draw ``num_draws`` i.i.d. basis-state indices from P.

    With ``workers > 1`` the draws are split into contiguous chunks, each
    drawn by its own child generator on a thread pool. The concatenated
    result only depends on the parent generator state and ``workers``.
    """
    rng = rng if rng is not None else np.random.default_rng()
    P = np.asarray(P, dtype=float)

    if workers <= 1 or num_draws < 2:
        return search_indices(P, rng.random(num_draws))

    sizes = [size for size in _chunk_sizes(num_draws, workers) if size > 0]
    children = rng.spawn(len(sizes))

    with ThreadPoolExecutor(max_workers=len(sizes)) as pool:
        chunks = list(
            pool.map(lambda job: search_indices(P, job[0].random(job[1])), zip(children, sizes))
        )

    return np.concatenate(chunks)


def sample_states(
    P: Sequence[float],
    ising: IsingModel,
    num_reads: int,
    rng: Optional[np.random.Generator] = None,
    workers: int = 1,
) -> List[Sample]:
    """
    Draw ``num_reads`` spin vectors from P and score each one with the
    Ising objective. Values are computed once per distinct basis state.
    """
    n = ising.num_vars
    values: Dict[int, float] = {}
    samples: List[Sample] = []

    for index in draw_indices(P, num_reads, rng=rng, workers=workers):
        index = int(index)
        spins = index_to_spins(index, n)
        if index not in values:
            values[index] = ising.value(spins)
        samples.append(Sample(state=tuple(spins), value=values[index]))

    return samples
