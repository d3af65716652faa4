from __future__ import annotations

import logging
from typing import Any, Optional

import numpy as np

from qasampler.core.errors import DimensionError, SimulationError


_LOG = logging.getLogger(__name__)

TRACE_TOLERANCE = 1e-6


def num_qubits(dim: int) -> int:
    """Return n such that dim == 2**n, or raise DimensionError."""
    if dim < 1 or dim & (dim - 1):
        raise DimensionError(f"Dimension {dim} is not a power of two.")
    return dim.bit_length() - 1


def cumulative_distribution(rho: Any, num_vars: Optional[int] = None) -> np.ndarray:
    """
    Build the cumulative measurement distribution of a density matrix.

    Only the real part of the diagonal is consumed:

        P[k] = sum_{l <= k} max(Re(rho[l, l]), 0)

    Small negative entries coming from floating-point noise are clamped to
    zero, values are capped at 1 and the last entry is set to exactly 1,
    so that every draw in [0, 1) resolves to a valid basis state.
    A diagonal with non-finite entries or without positive mass is not a
    probability distribution and raises SimulationError.

    Parameters
    ----------
    rho:
        Square complex matrix of dimension 2^n.
    num_vars:
        Expected number of variables n. Checked when given.

    Returns
    -------
    np.ndarray
        Non-decreasing float vector of length 2^n ending in 1.0.
    """
    rho = np.asarray(rho)

    if rho.ndim != 2 or rho.shape[0] != rho.shape[1]:
        raise DimensionError(f"Density matrix must be square, got shape={rho.shape}.")

    n = num_qubits(rho.shape[0])
    if num_vars is not None and n != num_vars:
        raise DimensionError(
            f"Density matrix of dimension {rho.shape[0]} describes {n} qubits, "
            f"expected {num_vars}."
        )

    probs = np.real(np.diagonal(rho)).astype(float)
    if not np.all(np.isfinite(probs)):
        raise SimulationError("Density matrix diagonal contains non-finite values.")

    probs = np.clip(probs, 0.0, None)

    total = float(probs.sum())
    if total <= 0.0:
        raise SimulationError("Density matrix diagonal carries no probability mass.")
    if abs(total - 1.0) > TRACE_TOLERANCE:
        _LOG.warning("Density matrix trace is %.9f, expected 1.", total)

    P = np.minimum(np.cumsum(probs), 1.0)
    P[-1] = 1.0

    return P
