# core/errors.py
from __future__ import annotations

from typing import Optional


class SamplerError(Exception):
    """Base class for every failure surfaced by the annealing sampler."""


class ModelExtractionError(SamplerError, ValueError):
    """The problem model cannot be expressed in the spin domain."""


class SimulationError(SamplerError):
    """
    The external simulation primitive failed.

    The original exception is chained (``raise ... from exc``) and kept
    in ``cause`` for callers that inspect it programmatically.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConvergenceError(SamplerError):
    """Tolerances were not met within ``iteration_limit`` refinements."""

    def __init__(
        self,
        message: str,
        iteration_limit: int,
        mean_delta: float = float("nan"),
        max_delta: float = float("nan"),
    ) -> None:
        super().__init__(message)
        self.iteration_limit = iteration_limit
        self.mean_delta = mean_delta
        self.max_delta = max_delta


class DimensionError(SamplerError, ValueError):
    """A density matrix does not match the expected 2^n x 2^n shape."""
