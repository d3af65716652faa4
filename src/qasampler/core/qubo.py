from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, Optional, Sequence
import numpy as np

from qasampler.core.errors import ModelExtractionError
from qasampler.core.ising import IsingModel


Index = int  # 0-based position in Q / c
VarKey = Hashable

SENSES = ("min", "max")
DOMAINS = ("bool", "spin")


@dataclass
class QUBOModel:
    """
    Quadratic model of the form:

        f(v) = v^T Q v + c^T v + offset

    where v is either binary (domain="bool", v in {0, 1}^n) or a spin
    vector (domain="spin", v in {-1, +1}^n), to be minimized
    (sense="min") or maximized (sense="max").

    This class focuses on:
    - storing Q, c, offset and the variable indexing,
    - classical objective evaluation,
    - the conversion to an Ising model (h, J, alpha, beta) in which
      the annealing sampler works.
    """

    Q: np.ndarray
    c: np.ndarray
    offset: float = 0.0
    var_index: Dict[VarKey, Index] = field(default_factory=dict)
    sense: str = "min"
    domain: str = "bool"

    # ==========================
    # BASIC PROPERTIES
    # ==========================

    @property
    def num_vars(self) -> int:
        """
        Return the number of variables in the model.

        This is assumed to be consistent with:
        - Q.shape == (n, n)
        - c.shape == (n,)
        """
        return int(self.Q.shape[0])

    # ==========================
    # CONSTRUCTION HELPERS
    # ==========================

    @classmethod
    def from_arrays(
        cls,
        Q: Any,
        c: Optional[Any] = None,
        offset: float = 0.0,
        var_index: Optional[Dict[VarKey, Index]] = None,
        sense: str = "min",
        domain: str = "bool",
    ) -> "QUBOModel":
        """
        Build a model from nested lists or arrays.

        Only Q is required: a missing ``c`` becomes a zero linear term and a
        missing ``var_index`` keys each variable by its position in Q. The
        arrays are copied as floats, so later edits to the inputs do not
        reach the model.
        """
        Q_arr = np.array(Q, dtype=float, copy=True)

        if Q_arr.ndim != 2:
            raise ValueError(f"Expected a 2D coupling matrix, got {Q_arr.ndim} dimension(s).")

        n_rows, n_cols = Q_arr.shape
        if n_rows != n_cols:
            raise ValueError(
                f"Coupling matrix of shape {Q_arr.shape} is not square."
            )

        if c is None:
            c_arr = np.zeros(n_rows, dtype=float)
        else:
            c_arr = np.array(c, dtype=float, copy=True)

        if c_arr.ndim != 1:
            raise ValueError(f"Expected a 1D linear term, got {c_arr.ndim} dimension(s).")

        if c_arr.shape[0] != n_rows:
            raise ValueError(
                f"Linear term has {c_arr.shape[0]} entries for {n_rows} variables."
            )

        if var_index is None:
            var_index = {i: i for i in range(n_rows)}

        return cls(
            Q=Q_arr,
            c=c_arr,
            offset=float(offset),
            var_index=dict(var_index),
            sense=sense,
            domain=domain,
        )

    def copy(self) -> "QUBOModel":
        return QUBOModel(
            Q=np.array(self.Q, dtype=float, copy=True),
            c=np.array(self.c, dtype=float, copy=True),
            offset=float(self.offset),
            var_index=dict(self.var_index),
            sense=self.sense,
            domain=self.domain,
        )

    def energy(self, values: Iterable[int]) -> float:
        """
        Evaluate the objective:

            f(v) = v^T Q v + c^T v + offset

        ``values`` must be expressed in the model's own domain (0/1 for
        "bool", -1/+1 for "spin"). The sense is not applied.
        """
        v = np.array(list(values), dtype=float)

        if v.shape[0] != self.num_vars:
            raise ValueError(
                f"Assignment length {v.shape[0]} does not match model size {self.num_vars}."
            )

        quad = v @ self.Q @ v
        linear = self.c @ v

        return float(quad + linear + self.offset)

    def assignment(self, spins: Sequence[int]) -> Dict[VarKey, int]:
        """
        Map a spin vector back to the model's domain, keyed by ``var_index``.

        Spin +1 maps to 1 in the boolean domain and spin -1 to 0.
        """
        if len(spins) != self.num_vars:
            raise ValueError(
                f"Spin vector length {len(spins)} does not match model size {self.num_vars}."
            )

        if self.domain == "bool":
            values = [(int(s) + 1) // 2 for s in spins]
        else:
            values = [int(s) for s in spins]

        return {key: values[idx] for key, idx in self.var_index.items()}

    # ==========================
    # MODEL → ISING TRANSFORMATION
    # ==========================

    def to_ising(self) -> IsingModel:
        """
        Convert the model into an Ising model (h, J, alpha, beta).

        Mapping
        -------
        Boolean variables are related to spins by

            x_i = (1 + s_i) / 2

        so that bit 1 corresponds to spin +1. With d_i = Q_ii + c_i and
        q_ij = Q_ij + Q_ji (i < j):

            h_i   = d_i / 2 + sum_{j != i} q_ij / 4
            J_ij  = q_ij / 4
            const = offset + sum_i d_i / 2 + sum_{i<j} q_ij / 4

        In the spin domain s_i^2 = 1, hence h_i = c_i, J_ij = q_ij and
        const = offset + trace(Q).

        The sampler always minimizes. For sense="max" the biases are
        negated and alpha = -1, so that

            f(v(s)) == alpha * (sum_i h_i s_i + sum_{i<j} J_ij s_i s_j) + beta

        holds for every spin vector s in both senses. Variables are
        renumbered 1..n (position i in Q becomes variable i + 1).
        """
        if self.sense not in SENSES:
            raise ModelExtractionError(
                f"Unsupported sense {self.sense!r}; expected one of {SENSES}."
            )
        if self.domain not in DOMAINS:
            raise ModelExtractionError(
                f"Unsupported domain {self.domain!r}; expected one of {DOMAINS}."
            )

        Q = np.asarray(self.Q, dtype=float)
        c = np.asarray(self.c, dtype=float)
        if not (np.all(np.isfinite(Q)) and np.all(np.isfinite(c)) and np.isfinite(self.offset)):
            raise ModelExtractionError("Model coefficients must be finite.")

        n = self.num_vars
        pair = Q + Q.T  # q_ij for i != j

        if self.domain == "bool":
            diag = np.diag(Q) + c
            off_diag = pair - np.diag(np.diag(pair))
            h_vec = diag / 2.0 + off_diag.sum(axis=1) / 4.0
            J_mat = np.triu(pair, k=1) / 4.0
            const = float(self.offset + diag.sum() / 2.0 + J_mat.sum())
        else:
            h_vec = c.copy()
            J_mat = np.triu(pair, k=1)
            const = float(self.offset + np.trace(Q))

        sign = 1.0 if self.sense == "min" else -1.0

        h = {i + 1: sign * float(h_vec[i]) for i in range(n)}
        J = {
            (i + 1, j + 1): sign * float(J_mat[i, j])
            for i in range(n)
            for j in range(i + 1, n)
            if J_mat[i, j] != 0.0
        }

        return IsingModel(h=h, J=J, alpha=sign, beta=const, num_vars=n)
