from typing import Optional

import numpy as np
import matplotlib.pyplot as plt

from qasampler.solver.types import SampleSet


def plot_histogram(sample_set: SampleSet, top_k: int = 10, ax: Optional[plt.Axes] = None) -> plt.Axes:
    """
    Bar chart of the sampled bitstrings, in order of first appearance.

    Every observed state is drawn; the ``top_k`` most frequent ones are
    highlighted and labeled on the x axis.
    """
    counts_by_state = sample_set.counts()
    bitstrings = list(counts_by_state)
    counts = np.array([counts_by_state[bs] for bs in bitstrings], dtype=float)

    percentages = 100.0 * counts / max(len(sample_set), 1)

    # argsort ascending, reversed to get the most frequent first
    top_indices = np.argsort(counts, kind="stable")[::-1][:top_k]

    x = np.arange(len(bitstrings))

    if ax is None:
        _, ax = plt.subplots(figsize=(16, 6))

    ax.bar(x, percentages, color="lightgray")

    for idx in top_indices:
        ax.bar(x[idx], percentages[idx], color="tab:blue")

    ax.set_xticks(top_indices)
    ax.set_xticklabels([bitstrings[i] for i in top_indices], rotation=45, ha="right")

    ax.set_ylabel("Percentage (%)")
    ax.set_xlabel(f"Bitstrings (only top {top_k} labeled)")
    ax.set_title(
        f"{sample_set.metadata.get('origin', 'Sampler')} outcome histogram\n"
        f"All states plotted, only top {top_k} labeled"
    )

    ax.figure.tight_layout()
    return ax
