import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from qasampler.solver.types import ORIGIN, Sample, SampleSet
from qasampler.utils.plot import plot_histogram


def _sample_set():
    states = [(1, 1)] * 5 + [(-1, 1)] * 3 + [(1, -1)] * 2
    return SampleSet([Sample(s, float(sum(s))) for s in states], {"origin": ORIGIN})


def test_histogram_draws_every_state_and_labels_top_k():
    ax = plot_histogram(_sample_set(), top_k=2)

    labels = [t.get_text() for t in ax.get_xticklabels()]
    heights = sorted(p.get_height() for p in ax.patches)

    assert labels == ["11", "01"]
    assert ORIGIN in ax.get_title()
    # three background bars plus two highlighted ones
    assert len(ax.patches) == 5
    assert heights[-1] == 50.0
    plt.close(ax.figure)


def test_histogram_uses_given_axes():
    fig, ax = plt.subplots()
    assert plot_histogram(_sample_set(), ax=ax) is ax
    plt.close(fig)
