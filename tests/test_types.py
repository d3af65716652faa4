import pytest

from qasampler.solver.types import Sample, SampleSet


def test_sample_set_is_immutable():
    result = SampleSet([Sample((1, -1), 0.5)], {"time": {"sampling": 0.1}})

    assert isinstance(result.samples, tuple)
    with pytest.raises(TypeError):
        result.metadata["time"]["sampling"] = 1.0
    with pytest.raises(AttributeError):
        result.samples = ()


def test_ranking_follows_sense():
    samples = [Sample((1,), 2.0), Sample((-1,), -1.0), Sample((1,), 2.0)]

    assert SampleSet(samples).best.value == -1.0
    assert [s.value for s in SampleSet(samples, sense="max").ranked()] == [2.0, 2.0, -1.0]


def test_counts_and_bitstrings():
    result = SampleSet([Sample((1, -1), 0.0), Sample((-1, -1), 0.0), Sample((1, -1), 0.0)])

    assert result[1].bitstring() == "00"
    assert result.counts() == {"10": 2, "00": 1}


def test_invalid_sense_and_empty_best():
    with pytest.raises(ValueError):
        SampleSet([], sense="minimize")
    with pytest.raises(ValueError):
        SampleSet([]).best
