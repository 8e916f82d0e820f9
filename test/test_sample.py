# test/test_sample.py
import numpy as np
import pytest

from wpisysid.core import Sample, AlignedSample, InvalidSample, aligned_to_numpy


def test_init_ok_basic():
    s = Sample(timestamp=1000, values=[1.0, 2.0, 3.0, 4.0])
    assert s.n == 4
    assert s.timestamp == 1000
    assert s.values.dtype == np.float64


def test_values_are_copied_and_read_only():
    src = np.array([1.0, 2.0])
    s = Sample(timestamp=0, values=src)
    src[0] = 99.0
    assert s.values[0] == 1.0
    with pytest.raises(ValueError):
        s.values[0] = 5.0


def test_init_rejects_non_1d():
    with pytest.raises(InvalidSample):
        Sample(timestamp=0, values=np.zeros((2, 2)))


def test_init_rejects_float_timestamp():
    with pytest.raises(InvalidSample):
        Sample(timestamp=1.5, values=[1.0])  # type: ignore[arg-type]


def test_accepts_numpy_integer_timestamp():
    s = Sample(timestamp=np.int64(42), values=[])
    assert s.timestamp == 42
    assert isinstance(s.timestamp, int)
    assert s.n == 0


def test_aligned_sample_rejects_negative_prev_index():
    with pytest.raises(InvalidSample):
        AlignedSample(0, 0.0, 0.0, 0.0, 0.0, 0.0, prev_index=-1)


def test_aligned_to_numpy_columns():
    samples = [
        AlignedSample(0, 1.0, 2.0, 3.0, 3.5, 4.0),
        AlignedSample(10, 1.5, 2.5, 3.0, 3.1, 4.5, prev_index=0),
    ]
    cols = aligned_to_numpy(samples)
    assert cols["timestamp"].tolist() == [0, 10]
    assert np.allclose(cols["acceleration_filtered"], [3.5, 3.1])
    assert np.allclose(cols["voltage"], [4.0, 4.5])
