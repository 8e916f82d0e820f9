# test/test_channel.py
import numpy as np
import pytest

from wpisysid.core import Channel, Sample, InvalidChannel


def test_channel_basic_accessors():
    ch = Channel(name="Arm/motor")
    ch.append(Sample(timestamp=20, values=[1.0]), source=3)
    ch.append(Sample(timestamp=10, values=[2.0]), source=3)

    assert ch.name == "Arm/motor"
    assert ch.n == 2
    assert len(ch) == 2
    assert ch.t_start == 10
    assert ch.t_end == 20
    assert ch.sources == {3}


def test_channel_rejects_empty_name():
    with pytest.raises(InvalidChannel):
        Channel(name="   ")


def test_channel_rejects_non_sample():
    ch = Channel(name="x")
    with pytest.raises(InvalidChannel):
        ch.append((0, [1.0]))  # type: ignore[arg-type]


def test_finalize_sorts_stably_by_timestamp():
    ch = Channel(name="x")
    ch.append(Sample(timestamp=5, values=[1.0]))
    ch.append(Sample(timestamp=1, values=[2.0]))
    ch.append(Sample(timestamp=5, values=[3.0]))
    ch.append(Sample(timestamp=1, values=[4.0]))

    ch.finalize()

    assert ch.finalized
    assert ch.time.tolist() == [1, 1, 5, 5]
    # ties keep arrival order
    assert [s.values[0] for s in ch] == [2.0, 4.0, 1.0, 3.0]


def test_append_after_finalize_marks_unfinalized():
    ch = Channel(name="x").finalize()
    ch.append(Sample(timestamp=0, values=[1.0]))
    assert not ch.finalized


def test_empty_channel_bounds():
    ch = Channel(name="x")
    assert ch.t_start is None
    assert ch.t_end is None
    assert ch.time.dtype == np.int64
