import io

import numpy as np
import pytest

from wpisysid.io.wpilog_writer import WpilogWriter


@pytest.fixture
def log_buffer():
    """Fresh in-memory WPILOG stream with its writer."""
    buf = io.BytesIO()
    writer = WpilogWriter(buf)
    return buf, writer


def ramp_profile(dt_us: int = 10_000):
    """Velocity sweep up (slope 2) then down (slope -1), piecewise linear.

    Returns (timestamps, velocity, acceleration) arrays. The kink sits on
    a sample so the filtered acceleration equals the logged one.
    """
    dt = dt_us / 1e6
    up = [(0.5 + 2.0 * dt * k, 2.0) for k in range(476)]
    top = up[-1][0]
    down = [(top - 1.0 * dt * k, -1.0) for k in range(1, 951)]
    points = up + down
    t = np.arange(len(points), dtype=np.int64) * dt_us
    v = np.array([p[0] for p in points])
    a = np.array([p[1] for p in points])
    return t, v, a


def synthetic_voltage(v, a, ks=0.9, kv=2.0, ka=0.5):
    return ks * np.sign(v) + kv * v + ka * a


@pytest.fixture
def ramp_log(log_buffer):
    """Log holding one motor channel driven by synthetic_voltage over ramp_profile."""
    buf, writer = log_buffer
    writer.start(1, "Shooter/motor", "double[]", "motor")
    t, v, a = ramp_profile()
    voltage = synthetic_voltage(v, a)
    position = np.cumsum(v) * 0.01
    for i in range(t.size):
        writer.append_doubles(1, [position[i], v[i], a[i], voltage[i]], int(t[i]))
    buf.seek(0)
    return buf
