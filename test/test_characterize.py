from __future__ import annotations

import io
import logging

import numpy as np
import pytest

from conftest import ramp_profile
from wpisysid.analysis import analyze_channel, analyze_store
from wpisysid.core import Sample, SampleStore, ChannelSchema
from wpisysid.config import DEFAULT_CONFIG
from wpisysid.io.load import characterize, characterize_stream, load_channels
from wpisysid.io.wpilog_writer import WpilogWriter


@pytest.mark.integration
def test_characterize_ramp_log_recovers_gains(ramp_log):
    report = characterize_stream(ramp_log, source="ramp")

    assert list(report) == ["Shooter/motor"]
    res = report["Shooter/motor"]
    for bucket in (res.slow, res.mid, res.high):
        assert bucket is not None
        assert bucket.kv == pytest.approx(2.0, abs=1e-6)
        assert bucket.ka == pytest.approx(0.5, abs=1e-6)
        assert bucket.kp == pytest.approx(8.0, abs=1e-5)
        # never starts from rest
        assert bucket.ks == 0.0
    assert report.meta.source == "ramp"
    assert report.meta.records_stored == ramp_profile()[0].size


@pytest.mark.integration
def test_characterize_file_matches_stream(tmp_path, ramp_log):
    path = tmp_path / "ramp.wpilog"
    path.write_bytes(ramp_log.getvalue())

    from_file = characterize(path)
    ramp_log.seek(0)
    from_stream = characterize_stream(ramp_log)
    assert from_file.as_dict() == from_stream.as_dict()
    assert load_channels(path).names() == ["Shooter/motor"]


def test_bad_magic_returns_empty_report(tmp_path):
    path = tmp_path / "bad.wpilog"
    path.write_bytes(b"NOTLOG\x00\x01\x00\x00\x00\x00")
    report = characterize(path)
    assert len(report) == 0
    assert report.meta.source == str(path)


def test_missing_file_returns_empty_report(tmp_path):
    report = characterize(tmp_path / "missing.wpilog")
    assert len(report) == 0


def test_channel_without_aligned_samples_is_omitted():
    buf = io.BytesIO()
    writer = WpilogWriter(buf)
    writer.start(1, "Short/motor", "double[]", "motor")
    writer.append_doubles(1, [1.0, 2.0], 10)
    buf.seek(0)

    report = characterize_stream(buf)
    assert "Short/motor" not in report
    assert report.meta.empty_channels == ("Short/motor",)


def test_sparse_channel_reports_insufficient_buckets():
    samples = [Sample(timestamp=i * 10_000, values=[0.0, 1.0, 0.0, 2.0]) for i in range(10)]
    res = analyze_channel("Arm/motor", samples)
    assert res is not None
    assert (res.slow, res.mid, res.high) == (None, None, None)
    assert not res.has_fit


def test_analyze_store_keeps_channels_independent():
    store = SampleStore()
    t, v, a = ramp_profile()
    volt = 0.9 * np.sign(v) + 2.0 * v + 0.5 * a
    good = ChannelSchema(entry_id=1, name="Good", type="double[]")
    flat = ChannelSchema(entry_id=2, name="Flat", type="double[]")
    for i in range(t.size):
        store.append(good, Sample(timestamp=int(t[i]), values=[0.0, v[i], a[i], volt[i]]))
        # constant velocity, acceleration and voltage: singular in every bucket
        store.append(flat, Sample(timestamp=int(t[i]), values=[0.0, 1.0, 0.0, 2.0]))
    store.finalize()

    report = analyze_store(store)
    assert report["Good"].high is not None
    assert not report["Flat"].has_fit


def test_declared_channels_without_samples_are_reported_empty(caplog):
    buf = io.BytesIO()
    writer = WpilogWriter(buf)
    writer.start(1, "Arm/motor", "double[]", "motor")
    writer.start(2, "Wrist/motor", "int64[]", "motor")
    # unsupported element type: skipped at decode
    writer.write_record(2, b"\x00" * 8, 10)
    buf.seek(0)

    caplog.set_level(logging.WARNING, logger="wpisysid.analysis.aggregator")
    report = characterize_stream(buf)

    assert len(report) == 0
    assert set(report.meta.empty_channels) == {"Arm/motor", "Wrist/motor"}
    warned = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert "No valid data for Arm/motor" in warned
    assert "No valid data for Wrist/motor" in warned


def test_analyze_store_lists_declared_names_missing_from_store():
    store = SampleStore()
    schema = ChannelSchema(entry_id=1, name="Short", type="double[]")
    store.append(schema, Sample(timestamp=0, values=[1.0, 2.0]))
    store.finalize()

    report = analyze_store(store, declared=["Idle", "Short"])
    assert report.meta.empty_channels == ("Idle", "Short")
    assert len(report) == 0


def test_load_channels_bad_magic_returns_empty_store(tmp_path):
    path = tmp_path / "bad.wpilog"
    path.write_bytes(b"NOTLOG\x00\x01\x00\x00\x00\x00")
    store = load_channels(path)
    assert isinstance(store, SampleStore)
    assert len(store) == 0


def test_load_channels_missing_file_returns_empty_store(tmp_path):
    store = load_channels(tmp_path / "missing.wpilog")
    assert len(store) == 0


def test_explicit_default_config_matches_implicit(ramp_log):
    implicit = characterize_stream(ramp_log)
    ramp_log.seek(0)
    explicit = characterize_stream(ramp_log, DEFAULT_CONFIG)
    assert implicit.as_dict() == explicit.as_dict()

    ramp_log.seek(0)
    strict = characterize_stream(ramp_log, DEFAULT_CONFIG.replace(min_bucket_samples=10_000))
    assert not strict["Shooter/motor"].has_fit
