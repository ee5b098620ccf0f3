from __future__ import annotations

import numpy as np

from rppg_stream.messages import (
    BeatMessage,
    FrameMessage,
    StartMessage,
    StopMessage,
    UpdateMessage,
    WaveformMessage,
)
from rppg_stream.session import ChannelBuffer, RppgSession, SessionState

FS = 30.0


def _pulse_rgb(i: int, f: float = 1.2) -> tuple[float, float, float]:
    s = np.sin(2 * np.pi * f * i / FS)
    return (150.0 + 0.3 * s, 100.0 + s, 80.0 + 0.2 * s)


def _feed(sess: RppgSession, n: int, start: int = 0, rgb=_pulse_rgb) -> list:
    out = []
    for i in range(start, start + n):
        c = rgb(i)
        out.extend(sess.push_frame(i * 1000.0 / FS, i, c, c, c))
    return out


def test_start_emits_empty_update() -> None:
    sess = RppgSession()
    out = sess.start()
    assert sess.state is SessionState.RUNNING
    assert len(out) == 1
    u = out[0]
    assert isinstance(u, UpdateMessage)
    assert u.hr is None and u.confidence == 0.0 and u.signal == []


def test_no_estimate_below_minimum_data() -> None:
    sess = RppgSession()
    sess.start()
    assert _feed(sess, 89) == []
    assert sess.process() is None
    out = _feed(sess, 1, start=89)
    assert any(isinstance(m, UpdateMessage) for m in out)
    assert sess.process() is not None


def test_non_increasing_frame_ids_are_dropped() -> None:
    sess = RppgSession()
    sess.start()
    c = (1.0, 2.0, 3.0)
    sess.push_frame(0.0, 5, c, c, c)
    before = sess.buffer_lengths()
    assert sess.push_frame(33.0, 5, c, c, c) == []
    assert sess.push_frame(66.0, 3, c, c, c) == []
    assert sess.buffer_lengths() == before
    assert sess.diagnostics.dropped_frames == 2
    assert sess.diagnostics.accepted_frames == 1


def test_steady_pulse_converges_to_heart_rate() -> None:
    sess = RppgSession()
    sess.start("green")
    out = _feed(sess, 300)
    updates = [m for m in out if isinstance(m, UpdateMessage)]
    assert len(updates) == 300 - 89
    for u in updates:
        assert u.hr is None or (isinstance(u.hr, int) and 40 <= u.hr <= 180)
    final = updates[-1]
    assert final.hr is not None and 69 <= final.hr <= 75
    assert final.sqi is not None
    assert abs(sum(final.sqi.weights.values()) - 1.0) < 1e-6
    assert set(final.sqi.rois) == {"forehead", "leftCheek", "rightCheek"}
    assert 0.0 <= final.sqi.score <= 1.0
    assert any(isinstance(m, BeatMessage) for m in out)
    assert sess.diagnostics.beats > 0


def test_flat_input_reports_poor_quality() -> None:
    sess = RppgSession()
    sess.start()
    out = _feed(sess, 120, rgb=lambda i: (120.0, 110.0, 90.0))
    u = [m for m in out if isinstance(m, UpdateMessage)][-1]
    assert u.hr is None
    assert u.confidence == 0.3
    assert u.sqi is not None
    assert u.sqi.snr <= -60.0
    assert u.sqi.score < 0.4
    assert not any(isinstance(m, BeatMessage) for m in out)


def test_waveform_is_a_fresh_float32_tail() -> None:
    sess = RppgSession()
    sess.start()
    out = _feed(sess, 200)
    waves = [m for m in out if isinstance(m, WaveformMessage)]
    assert waves
    w = waves[-1]
    assert w.data.dtype == np.float32
    assert w.data.size == 128
    assert sess.last_result is not None
    assert not np.shares_memory(w.data, sess.last_result.signal)
    assert np.allclose(w.data, sess.last_result.signal[-128:], atol=1e-5)


def test_chrom_and_pos_modes_track_heart_rate() -> None:
    for mode in ("chrom", "pos"):
        sess = RppgSession()
        sess.start(mode)
        out = _feed(sess, 300)
        final = [m for m in out if isinstance(m, UpdateMessage)][-1]
        assert final.hr is not None and 66 <= final.hr <= 76, mode


def test_stop_emits_final_update_and_ignores_later_frames() -> None:
    sess = RppgSession()
    sess.start()
    _feed(sess, 150)
    out = sess.stop()
    assert len(out) == 1 and isinstance(out[0], UpdateMessage)
    assert out[0].hr is not None
    assert sess.state is SessionState.STOPPED
    c = (1.0, 2.0, 3.0)
    assert sess.push_frame(99999.0, 10_000, c, c, c) == []
    assert sess.diagnostics.ignored_frames == 1
    assert sess.stop() == []


def test_stop_without_enough_data_emits_defaults() -> None:
    sess = RppgSession()
    sess.start()
    _feed(sess, 10)
    out = sess.stop()
    assert out[0].hr is None and out[0].sqi is None and out[0].signal == []


def test_restart_begins_from_empty_state() -> None:
    sess = RppgSession()
    sess.start()
    _feed(sess, 120)
    assert sess.kalman.value() is not None
    sess.start("pos")
    assert sess.buffer_lengths() == {"forehead": 0, "leftCheek": 0, "rightCheek": 0}
    assert sess.kalman.value() is None
    assert sess.last_result is None
    # frame ids restart per session
    assert _feed(sess, 5) == []
    assert sess.buffer_lengths()["forehead"] == 5


def test_handle_dispatches_messages() -> None:
    sess = RppgSession()
    assert sess.handle(StartMessage(mix="chrom"))[0].hr is None
    assert sess.mix.value == "chrom"
    c = (1, 2, 3)
    frame = FrameMessage(ts=0.0, frameId=1, forehead=c, leftCheek=c, rightCheek=c)
    assert sess.handle(frame) == []
    assert sess.buffer_lengths()["leftCheek"] == 1
    assert len(sess.handle(StopMessage())) == 1


def test_one_beat_event_per_heartbeat() -> None:
    sess = RppgSession()
    sess.start()
    out = _feed(sess, 600)
    beats = sum(isinstance(m, BeatMessage) for m in out)
    # frames 89..599 span about 20 cycles at 1.2 Hz
    assert 18 <= beats <= 23
    assert sess.diagnostics.beats == beats


def test_noisy_pulse_stays_within_three_bpm() -> None:
    rng = np.random.RandomState(0)
    noise = 0.2 * rng.randn(300)

    def noisy(i: int) -> tuple[float, float, float]:
        r, g, b = _pulse_rgb(i)
        return r, g + noise[i], b

    sess = RppgSession()
    sess.start()
    hrs = []
    for i in range(300):
        c = noisy(i)
        for m in sess.push_frame(i * 1000.0 / FS, i, c, c, c):
            if isinstance(m, UpdateMessage):
                hrs.append((i, m.hr))
    # a 64-point spectrum (90..127 samples) has ~28 bpm bins; from 128 samples
    # on the bin width is ~14 bpm and 72 bpm falls next to the 70.3 bpm bin
    settled = [hr for i, hr in hrs if i >= 150]
    assert settled
    for hr in settled:
        assert hr is not None and abs(hr - 72) <= 3


def test_buffers_keep_the_newest_capacity_samples() -> None:
    sess = RppgSession()
    sess.start()
    _feed(sess, 600)
    assert sess.buffer_lengths() == {"forehead": 512, "leftCheek": 512, "rightCheek": 512}
    window = sess._window()
    assert window is not None and len(window) == 512
    assert np.isclose(window.timestamps[0], 88 * 1000.0 / FS)
    assert np.isclose(window.timestamps[-1], 599 * 1000.0 / FS)


def test_channel_buffer_drops_oldest_on_overflow() -> None:
    buf = ChannelBuffer(4)
    for v in range(6):
        buf.append(v)
    assert len(buf) == 4
    assert buf.tail(4).tolist() == [2.0, 3.0, 4.0, 5.0]
    assert buf.tail(2).tolist() == [4.0, 5.0]
