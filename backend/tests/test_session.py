import pytest

from app.tracking import (
    FilterConfig,
    FixStatus,
    GpsQuality,
    RawFix,
    SessionController,
    SessionState,
    SessionStateError,
    TrackPhase,
)
from app.tracking.errors import InvalidSegmentSize

from conftest import BASE_MS, LAT0, LON0, north


def fix(meters_north=0.0, t_s=0.0, accuracy=0.0, altitude=None):
    return RawFix(
        latitude=LAT0 + north(meters_north),
        longitude=LON0,
        accuracy_m=accuracy,
        timestamp_ms=BASE_MS + int(t_s * 1000),
        altitude_m=altitude,
    )


def feed(controller, clock, meters_north=0.0, t_s=0.0, accuracy=0.0, altitude=None):
    """Deliver a fix the moment it is taken: the clock reads the fix time."""
    f = fix(meters_north, t_s, accuracy, altitude)
    clock.now_ms = f.timestamp_ms
    return controller.add_fix(f)


def make(clock, segment_size=250, **kwargs):
    segments = []
    finished = []
    controller = SessionController(
        segment_size,
        clock=clock,
        on_segment=segments.append,
        on_finish=finished.append,
        **kwargs,
    )
    return controller, segments, finished


def test_end_to_end_250m_splits(clock):
    controller, segments, finished = make(clock)
    controller.start()

    assert feed(controller, clock, 0, 0, accuracy=5.0).status is FixStatus.locked
    # Three 100 m moves, one minute apart; accuracy 0 keeps the filter on the raw track
    results = [feed(controller, clock, 100 * k, 60 * k) for k in (1, 2, 3)]
    assert [r.status for r in results] == [FixStatus.accepted] * 3
    assert results[-1].total_distance_m == pytest.approx(300.0)
    assert results[0].speed_kmh == pytest.approx(6.0)

    assert len(segments) == 1
    seg = segments[0]
    assert results[2].new_segments == (seg,)
    assert seg.distance_label_m == 250
    assert seg.elapsed_s == pytest.approx(180.0)
    assert seg.pace_s_per_km == pytest.approx(720.0)

    clock.now_ms = BASE_MS + 200_000
    record = controller.stop()

    assert controller.state is SessionState.idle
    assert [s.distance_label_m for s in record.segments] == [250, 500]
    last = record.segments[-1]
    assert last.partial
    assert last.distance_m == pytest.approx(50.0)
    assert last.elapsed_s == pytest.approx(20.0)
    assert segments[-1] == last

    assert record.distance_m == pytest.approx(300.0)
    assert record.total_time_s == pytest.approx(200.0)
    assert record.average_pace_s_per_km == pytest.approx(200.0 / 300.0 * 1000)
    assert record.calories == 19
    assert record.persisted
    assert finished == [record]


def test_split_timing_ignores_device_clock_offset(clock):
    # Device timestamps run 5 s behind the controller clock
    controller, segments, _ = make(clock, segment_size=10)
    controller.start()
    skew_s = -5
    for k, t in enumerate((0, 5, 10)):
        clock.now_ms = BASE_MS + t * 1000
        controller.add_fix(fix(12 * k, t + skew_s))

    assert [s.distance_label_m for s in segments] == [10, 20]
    assert segments[0].elapsed_s == pytest.approx(5.0)
    assert segments[0].pace_s_per_km == pytest.approx(500.0)
    assert all(s.elapsed_s >= 0 for s in segments)

    clock.now_ms = BASE_MS + 12_000
    record = controller.stop()
    assert record.segments[-1].partial
    assert record.segments[-1].elapsed_s == pytest.approx(2.0)


def test_device_clock_ahead_does_not_stretch_splits(clock):
    controller, segments, _ = make(clock, segment_size=10)
    controller.start()
    for k, t in enumerate((0, 4, 8)):
        clock.now_ms = BASE_MS + t * 1000
        controller.add_fix(fix(12 * k, t + 3600))

    assert segments[0].elapsed_s == pytest.approx(4.0)
    assert controller.snapshot().live_pace_s_per_km is not None


def test_distance_is_monotonic_under_noise(clock):
    controller, _, _ = make(clock, segment_size=100)
    controller.start()
    totals = []
    # Jittery track with spikes, drift and a bad fix mixed in
    track = [(0, 0, 5), (3, 2, 8), (2, 4, 8), (500, 5, 8), (12, 8, 12), (11, 9, 60),
             (25, 12, 6), (24, 13, 6), (40, 17, 4), (41, 18, 4), (70, 24, 10)]
    for meters, t, acc in track:
        totals.append(feed(controller, clock, meters, t, accuracy=acc).total_distance_m)
    assert totals == sorted(totals)
    assert totals[-1] > 0


def test_rejected_fix_leaves_session_untouched(clock):
    controller, _, _ = make(clock)
    controller.start()
    feed(controller, clock, 0, 0, accuracy=3.0, altitude=10.0)
    feed(controller, clock, 20, 10, accuracy=3.0, altitude=12.0)

    track_before = (controller.track.state.lat, controller.track.state.lon,
                    controller.track.state.previous)
    acc_before = (controller.total_distance_m, controller.elevation_gain_m,
                  controller.acc.last_elevation_m, controller.segments)
    for _ in range(5):
        result = feed(controller, clock, 80, 20, accuracy=120.0, altitude=40.0)
        assert result.status is FixStatus.unusable
        assert result.quality is GpsQuality.unusable
    assert (controller.track.state.lat, controller.track.state.lon,
            controller.track.state.previous) == track_before
    assert (controller.total_distance_m, controller.elevation_gain_m,
            controller.acc.last_elevation_m, controller.segments) == acc_before


def test_elevation_gain_counts_climbs_only(clock):
    controller, _, _ = make(clock)
    controller.start()
    altitudes = [100.0, 103.0, 101.0, None, 104.0, 104.0, 90.0, 95.0]
    for i, alt in enumerate(altitudes):
        feed(controller, clock, 0, i, accuracy=10.0, altitude=alt)
    # 3 + 3 (from 101) + 5
    assert controller.elevation_gain_m == pytest.approx(11.0)


def test_fixes_ignored_unless_running(clock):
    controller, _, _ = make(clock)
    assert controller.add_fix(fix()).status is FixStatus.not_running

    controller.start()
    feed(controller, clock, 0, 0)
    feed(controller, clock, 50, 20)
    controller.pause()
    result = feed(controller, clock, 500, 40)
    assert result.status is FixStatus.not_running
    assert result.total_distance_m == pytest.approx(50.0)


def test_resume_restarts_filter_but_keeps_totals(clock):
    controller, _, _ = make(clock)
    controller.start()
    feed(controller, clock, 0, 0)
    feed(controller, clock, 50, 20)
    assert controller.track.phase is TrackPhase.tracking

    clock.advance(20)
    controller.pause()
    clock.advance(300)
    controller.resume()

    assert controller.track.phase is TrackPhase.cold
    assert controller.total_distance_m == pytest.approx(50.0)

    # Far from the old anchor: the first fix after resume only re-locks
    assert feed(controller, clock, 400, 350).status is FixStatus.locked
    assert controller.total_distance_m == pytest.approx(50.0)
    assert feed(controller, clock, 430, 360).status is FixStatus.accepted
    assert controller.total_distance_m == pytest.approx(80.0)


def test_paused_time_is_excluded(clock):
    controller, _, finished = make(clock)
    controller.start()
    feed(controller, clock, 0, 0)
    feed(controller, clock, 100, 60)

    controller.pause()
    clock.advance(600)
    assert controller.elapsed_s() == pytest.approx(60.0)
    controller.resume()
    clock.advance(30)
    assert controller.elapsed_s() == pytest.approx(90.0)

    # Stopping while paused does not count the open pause either
    controller.pause()
    clock.advance(1000)
    record = controller.stop()
    assert record.total_time_s == pytest.approx(90.0)
    assert finished == [record]


def test_pause_does_not_count_towards_split(clock):
    controller, segments, _ = make(clock, segment_size=100)
    controller.start()
    feed(controller, clock, 0, 0)
    feed(controller, clock, 60, 30)

    clock.advance(30)
    controller.pause()
    clock.advance(120)
    controller.resume()

    feed(controller, clock, 60, 190)
    feed(controller, clock, 110, 210)
    assert len(segments) == 1
    # 210 s on the clock minus the 120 s pause
    assert segments[0].elapsed_s == pytest.approx(90.0)


def test_zero_distance_session_is_reported_not_saved(clock):
    controller, _, finished = make(clock)
    controller.start()
    feed(controller, clock, 0, 0)
    clock.advance(120)
    record = controller.stop()
    assert record.distance_m == 0
    assert record.segments == ()
    assert record.average_pace_s_per_km == 0.0
    assert not record.persisted
    assert finished == []


def test_very_short_session_is_not_saved(clock):
    controller, _, finished = make(clock)
    controller.start()
    feed(controller, clock, 0, 0)
    feed(controller, clock, 20, 3)
    clock.now_ms = BASE_MS + 4_000
    assert not controller.stop().persisted
    assert finished == []


def test_failed_save_is_logged_and_session_still_stops(clock, caplog):
    def broken_store(record):
        raise RuntimeError("database is locked")

    controller = SessionController(250, clock=clock, on_finish=broken_store)
    controller.start()
    feed(controller, clock, 0, 0)
    feed(controller, clock, 100, 60)

    record = controller.stop()
    assert controller.state is SessionState.idle
    assert not record.persisted
    assert controller.finished == record
    assert record.distance_m == pytest.approx(100.0)
    assert "failed to save finished session" in caplog.text


def test_invalid_lifecycle_calls(clock):
    controller, _, _ = make(clock)
    for action in (controller.pause, controller.resume, controller.stop):
        with pytest.raises(SessionStateError):
            action()
    controller.start()
    with pytest.raises(SessionStateError):
        controller.start()
    with pytest.raises(SessionStateError):
        controller.resume()
    controller.pause()
    with pytest.raises(SessionStateError):
        controller.pause()


def test_restart_after_stop_begins_fresh(clock):
    controller, _, _ = make(clock)
    controller.start()
    feed(controller, clock, 0, 0)
    feed(controller, clock, 300, 100)
    clock.advance(100)
    controller.stop()

    controller.start()
    assert controller.total_distance_m == 0
    assert controller.segments == ()
    assert controller.track.phase is TrackPhase.cold


def test_sensor_error_keeps_state(clock):
    controller, _, _ = make(clock)
    controller.start()
    feed(controller, clock, 0, 0)
    feed(controller, clock, 40, 20)

    result = controller.report_sensor_error("timeout")
    assert result.status is FixStatus.sensor_unavailable
    assert controller.state is SessionState.running
    assert controller.total_distance_m == pytest.approx(40.0)
    assert controller.snapshot().sensor_error == "timeout"

    feed(controller, clock, 80, 40)
    assert controller.snapshot().sensor_error is None
    assert controller.total_distance_m == pytest.approx(80.0)


def test_snapshot_live_pace_goes_stale(clock):
    controller, _, _ = make(clock)
    controller.start()
    feed(controller, clock, 0, 0)
    feed(controller, clock, 30, 10)
    feed(controller, clock, 60, 20)

    clock.now_ms = BASE_MS + 22_000
    snap = controller.snapshot()
    assert snap.live_pace_s_per_km == pytest.approx(1000 / 3.0)
    assert snap.elapsed_s == pytest.approx(22.0)
    assert snap.segment_elapsed_s == pytest.approx(22.0)

    clock.now_ms = BASE_MS + 30_000
    assert controller.snapshot().live_pace_s_per_km is None


@pytest.mark.parametrize("size", [0, 2.5])
def test_invalid_segment_size_rejected(clock, size):
    with pytest.raises(InvalidSegmentSize):
        SessionController(size, clock=clock)


def test_custom_config_is_used(clock):
    controller, _, _ = make(clock, config=FilterConfig(min_delta_m=10.0))
    controller.start()
    feed(controller, clock, 0, 0)
    assert feed(controller, clock, 8, 5).status is FixStatus.negligible
    assert feed(controller, clock, 12, 6).status is FixStatus.accepted
