"""
Progress Calculator - Validation Test

Validates:
1. Step-function unit counting from start instant
2. Percent clamping and rounding
3. Frozen progress for stopped jobs
4. Clock anomalies (now before start)
"""

from datetime import datetime, timedelta, timezone

from production_tracker.scheduler import ProductionJob, compute_progress, units_done_at

T = datetime(2024, 3, 1, 8, 0, 0, tzinfo=timezone.utc)


def running_job(**overrides):
    fields = dict(id=1, status="running", start_date=T, expected_output=10, actual_output=0)
    fields.update(overrides)
    return ProductionJob(**fields)


def test_sixteen_minutes_into_five_minute_cycle():
    job = running_job()
    snap = compute_progress(job, T + timedelta(minutes=16), cycle_duration_seconds=300)

    assert snap.units_done == 3
    assert snap.percent == 30
    assert snap.units_remaining == 7
    assert snap.estimated_completion == T + timedelta(minutes=50)
    assert not snap.stopped


def test_stopped_job_is_frozen_at_actual_output():
    job = running_job(status="stopped", actual_output=4)

    for minutes in (0, 7, 60, 10_000):
        snap = compute_progress(job, T + timedelta(minutes=minutes), cycle_duration_seconds=300)
        assert snap.units_done == 4
        assert snap.percent == 40
        assert snap.stopped
        assert snap.estimated_completion is None


def test_units_done_is_monotonic_in_time():
    job = running_job()
    previous = 0
    for seconds in range(0, 4000, 37):
        done = units_done_at(job, T + timedelta(seconds=seconds), 300)
        assert done >= previous
        previous = done


def test_no_partial_units_before_cycle_boundary():
    job = running_job()
    assert units_done_at(job, T + timedelta(seconds=299), 300) == 0
    assert units_done_at(job, T + timedelta(seconds=300), 300) == 1


def test_clock_before_start_clamps_to_zero():
    job = running_job()
    snap = compute_progress(job, T - timedelta(hours=2), cycle_duration_seconds=300)

    assert snap.units_done == 0
    assert snap.percent == 0
    assert snap.units_remaining == 10


def test_over_cycle_job_reports_full_progress():
    job = running_job(expected_output=4)
    snap = compute_progress(job, T + timedelta(hours=2), cycle_duration_seconds=300)

    assert snap.units_done == 24
    assert snap.percent == 100
    assert snap.units_remaining == 0


def test_percent_rounds_half_up():
    job = running_job(expected_output=40)
    # 1 of 40 = 2.5%
    snap = compute_progress(job, T + timedelta(seconds=300), cycle_duration_seconds=300)
    assert snap.percent == 3


def test_missing_expected_output_defaults_to_hundred():
    job = running_job(expected_output=None)
    snap = compute_progress(job, T + timedelta(minutes=25), cycle_duration_seconds=300)

    assert snap.expected_output == 100
    assert snap.units_done == 5
    assert snap.percent == 5


def test_running_job_without_start_is_frozen():
    job = running_job(start_date=None, actual_output=2)
    snap = compute_progress(job, T + timedelta(hours=1), cycle_duration_seconds=300)

    assert snap.units_done == 2
    assert snap.stopped


def test_per_job_cycle_override():
    job = running_job(cycle_duration_seconds=60)
    assert units_done_at(job, T + timedelta(minutes=16), 300) == 16
