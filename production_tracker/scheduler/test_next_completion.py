from datetime import datetime, timedelta, timezone

from production_tracker.scheduler import ProductionJob, format_countdown, select_next_completion

T = datetime(2024, 3, 1, 8, 0, 0, tzinfo=timezone.utc)


def job(job_id, start, status="running", **extra):
    return ProductionJob(id=job_id, status=status, start_date=start, expected_output=10, **extra)


def test_soonest_job_wins():
    a = job("A", T)
    b = job("B", T + timedelta(seconds=60))

    result = select_next_completion([b, a], T + timedelta(seconds=240), cycle_duration_seconds=300)

    assert result.job_id == "A"
    assert result.time_remaining_ms == 60000
    assert result.estimated_instant == T + timedelta(seconds=300)


def test_exact_tie_keeps_first_in_input_order():
    first = job("first", T)
    second = job("second", T)

    result = select_next_completion([first, second], T + timedelta(seconds=100), 300)
    assert result.job_id == "first"

    result = select_next_completion([second, first], T + timedelta(seconds=100), 300)
    assert result.job_id == "second"


def test_stopped_jobs_are_ignored():
    stopped = job("S", T, status="stopped")
    assert select_next_completion([stopped], T + timedelta(seconds=10), 300) is None


def test_empty_job_list():
    assert select_next_completion([], T, 300) is None


def test_never_returns_non_positive_time_remaining():
    jobs = [job(i, T + timedelta(seconds=17 * i)) for i in range(6)]
    for seconds in range(-120, 2000, 13):
        result = select_next_completion(jobs, T + timedelta(seconds=seconds), 300)
        assert result is not None
        assert result.time_remaining_ms > 0


def test_on_boundary_next_unit_is_a_full_cycle_away():
    result = select_next_completion([job("A", T)], T + timedelta(seconds=600), 300)
    assert result.time_remaining_ms == 300000


def test_completing_flag_and_countdown():
    result = select_next_completion([job("A", T)], T + timedelta(seconds=280), 300,
                                    completing_threshold_seconds=30)
    assert result.is_completing
    assert result.to_dict()["countdown"] == "00:20"

    result = select_next_completion([job("A", T)], T + timedelta(seconds=100), 300)
    assert not result.is_completing


def test_format_countdown():
    assert format_countdown(125000) == "02:05"
    assert format_countdown(999) == "00:00"
    assert format_countdown(-5) == "00:00"
