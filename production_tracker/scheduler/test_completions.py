from production_tracker.scheduler import CompletionDetector, detect_new_completions


def test_delta_is_never_negative():
    for prev in range(0, 6):
        for curr in range(0, 6):
            delta = detect_new_completions("job", prev, curr)
            assert delta >= 0
            if curr <= prev:
                assert delta == 0
            else:
                assert delta == curr - prev


def test_detector_reports_each_unit_once():
    detector = CompletionDetector()

    assert detector.observe(1, 2) == 2
    assert detector.observe(1, 2) == 0
    assert detector.observe(1, 4) == 2
    assert detector.last_observed(1) == 4


def test_first_observation_is_seeded_from_persisted_output():
    detector = CompletionDetector()

    # Units 1-3 were written back by an earlier session
    assert detector.observe(1, 5, persisted_output=3) == 2
    assert detector.last_observed(1) == 5


def test_higher_persisted_output_is_adopted_silently():
    detector = CompletionDetector()
    detector.observe(1, 2)

    assert detector.observe(1, 6, persisted_output=6) == 0
    assert detector.observe(1, 7, persisted_output=6) == 1


def test_counter_never_moves_backwards():
    detector = CompletionDetector()
    detector.observe(1, 5)

    # Clock stepped back, then forward again
    assert detector.observe(1, 3) == 0
    assert detector.last_observed(1) == 5
    assert detector.observe(1, 5) == 0


def test_forget_drops_job_state():
    detector = CompletionDetector()
    detector.observe("a", 1)
    detector.observe("b", 1)
    detector.forget("a")

    assert detector.get_all() == {"b": 1}
    assert detector.last_observed("a") is None
