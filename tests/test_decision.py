from capture_scheduler.capture.decision import (
    evaluate_window,
    longest_positive_run,
    required_run_length,
)

T, F = True, False


def test_fragmented_window_does_not_fire() -> None:
    evaluation = evaluate_window([T] * 5 + [F] * 5, 0.8)
    assert evaluation.required_run == 8
    assert evaluation.longest_run == 5
    assert not evaluation.satisfied


def test_long_enough_run_fires() -> None:
    evaluation = evaluate_window([T] * 8 + [F] * 2, 0.8)
    assert evaluation.required_run == 8
    assert evaluation.longest_run == 8
    assert evaluation.satisfied


def test_high_positive_share_split_into_short_runs_does_not_fire() -> None:
    samples = [T, T, T, T, F, T, T, T, T, F]
    evaluation = evaluate_window(samples, 0.8)
    assert evaluation.positive_fraction == 0.8
    assert evaluation.longest_run == 4
    assert not evaluation.satisfied


def test_zero_required_run_is_trivially_satisfied() -> None:
    assert evaluate_window([], 0.8).satisfied
    single = evaluate_window([T], 0.5)
    assert single.required_run == 0
    assert single.satisfied
    assert evaluate_window([F], 0.5).satisfied


def test_required_run_floors() -> None:
    assert required_run_length(10, 0.8) == 8
    assert required_run_length(9, 0.8) == 7
    assert required_run_length(1, 0.99) == 0
    assert required_run_length(4, 1.0) == 4
    assert required_run_length(0, 0.8) == 0


def test_longest_positive_run() -> None:
    assert longest_positive_run([]) == 0
    assert longest_positive_run([F, F]) == 0
    assert longest_positive_run([T]) == 1
    assert longest_positive_run([F, T, T, F, T, T, T]) == 3
    assert longest_positive_run([T, T, T, F, T]) == 3


def test_full_fraction_requires_all_positive() -> None:
    assert evaluate_window([T, T, T, T], 1.0).satisfied
    assert not evaluate_window([T, T, F, T], 1.0).satisfied


def test_empty_window_statistics() -> None:
    evaluation = evaluate_window([], 0.8)
    assert evaluation.sample_count == 0
    assert evaluation.positive_count == 0
    assert evaluation.positive_fraction == 0.0
