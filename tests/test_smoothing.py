import pytest

from utils.smoothing import MetricSmoother, smooth_value


def test_empty_history_returns_raw():
    assert smooth_value(42.0, []) == 42.0


def test_short_history_is_not_trimmed():
    assert smooth_value(10.0, [0.0, 0.0, 0.0]) == pytest.approx(2.0)
    # Nine samples: the 90 outlier stays in the mean
    assert smooth_value(0.0, [0.0] * 8 + [90.0]) == pytest.approx(8.0)


def test_outliers_trimmed_from_ten_samples():
    history = [0.0] * 8 + [100.0, -100.0]
    assert smooth_value(5.0, history) == pytest.approx(1.0)


def test_single_glitch_barely_moves_output():
    history = [90.0] * 20
    assert smooth_value(10.0, history) == pytest.approx(0.2 * 10.0 + 0.8 * 90.0)
    assert smooth_value(90.0, history[:-1] + [10.0]) == pytest.approx(90.0)


def test_output_between_raw_and_history_mean():
    history = [30.0, 40.0, 50.0, 60.0]
    result = smooth_value(100.0, history)
    assert 45.0 <= result <= 100.0


def test_smoother_uses_prior_samples_only():
    smoother = MetricSmoother(window=20, weight=0.2)
    assert smoother.smooth("angle", 10.0) == 10.0
    assert smoother.smooth("angle", 0.0) == pytest.approx(8.0)
    # Independent history per metric
    assert smoother.smooth("other", 3.0) == 3.0


def test_smoother_window_is_bounded():
    smoother = MetricSmoother(window=5)
    for value in range(50):
        smoother.smooth("angle", float(value))
    assert len(smoother.histories["angle"]) == 5
    assert list(smoother.histories["angle"]) == [45.0, 46.0, 47.0, 48.0, 49.0]

    smoother.reset()
    assert smoother.smooth("angle", 7.0) == 7.0
