from utils.severity import Severity, base_severity, classify_severity

IDEAL = (40, 160)


def test_base_tiers():
    assert base_severity(100, IDEAL) == Severity.GOOD
    assert base_severity(40, IDEAL) == Severity.GOOD
    assert base_severity(35, IDEAL) == Severity.WARNING
    assert base_severity(170, IDEAL) == Severity.WARNING
    assert base_severity(171, IDEAL) == Severity.ERROR
    assert base_severity(20, IDEAL) == Severity.ERROR


def test_no_previous_tier_uses_base():
    assert classify_severity(35, IDEAL) == Severity.WARNING


def test_jitter_around_boundary_does_not_flicker():
    previous = Severity.GOOD
    changes = 0
    for value in [39.9, 40.1] * 20:
        current = classify_severity(value, IDEAL, previous=previous)
        changes += current != previous
        previous = current
    assert changes == 0
    assert previous == Severity.GOOD


def test_jitter_from_warning_holds_warning():
    previous = Severity.WARNING
    for value in [39.9, 40.1] * 10:
        previous = classify_severity(value, IDEAL, previous=previous)
    assert previous == Severity.WARNING


def test_worsening_needs_buffer():
    assert classify_severity(38, IDEAL, previous=Severity.GOOD) == Severity.GOOD
    assert classify_severity(36, IDEAL, previous=Severity.GOOD) == Severity.WARNING


def test_improving_needs_buffer():
    assert classify_severity(42, IDEAL, previous=Severity.WARNING) == Severity.WARNING
    assert classify_severity(44, IDEAL, previous=Severity.WARNING) == Severity.GOOD
    assert classify_severity(31, IDEAL, previous=Severity.ERROR) == Severity.ERROR
    assert classify_severity(34, IDEAL, previous=Severity.ERROR) == Severity.WARNING


def test_steps_across_tiers():
    assert classify_severity(0, IDEAL, previous=Severity.GOOD) == Severity.ERROR
    assert classify_severity(100, IDEAL, previous=Severity.ERROR) == Severity.GOOD
    # Past the warning band but within its buffer: one step only
    assert classify_severity(28, IDEAL, previous=Severity.GOOD) == Severity.WARNING


def test_accepts_previous_as_string():
    assert classify_severity(100, IDEAL, previous="warning") == Severity.GOOD


def test_physical_limit_is_not_damped():
    # A non-negative value can never exceed the lower bound of (0, 10)
    assert classify_severity(1, (0, 10), previous=Severity.WARNING) == Severity.WARNING
    assert classify_severity(1, (0, 10), previous=Severity.WARNING,
                             value_limits=(0, None)) == Severity.GOOD
    # The upper bound is still damped
    assert classify_severity(9, (0, 10), previous=Severity.WARNING,
                             value_limits=(0, None)) == Severity.WARNING
