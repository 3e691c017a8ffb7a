import numpy as np
import pytest

from models import bicep_curl, russian_twist, shoulder_press
from models.exercise_catalog import list_exercises
from models.rep_state_machine import MetricBundle, RepStateMachine, driving_angle

FRAME = 1 / 30


def run(machine, values, start=0.0, step=FRAME):
    ts = start
    for value in values:
        machine.update(MetricBundle(metrics={"range_of_motion": value}), ts)
        ts += step
    return ts


def test_full_curl_sweep_counts_one_rep():
    machine = RepStateMachine(bicep_curl.STRATEGY)
    run(machine, [170, 150, 90, 55, 90, 150, 170])
    assert machine.rep_count == 1.0
    assert machine.state == "down"
    assert [(e.from_state, e.to_state) for e in machine.history] == [
        ("waiting", "down"), ("down", "partial_up"), ("partial_up", "up"), ("up", "down"),
    ]


def test_gradual_lowering_through_partial_band_counts_full_rep():
    machine = RepStateMachine(bicep_curl.STRATEGY)
    run(machine, [170, 120, 95, 60, 100, 120, 150])
    assert machine.rep_count == 1.0
    assert machine.full_reps == 1
    assert machine.partial_reps == 0


def test_partial_curl_counts_half():
    machine = RepStateMachine(bicep_curl.STRATEGY)
    run(machine, [170, 100, 170])
    assert machine.rep_count == 0.5
    assert machine.partial_reps == 1


def test_first_matching_transition_wins():
    machine = RepStateMachine(bicep_curl.STRATEGY)
    event = machine.update(MetricBundle(metrics={"range_of_motion": 170}), 0.0)
    assert event.to_state == "down"
    assert event.quality == 0.0
    assert machine.update(MetricBundle(metrics={"range_of_motion": 170}), FRAME) is None


def test_driving_angle_fallback_order():
    bundle = MetricBundle(metrics={"range_of_motion": 100},
                          joint_angles={"right_elbow": 170, "left_elbow": 60})
    assert driving_angle(bundle, joint="elbow") == 100

    bundle = MetricBundle(joint_angles={"right_elbow": 170, "left_elbow": 60})
    assert driving_angle(bundle, joint="elbow") == 170

    bundle = MetricBundle(joint_angles={"left_elbow": 60})
    assert driving_angle(bundle, joint="elbow") == 60
    assert driving_angle(MetricBundle(), joint="elbow") is None


def test_joint_angles_drive_transitions_without_metric():
    machine = RepStateMachine(bicep_curl.STRATEGY)
    machine.update(MetricBundle(joint_angles={"left_elbow": 60}), 0.0)
    assert machine.state == "up"


def test_count_never_decreases():
    rng = np.random.default_rng(3)
    for exercise in list_exercises():
        machine = RepStateMachine(exercise.strategy, max_state_duration=0.5)
        last = 0.0
        ts = 0.0
        for _ in range(400):
            if exercise.key == "bent_over_row":
                value = rng.uniform(-0.1, 0.15)
            else:
                value = rng.uniform(0, 180)
            bundle = MetricBundle(
                metrics={"range_of_motion": value},
                aux={"range_of_motion": {"rotation_direction": int(rng.choice([-1, 1]))}},
            )
            machine.update(bundle, ts)
            assert machine.state in exercise.strategy.states
            assert machine.rep_count >= last
            last = machine.rep_count
            ts += rng.uniform(0.01, 0.4)


def test_stall_in_waiting_forces_state_from_split():
    machine = RepStateMachine(bicep_curl.STRATEGY, max_state_duration=3.0)
    run(machine, [105] * 100, step=0.05)
    first = machine.history[0]
    assert (first.from_state, first.to_state, first.forced) == ("waiting", "down", True)
    assert first.timestamp > 3.0
    assert machine.rep_count == 0.0

    machine = RepStateMachine(bicep_curl.STRATEGY, max_state_duration=3.0)
    run(machine, [110] * 100, step=0.05)
    assert machine.state == "down"
    assert machine.stall_recoveries == 1

    machine = RepStateMachine(bicep_curl.STRATEGY, max_state_duration=3.0)
    run(machine, [100] * 100, step=0.05)
    assert machine.state == "up"
    assert machine.history[0].forced


def test_stall_without_data_uses_fallback():
    machine = RepStateMachine(bicep_curl.STRATEGY, max_state_duration=3.0)
    for i in range(100):
        machine.update(MetricBundle(), i * 0.05)
    assert machine.state == "down"
    assert machine.stall_recoveries == 1


def test_stall_confirming_current_state_restarts_timer():
    machine = RepStateMachine(bicep_curl.STRATEGY, max_state_duration=3.0)
    end = run(machine, [170] + [150] * 100, step=0.05)
    assert machine.state == "down"
    assert machine.stall_recoveries == 0
    assert machine.time_in_state(end) < 3.0


def test_forced_transition_never_counts():
    machine = RepStateMachine(bicep_curl.STRATEGY, max_state_duration=3.0)
    ts = run(machine, [170, 55])
    assert machine.state == "up"
    # 110 matches no transition out of up or down, and sits above the split
    run(machine, [110] * 100, start=ts, step=0.05)
    assert machine.state == "down"
    assert machine.stall_recoveries == 1
    assert machine.history[-1].forced
    assert machine.rep_count == 0.0
    assert machine.full_reps == 0


def test_stall_does_not_fire_before_limit():
    machine = RepStateMachine(shoulder_press.STRATEGY, max_state_duration=3.0)
    run(machine, [130] * 50, step=0.05)
    assert machine.state == "waiting"
    assert machine.stall_recoveries == 0


def test_reset_restores_initial_state():
    machine = RepStateMachine(bicep_curl.STRATEGY)
    run(machine, [170, 55, 170, 55, 170])
    assert machine.rep_count == 2.0
    machine.reset()
    assert machine.state == "waiting"
    assert machine.rep_count == 0.0
    assert machine.full_reps == 0
    assert machine.history == []
    assert machine.time_in_state(100.0) == 0.0


def test_shoulder_press_counts_on_press():
    machine = RepStateMachine(shoulder_press.STRATEGY)
    run(machine, [90, 170, 90, 170])
    assert machine.rep_count == 2.0


def test_russian_twist_counts_after_left_turn():
    machine = RepStateMachine(russian_twist.STRATEGY)
    ts = 0.0
    for value, direction in [(5, 0), (30, 1), (5, 0), (30, -1), (5, 0)]:
        bundle = MetricBundle(metrics={"range_of_motion": value},
                              aux={"range_of_motion": {"rotation_direction": direction}})
        machine.update(bundle, ts)
        ts += FRAME
    assert machine.rep_count == 1.0
    assert machine.state == "center"


@pytest.mark.parametrize("exercise", list_exercises(), ids=lambda e: e.key)
def test_every_strategy_is_well_formed(exercise):
    strategy = exercise.strategy
    assert strategy.initial_state == "waiting"
    assert strategy.initial_state in strategy.states
    for source, transitions in strategy.transitions.items():
        assert source in strategy.states
        for transition in transitions:
            assert transition.target in strategy.states
    for (source, target), quality in strategy.rep_values.items():
        assert source in strategy.states and target in strategy.states
        assert quality in (0.5, 1.0)
    assert strategy.stall_recovery.fallback_state in strategy.states
