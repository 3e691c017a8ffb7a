import math

import pytest

from config import config
from models.pose import Pose
from models.workout_counter import WorkoutCounter
from services.analytics_service import ExerciseAnalytics

FPS = 30
SWEEP = [170, 150, 90, 55, 90, 150, 170]


class RecordingFeedbackService:
    def __init__(self):
        self.snapshots = []

    def submit(self, snapshot):
        self.snapshots.append(snapshot)


@pytest.fixture
def counter():
    return WorkoutCounter(analytics=ExerciseAnalytics())


def feed(counter, curl_pose, angles, frames_per_angle=15, start=0.0):
    ts = start
    results = []
    for angle in angles:
        pose = curl_pose(angle)
        for _ in range(frames_per_angle):
            results.append(counter.update(pose, ts))
            ts += 1.0 / FPS
    return results, ts


def curl_wave(counter, curl_pose, period, reps, low=45.0, high=170.0, start=0.0):
    """Smooth elbow oscillation sampled at FPS, starting and ending extended"""
    middle = (high + low) / 2
    amplitude = (high - low) / 2
    results = []
    frames = int(round(reps * period * FPS))
    for i in range(frames + 1):
        t = i / FPS
        angle = middle + amplitude * math.cos(2 * math.pi * t / period)
        results.append(counter.update(curl_pose(angle), start + t))
    return results, start + frames / FPS


def test_update_without_session_raises(counter, curl_pose):
    with pytest.raises(RuntimeError):
        counter.update(curl_pose(170), 0.0)
    with pytest.raises(RuntimeError):
        counter.stop_session(0.0)


def test_unknown_exercise_leaves_counter_idle(counter):
    with pytest.raises(KeyError):
        counter.start_session("jumping jacks", 0.0)
    assert not counter.is_active


def test_full_curl_counts_one_rep(counter, curl_pose):
    start = counter.start_session("Bicep Curl", 0.0)
    assert start.isWorkoutActive
    assert start.exerciseName == "Dumbbell Bicep Curls"

    results, ts = feed(counter, curl_pose, SWEEP)
    assert counter.count == 1.0
    assert counter.state == "down"
    assert sum(r.repCompleted for r in results) == 1
    assert results[-1].repCount == 1.0
    assert results[-1].motivation.startswith("Rep 1")

    last = results[-1]
    assert set(last.metrics) >= {"range_of_motion", "symmetry", "shoulder_stability"}
    assert all(m.severity in ("good", "warning", "error") for m in last.metrics.values())
    assert 0.0 <= last.formQuality <= 1.0
    assert {f.category for f in last.feedback} >= {"range", "symmetry"}

    summary = counter.stop_session(ts)
    assert summary.repCount == 1.0
    assert summary.fullReps == 1
    assert summary.partialReps == 0
    assert summary.frameCount == len(results)
    assert summary.avgRepDuration > 0
    assert summary.duration == pytest.approx(ts)
    assert "left_elbow" in summary.jointAngles
    assert not counter.is_active


def test_rep_count_never_decreases(counter, curl_pose):
    counter.start_session("bicep_curl", 0.0)
    results, _ = feed(counter, curl_pose, SWEEP * 3, frames_per_angle=10)
    counts = [r.repCount for r in results]
    assert counts == sorted(counts)
    assert counts[-1] >= 2.0


def test_empty_pose_changes_nothing(counter, curl_pose):
    counter.start_session("bicep_curl", 0.0)
    _, ts = feed(counter, curl_pose, [170], frames_per_angle=5)
    state = counter.state

    empty = counter.update(Pose([]), ts)
    missing = counter.update(None, ts + 0.1)
    assert empty.repCount == 0.0
    assert empty.metrics == {}
    assert missing.repState == state
    assert counter.get_status()["frame_count"] == 7


def test_stopping_without_frames_is_safe(counter):
    counter.start_session("lunge", 5.0)
    summary = counter.stop_session(5.0)
    assert summary.exerciseName == "lunge"
    assert summary.repCount == 0.0
    assert summary.frameCount == 0
    assert summary.avgFormQuality == 0.0
    assert summary.formConsistency == 1.0
    assert summary.avgRepDuration == 0.0
    assert summary.duration == 0.0


def test_session_recorded_in_history(counter, curl_pose):
    counter.start_session("bicep_curl", 0.0)
    _, ts = feed(counter, curl_pose, SWEEP)
    counter.stop_session(ts)

    history = counter.analytics.get_history("bicep_curl")
    assert len(history.sessions) == 1
    assert history.totalReps == 1.0
    assert history.bestSession is not None


def test_starting_new_session_closes_previous(counter, curl_pose):
    counter.start_session("bicep_curl", 0.0)
    feed(counter, curl_pose, [170], frames_per_angle=3)
    counter.start_session("shoulder press", 10.0)

    assert counter.mode == "shoulder_press"
    assert counter.count == 0.0
    assert len(counter.analytics.get_history("bicep_curl").sessions) == 1


def test_switch_to_same_exercise_keeps_session(counter, curl_pose):
    counter.start_session("bicep_curl", 0.0)
    feed(counter, curl_pose, SWEEP)
    counter.switch_mode("curl")
    assert counter.count == 1.0
    assert counter.analytics.get_history("bicep_curl").sessions == []


def test_reset_discards_progress(counter, curl_pose):
    counter.start_session("bicep_curl", 0.0)
    _, ts = feed(counter, curl_pose, SWEEP)
    result = counter.reset(ts)
    assert result.repCount == 0.0
    assert result.repState == "waiting"
    assert counter.mode == "bicep_curl"
    assert counter.analytics.get_history("bicep_curl").sessions == []


def test_stalled_machine_is_recovered(counter, curl_pose):
    counter.start_session("bicep_curl", 0.0)
    # 120 degrees matches no transition out of waiting
    feed(counter, curl_pose, [120], frames_per_angle=4 * FPS)
    status = counter.get_status()
    assert status["stall_recoveries"] == 1
    assert status["state"] == "down"
    assert status["count"] == 0.0


def test_feedback_batches_are_submitted(curl_pose, monkeypatch):
    monkeypatch.setattr(config, "feedback_interval", 1.0)
    service = RecordingFeedbackService()
    counter = WorkoutCounter(analytics=ExerciseAnalytics(), feedback_service=service)

    counter.start_session("bicep_curl", 0.0)
    _, ts = feed(counter, curl_pose, SWEEP)
    during = len(service.snapshots)
    assert during >= 2
    assert counter.get_status()["pending_feedback_frames"] < FPS + 1

    counter.stop_session(ts)
    assert len(service.snapshots) == during + 1

    snapshot = service.snapshots[0]
    assert snapshot["exerciseKey"] == "bicep_curl"
    assert snapshot["frameCount"] > 0
    assert snapshot["formQuality"] in ("good", "needs_improvement")
    assert "left_elbow" in snapshot["jointAngles"]
    assert service.snapshots[-1]["repCount"] == 1.0


def test_single_frame_per_angle_counts_rep(counter, curl_pose):
    counter.start_session("bicep_curl", 0.0)
    results, _ = feed(counter, curl_pose, SWEEP, frames_per_angle=1)
    assert counter.count == 1.0
    assert counter.state == "down"
    assert sum(r.repCompleted for r in results) == 1


def test_fast_continuous_curls_all_count(counter, curl_pose):
    counter.start_session("bicep_curl", 0.0)
    results, ts = curl_wave(counter, curl_pose, period=1.0, reps=5)
    assert counter.count == 5.0
    assert sum(r.repCompleted for r in results) == 5

    status = counter.get_status()
    assert status["full_reps"] == 5
    assert status["stall_recoveries"] == 0
    assert counter.stop_session(ts).fullReps == 5


def test_session_clock_follows_frame_timestamps(curl_pose, monkeypatch):
    monkeypatch.setattr(config, "feedback_interval", 1.0)
    service = RecordingFeedbackService()
    counter = WorkoutCounter(analytics=ExerciseAnalytics(), feedback_service=service)

    counter.start_session("bicep_curl")
    _, ts = curl_wave(counter, curl_pose, period=2.0, reps=2)
    assert ts == pytest.approx(4.0)
    # Batches fire on frame time, not on the wall clock at start
    assert 3 <= len(service.snapshots) <= 4

    summary = counter.stop_session()
    assert summary.startedAt == 0.0
    assert summary.endedAt == pytest.approx(4.0)
    assert summary.duration == pytest.approx(4.0)
    assert summary.repCount == 2.0
    assert 0 < summary.avgRepDuration <= 4.0
