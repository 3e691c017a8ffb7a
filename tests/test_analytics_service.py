import pytest

from models.schemas import SessionSummary
from services.analytics_service import ExerciseAnalytics, SessionRecorder
from services.history_store import HistoryStore, InMemoryHistoryStore


def summary(quality, reps=10.0, ended_at=0.0, consistency=1.0):
    return SessionSummary(
        exerciseName="bicep_curl", startedAt=ended_at - 60, endedAt=ended_at,
        repCount=reps, avgFormQuality=quality, formConsistency=consistency,
    )


def test_recorder_without_frames_gives_safe_defaults():
    result = SessionRecorder("bicep_curl", 10.0).summarize(ended_at=10.0)
    assert result.repCount == 0.0
    assert result.frameCount == 0
    assert result.avgFormQuality == 0.0
    assert result.formConsistency == 1.0
    assert result.avgRepDuration == 0.0
    assert result.avgRestPeriod == 0.0


def test_recorder_aggregates_reps_and_frames():
    recorder = SessionRecorder("bicep_curl", 0.0)
    recorder.record_frame(1.0)
    recorder.record_frame(None)
    recorder.record_frame(0.5)
    recorder.record_rep(1.0, 0.0, 2.0, {"left_elbow": 100.0})
    recorder.record_frame(0.0)
    recorder.record_rep(0.5, 3.0, 4.0, {"left_elbow": 100.0})

    result = recorder.summarize(ended_at=5.0)
    assert result.frameCount == 4
    assert result.avgFormQuality == pytest.approx(0.5)
    assert result.repCount == 1.5
    assert result.fullReps == 1
    assert result.partialReps == 1
    assert result.avgRepDuration == pytest.approx(1.5)
    assert result.avgRestPeriod == pytest.approx(1.0)
    assert result.formConsistency == pytest.approx(1.0)
    assert recorder.reps[0].form_quality == pytest.approx(0.75)
    assert recorder.reps[1].form_quality == pytest.approx(0.0)


def test_form_consistency_drops_with_angle_spread():
    recorder = SessionRecorder("bicep_curl", 0.0)
    assert recorder.form_consistency() == 1.0

    recorder.record_rep(1.0, 0.0, 1.0, {"left_elbow": 60.0})
    assert recorder.form_consistency() == 1.0

    recorder.record_rep(1.0, 1.0, 2.0, {"left_elbow": 90.0})
    # std of [60, 90] is 15, the spread that scores zero
    assert recorder.form_consistency() == pytest.approx(0.0)


def test_history_is_bounded_but_totals_are_cumulative():
    analytics = ExerciseAnalytics(max_sessions=3)
    for i, quality in enumerate([0.2, 0.4, 0.6, 0.8, 0.9]):
        analytics.record_session(summary(quality, reps=10.0, ended_at=float(i)))

    history = analytics.get_history("bicep_curl")
    assert [s.avgFormQuality for s in history.sessions] == [0.6, 0.8, 0.9]
    assert history.totalReps == 50.0
    assert history.averageFormQuality == pytest.approx((0.6 + 0.8 + 0.9) / 3)
    assert history.formImprovementTrend == pytest.approx(0.3)


def test_single_session_has_no_trend():
    analytics = ExerciseAnalytics()
    history = analytics.record_session(summary(0.7))
    assert history.formImprovementTrend == 0.0
    assert history.averageFormQuality == pytest.approx(0.7)


def test_best_session_needs_strictly_better_quality():
    analytics = ExerciseAnalytics()
    analytics.record_session(summary(0.8, ended_at=1.0))
    analytics.record_session(summary(0.8, ended_at=2.0))
    assert analytics.get_history("bicep_curl").bestSession.endedAt == 1.0

    analytics.record_session(summary(0.81, ended_at=3.0))
    assert analytics.get_history("bicep_curl").bestSession.endedAt == 3.0


def test_best_session_survives_eviction():
    analytics = ExerciseAnalytics(max_sessions=2)
    analytics.record_session(summary(0.95, ended_at=1.0))
    for i in range(2, 6):
        analytics.record_session(summary(0.5, ended_at=float(i)))
    history = analytics.get_history("bicep_curl")
    assert all(s.endedAt != 1.0 for s in history.sessions)
    assert history.bestSession.endedAt == 1.0


def test_progress_report_without_history():
    report = ExerciseAnalytics().generate_progress_report("lunge")
    assert report.totalSessions == 0
    assert report.message.startswith("Not enough historical data")
    assert report.bestSession is None


def test_progress_report_with_improving_form():
    analytics = ExerciseAnalytics()
    analytics.record_session(summary(0.5, reps=8.0, ended_at=1.0, consistency=0.9))
    analytics.record_session(summary(0.7, reps=10.0, ended_at=2.0, consistency=0.95))

    report = analytics.generate_progress_report("bicep_curl")
    assert report.totalSessions == 2
    assert report.totalReps == 18.0
    assert report.avgRepsPerSession == pytest.approx(9.0)
    assert report.formImprovementTrend == pytest.approx(0.2)
    assert report.consistencyScore == pytest.approx(0.8)
    assert report.areasOfImprovement == ["None identified"]
    assert any("increasing weight" in r for r in report.recommendations)
    assert report.bestSession.formQuality == pytest.approx(0.7)
    assert report.bestSession.repCount == 10.0


def test_progress_report_flags_declines():
    analytics = ExerciseAnalytics()
    analytics.record_session(summary(0.9, reps=12.0, ended_at=1.0))
    analytics.record_session(summary(0.6, reps=10.0, ended_at=2.0))

    report = analytics.generate_progress_report("bicep_curl")
    assert "Form quality" in report.areasOfImprovement
    assert "Rep count" in report.areasOfImprovement
    assert "Movement consistency" in report.areasOfImprovement
    assert any("proper form" in r for r in report.recommendations)


def test_history_persists_through_store():
    store = InMemoryHistoryStore()
    ExerciseAnalytics(store=store).record_session(summary(0.75, reps=6.0))

    reloaded = ExerciseAnalytics(store=store)
    history = reloaded.get_history("bicep_curl")
    assert len(history.sessions) == 1
    assert history.totalReps == 6.0
    assert history.bestSession.avgFormQuality == 0.75


def test_unreadable_history_is_ignored():
    store = InMemoryHistoryStore()
    store.save("exercise-history", {"bicep_curl": {"sessions": "not a list"}})
    assert ExerciseAnalytics(store=store).histories == {}


def test_history_store_is_abstract():
    with pytest.raises(TypeError):
        HistoryStore()
