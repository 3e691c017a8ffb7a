# workout_counter.py
"""
Main workout coordinator: owns the active session and pushes every frame
through measurement, smoothing, severity classification and rep counting.
All per-session mutable state lives in a WorkoutSession that is replaced
whole on start, so no frame can observe a half-reset session.
"""

import time
from typing import Any, Dict, List, Optional

from config import config
from models.exercise_catalog import get_exercise
from models.metric_base import ExerciseDefinition, FeedbackCategory
from models.pose import Pose, compute_joint_angles
from models.rep_state_machine import MetricBundle, RepEvent, RepStateMachine
from models.schemas import FeedbackMessage, FrameMetrics, FrameResult, MetricReading, SessionSummary
from services.analytics_service import ExerciseAnalytics, SessionRecorder
from services.feedback_service import build_feedback_snapshot
from utils.logging_utils import logger
from utils.motivation import get_motivation_text
from utils.severity import SEVERITY_SCORE, Severity, classify_severity
from utils.smoothing import MetricSmoother

POSTURE_CATEGORIES = {FeedbackCategory.BACK, FeedbackCategory.STANCE, FeedbackCategory.HIP, FeedbackCategory.SHOULDER}
SYMMETRY_JOINTS = ("elbow", "shoulder", "hip", "knee")


class WorkoutSession:
    """State of one exercise session, from start to stop"""

    def __init__(self, exercise: ExerciseDefinition, started_at: Optional[float] = None):
        # Without a start time the session clock is taken from the first frame
        self.clock_pending = started_at is None
        if started_at is None:
            started_at = time.time()
        self.exercise = exercise
        self.started_at = started_at
        self.machine = RepStateMachine(exercise.strategy, name=exercise.display_name)
        self.smoother = MetricSmoother()
        self.severities: Dict[str, Severity] = {}
        self.previous_pose: Optional[Pose] = None
        self.recorder = SessionRecorder(exercise.key, started_at)
        self.frame_log: List[FrameMetrics] = []
        self.batch_started_at = started_at
        self.rep_started_at: Optional[float] = None
        self.last_rep_at: Optional[float] = None
        self.last_timestamp = started_at

    @property
    def frame_count(self) -> int:
        return self.recorder.frame_count

    def sync_clock(self, timestamp: float):
        """Move the session start onto the clock of the first frame"""
        if not self.clock_pending:
            return
        self.clock_pending = False
        self.started_at = timestamp
        self.recorder.started_at = timestamp
        self.batch_started_at = timestamp
        self.last_timestamp = timestamp

    def default_stop_time(self) -> float:
        # Stay on whichever clock the frames used
        return time.time() if self.clock_pending else self.last_timestamp


class WorkoutCounter:
    """
    Single-session coordinator used by the API.
    Analytics and the feedback service are injected so tests and the app
    can share or isolate them.
    """

    def __init__(self, analytics: ExerciseAnalytics = None, feedback_service=None):
        self.analytics = analytics or ExerciseAnalytics()
        self.feedback_service = feedback_service
        self.session: Optional[WorkoutSession] = None
        logger.info("WorkoutCounter initialized")

    @property
    def is_active(self) -> bool:
        return self.session is not None

    @property
    def mode(self) -> Optional[str]:
        return self.session.exercise.key if self.session else None

    @property
    def count(self) -> float:
        """Get current repetition count"""
        return self.session.machine.rep_count if self.session else 0.0

    @property
    def state(self) -> str:
        return self.session.machine.state if self.session else "waiting"

    def start_session(self, exercise_name: str, timestamp: float = None) -> FrameResult:
        """
        Begin tracking an exercise. An unknown name raises KeyError.
        A session already in progress is closed and recorded first.
        """
        exercise = get_exercise(exercise_name)

        if self.session is not None:
            logger.info(f"Closing {self.session.exercise.key} session before starting {exercise.key}")
            self.stop_session(timestamp)

        self.session = WorkoutSession(exercise, timestamp)
        logger.info(f"Started {exercise.display_name} session")
        return FrameResult(
            timestamp=self.session.started_at,
            exerciseName=exercise.display_name,
            motivation=get_motivation_text(0),
            isWorkoutActive=True,
        )

    def switch_mode(self, new_mode: str, timestamp: float = None) -> FrameResult:
        """Change exercise, closing the current session if it is a different one"""
        if self.session is not None and get_exercise(new_mode).key == self.session.exercise.key:
            return self._empty_result(self.session, self.session.last_timestamp)
        return self.start_session(new_mode, timestamp)

    def reset(self, timestamp: float = None) -> FrameResult:
        """Discard the current session's progress and restart the same exercise"""
        session = self._require_session()
        self.session = WorkoutSession(session.exercise, timestamp)
        logger.info(f"Reset {session.exercise.key} session")
        return self._empty_result(self.session, self.session.started_at)

    def update(self, pose: Optional[Pose], timestamp: float = None) -> FrameResult:
        """
        Process one frame. A missing or empty pose yields a frame with no
        metric updates and an unchanged rep count.
        """
        session = self._require_session()
        ts = time.time() if timestamp is None else timestamp
        session.sync_clock(ts)
        session.last_timestamp = ts

        if pose is None or pose.is_empty:
            session.recorder.record_frame(None)
            return self._empty_result(session, ts)

        exercise = session.exercise
        results = exercise.measure_all(pose, session.previous_pose)
        joint_angles = compute_joint_angles(pose)
        bundle = MetricBundle(joint_angles=joint_angles)

        readings: Dict[str, MetricReading] = {}
        severities: Dict[str, Severity] = {}
        feedback: List[FeedbackMessage] = []
        issues: List[str] = []

        for metric in exercise.evaluation_order:
            result = results.get(metric.name)
            if result is None:
                continue

            smoothed = session.smoother.smooth(metric.name, result.value)
            severity = classify_severity(
                smoothed,
                result.ideal_range,
                result.warning_margin,
                session.severities.get(metric.name),
                result.hysteresis_buffer,
                result.value_limits,
            )
            session.severities[metric.name] = severity
            severities[metric.name] = severity

            # Rep guards see this frame's measurement; smoothing only feeds severity and readings
            bundle.metrics[metric.name] = result.value
            bundle.aux[metric.name] = result.aux
            readings[metric.name] = MetricReading(value=smoothed, severity=severity.value)

            text = result.feedback_text.for_severity(severity)
            feedback.append(FeedbackMessage(
                metric=metric.name, category=result.category.value, severity=severity.value, text=text,
            ))
            if severity != Severity.GOOD:
                issues.append(text)

        event = session.machine.update(bundle, ts)
        rep_completed = self._track_rep(session, event, joint_angles)

        quality = None
        if severities:
            quality = sum(SEVERITY_SCORE[s] for s in severities.values()) / len(severities)
        session.recorder.record_frame(quality)

        session.frame_log.append(FrameMetrics(
            timestamp=ts,
            jointAngles=joint_angles,
            metrics={name: r.value for name, r in readings.items()},
            severities={name: s.value for name, s in severities.items()},
            symmetry=self._symmetry_summary(joint_angles),
            posture={name: r.value for name, r in readings.items()
                     if exercise.metric(name).category in POSTURE_CATEGORIES},
            movement={name: r.value for name, r in readings.items()
                      if exercise.metric(name).category == FeedbackCategory.TEMPO},
            repState=session.machine.state,
            repCount=session.machine.rep_count,
            formQuality=quality,
            formIssues=issues,
        ))
        session.previous_pose = pose

        if ts - session.batch_started_at >= config.feedback_interval:
            self._flush_feedback_batch(session, ts)

        return FrameResult(
            timestamp=ts,
            exerciseName=exercise.display_name,
            repCount=session.machine.rep_count,
            repState=session.machine.state,
            repCompleted=rep_completed,
            metrics=readings,
            formIssues=issues,
            feedback=feedback,
            jointAngles=joint_angles,
            formQuality=quality,
            motivation=get_motivation_text(session.machine.rep_count, exercise.rep_goal),
            isWorkoutActive=True,
        )

    def stop_session(self, timestamp: float = None) -> SessionSummary:
        """Close the session, record its summary in the exercise history and return it"""
        session = self._require_session()
        ts = session.default_stop_time() if timestamp is None else timestamp

        self._flush_feedback_batch(session, ts)
        summary = session.recorder.summarize(
            ended_at=ts,
            rep_count=session.machine.rep_count,
            stall_recoveries=session.machine.stall_recoveries,
        )
        self.analytics.record_session(summary)
        self.session = None
        logger.info(f"Stopped {session.exercise.key} session: {summary.repCount:g} reps "
                    f"over {summary.frameCount} frames")
        return summary

    def get_status(self) -> Dict[str, Any]:
        """Get comprehensive workout status for debugging"""
        if self.session is None:
            return {"mode": None, "active": False, "count": 0.0, "state": "waiting", "frame_count": 0}
        machine = self.session.machine
        return {
            "mode": self.session.exercise.key,
            "active": True,
            "count": machine.rep_count,
            "state": machine.state,
            "full_reps": machine.full_reps,
            "partial_reps": machine.partial_reps,
            "stall_recoveries": machine.stall_recoveries,
            "frame_count": self.session.frame_count,
            "pending_feedback_frames": len(self.session.frame_log),
        }

    def _require_session(self) -> WorkoutSession:
        if self.session is None:
            raise RuntimeError("No active session")
        return self.session

    def _track_rep(self, session: WorkoutSession, event: Optional[RepEvent], joint_angles: Dict[str, float]) -> bool:
        # A rep starts at the first real transition after the previous one ended
        if event is None or event.forced:
            return False
        if event.quality <= 0:
            if session.rep_started_at is None:
                session.rep_started_at = event.timestamp
            return False

        started = session.rep_started_at
        if started is None:
            started = session.last_rep_at if session.last_rep_at is not None else session.started_at
        session.recorder.record_rep(event.quality, started, event.timestamp, joint_angles)
        session.rep_started_at = None
        session.last_rep_at = event.timestamp
        return True

    def _flush_feedback_batch(self, session: WorkoutSession, ts: float):
        frames = session.frame_log
        session.frame_log = []
        session.batch_started_at = ts
        if not frames or self.feedback_service is None:
            return
        snapshot = build_feedback_snapshot(session.exercise, frames, session.machine.rep_count)
        self.feedback_service.submit(snapshot)
        logger.info(f"Submitted feedback batch of {len(frames)} frames")

    @staticmethod
    def _symmetry_summary(joint_angles: Dict[str, float]) -> Dict[str, float]:
        summary = {}
        for joint in SYMMETRY_JOINTS:
            left = joint_angles.get(f"left_{joint}")
            right = joint_angles.get(f"right_{joint}")
            if left is not None and right is not None:
                summary[joint] = abs(left - right)
        return summary

    @staticmethod
    def _empty_result(session: WorkoutSession, ts: float) -> FrameResult:
        exercise = session.exercise
        return FrameResult(
            timestamp=ts,
            exerciseName=exercise.display_name,
            repCount=session.machine.rep_count,
            repState=session.machine.state,
            motivation=get_motivation_text(session.machine.rep_count, exercise.rep_goal),
            isWorkoutActive=True,
        )
