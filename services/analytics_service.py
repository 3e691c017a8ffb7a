# analytics_service.py
"""
Session aggregation and cross-session exercise history.
SessionRecorder accumulates one session's frames and reps; ExerciseAnalytics
keeps a bounded per-exercise history of session summaries and derives
totals, trends, best session and progress reports from it.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
from pydantic import ValidationError

from config import config
from models.schemas import BestSessionDigest, ExerciseHistory, ProgressReport, SessionSummary
from services.history_store import HistoryStore, InMemoryHistoryStore
from utils.logging_utils import logger

MAX_EXPECTED_ANGLE_STD = 15.0  # degrees; rep-to-rep spread that scores zero consistency
MAX_EXPECTED_QUALITY_STD = 0.5  # session-to-session spread that scores zero consistency
HISTORY_KEY = "exercise-history"


@dataclass
class RepRecord:
    number: int
    quality: float                  # 1.0 full, 0.5 partial
    form_quality: float             # mean frame quality during the rep
    started_at: float
    ended_at: float
    rest_before: float = 0.0
    joint_angles: Dict[str, float] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        return max(0.0, self.ended_at - self.started_at)


class SessionRecorder:
    """
    Per-session accumulator, created on session start and reduced to a
    SessionSummary on session stop.
    """

    def __init__(self, exercise_name: str, started_at: float):
        self.exercise_name = exercise_name
        self.started_at = started_at
        self.frame_qualities: List[float] = []
        self.frame_count = 0
        self.reps: List[RepRecord] = []
        self.joint_angles: Dict[str, List[float]] = {}
        self._rep_frame_qualities: List[float] = []

    def record_frame(self, quality: Optional[float]):
        self.frame_count += 1
        if quality is not None:
            self.frame_qualities.append(quality)
            self._rep_frame_qualities.append(quality)

    def record_rep(self, quality: float, started_at: float, ended_at: float,
                   joint_angles: Dict[str, float]) -> RepRecord:
        rest = 0.0
        if self.reps:
            rest = max(0.0, started_at - self.reps[-1].ended_at)

        form_quality = float(np.mean(self._rep_frame_qualities)) if self._rep_frame_qualities else 0.0
        self._rep_frame_qualities = []

        rep = RepRecord(
            number=len(self.reps) + 1,
            quality=quality,
            form_quality=form_quality,
            started_at=started_at,
            ended_at=ended_at,
            rest_before=rest,
            joint_angles=dict(joint_angles),
        )
        self.reps.append(rep)
        for joint, angle in joint_angles.items():
            self.joint_angles.setdefault(joint, []).append(angle)

        logger.info(f"Recorded rep #{rep.number} for {self.exercise_name} "
                    f"(quality {quality}, duration {rep.duration:.2f}s)")
        return rep

    def form_consistency(self) -> float:
        """
        1 - std/15 of each tracked joint angle across reps, clipped to [0, 1]
        and averaged over joints. Fewer than two reps counts as fully consistent.
        """
        if len(self.reps) < 2:
            return 1.0

        scores = []
        for angles in self.joint_angles.values():
            if len(angles) < 2:
                continue
            std = float(np.std(angles))
            scores.append(float(np.clip(1 - std / MAX_EXPECTED_ANGLE_STD, 0.0, 1.0)))

        if not scores:
            return 1.0
        return float(np.mean(scores))

    def summarize(self, ended_at: float, rep_count: float = None, stall_recoveries: int = 0) -> SessionSummary:
        full_reps = sum(1 for rep in self.reps if rep.quality >= 1.0)
        partial_reps = len(self.reps) - full_reps
        if rep_count is None:
            rep_count = full_reps + 0.5 * partial_reps

        rests = [rep.rest_before for rep in self.reps if rep.rest_before > 0]
        return SessionSummary(
            exerciseName=self.exercise_name,
            startedAt=self.started_at,
            endedAt=ended_at,
            duration=max(0.0, ended_at - self.started_at),
            repCount=rep_count,
            fullReps=full_reps,
            partialReps=partial_reps,
            avgFormQuality=float(np.mean(self.frame_qualities)) if self.frame_qualities else 0.0,
            formConsistency=self.form_consistency(),
            avgRepDuration=float(np.mean([rep.duration for rep in self.reps])) if self.reps else 0.0,
            avgRestPeriod=float(np.mean(rests)) if rests else 0.0,
            frameCount=self.frame_count,
            stallRecoveries=stall_recoveries,
            jointAngles={joint: float(np.mean(values)) for joint, values in self.joint_angles.items() if values},
        )


class ExerciseAnalytics:
    """
    Per-exercise session history, owned by the application and injected into
    the workout counter. Histories are loaded from and saved to a HistoryStore.
    """

    def __init__(self, store: HistoryStore = None, max_sessions: int = None):
        self.store = store or InMemoryHistoryStore()
        self.max_sessions = max_sessions or config.history_max_sessions
        self.histories: Dict[str, ExerciseHistory] = {}
        self.load()

    def load(self):
        data = self.store.load(HISTORY_KEY)
        if not data:
            return
        try:
            self.histories = {name: ExerciseHistory.model_validate(h) for name, h in data.items()}
            logger.info(f"Loaded history for {len(self.histories)} exercises")
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable exercise history: {e}")
            self.histories = {}

    def save(self):
        self.store.save(HISTORY_KEY, {name: h.model_dump() for name, h in self.histories.items()})

    def get_history(self, exercise_name: str) -> ExerciseHistory:
        return self.histories.get(exercise_name, ExerciseHistory())

    def record_session(self, summary: SessionSummary) -> ExerciseHistory:
        """
        Append a closed session, evicting the oldest beyond the retention limit.
        Totals are cumulative; averages and trend are over retained sessions.
        """
        history = self.histories.setdefault(summary.exerciseName, ExerciseHistory())
        history.sessions.append(summary)
        if len(history.sessions) > self.max_sessions:
            history.sessions = history.sessions[-self.max_sessions:]

        history.totalReps += summary.repCount
        qualities = [s.avgFormQuality for s in history.sessions]
        history.averageFormQuality = float(np.mean(qualities))
        if len(history.sessions) >= 2:
            history.formImprovementTrend = history.sessions[-1].avgFormQuality - history.sessions[0].avgFormQuality
        else:
            history.formImprovementTrend = 0.0

        # Ties keep the earlier session
        if history.bestSession is None or summary.avgFormQuality > history.bestSession.avgFormQuality:
            history.bestSession = summary

        self.save()
        logger.info(f"Session recorded for {summary.exerciseName}: {summary.repCount:g} reps, "
                    f"quality {summary.avgFormQuality:.2f}")
        return history

    def generate_progress_report(self, exercise_name: str) -> ProgressReport:
        history = self.histories.get(exercise_name)
        if history is None or not history.sessions:
            return ProgressReport(
                exerciseName=exercise_name,
                totalSessions=0,
                message="Not enough historical data to generate a progress report.",
            )

        sessions = history.sessions
        total_sessions = len(sessions)
        quality_std = float(np.std([s.avgFormQuality for s in sessions]))
        consistency = float(np.clip(1 - quality_std / MAX_EXPECTED_QUALITY_STD, 0.0, 1.0))
        trend = history.formImprovementTrend

        areas = []
        if trend <= 0:
            areas.append("Form quality")
        if total_sessions >= 2:
            latest, previous = sessions[-1], sessions[-2]
            if latest.repCount <= previous.repCount:
                areas.append("Rep count")
            if latest.formConsistency <= previous.formConsistency:
                areas.append("Movement consistency")

        recommendations = []
        if trend < 0:
            recommendations.append("Focus on maintaining proper form throughout each rep.")
        elif trend > 0.1:
            recommendations.append("Your form is improving well. Consider increasing weight or difficulty.")
        if consistency < 0.7:
            recommendations.append("Work on maintaining consistent form across all sessions.")
        if "Rep count" in areas:
            recommendations.append("Gradually increase rep count to build endurance.")

        best = history.bestSession
        return ProgressReport(
            exerciseName=exercise_name,
            totalSessions=total_sessions,
            totalReps=history.totalReps,
            averageFormQuality=history.averageFormQuality,
            formImprovementTrend=trend,
            avgRepsPerSession=sum(s.repCount for s in sessions) / total_sessions,
            consistencyScore=consistency,
            areasOfImprovement=areas or ["None identified"],
            recommendations=recommendations or ["Continue with your current program."],
            bestSession=BestSessionDigest(
                endedAt=best.endedAt, formQuality=best.avgFormQuality, repCount=best.repCount,
            ) if best else None,
        )
