# schemas.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class LandmarkIn(BaseModel):
    """One pose landmark in normalized image coordinates"""
    x: float
    y: float
    z: Optional[float] = None
    visibility: Optional[float] = None


class PoseFrameIn(BaseModel):
    """
    Request body for one video frame: the 33 MediaPipe landmarks (null for
    occluded joints) and the capture timestamp in seconds.
    """
    landmarks: List[Optional[LandmarkIn]] = Field(default_factory=list)
    timestamp: Optional[float] = None


class StartSessionRequest(BaseModel):
    exercise: str
    timestamp: Optional[float] = None


class StopSessionRequest(BaseModel):
    timestamp: Optional[float] = None


class MetricReading(BaseModel):
    value: float                                # Smoothed metric value
    severity: str                               # good / warning / error


class FeedbackMessage(BaseModel):
    """Feedback string with a category tag so clients route by category, not text"""
    metric: str
    category: str
    severity: str
    text: str


class FrameResult(BaseModel):
    """
    Per-frame output returned to clients.
    Contains rep count and state, smoothed metric readings with severities,
    active feedback messages and a motivational line.
    """
    timestamp: float = 0.0
    exerciseName: Optional[str] = None
    repCount: float = 0.0                       # Full reps count 1.0, partial reps 0.5
    repState: str = "waiting"
    repCompleted: bool = False                  # A counted transition fired on this frame
    metrics: Dict[str, MetricReading] = Field(default_factory=dict)
    formIssues: List[str] = Field(default_factory=list)
    feedback: List[FeedbackMessage] = Field(default_factory=list)
    jointAngles: Dict[str, float] = Field(default_factory=dict)
    formQuality: Optional[float] = None         # Mean severity score of this frame, None with no metrics
    motivation: str = "Ready to start!"
    isWorkoutActive: bool = False


class FrameMetrics(BaseModel):
    """One entry in the session's frame log, the unit handed to AI feedback batches"""
    timestamp: float
    jointAngles: Dict[str, float] = Field(default_factory=dict)
    metrics: Dict[str, float] = Field(default_factory=dict)
    severities: Dict[str, str] = Field(default_factory=dict)
    symmetry: Dict[str, float] = Field(default_factory=dict)
    posture: Dict[str, float] = Field(default_factory=dict)
    movement: Dict[str, float] = Field(default_factory=dict)
    repState: str = "waiting"
    repCount: float = 0.0
    formQuality: Optional[float] = None
    formIssues: List[str] = Field(default_factory=list)


class SessionSummary(BaseModel):
    """Summary computed when a session closes, suitable for external persistence"""
    exerciseName: str
    startedAt: float = 0.0
    endedAt: float = 0.0
    duration: float = 0.0                       # Seconds
    repCount: float = 0.0
    fullReps: int = 0
    partialReps: int = 0
    avgFormQuality: float = 0.0
    formConsistency: float = 1.0
    avgRepDuration: float = 0.0
    avgRestPeriod: float = 0.0
    frameCount: int = 0
    stallRecoveries: int = 0
    jointAngles: Dict[str, float] = Field(default_factory=dict)


class ExerciseHistory(BaseModel):
    sessions: List[SessionSummary] = Field(default_factory=list)
    totalReps: float = 0.0
    averageFormQuality: float = 0.0
    formImprovementTrend: float = 0.0
    bestSession: Optional[SessionSummary] = None


class BestSessionDigest(BaseModel):
    endedAt: float
    formQuality: float
    repCount: float


class ProgressReport(BaseModel):
    exerciseName: str
    totalSessions: int = 0
    message: Optional[str] = None
    totalReps: float = 0.0
    averageFormQuality: float = 0.0
    formImprovementTrend: float = 0.0
    avgRepsPerSession: float = 0.0
    consistencyScore: float = 0.0
    areasOfImprovement: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    bestSession: Optional[BestSessionDigest] = None


class FeedbackSections(BaseModel):
    """AI coaching feedback split into its four labelled sections"""
    FORM_ASSESSMENT: str
    IMPROVEMENT_TIP: str
    PROGRESS_FEEDBACK: str
    BREATHING_REMINDER: str
    source: str = "fallback"                    # "ai" or "fallback"
    generatedAt: Optional[float] = None


class ExerciseInfo(BaseModel):
    key: str
    name: str
    description: str
    difficulty: str
    primaryView: str
    targetMuscles: List[str]
    repGoal: int
    keyMetrics: List[str]
    formGuidance: List[str]
