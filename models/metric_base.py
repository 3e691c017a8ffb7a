# metric_base.py
"""
Declarative building blocks for the exercise metric catalog.
Each exercise is data: an ordered set of MetricDefinition objects (a compute
function plus its static ideal range and feedback text) and a rep-counting
strategy. Nothing here holds per-session state.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from config import config
from models.pose import Pose
from utils.logging_utils import logger
from utils.severity import Severity

ANGLE_LIMITS = (0.0, 180.0)
NON_NEGATIVE = (0.0, None)


class FeedbackCategory(str, Enum):
    """Structured tag so consumers route feedback without matching on text"""
    ELBOW = "elbow"
    SHOULDER = "shoulder"
    WRIST = "wrist"
    BACK = "back"
    KNEE = "knee"
    HIP = "hip"
    TEMPO = "tempo"
    SYMMETRY = "symmetry"
    RANGE = "range"
    STANCE = "stance"


@dataclass(frozen=True)
class FeedbackText:
    good: str
    warning: str
    error: str

    def for_severity(self, severity: Severity) -> str:
        return getattr(self, Severity(severity).value)


@dataclass
class Reading:
    """
    What a compute function returns: the scalar plus optional auxiliary fields.
    ideal_range / feedback override the static definition for this frame only
    (e.g. per-side wording, or a slower ideal tempo while lowering).
    """
    value: float
    aux: Dict[str, Any] = field(default_factory=dict)
    ideal_range: Optional[Tuple[float, float]] = None
    feedback: Optional[FeedbackText] = None


@dataclass(frozen=True)
class MeasurementResult:
    name: str
    value: float
    ideal_range: Tuple[float, float]
    feedback_text: FeedbackText
    category: FeedbackCategory
    warning_margin: float
    hysteresis_buffer: float
    value_limits: Optional[Tuple[Optional[float], Optional[float]]] = None
    aux: Dict[str, Any] = field(default_factory=dict)


ComputeFn = Callable[[Pose, Optional[Pose], Dict[str, MeasurementResult]], Union[Reading, float, None]]


@dataclass(frozen=True)
class MetricDefinition:
    name: str
    compute: ComputeFn
    ideal_range: Tuple[float, float]
    feedback: FeedbackText
    category: FeedbackCategory
    warning_margin: Optional[float] = None
    hysteresis_buffer: Optional[float] = None
    value_limits: Optional[Tuple[Optional[float], Optional[float]]] = None
    depends_on: Tuple[str, ...] = ()

    def measure(self, pose: Pose, previous_pose: Optional[Pose] = None,
                frame_metrics: Optional[Dict[str, MeasurementResult]] = None) -> Optional[MeasurementResult]:
        """
        Run the compute function for one frame.
        Returns None when required joints are missing, a dependency was not
        measured this frame, or the geometry was degenerate.
        """
        frame_metrics = frame_metrics or {}
        if any(dep not in frame_metrics for dep in self.depends_on):
            return None

        reading = self.compute(pose, previous_pose, frame_metrics)
        if reading is None:
            return None
        if not isinstance(reading, Reading):
            reading = Reading(float(reading))
        if reading.value is None or math.isnan(reading.value) or math.isinf(reading.value):
            logger.debug(f"Metric {self.name} produced a non-finite value, skipping")
            return None

        return MeasurementResult(
            name=self.name,
            value=float(reading.value),
            ideal_range=reading.ideal_range or self.ideal_range,
            feedback_text=reading.feedback or self.feedback,
            category=self.category,
            warning_margin=config.warning_margin if self.warning_margin is None else self.warning_margin,
            hysteresis_buffer=config.hysteresis_buffer if self.hysteresis_buffer is None else self.hysteresis_buffer,
            value_limits=self.value_limits,
            aux=dict(reading.aux),
        )


@dataclass(frozen=True)
class ExerciseDefinition:
    """
    One catalog entry: metadata, ordered metrics and the rep-counting strategy.
    """
    key: str
    display_name: str
    primary_view: str
    key_metrics: Tuple[str, ...]
    metrics: Tuple[MetricDefinition, ...]
    strategy: Any
    description: str = ""
    difficulty: str = "Beginner"
    target_muscles: Tuple[str, ...] = ()
    rep_goal: int = 10
    form_guidance: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()

    @property
    def evaluation_order(self) -> List[MetricDefinition]:
        """Independent metrics first in declared order, then metrics that read other results"""
        independent = [m for m in self.metrics if not m.depends_on]
        dependent = [m for m in self.metrics if m.depends_on]
        return independent + dependent

    def metric(self, name: str) -> MetricDefinition:
        for metric in self.metrics:
            if metric.name == name:
                return metric
        raise KeyError(name)

    def measure_all(self, pose: Pose, previous_pose: Optional[Pose] = None) -> Dict[str, MeasurementResult]:
        """Measure every metric for one frame; missing metrics are simply absent"""
        results: Dict[str, MeasurementResult] = {}
        for metric in self.evaluation_order:
            result = metric.measure(pose, previous_pose, results)
            if result is not None:
                results[metric.name] = result
        return results
