# rep_state_machine.py
"""
Finite-state-machine rep counter shared by every exercise.
Each exercise supplies a RepCountingStrategy (states, ordered guarded
transitions, the quality of each counted transition and a stall-recovery
rule); RepStateMachine holds the per-session state and applies it frame by frame.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from config import config
from utils.logging_utils import logger

INITIAL_STATE = "waiting"


@dataclass
class MetricBundle:
    """
    What transition guards see for one frame: unsmoothed metric values keyed by
    name, their auxiliary fields, and the raw per-side joint angles.
    """
    metrics: Dict[str, float] = field(default_factory=dict)
    aux: Dict[str, Dict] = field(default_factory=dict)
    joint_angles: Dict[str, float] = field(default_factory=dict)

    def value(self, name: str) -> Optional[float]:
        return self.metrics.get(name)


def driving_angle(bundle: MetricBundle, metric: str = "range_of_motion", joint: Optional[str] = None) -> Optional[float]:
    """
    Value a guard should test: the aggregate metric first, then the
    right-side joint angle, then the left-side joint angle.
    """
    value = bundle.value(metric)
    if value is not None:
        return value
    if joint:
        for side in ("right", "left"):
            angle = bundle.joint_angles.get(f"{side}_{joint}")
            if angle is not None:
                return angle
    return None


Guard = Callable[[MetricBundle], bool]


def above(threshold: float, metric: str = "range_of_motion", joint: Optional[str] = None) -> Guard:
    def guard(bundle: MetricBundle) -> bool:
        value = driving_angle(bundle, metric, joint)
        return value is not None and value > threshold
    return guard


def below(threshold: float, metric: str = "range_of_motion", joint: Optional[str] = None) -> Guard:
    def guard(bundle: MetricBundle) -> bool:
        value = driving_angle(bundle, metric, joint)
        return value is not None and value < threshold
    return guard


def within(low: float, high: float, metric: str = "range_of_motion", joint: Optional[str] = None,
           include_low: bool = True, include_high: bool = False) -> Guard:
    """Guard for a half-open band, [low, high) by default"""
    def guard(bundle: MetricBundle) -> bool:
        value = driving_angle(bundle, metric, joint)
        if value is None:
            return False
        low_ok = value >= low if include_low else value > low
        high_ok = value <= high if include_high else value < high
        return low_ok and high_ok
    return guard


@dataclass(frozen=True)
class Transition:
    target: str
    guard: Guard


@dataclass(frozen=True)
class StallRecovery:
    """
    Forced-transition heuristic for a machine stuck in one state.
    A driving value at or above split forces high_state, below it low_state;
    with no value at all the machine falls back to fallback_state.
    """
    fallback_state: str
    split: Optional[float] = None
    high_state: Optional[str] = None
    low_state: Optional[str] = None
    metric: str = "range_of_motion"
    joint: Optional[str] = None

    def choose(self, bundle: MetricBundle) -> str:
        if self.split is None:
            return self.fallback_state
        value = driving_angle(bundle, self.metric, self.joint)
        if value is None:
            return self.fallback_state
        return self.high_state if value >= self.split else self.low_state


@dataclass(frozen=True)
class RepCountingStrategy:
    states: Tuple[str, ...]
    transitions: Dict[str, Tuple[Transition, ...]]
    rep_values: Dict[Tuple[str, str], float]
    stall_recovery: StallRecovery
    initial_state: str = INITIAL_STATE

    def rep_quality(self, from_state: str, to_state: str) -> float:
        """1.0 for a full rep, 0.5 for a partial rep, 0 for any other transition"""
        return self.rep_values.get((from_state, to_state), 0.0)


@dataclass
class RepEvent:
    from_state: str
    to_state: str
    quality: float
    timestamp: float
    forced: bool = False


class RepStateMachine:
    """
    Per-session rep counter.
    Exactly one current state at all times, rep count never decreases,
    and reset() always returns to the initial state with a zero count.
    """

    def __init__(self, strategy: RepCountingStrategy, max_state_duration: float = None, name: str = ""):
        self.strategy = strategy
        self.max_state_duration = config.max_state_duration if max_state_duration is None else max_state_duration
        self.name = name
        self.state = strategy.initial_state
        self.rep_count = 0.0
        self.full_reps = 0
        self.partial_reps = 0
        self.stall_recoveries = 0
        self.state_entered_at: Optional[float] = None
        self.history: List[RepEvent] = []

    def reset(self):
        self.state = self.strategy.initial_state
        self.rep_count = 0.0
        self.full_reps = 0
        self.partial_reps = 0
        self.stall_recoveries = 0
        self.state_entered_at = None
        self.history.clear()

    def time_in_state(self, timestamp: float) -> float:
        if self.state_entered_at is None:
            return 0.0
        return timestamp - self.state_entered_at

    def update(self, bundle: MetricBundle, timestamp: float) -> Optional[RepEvent]:
        """
        Evaluate the current state's transitions in declared order and apply
        the first one whose guard passes. Returns the event for a state
        change, or None when the state is unchanged.
        """
        if self.state_entered_at is None:
            self.state_entered_at = timestamp

        for transition in self.strategy.transitions.get(self.state, ()):
            if transition.guard(bundle):
                return self._move(transition.target, timestamp)

        if self.time_in_state(timestamp) > self.max_state_duration:
            return self._recover_stall(bundle, timestamp)

        return None

    def _move(self, target: str, timestamp: float) -> RepEvent:
        source = self.state
        quality = self.strategy.rep_quality(source, target)
        self.state = target
        self.state_entered_at = timestamp

        if quality > 0:
            self.rep_count += quality
            if quality >= 1.0:
                self.full_reps += 1
            else:
                self.partial_reps += 1
            logger.info(f"{self.name} rep completed ({source} -> {target}, +{quality}), total {self.rep_count:g}")
        else:
            logger.debug(f"{self.name} state {source} -> {target}")

        event = RepEvent(source, target, quality, timestamp)
        self.history.append(event)
        return event

    def _recover_stall(self, bundle: MetricBundle, timestamp: float) -> Optional[RepEvent]:
        # Forced transitions never count toward the rep total
        elapsed = self.time_in_state(timestamp)
        target = self.strategy.stall_recovery.choose(bundle)
        self.state_entered_at = timestamp

        if target == self.state:
            logger.debug(f"{self.name} stalled {elapsed:.1f}s in '{self.state}', heuristic confirms state")
            return None

        source = self.state
        self.state = target
        self.stall_recoveries += 1
        logger.warning(
            f"{self.name} stalled {elapsed:.1f}s in '{source}', forcing '{target}' "
            f"(recovery #{self.stall_recoveries})"
        )
        event = RepEvent(source, target, 0.0, timestamp, forced=True)
        self.history.append(event)
        return event
