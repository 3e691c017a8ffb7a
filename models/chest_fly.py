# chest_fly.py
"""Dumbbell chest fly on a bench, left arm seen from the side. Counts closed -> open."""

from models.common_metrics import VELOCITY_BUFFER, VELOCITY_MARGIN, back_angle, joint_velocity
from models.metric_base import (
    ANGLE_LIMITS, NON_NEGATIVE, ExerciseDefinition, FeedbackCategory, FeedbackText, MetricDefinition,
)
from models.pose import Joint, joint_angle
from models.rep_state_machine import RepCountingStrategy, StallRecovery, Transition, above, below
from utils.geometry import angle_between, offset_point

OPENED = 150
CLOSED = 90


def range_of_motion(pose, previous_pose, metrics):
    if not pose.has(Joint.LEFT_SHOULDER, Joint.LEFT_ELBOW):
        return None
    above_shoulder = offset_point(pose[Joint.LEFT_SHOULDER], dy=-0.2)
    return angle_between(above_shoulder, pose[Joint.LEFT_SHOULDER], pose[Joint.LEFT_ELBOW])


def joint_alignment(pose, previous_pose, metrics):
    return joint_angle(pose, Joint.LEFT_SHOULDER, Joint.LEFT_ELBOW, Joint.LEFT_WRIST)


def tempo_and_control(pose, previous_pose, metrics):
    return joint_velocity(pose, previous_pose, (Joint.LEFT_WRIST,), axis="x")


def spinal_alignment(pose, previous_pose, metrics):
    return back_angle(pose)


METRICS = (
    MetricDefinition(
        "range_of_motion", range_of_motion, (70, 170),
        FeedbackText(
            good="Good range of motion in your flyes.",
            warning="Try to achieve fuller range of motion.",
            error="Incomplete range of motion. Extend arms wider at bottom and bring closer at top.",
        ),
        FeedbackCategory.RANGE,
        value_limits=ANGLE_LIMITS,
    ),
    MetricDefinition(
        "joint_alignment", joint_alignment, (140, 160),
        FeedbackText(
            good="Good elbow position with slight bend.",
            warning="Maintain a slight bend in your elbows.",
            error="Elbows too bent or too straight. Keep a slight bend throughout.",
        ),
        FeedbackCategory.ELBOW,
        value_limits=ANGLE_LIMITS,
    ),
    MetricDefinition(
        "tempo_and_control", tempo_and_control, (0, 0.012),
        FeedbackText(
            good="Good controlled tempo.",
            warning="Control your movement speed.",
            error="Movement too fast. Slow down for better muscle engagement.",
        ),
        FeedbackCategory.TEMPO,
        warning_margin=VELOCITY_MARGIN, hysteresis_buffer=VELOCITY_BUFFER, value_limits=NON_NEGATIVE,
    ),
    MetricDefinition(
        "spinal_alignment", spinal_alignment, (170, 180),
        FeedbackText(
            good="Good back position on bench.",
            warning="Keep your back flat on the bench.",
            error="Back is arching. Maintain contact with the bench.",
        ),
        FeedbackCategory.BACK,
        value_limits=ANGLE_LIMITS,
    ),
)

STRATEGY = RepCountingStrategy(
    states=("waiting", "open", "closed"),
    transitions={
        "waiting": (Transition("open", above(OPENED)),),
        "open": (Transition("closed", below(CLOSED)),),
        "closed": (Transition("open", above(OPENED)),),
    },
    rep_values={("closed", "open"): 1.0},
    stall_recovery=StallRecovery(fallback_state="open", split=120, high_state="open", low_state="closed"),
)

DEFINITION = ExerciseDefinition(
    key="chest_fly",
    display_name="Dumbbell Chest Flyes",
    primary_view="Side",
    key_metrics=("range_of_motion", "joint_alignment", "tempo_and_control", "spinal_alignment"),
    metrics=METRICS,
    strategy=STRATEGY,
    description="An isolation exercise that targets the chest muscles and assists in building chest width.",
    difficulty="Intermediate",
    target_muscles=("Chest", "Shoulders"),
    rep_goal=10,
    form_guidance=(
        "Maintain a slight bend in your elbows throughout the movement",
        "Lower the weights in a wide arc until you feel a stretch in your chest",
        "Keep your back flat against the bench",
        "Bring the weights back up in a controlled motion",
        "Focus on squeezing your chest muscles at the top",
        "Exhale as you bring weights together, inhale as you lower",
    ),
    aliases=("chest flyes", "chest flies", "fly", "flyes"),
)
