# shoulder_press.py
"""Dumbbell shoulder press, right arm seen from the side. Counts down -> up."""

from models.common_metrics import (
    POSITION_BUFFER, POSITION_MARGIN, SHOULDER_STABILITY_RANGE, shoulder_stability, torso_lean,
)
from models.metric_base import (
    ANGLE_LIMITS, NON_NEGATIVE, ExerciseDefinition, FeedbackCategory, FeedbackText, MetricDefinition,
)
from models.pose import Joint, joint_angle
from models.rep_state_machine import RepCountingStrategy, StallRecovery, Transition, above, below

LOWERED = 100
PRESSED = 160


def spinal_alignment(pose, previous_pose, metrics):
    return torso_lean(pose)


def joint_alignment(pose, previous_pose, metrics):
    if not pose.has(Joint.RIGHT_ELBOW, Joint.RIGHT_WRIST):
        return None
    return abs(pose[Joint.RIGHT_WRIST].x - pose[Joint.RIGHT_ELBOW].x)


def range_of_motion(pose, previous_pose, metrics):
    return joint_angle(pose, Joint.RIGHT_SHOULDER, Joint.RIGHT_ELBOW, Joint.RIGHT_WRIST)


METRICS = (
    MetricDefinition(
        "spinal_alignment", spinal_alignment, (0, 10),
        FeedbackText(
            good="Good upright posture.",
            warning="Watch your back position.",
            error="Excessive back arching. Maintain neutral spine.",
        ),
        FeedbackCategory.BACK,
        value_limits=ANGLE_LIMITS,
    ),
    MetricDefinition(
        "joint_alignment", joint_alignment, (0, 0.05),
        FeedbackText(
            good="Good wrist-elbow alignment.",
            warning="Keep wrists aligned over elbows.",
            error="Wrists not aligned with elbows. Stack wrists directly over elbows.",
        ),
        FeedbackCategory.WRIST,
        warning_margin=POSITION_MARGIN, hysteresis_buffer=POSITION_BUFFER, value_limits=NON_NEGATIVE,
    ),
    MetricDefinition(
        "range_of_motion", range_of_motion, (160, 180),
        FeedbackText(
            good="Good extension at the top.",
            warning="Try to extend arms more fully overhead.",
            error="Incomplete extension. Press the weights fully overhead.",
        ),
        FeedbackCategory.RANGE,
        value_limits=ANGLE_LIMITS,
    ),
    MetricDefinition(
        "shoulder_stability", shoulder_stability, SHOULDER_STABILITY_RANGE,
        FeedbackText(
            good="Shoulders are stable and down.",
            warning="Keep your shoulders down away from ears.",
            error="Shoulders rising. Pull shoulders down and back.",
        ),
        FeedbackCategory.SHOULDER,
        warning_margin=POSITION_MARGIN, hysteresis_buffer=POSITION_BUFFER,
    ),
)

STRATEGY = RepCountingStrategy(
    states=("waiting", "down", "up"),
    transitions={
        "waiting": (Transition("down", below(LOWERED, joint="elbow")),),
        "down": (Transition("up", above(PRESSED, joint="elbow")),),
        "up": (Transition("down", below(LOWERED, joint="elbow")),),
    },
    rep_values={("down", "up"): 1.0},
    stall_recovery=StallRecovery(
        fallback_state="down", split=130, high_state="up", low_state="down", joint="elbow",
    ),
)

DEFINITION = ExerciseDefinition(
    key="shoulder_press",
    display_name="Dumbbell Shoulder Press",
    primary_view="Side",
    key_metrics=("spinal_alignment", "joint_alignment", "range_of_motion", "shoulder_stability"),
    metrics=METRICS,
    strategy=STRATEGY,
    description="A compound exercise that targets the deltoids, triceps, and upper chest.",
    difficulty="Intermediate",
    target_muscles=("Shoulders", "Triceps", "Upper Chest"),
    rep_goal=10,
    form_guidance=(
        "Maintain a neutral spine throughout the movement",
        "Keep your wrists stacked over your elbows",
        "Press the weights directly upward until arms are fully extended",
        "Avoid shrugging your shoulders during the press",
        "Exhale as you press up, inhale as you lower",
    ),
    aliases=("shoulder press", "overhead press", "press"),
)
