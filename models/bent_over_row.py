# bent_over_row.py
"""
Dumbbell bent-over row seen from the side.
Range of motion is the right elbow's height relative to the right shoulder
in normalized image units (positive once the elbow passes shoulder height).
"""

from models.common_metrics import POSITION_BUFFER, POSITION_MARGIN, back_angle, hinge_angle
from models.metric_base import (
    ANGLE_LIMITS, NON_NEGATIVE, ExerciseDefinition, FeedbackCategory, FeedbackText, MetricDefinition,
)
from models.pose import Joint
from models.rep_state_machine import RepCountingStrategy, StallRecovery, Transition, above, below

LOWERED = 0.0
PULLED = 0.05


def setup_and_stance(pose, previous_pose, metrics):
    return hinge_angle(pose)


def spinal_alignment(pose, previous_pose, metrics):
    return back_angle(pose)


def joint_alignment(pose, previous_pose, metrics):
    if not pose.has(Joint.RIGHT_SHOULDER, Joint.RIGHT_ELBOW):
        return None
    return abs(pose[Joint.RIGHT_ELBOW].y - pose[Joint.RIGHT_SHOULDER].y)


def range_of_motion(pose, previous_pose, metrics):
    if not pose.has(Joint.RIGHT_SHOULDER, Joint.RIGHT_ELBOW):
        return None
    return pose[Joint.RIGHT_SHOULDER].y - pose[Joint.RIGHT_ELBOW].y


METRICS = (
    MetricDefinition(
        "setup_and_stance", setup_and_stance, (45, 75),
        FeedbackText(
            good="Good hip hinge position.",
            warning="Adjust your torso angle.",
            error="Incorrect hip hinge. Bend more at the hips, less at the waist.",
        ),
        FeedbackCategory.HIP,
        value_limits=ANGLE_LIMITS,
    ),
    MetricDefinition(
        "spinal_alignment", spinal_alignment, (170, 180),
        FeedbackText(
            good="Good flat back position.",
            warning="Watch your back position, keep it flat.",
            error="Back is rounded. Maintain a flat back throughout the movement.",
        ),
        FeedbackCategory.BACK,
        value_limits=ANGLE_LIMITS,
    ),
    MetricDefinition(
        "joint_alignment", joint_alignment, (0.05, 0.15),
        FeedbackText(
            good="Good elbow path, close to body.",
            warning="Keep elbows closer to your body.",
            error="Elbows flaring out. Pull elbows back, not out to sides.",
        ),
        FeedbackCategory.ELBOW,
        warning_margin=POSITION_MARGIN, hysteresis_buffer=POSITION_BUFFER, value_limits=NON_NEGATIVE,
    ),
    MetricDefinition(
        "range_of_motion", range_of_motion, (-0.05, 0.1),
        FeedbackText(
            good="Good range of motion, pulling elbows high.",
            warning="Try to pull elbows higher.",
            error="Insufficient pull height. Pull elbows higher toward ribs.",
        ),
        FeedbackCategory.RANGE,
        warning_margin=POSITION_MARGIN, hysteresis_buffer=POSITION_BUFFER,
    ),
)

STRATEGY = RepCountingStrategy(
    states=("waiting", "down", "up"),
    transitions={
        "waiting": (Transition("down", below(LOWERED)),),
        "down": (Transition("up", above(PULLED)),),
        "up": (Transition("down", below(LOWERED)),),
    },
    rep_values={("down", "up"): 1.0},
    stall_recovery=StallRecovery(fallback_state="down", split=0.025, high_state="up", low_state="down"),
)

DEFINITION = ExerciseDefinition(
    key="bent_over_row",
    display_name="Dumbbell Bent-Over Rows",
    primary_view="Side",
    key_metrics=("setup_and_stance", "spinal_alignment", "joint_alignment", "range_of_motion"),
    metrics=METRICS,
    strategy=STRATEGY,
    description="A compound exercise that targets the back muscles, particularly the latissimus dorsi and rhomboids.",
    difficulty="Intermediate",
    target_muscles=("Back", "Lats", "Rhomboids", "Biceps"),
    rep_goal=12,
    form_guidance=(
        "Hinge at the hips with a flat back",
        "Keep your back flat throughout the movement",
        "Pull the weights toward your lower ribs",
        "Keep elbows close to your body",
        "Squeeze your shoulder blades together at the top",
        "Exhale as you pull, inhale as you lower",
    ),
    aliases=("bent over rows", "row", "rows", "dumbbell row"),
)
