# tricep_extension.py
"""Overhead dumbbell tricep extension, right arm seen from the side. Counts bent -> extended."""

from models.common_metrics import VELOCITY_BUFFER, VELOCITY_MARGIN, joint_velocity, wrist_deviation
from models.metric_base import (
    ANGLE_LIMITS, NON_NEGATIVE, ExerciseDefinition, FeedbackCategory, FeedbackText, MetricDefinition,
)
from models.pose import Joint, joint_angle
from models.rep_state_machine import RepCountingStrategy, StallRecovery, Transition, above, below
from utils.geometry import angle_between, offset_point

BENT = 90
EXTENDED = 150


def range_of_motion(pose, previous_pose, metrics):
    return joint_angle(pose, Joint.RIGHT_SHOULDER, Joint.RIGHT_ELBOW, Joint.RIGHT_WRIST)


def joint_alignment(pose, previous_pose, metrics):
    # Upper arm deviation from pointing straight up
    if not pose.has(Joint.RIGHT_SHOULDER, Joint.RIGHT_ELBOW):
        return None
    above_shoulder = offset_point(pose[Joint.RIGHT_SHOULDER], dy=-0.5)
    return angle_between(above_shoulder, pose[Joint.RIGHT_SHOULDER], pose[Joint.RIGHT_ELBOW])


def wrist_position(pose, previous_pose, metrics):
    return wrist_deviation(pose, Joint.RIGHT_ELBOW, Joint.RIGHT_WRIST)


def tempo_and_control(pose, previous_pose, metrics):
    return joint_velocity(pose, previous_pose, (Joint.RIGHT_WRIST,))


METRICS = (
    MetricDefinition(
        "range_of_motion", range_of_motion, (150, 180),
        FeedbackText(
            good="Good elbow extension.",
            warning="Extend your arms more fully.",
            error="Incomplete extension. Fully extend your arms at the top.",
        ),
        FeedbackCategory.RANGE,
        value_limits=ANGLE_LIMITS,
    ),
    MetricDefinition(
        "joint_alignment", joint_alignment, (0, 15),
        FeedbackText(
            good="Good upper arm position.",
            warning="Keep your upper arms more vertical.",
            error="Upper arms moving too much. Keep them vertical and stationary.",
        ),
        FeedbackCategory.ELBOW,
        value_limits=ANGLE_LIMITS,
    ),
    MetricDefinition(
        "tempo_and_control", tempo_and_control, (0, 0.015),
        FeedbackText(
            good="Good controlled tempo.",
            warning="Control your lowering phase.",
            error="Movement too fast. Slow down, especially on the way down.",
        ),
        FeedbackCategory.TEMPO,
        warning_margin=VELOCITY_MARGIN, hysteresis_buffer=VELOCITY_BUFFER, value_limits=NON_NEGATIVE,
    ),
    MetricDefinition(
        "wrist_position", wrist_position, (0, 15),
        FeedbackText(
            good="Wrists are straight and stable.",
            warning="Keep your wrists straight.",
            error="Wrists are bent. Maintain neutral wrist position.",
        ),
        FeedbackCategory.WRIST,
        value_limits=NON_NEGATIVE,
    ),
)

STRATEGY = RepCountingStrategy(
    states=("waiting", "bent", "extended"),
    transitions={
        "waiting": (Transition("bent", below(BENT, joint="elbow")),),
        "bent": (Transition("extended", above(EXTENDED, joint="elbow")),),
        "extended": (Transition("bent", below(BENT, joint="elbow")),),
    },
    rep_values={("bent", "extended"): 1.0},
    stall_recovery=StallRecovery(
        fallback_state="extended", split=120, high_state="extended", low_state="bent", joint="elbow",
    ),
)

DEFINITION = ExerciseDefinition(
    key="tricep_extension",
    display_name="Dumbbell Tricep Extensions",
    primary_view="Side",
    key_metrics=("range_of_motion", "joint_alignment", "tempo_and_control", "wrist_position"),
    metrics=METRICS,
    strategy=STRATEGY,
    description="An isolation exercise that targets the triceps muscles on the back of the upper arm.",
    difficulty="Beginner",
    target_muscles=("Triceps",),
    rep_goal=12,
    form_guidance=(
        "Keep your upper arms vertical and stationary",
        "Lower the weight behind your head until your forearms are just beyond parallel to the floor",
        "Extend your arms fully at the top by contracting your triceps",
        "Maintain a neutral wrist position throughout",
        "Control the weight, especially during the lowering phase",
        "Exhale as you extend, inhale as you lower",
    ),
    aliases=("tricep extensions", "triceps extension", "overhead extension"),
)
