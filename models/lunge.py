# lunge.py
"""Dumbbell forward lunge, left leg seen from the side. Counts lunging -> standing."""

from models.common_metrics import POSITION_BUFFER, POSITION_MARGIN, torso_lean
from models.metric_base import (
    ANGLE_LIMITS, NON_NEGATIVE, ExerciseDefinition, FeedbackCategory, FeedbackText, MetricDefinition,
)
from models.pose import Joint, joint_angle
from models.rep_state_machine import RepCountingStrategy, StallRecovery, Transition, above, below

STANDING = 160
LUNGING = 100


def setup_and_stance(pose, previous_pose, metrics):
    # Step length: horizontal hip-to-ankle distance
    if not pose.has(Joint.LEFT_HIP, Joint.LEFT_ANKLE):
        return None
    return abs(pose[Joint.LEFT_ANKLE].x - pose[Joint.LEFT_HIP].x)


def joint_alignment(pose, previous_pose, metrics):
    if not pose.has(Joint.LEFT_KNEE, Joint.LEFT_ANKLE):
        return None
    return abs(pose[Joint.LEFT_KNEE].x - pose[Joint.LEFT_ANKLE].x)


def spinal_alignment(pose, previous_pose, metrics):
    return torso_lean(pose)


def range_of_motion(pose, previous_pose, metrics):
    return joint_angle(pose, Joint.LEFT_HIP, Joint.LEFT_KNEE, Joint.LEFT_ANKLE)


METRICS = (
    MetricDefinition(
        "setup_and_stance", setup_and_stance, (0.3, 0.6),
        FeedbackText(
            good="Good step length.",
            warning="Adjust your step length for better balance.",
            error="Step too short or too long. Step forward about one leg length.",
        ),
        FeedbackCategory.STANCE,
        warning_margin=POSITION_MARGIN, hysteresis_buffer=POSITION_BUFFER, value_limits=NON_NEGATIVE,
    ),
    MetricDefinition(
        "joint_alignment", joint_alignment, (0, 0.05),
        FeedbackText(
            good="Good knee alignment over ankle.",
            warning="Check your knee position.",
            error="Knee extending past toes. Align knee over ankle.",
        ),
        FeedbackCategory.KNEE,
        warning_margin=POSITION_MARGIN, hysteresis_buffer=POSITION_BUFFER, value_limits=NON_NEGATIVE,
    ),
    MetricDefinition(
        "spinal_alignment", spinal_alignment, (0, 15),
        FeedbackText(
            good="Good upright torso position.",
            warning="Keep your torso more upright.",
            error="Torso leaning too much. Maintain an upright position.",
        ),
        FeedbackCategory.BACK,
        value_limits=ANGLE_LIMITS,
    ),
    MetricDefinition(
        "range_of_motion", range_of_motion, (80, 100),
        FeedbackText(
            good="Good lunge depth.",
            warning="Adjust your lunge depth.",
            error="Incorrect depth. Aim for 90 degrees at the front knee.",
        ),
        FeedbackCategory.KNEE,
        value_limits=ANGLE_LIMITS,
    ),
)

STRATEGY = RepCountingStrategy(
    states=("waiting", "standing", "lunging"),
    transitions={
        "waiting": (Transition("standing", above(STANDING, joint="knee")),),
        "standing": (Transition("lunging", below(LUNGING, joint="knee")),),
        "lunging": (Transition("standing", above(STANDING, joint="knee")),),
    },
    rep_values={("lunging", "standing"): 1.0},
    stall_recovery=StallRecovery(
        fallback_state="standing", split=130, high_state="standing", low_state="lunging", joint="knee",
    ),
)

DEFINITION = ExerciseDefinition(
    key="lunge",
    display_name="Dumbbell Lunges",
    primary_view="Side",
    key_metrics=("setup_and_stance", "joint_alignment", "spinal_alignment", "range_of_motion"),
    metrics=METRICS,
    strategy=STRATEGY,
    description=("A compound exercise that works the quadriceps, hamstrings, and glutes "
                 "while holding dumbbells for added resistance."),
    difficulty="Intermediate",
    target_muscles=("Quadriceps", "Hamstrings", "Glutes", "Core"),
    rep_goal=10,
    form_guidance=(
        "Take a step forward about one leg length",
        "Keep your front knee aligned over your ankle, not past your toes",
        "Lower your body until both knees are bent at about 90 degrees",
        "Keep your torso upright throughout the movement",
        "Push through your front heel to return to standing",
        "Exhale as you push up, inhale as you lower",
    ),
    aliases=("lunges", "forward lunge"),
)
