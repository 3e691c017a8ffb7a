# lateral_raise.py
"""
Dumbbell lateral raise seen from the front.
Arm elevation is measured from the downward vertical at each shoulder,
so hanging arms read near 0 and arms at shoulder height read near 90.
"""

from models.common_metrics import (
    POSITION_BUFFER, POSITION_MARGIN, SHOULDER_STABILITY_RANGE, VELOCITY_BUFFER,
    VELOCITY_MARGIN, joint_velocity, shoulder_stability,
)
from models.metric_base import (
    ANGLE_LIMITS, NON_NEGATIVE, ExerciseDefinition, FeedbackCategory, FeedbackText,
    MetricDefinition, Reading,
)
from models.pose import Joint
from models.rep_state_machine import RepCountingStrategy, StallRecovery, Transition, above, below
from utils.geometry import angle_between, offset_point

LOWERED = 30
RAISED = 80


def _elevation(pose, shoulder, elbow):
    if not pose.has(shoulder, elbow):
        return None
    below_shoulder = offset_point(pose[shoulder], dy=0.2)
    return angle_between(below_shoulder, pose[shoulder], pose[elbow])


def range_of_motion(pose, previous_pose, metrics):
    left = _elevation(pose, Joint.LEFT_SHOULDER, Joint.LEFT_ELBOW)
    right = _elevation(pose, Joint.RIGHT_SHOULDER, Joint.RIGHT_ELBOW)
    if left is None or right is None:
        return None
    return Reading((left + right) / 2, {"left_angle": left, "right_angle": right})


def symmetry(pose, previous_pose, metrics):
    if not pose.has(Joint.LEFT_ELBOW, Joint.RIGHT_ELBOW):
        return None
    return abs(pose[Joint.LEFT_ELBOW].y - pose[Joint.RIGHT_ELBOW].y)


def tempo_and_control(pose, previous_pose, metrics):
    return joint_velocity(pose, previous_pose, (Joint.LEFT_ELBOW, Joint.RIGHT_ELBOW))


METRICS = (
    MetricDefinition(
        "range_of_motion", range_of_motion, (80, 100),
        FeedbackText(
            good="Good range of motion, arms at shoulder height.",
            warning="Adjust arm height - aim for shoulder level.",
            error="Arms too high or too low. Raise to shoulder height only.",
        ),
        FeedbackCategory.RANGE,
        value_limits=ANGLE_LIMITS,
    ),
    MetricDefinition(
        "symmetry", symmetry, (0, 0.03),
        FeedbackText(
            good="Good symmetry between arms.",
            warning="Try to keep both arms at the same height.",
            error="Uneven arm heights. Balance effort between left and right.",
        ),
        FeedbackCategory.SYMMETRY,
        warning_margin=POSITION_MARGIN, hysteresis_buffer=POSITION_BUFFER, value_limits=NON_NEGATIVE,
    ),
    MetricDefinition(
        "shoulder_stability", shoulder_stability, SHOULDER_STABILITY_RANGE,
        FeedbackText(
            good="Shoulders are down and relaxed.",
            warning="Keep your shoulders down away from ears.",
            error="Shoulders shrugging. Pull shoulders down and back.",
        ),
        FeedbackCategory.SHOULDER,
        warning_margin=POSITION_MARGIN, hysteresis_buffer=POSITION_BUFFER,
    ),
    MetricDefinition(
        "tempo_and_control", tempo_and_control, (0, 0.01),
        FeedbackText(
            good="Good controlled tempo.",
            warning="Control your lowering phase.",
            error="Movement too fast. Slow down, especially on the way down.",
        ),
        FeedbackCategory.TEMPO,
        warning_margin=VELOCITY_MARGIN, hysteresis_buffer=VELOCITY_BUFFER, value_limits=NON_NEGATIVE,
    ),
)

STRATEGY = RepCountingStrategy(
    states=("waiting", "down", "up"),
    transitions={
        "waiting": (Transition("down", below(LOWERED, joint="shoulder")),),
        "down": (Transition("up", above(RAISED, joint="shoulder")),),
        "up": (Transition("down", below(LOWERED, joint="shoulder")),),
    },
    rep_values={("down", "up"): 1.0},
    stall_recovery=StallRecovery(
        fallback_state="down", split=55, high_state="up", low_state="down", joint="shoulder",
    ),
)

DEFINITION = ExerciseDefinition(
    key="lateral_raise",
    display_name="Dumbbell Lateral Raises",
    primary_view="Front",
    key_metrics=("range_of_motion", "symmetry", "shoulder_stability", "tempo_and_control"),
    metrics=METRICS,
    strategy=STRATEGY,
    description="An isolation exercise that specifically targets the lateral deltoids for broader shoulders.",
    difficulty="Beginner",
    target_muscles=("Shoulders", "Deltoids"),
    rep_goal=12,
    form_guidance=(
        "Keep a slight bend in your elbows throughout the movement",
        "Raise arms to shoulder height, not higher",
        "Keep shoulders down away from your ears",
        "Maintain thumbs slightly higher than pinkies (slight external rotation)",
        "Control the movement, especially on the way down",
        "Exhale as you raise, inhale as you lower",
    ),
    aliases=("lateral raises", "side raise", "lateral raise"),
)
