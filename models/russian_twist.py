# russian_twist.py
"""
Dumbbell Russian twist seen from the front.
Rotation is the angle between the shoulder line and the hip line; its sign
(from the 2D cross product) tells which side the torso turned to. A rep is
center -> one side -> center -> other side -> center, counted on left -> center.
"""

from models.common_metrics import (
    VELOCITY_BUFFER, VELOCITY_MARGIN, back_angle, hinge_angle, joint_velocity,
)
from models.metric_base import (
    ANGLE_LIMITS, NON_NEGATIVE, ExerciseDefinition, FeedbackCategory, FeedbackText,
    MetricDefinition, Reading,
)
from models.pose import Joint
from models.rep_state_machine import MetricBundle, RepCountingStrategy, StallRecovery, Transition, below
from utils.geometry import cross_sign, line_angle

CENTERED = 10
TWISTED = 20


def setup_and_stance(pose, previous_pose, metrics):
    return hinge_angle(pose)


def spinal_alignment(pose, previous_pose, metrics):
    return back_angle(pose)


def range_of_motion(pose, previous_pose, metrics):
    joints = (Joint.LEFT_SHOULDER, Joint.RIGHT_SHOULDER, Joint.LEFT_HIP, Joint.RIGHT_HIP)
    if not pose.has(*joints):
        return None
    ls, rs, lh, rh = (pose[j] for j in joints)
    angle = line_angle(lh, rh, ls, rs)
    if angle is None:
        return None
    return Reading(angle, {"rotation_direction": cross_sign(lh, rh, ls, rs)})


def tempo_and_control(pose, previous_pose, metrics):
    return joint_velocity(pose, previous_pose, (Joint.LEFT_SHOULDER,), axis="x")


def _twisted(direction: int):
    def guard(bundle: MetricBundle) -> bool:
        value = bundle.value("range_of_motion")
        if value is None or value <= TWISTED:
            return False
        turn = bundle.aux.get("range_of_motion", {}).get("rotation_direction", 0)
        return turn * direction > 0
    return guard


METRICS = (
    MetricDefinition(
        "setup_and_stance", setup_and_stance, (90, 120),
        FeedbackText(
            good="Good V-position with torso.",
            warning="Adjust your torso angle.",
            error="Incorrect V-position. Lean back more to create a V-shape.",
        ),
        FeedbackCategory.STANCE,
        value_limits=ANGLE_LIMITS,
    ),
    MetricDefinition(
        "spinal_alignment", spinal_alignment, (160, 180),
        FeedbackText(
            good="Good straight back position.",
            warning="Keep your back straighter.",
            error="Back is rounded. Maintain a straight back.",
        ),
        FeedbackCategory.BACK,
        value_limits=ANGLE_LIMITS,
    ),
    MetricDefinition(
        "range_of_motion", range_of_motion, (20, 45),
        FeedbackText(
            good="Good rotation range.",
            warning="Try to rotate a bit more.",
            error="Insufficient rotation. Rotate further to each side.",
        ),
        FeedbackCategory.RANGE,
        value_limits=ANGLE_LIMITS,
    ),
    MetricDefinition(
        "tempo_and_control", tempo_and_control, (0, 0.015),
        FeedbackText(
            good="Good controlled tempo.",
            warning="Control your rotation speed.",
            error="Movement too fast. Slow down for better engagement.",
        ),
        FeedbackCategory.TEMPO,
        warning_margin=VELOCITY_MARGIN, hysteresis_buffer=VELOCITY_BUFFER, value_limits=NON_NEGATIVE,
    ),
)

STRATEGY = RepCountingStrategy(
    states=("waiting", "center", "right", "left"),
    transitions={
        "waiting": (Transition("center", below(CENTERED)),),
        "center": (
            Transition("right", _twisted(1)),
            Transition("left", _twisted(-1)),
        ),
        "right": (Transition("center", below(CENTERED)),),
        "left": (Transition("center", below(CENTERED)),),
    },
    rep_values={("left", "center"): 1.0},
    stall_recovery=StallRecovery(fallback_state="center"),
)

DEFINITION = ExerciseDefinition(
    key="russian_twist",
    display_name="Dumbbell Russian Twists",
    primary_view="Front",
    key_metrics=("setup_and_stance", "spinal_alignment", "range_of_motion", "tempo_and_control"),
    metrics=METRICS,
    strategy=STRATEGY,
    description="A core exercise that targets the obliques and helps build rotational strength.",
    difficulty="Beginner",
    target_muscles=("Obliques", "Abdominals", "Lower Back"),
    rep_goal=20,
    form_guidance=(
        "Sit on the floor with knees bent and feet slightly elevated",
        "Lean back to create a V-shape with your torso and thighs",
        "Keep your back straight, not rounded",
        "Rotate your torso to the right, bringing the weight beside your hip",
        "Return to center, then rotate to the left side",
        "Focus on rotating from your core, not just moving your arms",
        "Exhale as you rotate, inhale as you return to center",
    ),
    aliases=("russian twists", "twist", "twists"),
)
