# bicep_curl.py
"""
Dumbbell bicep curl: both-arm elbow flexion seen from the side.
Counts a full rep on up -> down (directly or through partial_down) and a
half rep when the curl only reached the partial band (partial_up -> down).
Unlike the plain up -> down table, partial_down -> down also scores 1.0,
since a continuous extension from up always crosses the partial_down band.
"""

from models.common_metrics import (
    POSITION_BUFFER, POSITION_MARGIN, SHOULDER_STABILITY_RANGE, VELOCITY_BUFFER,
    VELOCITY_MARGIN, shoulder_stability, side_feedback, wrist_deviation,
)
from models.metric_base import (
    ANGLE_LIMITS, NON_NEGATIVE, ExerciseDefinition, FeedbackCategory, FeedbackText,
    MetricDefinition, Reading,
)
from models.pose import Joint, joint_angle
from models.rep_state_machine import (
    RepCountingStrategy, StallRecovery, Transition, above, below, within,
)

EXTENDED = 130  # above this the arm counts as down / extended
FLEXED = 80  # below this the arm counts as up / curled
PARTIAL = 110  # edge of the partial band between the two

ELBOW_FEEDBACK = FeedbackText(
    good="Elbows are stable at your sides.",
    warning="Keep your elbows closer to your body.",
    error="Elbows moving too much. Keep them fixed at your sides.",
)


def joint_alignment(pose, previous_pose, metrics):
    if not pose.has(Joint.LEFT_SHOULDER, Joint.RIGHT_SHOULDER, Joint.LEFT_ELBOW, Joint.RIGHT_ELBOW):
        return None

    left = abs(pose[Joint.LEFT_ELBOW].x - pose[Joint.LEFT_SHOULDER].x)
    right = abs(pose[Joint.RIGHT_ELBOW].x - pose[Joint.RIGHT_SHOULDER].x)
    limit = 0.05

    feedback = side_feedback(
        ELBOW_FEEDBACK, left > limit, right > limit,
        FeedbackText(
            good=ELBOW_FEEDBACK.good,
            warning="Left elbow drifting forward. Keep it fixed at your side.",
            error="Left elbow moving too much. Keep it fixed at your side.",
        ),
        FeedbackText(
            good=ELBOW_FEEDBACK.good,
            warning="Right elbow drifting forward. Keep it fixed at your side.",
            error="Right elbow moving too much. Keep it fixed at your side.",
        ),
    )
    return Reading((left + right) / 2, {"left_displacement": left, "right_displacement": right}, feedback=feedback)


ROM_FEEDBACK = FeedbackText(
    good="Good elbow range of motion.",
    warning="Try to achieve fuller range of motion.",
    error="Incomplete range of motion. Extend arms more at bottom and curl higher at top.",
)


def range_of_motion(pose, previous_pose, metrics):
    left = joint_angle(pose, Joint.LEFT_SHOULDER, Joint.LEFT_ELBOW, Joint.LEFT_WRIST)
    right = joint_angle(pose, Joint.RIGHT_SHOULDER, Joint.RIGHT_ELBOW, Joint.RIGHT_WRIST)
    if left is None or right is None:
        return None

    warning = ROM_FEEDBACK.warning
    if left > 160 and right < 160:
        warning = "Left arm not curling high enough. Bring the weight closer to your shoulder."
    elif right > 160 and left < 160:
        warning = "Right arm not curling high enough. Bring the weight closer to your shoulder."
    elif left > 60 and right < 60:
        warning = "Left arm not extending fully. Straighten your arm more at the bottom."
    elif right > 60 and left < 60:
        warning = "Right arm not extending fully. Straighten your arm more at the bottom."

    feedback = FeedbackText(ROM_FEEDBACK.good, warning, ROM_FEEDBACK.error)
    return Reading((left + right) / 2, {"left_angle": left, "right_angle": right}, feedback=feedback)


WRIST_FEEDBACK = FeedbackText(
    good="Wrists are straight and stable.",
    warning="Try to keep your wrists straighter.",
    error="Wrists are bent. Maintain neutral wrist position.",
)


def wrist_position(pose, previous_pose, metrics):
    left = wrist_deviation(pose, Joint.LEFT_ELBOW, Joint.LEFT_WRIST)
    right = wrist_deviation(pose, Joint.RIGHT_ELBOW, Joint.RIGHT_WRIST)
    if left is None or right is None:
        return None

    feedback = side_feedback(
        WRIST_FEEDBACK, left > 15, right > 15,
        FeedbackText(
            good=WRIST_FEEDBACK.good,
            warning="Left wrist is bending. Keep it straight and aligned with your forearm.",
            error="Left wrist is too bent. Straighten it to align with your forearm.",
        ),
        FeedbackText(
            good=WRIST_FEEDBACK.good,
            warning="Right wrist is bending. Keep it straight and aligned with your forearm.",
            error="Right wrist is too bent. Straighten it to align with your forearm.",
        ),
    )
    return Reading((left + right) / 2, {"left_wrist_angle": left, "right_wrist_angle": right}, feedback=feedback)


LOWERING_FEEDBACK = FeedbackText(
    good="Good controlled lowering tempo.",
    warning="Slow down the lowering phase for better control.",
    error="Lowering too fast. Slow down for better muscle engagement.",
)
CURLING_FEEDBACK = FeedbackText(
    good="Good controlled curling tempo.",
    warning="Control your curling speed.",
    error="Movement too fast. Control the weight throughout the curl.",
)


def tempo_and_control(pose, previous_pose, metrics):
    if previous_pose is None:
        return None
    wrists = (Joint.LEFT_WRIST, Joint.RIGHT_WRIST)
    if not pose.has(*wrists) or not previous_pose.has(*wrists):
        return None

    left_dy = pose[Joint.LEFT_WRIST].y - previous_pose[Joint.LEFT_WRIST].y
    right_dy = pose[Joint.RIGHT_WRIST].y - previous_pose[Joint.RIGHT_WRIST].y
    velocity = (abs(left_dy) + abs(right_dy)) / 2

    # Image y grows downward, so a growing y means the weight is being lowered
    lowering = left_dy > 0 or right_dy > 0
    return Reading(
        velocity,
        {"is_lowering": lowering},
        ideal_range=(0, 0.01) if lowering else (0, 0.015),
        feedback=LOWERING_FEEDBACK if lowering else CURLING_FEEDBACK,
    )


def symmetry(pose, previous_pose, metrics):
    rom = metrics["range_of_motion"]
    return abs(rom.aux["left_angle"] - rom.aux["right_angle"])


METRICS = (
    MetricDefinition(
        "joint_alignment", joint_alignment, (0, 0.05), ELBOW_FEEDBACK, FeedbackCategory.ELBOW,
        warning_margin=POSITION_MARGIN, hysteresis_buffer=POSITION_BUFFER, value_limits=NON_NEGATIVE,
    ),
    MetricDefinition(
        "range_of_motion", range_of_motion, (40, 160), ROM_FEEDBACK, FeedbackCategory.RANGE,
        value_limits=ANGLE_LIMITS,
    ),
    MetricDefinition(
        "tempo_and_control", tempo_and_control, (0, 0.015), CURLING_FEEDBACK, FeedbackCategory.TEMPO,
        warning_margin=VELOCITY_MARGIN, hysteresis_buffer=VELOCITY_BUFFER, value_limits=NON_NEGATIVE,
    ),
    MetricDefinition(
        "wrist_position", wrist_position, (0, 15), WRIST_FEEDBACK, FeedbackCategory.WRIST,
        value_limits=NON_NEGATIVE,
    ),
    MetricDefinition(
        "shoulder_stability", shoulder_stability, SHOULDER_STABILITY_RANGE,
        FeedbackText(
            good="Shoulders are down and relaxed.",
            warning="Keep your shoulders down away from your ears.",
            error="Shoulders rising during curl. Keep them pulled down and back.",
        ),
        FeedbackCategory.SHOULDER,
        warning_margin=POSITION_MARGIN, hysteresis_buffer=POSITION_BUFFER,
    ),
    MetricDefinition(
        "symmetry", symmetry, (0, 10),
        FeedbackText(
            good="Good symmetry between arms.",
            warning="Try to keep both arms moving at the same pace.",
            error="Uneven arm movement. Balance effort between left and right arms.",
        ),
        FeedbackCategory.SYMMETRY,
        value_limits=NON_NEGATIVE,
        depends_on=("range_of_motion",),
    ),
)


def _extended():
    return above(EXTENDED, joint="elbow")


def _flexed():
    return below(FLEXED, joint="elbow")


STRATEGY = RepCountingStrategy(
    states=("waiting", "down", "up", "partial_up", "partial_down"),
    transitions={
        "waiting": (
            Transition("down", _extended()),
            Transition("up", _flexed()),
        ),
        "down": (
            Transition("up", _flexed()),
            Transition("partial_up", within(FLEXED, PARTIAL, joint="elbow")),
        ),
        "up": (
            Transition("down", _extended()),
            Transition("partial_down", within(PARTIAL, EXTENDED, joint="elbow",
                                              include_low=False, include_high=True)),
        ),
        "partial_up": (
            Transition("down", _extended()),
            Transition("up", _flexed()),
        ),
        "partial_down": (
            Transition("up", _flexed()),
            Transition("down", _extended()),
        ),
    },
    rep_values={
        ("up", "down"): 1.0,
        # partial_down is only reachable from up, so finishing the extension completes the rep
        ("partial_down", "down"): 1.0,
        ("partial_up", "down"): 0.5,
    },
    stall_recovery=StallRecovery(
        fallback_state="down", split=105, high_state="down", low_state="up", joint="elbow",
    ),
)


DEFINITION = ExerciseDefinition(
    key="bicep_curl",
    display_name="Dumbbell Bicep Curls",
    primary_view="Side",
    key_metrics=("joint_alignment", "range_of_motion", "tempo_and_control",
                 "wrist_position", "shoulder_stability", "symmetry"),
    metrics=METRICS,
    strategy=STRATEGY,
    description="An isolation exercise that primarily targets the biceps brachii muscle.",
    difficulty="Beginner",
    target_muscles=("Biceps", "Forearms"),
    rep_goal=12,
    form_guidance=(
        "Keep your elbows fixed at your sides throughout the movement",
        "Maintain a straight wrist position - avoid flexing or extending your wrists",
        "Fully extend your arms at the bottom of the movement for full range of motion",
        "Curl the weights all the way up to your shoulders",
        "Control the weight on the way down",
        "Keep your shoulders down and back - don't shrug as you curl",
        "Maintain equal tempo and range of motion with both arms",
        "Exhale as you curl up, inhale as you lower",
    ),
    aliases=("bicep curls", "biceps curl", "curl", "armcurl"),
)
