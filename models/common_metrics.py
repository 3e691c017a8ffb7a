# common_metrics.py
"""
Measurement helpers reused across exercises.
All helpers take a Pose (and sometimes the previous frame's Pose) and
return None when a required joint is missing.
"""

from typing import Optional, Sequence

from models.metric_base import FeedbackText, Reading
from models.pose import Joint, Pose, joint_angle
from utils.geometry import angle_between, offset_point

# Margins and buffers for values measured in normalized image coordinates
POSITION_MARGIN = 0.05
POSITION_BUFFER = 0.01
VELOCITY_MARGIN = 0.01
VELOCITY_BUFFER = 0.002

SHOULDER_STABILITY_RANGE = (0.25, 0.35)


def side_feedback(base: FeedbackText, left_bad: bool, right_bad: bool,
                  left_text: FeedbackText, right_text: FeedbackText) -> FeedbackText:
    """Pick per-side wording when exactly one side is out of range"""
    if left_bad and not right_bad:
        return left_text
    if right_bad and not left_bad:
        return right_text
    return base


def shoulder_stability(pose: Pose, previous_pose=None, metrics=None) -> Optional[Reading]:
    """
    Shoulder height above the hips as a fraction of hip height.
    Shrugging raises the ratio.
    """
    if not pose.has(Joint.LEFT_SHOULDER, Joint.RIGHT_SHOULDER, Joint.LEFT_HIP, Joint.RIGHT_HIP):
        return None

    shoulder_height = (pose[Joint.LEFT_SHOULDER].y + pose[Joint.RIGHT_SHOULDER].y) / 2
    hip_height = (pose[Joint.LEFT_HIP].y + pose[Joint.RIGHT_HIP].y) / 2
    if abs(hip_height) < 1e-6:
        return None

    return Reading(
        value=(hip_height - shoulder_height) / hip_height,
        aux={
            "left_ratio": (hip_height - pose[Joint.LEFT_SHOULDER].y) / hip_height,
            "right_ratio": (hip_height - pose[Joint.RIGHT_SHOULDER].y) / hip_height,
        },
    )


def torso_lean(pose: Pose, shoulder: int = Joint.LEFT_SHOULDER, hip: int = Joint.LEFT_HIP) -> Optional[float]:
    """Degrees the shoulder-to-hip line leans away from vertical (0 = upright)"""
    if not pose.has(shoulder, hip):
        return None
    below_shoulder = offset_point(pose[shoulder], dy=0.5)
    return angle_between(below_shoulder, pose[shoulder], pose[hip])


def back_angle(pose: Pose, shoulder: int = Joint.LEFT_SHOULDER, hip: int = Joint.LEFT_HIP) -> Optional[float]:
    """
    Angle at the shoulder between a point behind it and the hip.
    Close to 180 when the back is flat along the horizontal.
    """
    if not pose.has(shoulder, hip):
        return None
    behind_shoulder = offset_point(pose[shoulder], dx=-0.1)
    return angle_between(behind_shoulder, pose[shoulder], pose[hip])


def wrist_deviation(pose: Pose, elbow: int, wrist: int) -> Optional[float]:
    """Deviation of the forearm from the wrist's neutral (90 degree) hand line"""
    if not pose.has(elbow, wrist):
        return None
    hand = offset_point(pose[wrist], dx=0.1)
    angle = angle_between(pose[elbow], pose[wrist], hand)
    if angle is None:
        return None
    return abs(90 - angle)


def hinge_angle(pose: Pose) -> Optional[float]:
    """Shoulder-hip-knee angle on the left side"""
    if not pose.has(Joint.LEFT_SHOULDER, Joint.LEFT_HIP, Joint.LEFT_KNEE):
        return None
    return joint_angle(pose, Joint.LEFT_SHOULDER, Joint.LEFT_HIP, Joint.LEFT_KNEE)


def joint_velocity(pose: Pose, previous_pose: Optional[Pose], joints: Sequence[int], axis: str = "y") -> Optional[float]:
    """Mean absolute per-frame displacement of the given joints along one axis"""
    if previous_pose is None:
        return None
    if not pose.has(*joints) or not previous_pose.has(*joints):
        return None
    deltas = [abs(getattr(pose[j], axis) - getattr(previous_pose[j], axis)) for j in joints]
    return sum(deltas) / len(deltas)
