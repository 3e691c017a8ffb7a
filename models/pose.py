# pose.py
"""
Immutable pose container for one video frame.
Indices follow the 33-point MediaPipe body layout. Occluded or low-visibility
joints read as None so every measurement can skip instead of failing.
"""

from enum import IntEnum
from typing import Any, Dict, Iterable, NamedTuple, Optional, Sequence

from config import config
from utils.geometry import angle_between, angle_between_3d

POSE_SIZE = 33


class Joint(IntEnum):
    NOSE = 0
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28


class Landmark(NamedTuple):
    x: float
    y: float
    z: Optional[float] = None
    visibility: Optional[float] = None


class Pose:
    """
    Fixed-size, read-only sequence of optional landmarks.
    pose[Joint.LEFT_ELBOW] returns the landmark or None when it is missing,
    out of range, or below the configured visibility threshold.
    """

    __slots__ = ("_landmarks", "min_visibility")

    def __init__(self, landmarks: Iterable[Optional[Landmark]], min_visibility: float = None):
        items = list(landmarks)[:POSE_SIZE]
        items.extend([None] * (POSE_SIZE - len(items)))
        self._landmarks = tuple(items)
        self.min_visibility = config.min_visibility if min_visibility is None else min_visibility

    @classmethod
    def from_dicts(cls, points: Sequence[Optional[Dict[str, Any]]], min_visibility: float = None) -> "Pose":
        """Build a pose from JSON-like dicts with x, y and optional z / visibility"""
        landmarks = []
        for point in points:
            if point is None or point.get("x") is None or point.get("y") is None:
                landmarks.append(None)
            else:
                landmarks.append(Landmark(point["x"], point["y"], point.get("z"), point.get("visibility")))
        return cls(landmarks, min_visibility)

    def __getitem__(self, index: int) -> Optional[Landmark]:
        if not 0 <= index < POSE_SIZE:
            return None
        landmark = self._landmarks[index]
        if landmark is None:
            return None
        if landmark.visibility is not None and landmark.visibility < self.min_visibility:
            return None
        return landmark

    def __len__(self) -> int:
        return POSE_SIZE

    def has(self, *joints: int) -> bool:
        """True when every listed joint is available"""
        return all(self[j] is not None for j in joints)

    @property
    def is_3d(self) -> bool:
        present = [lm for lm in self._landmarks if lm is not None]
        return bool(present) and all(lm.z is not None for lm in present)

    @property
    def is_empty(self) -> bool:
        return all(self[i] is None for i in range(POSE_SIZE))


# Joint name -> (first point, vertex, second point)
JOINT_ANGLE_TRIPLETS = {
    "left_elbow": (Joint.LEFT_SHOULDER, Joint.LEFT_ELBOW, Joint.LEFT_WRIST),
    "right_elbow": (Joint.RIGHT_SHOULDER, Joint.RIGHT_ELBOW, Joint.RIGHT_WRIST),
    "left_shoulder": (Joint.LEFT_HIP, Joint.LEFT_SHOULDER, Joint.LEFT_ELBOW),
    "right_shoulder": (Joint.RIGHT_HIP, Joint.RIGHT_SHOULDER, Joint.RIGHT_ELBOW),
    "left_hip": (Joint.LEFT_SHOULDER, Joint.LEFT_HIP, Joint.LEFT_KNEE),
    "right_hip": (Joint.RIGHT_SHOULDER, Joint.RIGHT_HIP, Joint.RIGHT_KNEE),
    "left_knee": (Joint.LEFT_HIP, Joint.LEFT_KNEE, Joint.LEFT_ANKLE),
    "right_knee": (Joint.RIGHT_HIP, Joint.RIGHT_KNEE, Joint.RIGHT_ANKLE),
}


def joint_angle(pose: Pose, a: int, b: int, c: int, use_3d: bool = None) -> Optional[float]:
    """Angle at joint b, using the depth axis when enabled and the pose carries one"""
    if use_3d is None:
        use_3d = config.use_3d_angles and pose.is_3d
    pa, pb, pc = pose[a], pose[b], pose[c]
    if use_3d:
        angle = angle_between_3d(pa, pb, pc)
        if angle is not None:
            return angle
    return angle_between(pa, pb, pc)


def compute_joint_angles(pose: Pose) -> Dict[str, float]:
    """Raw per-side joint angles for every joint whose three points are visible"""
    angles = {}
    for name, (a, b, c) in JOINT_ANGLE_TRIPLETS.items():
        angle = joint_angle(pose, a, b, c)
        if angle is not None:
            angles[name] = angle
    return angles
