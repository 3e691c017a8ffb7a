import math

import pytest

from models.pose import Joint, Landmark, Pose

SHOULDER_Y = 0.56
HIP_Y = 0.8
UPPER_ARM = 0.2
FOREARM = 0.2


def build_pose(points, min_visibility=0.5):
    """Pose from a {Joint: (x, y)} mapping, every other joint missing"""
    landmarks = [None] * 33
    for joint, (x, y) in points.items():
        landmarks[int(joint)] = Landmark(x, y, visibility=1.0)
    return Pose(landmarks, min_visibility)


def curl_points(angle, left_angle=None):
    """
    Standing pose seen from the side with both upper arms hanging straight down
    and each forearm rotated so the elbow angle equals the requested value.
    """
    points = {
        Joint.LEFT_HIP: (0.45, HIP_Y),
        Joint.RIGHT_HIP: (0.55, HIP_Y),
    }
    sides = (
        (Joint.LEFT_SHOULDER, Joint.LEFT_ELBOW, Joint.LEFT_WRIST, 0.4,
         angle if left_angle is None else left_angle),
        (Joint.RIGHT_SHOULDER, Joint.RIGHT_ELBOW, Joint.RIGHT_WRIST, 0.6, angle),
    )
    for shoulder, elbow, wrist, x, elbow_angle in sides:
        elbow_y = SHOULDER_Y + UPPER_ARM
        rad = math.radians(elbow_angle)
        points[shoulder] = (x, SHOULDER_Y)
        points[elbow] = (x, elbow_y)
        points[wrist] = (x + FOREARM * math.sin(rad), elbow_y - FOREARM * math.cos(rad))
    return points


@pytest.fixture
def pose_factory():
    return build_pose


@pytest.fixture
def curl_pose():
    def make(angle, left_angle=None):
        return build_pose(curl_points(angle, left_angle))
    return make


@pytest.fixture
def frame_dicts():
    """JSON-style landmark list for the HTTP API"""
    def make(angle):
        landmarks = [None] * 33
        for joint, (x, y) in curl_points(angle).items():
            landmarks[int(joint)] = {"x": x, "y": y, "visibility": 0.99}
        return landmarks
    return make
