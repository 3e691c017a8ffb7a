# geometry.py
"""
Angle primitives shared by every exercise metric.
Points may be landmarks with x/y(/z) attributes or plain (x, y[, z]) sequences.
A missing point or a near-zero ray yields None, which callers treat as
"measurement unavailable".
"""

import math
from typing import Optional

import numpy as np

MIN_RAY_LENGTH = 1e-6


def _xy(point) -> Optional[np.ndarray]:
    if point is None:
        return None
    if hasattr(point, "x"):
        return np.array([point.x, point.y], dtype=float)
    return np.array(point[:2], dtype=float)


def _xyz(point) -> Optional[np.ndarray]:
    if point is None:
        return None
    if hasattr(point, "x"):
        z = getattr(point, "z", None)
        if z is None:
            return None
        return np.array([point.x, point.y, z], dtype=float)
    if len(point) < 3 or point[2] is None:
        return None
    return np.array(point[:3], dtype=float)


def angle_between(a, b, c) -> Optional[float]:
    """
    Unsigned angle at vertex b formed by rays b->a and b->c, in degrees [0, 180].
    Uses the atan2 difference of the two rays and reflects anything over 180.
    """
    pa, pb, pc = _xy(a), _xy(b), _xy(c)
    if pa is None or pb is None or pc is None:
        return None

    ba = pa - pb
    bc = pc - pb
    if np.linalg.norm(ba) < MIN_RAY_LENGTH or np.linalg.norm(bc) < MIN_RAY_LENGTH:
        return None

    radians = math.atan2(bc[1], bc[0]) - math.atan2(ba[1], ba[0])
    angle = abs(math.degrees(radians))
    if angle > 180.0:
        angle = 360.0 - angle
    return angle


def angle_between_3d(a, b, c) -> Optional[float]:
    """
    Same contract as angle_between but over 3-vectors via the dot product.
    Returns None if any point lacks a depth coordinate.
    """
    pa, pb, pc = _xyz(a), _xyz(b), _xyz(c)
    if pa is None or pb is None or pc is None:
        return None

    ba = pa - pb
    bc = pc - pb
    norm_ba = np.linalg.norm(ba)
    norm_bc = np.linalg.norm(bc)
    if norm_ba < MIN_RAY_LENGTH or norm_bc < MIN_RAY_LENGTH:
        return None

    cosine = np.dot(ba, bc) / (norm_ba * norm_bc)
    return float(np.degrees(np.arccos(np.clip(cosine, -1.0, 1.0))))


def distance(a, b) -> Optional[float]:
    """Euclidean distance in the image plane"""
    pa, pb = _xy(a), _xy(b)
    if pa is None or pb is None:
        return None
    return float(np.linalg.norm(pa - pb))


def offset_point(point, dx: float = 0.0, dy: float = 0.0):
    """
    Reference point shifted from a landmark, e.g. straight above a shoulder.
    Image y grows downward, so dy < 0 points up.
    """
    p = _xy(point)
    if p is None:
        return None
    return (p[0] + dx, p[1] + dy)


def line_angle(p1, p2, q1, q2) -> Optional[float]:
    """Angle in degrees between the line p1->p2 and the line q1->q2"""
    a1, a2, b1, b2 = _xy(p1), _xy(p2), _xy(q1), _xy(q2)
    if a1 is None or a2 is None or b1 is None or b2 is None:
        return None
    u = a2 - a1
    v = b2 - b1
    norm_u = np.linalg.norm(u)
    norm_v = np.linalg.norm(v)
    if norm_u < MIN_RAY_LENGTH or norm_v < MIN_RAY_LENGTH:
        return None
    cosine = np.dot(u, v) / (norm_u * norm_v)
    return float(np.degrees(np.arccos(np.clip(cosine, -1.0, 1.0))))


def cross_sign(p1, p2, q1, q2) -> int:
    """Sign of the 2D cross product of p1->p2 and q1->q2 (rotation direction)"""
    a1, a2, b1, b2 = _xy(p1), _xy(p2), _xy(q1), _xy(q2)
    if a1 is None or a2 is None or b1 is None or b2 is None:
        return 0
    u = a2 - a1
    v = b2 - b1
    cross = u[0] * v[1] - u[1] * v[0]
    if abs(cross) < MIN_RAY_LENGTH:
        return 0
    return 1 if cross > 0 else -1
