"""
pose_utils.py - Shared landmark containers and planar geometry helpers.
"""
import math
from dataclasses import dataclass
from typing import Iterable, List, NamedTuple, Optional, Sequence, Union

import numpy as np

# --- Landmark Topology ---
LANDMARK_NAMES = [
    "nose", "left_eye_inner", "left_eye", "left_eye_outer",
    "right_eye_inner", "right_eye", "right_eye_outer", "left_ear",
    "right_ear", "mouth_left", "mouth_right", "left_shoulder",
    "right_shoulder", "left_elbow", "right_elbow", "left_wrist",
    "right_wrist", "left_pinky", "right_pinky", "left_index",
    "right_index", "left_thumb", "right_thumb", "left_hip",
    "right_hip", "left_knee", "right_knee", "left_ankle",
    "right_ankle", "left_heel", "right_heel", "left_foot_index",
    "right_foot_index"
]
NUM_LANDMARKS = len(LANDMARK_NAMES)
LANDMARK_INDEX = {name: idx for idx, name in enumerate(LANDMARK_NAMES)}

NOSE = 0
LEFT_SHOULDER, RIGHT_SHOULDER = 11, 12
LEFT_ELBOW, RIGHT_ELBOW = 13, 14
LEFT_WRIST, RIGHT_WRIST = 15, 16
LEFT_HIP, RIGHT_HIP = 23, 24
LEFT_KNEE, RIGHT_KNEE = 25, 26
LEFT_ANKLE, RIGHT_ANKLE = 27, 28

_DEGENERATE_EPS = 1e-6
ANGLE_PRECISION = 6


class Point2D(NamedTuple):
    """Planar point in fractions of frame width/height."""
    x: float
    y: float


@dataclass(frozen=True)
class Landmark:
    x: float
    y: float
    visibility: Optional[float] = None


LandmarkLike = Union[Landmark, Sequence[float], None]


def _to_landmark(raw: LandmarkLike) -> Optional[Landmark]:
    if raw is None or isinstance(raw, Landmark):
        return raw
    if hasattr(raw, "x") and hasattr(raw, "y"):
        # MediaPipe NormalizedLandmark and similar objects
        return Landmark(float(raw.x), float(raw.y), getattr(raw, "visibility", None))
    if len(raw) < 2:
        return None
    # [x, y, z, visibility] lists carry visibility in the 4th slot, (x, y, visibility) in the 3rd
    visibility = None
    if len(raw) >= 4:
        visibility = raw[3]
    elif len(raw) == 3:
        visibility = raw[2]
    return Landmark(float(raw[0]), float(raw[1]), None if visibility is None else float(visibility))


class LandmarkFrame:
    """
    One detector result: a fixed-length (33) ordered sequence of optional landmarks.

    Args:
        landmarks: Up to 33 landmarks (Landmark objects, [x, y(, z), visibility] lists,
            objects with x/y attributes, or None for an absent joint)
        timestamp_ms: Monotonic timestamp of the source video frame
        min_visibility: Landmarks whose visibility is below this are treated as absent
    """

    def __init__(self, landmarks: Iterable[LandmarkLike], timestamp_ms: float = 0.0, min_visibility: float = 0.0):
        converted = [_to_landmark(lm) for lm in landmarks]
        if len(converted) > NUM_LANDMARKS:
            raise ValueError(f"Expected at most {NUM_LANDMARKS} landmarks, got {len(converted)}")
        converted.extend([None] * (NUM_LANDMARKS - len(converted)))
        self._landmarks = tuple(converted)
        self.timestamp_ms = float(timestamp_ms)
        self.min_visibility = min_visibility

    def __len__(self) -> int:
        return NUM_LANDMARKS

    def __getitem__(self, index: int) -> Optional[Landmark]:
        return self._landmarks[index]

    @property
    def is_empty(self) -> bool:
        return all(lm is None for lm in self._landmarks)

    def point(self, key: Union[int, str]) -> Optional[Point2D]:
        """Return the joint as a Point2D, or None when absent, non-finite or not visible enough."""
        index = LANDMARK_INDEX[key] if isinstance(key, str) else key
        landmark = self._landmarks[index]
        if landmark is None:
            return None
        if not (math.isfinite(landmark.x) and math.isfinite(landmark.y)):
            return None
        if landmark.visibility is not None and landmark.visibility < self.min_visibility:
            return None
        return Point2D(landmark.x, landmark.y)

    def points(self, *keys: Union[int, str]) -> List[Optional[Point2D]]:
        return [self.point(k) for k in keys]


# --- Math & Geometry Utilities ---
def angle_between(a: Sequence[float], b: Sequence[float], c: Sequence[float]) -> float:
    """
    Interior angle at vertex b formed by rays b->a and b->c, in degrees [0, 180].

    Computed as the difference of two atan2 headings. Coincident points give a
    finite (meaningless) angle rather than NaN. The result is rounded to
    ANGLE_PRECISION decimals so a pose at exactly a threshold angle compares
    as equal to it.
    """
    radians = np.arctan2(c[1] - b[1], c[0] - b[0]) - np.arctan2(a[1] - b[1], a[0] - b[0])
    degrees = abs(float(np.degrees(radians)))
    if degrees > 180.0:
        degrees = 360.0 - degrees
    return round(degrees, ANGLE_PRECISION)


def joint_angle(a: Optional[Sequence[float]], b: Optional[Sequence[float]], c: Optional[Sequence[float]]) -> Optional[float]:
    """Like angle_between, but None for missing joints or near-zero rays."""
    if a is None or b is None or c is None:
        return None
    if distance(a, b) < _DEGENERATE_EPS or distance(c, b) < _DEGENERATE_EPS:
        return None
    return angle_between(a, b, c)


def distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Calculate Euclidean distance between two points."""
    return float(np.hypot(a[0] - b[0], a[1] - b[1]))


def mean_of(values: Iterable[Optional[float]]) -> Optional[float]:
    """Mean of the values that are present, None when none are."""
    present = [v for v in values if v is not None]
    return float(np.mean(present)) if present else None


def mean_y(points: Iterable[Optional[Point2D]]) -> Optional[float]:
    return mean_of(p.y for p in points if p is not None)


def horizontal_gap(a: Optional[Point2D], b: Optional[Point2D]) -> Optional[float]:
    if a is None or b is None:
        return None
    return abs(a.x - b.x)


def torso_length(frame: LandmarkFrame) -> Optional[float]:
    """
    Shoulder-to-hip length: average of both sides when available, else whichever
    side is visible, else None.
    """
    lengths = []
    for shoulder_idx, hip_idx in ((LEFT_SHOULDER, LEFT_HIP), (RIGHT_SHOULDER, RIGHT_HIP)):
        shoulder, hip = frame.point(shoulder_idx), frame.point(hip_idx)
        if shoulder is not None and hip is not None:
            lengths.append(distance(shoulder, hip))
    length = mean_of(lengths)
    if length is None or length < _DEGENERATE_EPS:
        return None
    return length
