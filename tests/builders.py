"""
Synthetic MediaPipe-style landmark frames for driving the analyzers without a
camera. Coordinates are normalized image fractions, y grows downward.
"""
import math
from typing import Dict, List, Optional, Sequence

from pose_coach.exercise_analysis.pose_utils import (
    LEFT_ANKLE, LEFT_ELBOW, LEFT_HIP, LEFT_KNEE, LEFT_SHOULDER, LEFT_WRIST, NOSE, NUM_LANDMARKS,
    RIGHT_ANKLE, RIGHT_ELBOW, RIGHT_HIP, RIGHT_KNEE, RIGHT_SHOULDER, RIGHT_WRIST,
    Landmark, LandmarkFrame
)

FRAME_MS = 33.0


def build_frame(points: Dict[int, Sequence[float]], timestamp_ms: float = 0.0, visibility: float = 1.0) -> LandmarkFrame:
    landmarks: List[Optional[Landmark]] = [None] * NUM_LANDMARKS
    for idx, (x, y) in points.items():
        landmarks[idx] = Landmark(x, y, visibility)
    return LandmarkFrame(landmarks, timestamp_ms=timestamp_ms)


def squat_points(knee_angle: float, both_legs: bool = True, left_offset: float = 0.1) -> Dict[int, Sequence[float]]:
    """
    Knee at (0.5, 0.6), shin straight down, thigh rotated so the hip-knee-ankle
    angle is exactly `knee_angle`. The left leg is the same leg shifted right by
    `left_offset`, so hip width and knee width both equal the offset.
    """
    theta = math.radians(knee_angle)
    dx, dy = 0.2 * math.sin(theta), 0.2 * math.cos(theta)
    points = {
        RIGHT_KNEE: (0.5, 0.6),
        RIGHT_ANKLE: (0.5, 0.8),
        RIGHT_HIP: (0.5 + dx, 0.6 + dy),
    }
    if both_legs:
        points.update({
            LEFT_KNEE: (0.5 + left_offset, 0.6),
            LEFT_ANKLE: (0.5 + left_offset, 0.8),
            LEFT_HIP: (0.5 + left_offset + dx, 0.6 + dy),
        })
    return points


def plank_points(sag: float = 0.0) -> Dict[int, Sequence[float]]:
    """Horizontal side-view plank; positive sag drops the hips below the shoulder-ankle line."""
    points = {}
    for shoulder, hip, ankle in ((LEFT_SHOULDER, LEFT_HIP, LEFT_ANKLE), (RIGHT_SHOULDER, RIGHT_HIP, RIGHT_ANKLE)):
        points[shoulder] = (0.3, 0.5)
        points[hip] = (0.5, 0.5 + sag)
        points[ankle] = (0.7, 0.5)
    return points


def standing_points() -> Dict[int, Sequence[float]]:
    points = {}
    for shoulder, hip, ankle in ((LEFT_SHOULDER, LEFT_HIP, LEFT_ANKLE), (RIGHT_SHOULDER, RIGHT_HIP, RIGHT_ANKLE)):
        points[shoulder] = (0.5, 0.2)
        points[hip] = (0.5, 0.45)
        points[ankle] = (0.5, 0.8)
    return points


def pushup_points(elbow_angle: float, body_sag: float = 0.0) -> Dict[int, Sequence[float]]:
    """Shoulder above the elbow, forearm rotated to `elbow_angle`; straight body line unless sagging."""
    theta = math.radians(elbow_angle)
    wrist = (0.5 + 0.1 * math.sin(theta), 0.5 - 0.1 * math.cos(theta))
    return {
        LEFT_SHOULDER: (0.5, 0.4), RIGHT_SHOULDER: (0.5, 0.4),
        LEFT_ELBOW: (0.5, 0.5), RIGHT_ELBOW: (0.5, 0.5),
        LEFT_WRIST: wrist, RIGHT_WRIST: wrist,
        LEFT_HIP: (0.7, 0.4 + body_sag), RIGHT_HIP: (0.7, 0.4 + body_sag),
        LEFT_ANKLE: (0.9, 0.4), RIGHT_ANKLE: (0.9, 0.4),
    }


def pullup_points(lift: float) -> Dict[int, Sequence[float]]:
    """
    Hands fixed on a bar at y=0.1, torso length 0.3. lift=0 is a dead hang
    (reach 1.0), lift=0.25 puts the chin over the bar.
    """
    shoulder_y = 0.4 - lift
    return {
        NOSE: (0.5, shoulder_y - 0.1),
        LEFT_SHOULDER: (0.45, shoulder_y), RIGHT_SHOULDER: (0.55, shoulder_y),
        LEFT_HIP: (0.45, shoulder_y + 0.3), RIGHT_HIP: (0.55, shoulder_y + 0.3),
        LEFT_WRIST: (0.45, 0.1), RIGHT_WRIST: (0.55, 0.1),
    }


def jack_points(arms: str = "down", legs: str = "together") -> Dict[int, Sequence[float]]:
    """Front-view jumping jack; shoulder width 0.1. arms="narrow" is overhead with the hands together."""
    wrist_y = {"down": 0.5, "up": 0.15, "almost": 0.27, "narrow": 0.15}[arms]
    wrist_x = {"down": (0.42, 0.58), "up": (0.4, 0.6), "almost": (0.4, 0.6), "narrow": (0.48, 0.52)}[arms]
    ankle_x = {"together": (0.48, 0.52), "wide": (0.35, 0.65)}[legs]
    return {
        LEFT_SHOULDER: (0.45, 0.3), RIGHT_SHOULDER: (0.55, 0.3),
        LEFT_WRIST: (wrist_x[0], wrist_y), RIGHT_WRIST: (wrist_x[1], wrist_y),
        LEFT_ANKLE: (ankle_x[0], 0.9), RIGHT_ANKLE: (ankle_x[1], 0.9),
    }


class FrameFeeder:
    """Feeds poses to an analyzer with steadily increasing timestamps."""

    def __init__(self, analyzer, frame_ms: float = FRAME_MS):
        self.analyzer = analyzer
        self.frame_ms = frame_ms
        self.timestamp_ms = 0.0
        self.states = []

    def feed(self, points: Dict[int, Sequence[float]], frames: int = 1):
        state = None
        for _ in range(frames):
            state = self.analyzer.analyze_frame(build_frame(points, self.timestamp_ms))
            self.states.append(state)
            self.timestamp_ms += self.frame_ms
        return state

    def messages(self) -> List[str]:
        return [m.text for state in self.states for m in state.messages]
