"""
Pose Coach: real-time exercise coaching from pose landmarks.

Per-exercise analyzers turn MediaPipe landmark frames into phases, rep counts,
hold times and short coaching cues; CoachSession ties an analyzer to a pose
detector and a voice/text feedback channel.
"""

from .exercise_analysis import ExerciseMode, ExerciseState, FeedbackMessage, LandmarkFrame, create_analyzer
from .session import CoachSession

__version__ = "0.1.0"

__all__ = [
    'CoachSession',
    'ExerciseMode',
    'ExerciseState',
    'FeedbackMessage',
    'LandmarkFrame',
    'create_analyzer',
]
