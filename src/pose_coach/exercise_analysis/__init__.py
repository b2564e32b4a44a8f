"""
Exercise analysis package: per-exercise phase state machines and the shared
smoothing, calibration and rep-confirmation helpers they are built from.
"""

from .base_analyzer import (
    ANALYZER_REGISTRY, BaseExerciseAnalyzer, ExerciseMode, ExerciseState, FeedbackMessage, create_analyzer
)
from .calibration import BaselineCalibrator
from .jumping_jack_analyzer import JumpingJackAnalyzer, JumpingJackPhase
from .plank_analyzer import PlankAnalyzer, PlankPhase
from .pose_utils import Landmark, LandmarkFrame, Point2D, angle_between, distance, joint_angle
from .pullup_analyzer import PullupAnalyzer, PullupPhase
from .pushup_analyzer import PushupAnalyzer, PushupPhase
from .rep_confirmation import DwellCounter, RepCounter
from .smoothing import SmoothedSignal
from .squat_analyzer import SquatAnalyzer, SquatPhase

__all__ = [
    'ANALYZER_REGISTRY',
    'BaseExerciseAnalyzer',
    'BaselineCalibrator',
    'DwellCounter',
    'ExerciseMode',
    'ExerciseState',
    'FeedbackMessage',
    'JumpingJackAnalyzer',
    'JumpingJackPhase',
    'Landmark',
    'LandmarkFrame',
    'PlankAnalyzer',
    'PlankPhase',
    'Point2D',
    'PullupAnalyzer',
    'PullupPhase',
    'PushupAnalyzer',
    'PushupPhase',
    'RepCounter',
    'SmoothedSignal',
    'SquatAnalyzer',
    'SquatPhase',
    'angle_between',
    'create_analyzer',
    'distance',
    'joint_angle',
]
