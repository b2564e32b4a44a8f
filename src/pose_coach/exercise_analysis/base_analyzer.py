from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, Union
import logging

from .calibration import BaselineCalibrator
from .config_utils import load_exercise_config, merge_config
from .pose_utils import LandmarkFrame
from .rep_confirmation import DwellCounter, RepCounter
from .smoothing import SignalBank

_EXERCISE_CONFIG = load_exercise_config()

# --- Logger Setup ---
logger = logging.getLogger("ExerciseAnalyzer")
if not logger.hasHandlers():
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)


class ExerciseMode(Enum):
    """Exercises the engine can coach. Selected externally, never inferred."""
    SQUAT = "squat"
    PLANK = "plank"
    PUSHUP = "pushup"
    PULLUP = "pullup"
    JUMPING_JACK = "jumping_jack"

    @classmethod
    def parse(cls, value: Union["ExerciseMode", str]) -> "ExerciseMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower().replace("-", "_"))
        except ValueError:
            raise ValueError(f"Unsupported exercise type: {value}") from None


@dataclass(frozen=True)
class FeedbackMessage:
    """
    One outgoing coaching message.

    immediate: bypass the global speech cooldown
    allow_repeat: speak again even if the displayed text is unchanged
    silent: update the displayed text without speaking
    speech_only: speak without replacing the displayed text (e.g. "Rep 3")
    """
    text: str
    immediate: bool = False
    allow_repeat: bool = False
    silent: bool = False
    speech_only: bool = False


@dataclass
class ExerciseState:
    """Represents the outcome of analyzing one frame."""
    name: str
    phase: str
    rep_count: int
    hold_ms: float = 0.0
    rep_completed: bool = False
    messages: List[FeedbackMessage] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)
    analysis_reliable: bool = True
    error_message: Optional[str] = None  # "skip_frame" when required joints were missing


# --- Analyzer Registry ---
ANALYZER_REGISTRY: Dict[ExerciseMode, Type["BaseExerciseAnalyzer"]] = {}


def register_exercise_analyzer(mode: ExerciseMode):
    def decorator(cls):
        cls.MODE = mode
        ANALYZER_REGISTRY[mode] = cls
        return cls
    return decorator


def create_analyzer(mode: Union[ExerciseMode, str], config: Optional[Dict[str, Any]] = None) -> "BaseExerciseAnalyzer":
    mode = ExerciseMode.parse(mode)
    if mode not in ANALYZER_REGISTRY:
        raise ValueError(f"No analyzer registered for {mode.value}")
    return ANALYZER_REGISTRY[mode](config=config)


class BaseExerciseAnalyzer(ABC):
    """
    Base class for the per-exercise phase state machines.

    Subclasses implement `_analyze`, which reads one LandmarkFrame, moves the
    phase, and emits feedback through `_emit`/`_hint`/`_credit_rep`. The base
    class owns all per-session mutable state (phase, rep counter, smoothed
    signals, baselines, hint clock) so `reset` restores a fresh session.
    """

    MODE: ExerciseMode
    INITIAL_PHASE: Enum
    PHASE_LABELS: Dict[Enum, str] = {}
    # Each group is satisfied when at least one of its landmarks is present
    REQUIRED_LANDMARK_GROUPS: Sequence[Tuple[int, ...]] = ()

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the analyzer with configuration parameters.

        Args:
            config: Optional overrides merged into exercise_config.json
        """
        self.config = merge_config(_EXERCISE_CONFIG, config)
        self.settings = self.config[self.MODE.value]
        self.dwell_frames = int(self.config["dwell_frames"])
        self.almost_ratio = float(self.config["feedback"]["almost_ratio"])
        self.min_landmark_visibility = float(self.config["min_landmark_visibility"])
        self._telemetry_interval = int(self.config["telemetry_interval_frames"])
        self._signals = SignalBank(self.config["smoothing"])
        self._calibrator = BaselineCalibrator(self.config["baseline"]["blend_weight"])
        self._rep_counter = RepCounter()
        self._messages: List[FeedbackMessage] = []
        self._rep_completed = False
        self._telemetry: Optional[Dict[str, Any]] = None
        self.reset()

    # --- Session lifecycle ---
    def reset(self) -> None:
        """Discard every piece of per-session state."""
        self._phase = self.INITIAL_PHASE
        self._rep_counter.reset()
        self._signals.reset()
        self._calibrator.reset()
        self._last_hint_ms: Optional[float] = None
        self._frame_count = 0
        self._telemetry = None
        self._reset_state()

    def _reset_state(self) -> None:
        """Hook for subclass-specific state."""

    # --- Public accessors ---
    def get_exercise_name(self) -> str:
        return self.MODE.value

    @property
    def phase(self) -> Enum:
        return self._phase

    @property
    def phase_label(self) -> str:
        return self.PHASE_LABELS.get(self._phase, self._phase.value.upper())

    @property
    def rep_count(self) -> int:
        return self._rep_counter.count

    @property
    def hold_ms(self) -> float:
        return 0.0

    @property
    def calibrator(self) -> BaselineCalibrator:
        return self._calibrator

    @property
    def telemetry(self) -> Optional[Dict[str, Any]]:
        return self._telemetry

    def _dwell(self) -> DwellCounter:
        return DwellCounter(self.dwell_frames)

    def has_required_landmarks(self, frame: LandmarkFrame) -> bool:
        return all(
            any(frame.point(idx) is not None for idx in group)
            for group in self.REQUIRED_LANDMARK_GROUPS
        )

    # --- Frame analysis ---
    def analyze_frame(self, frame: LandmarkFrame) -> ExerciseState:
        """
        Analyze one frame and return the resulting ExerciseState.

        A frame missing required joints (or with degenerate geometry) is a
        no-op: no phase change, no feedback, counters untouched.
        """
        self._messages = []
        self._rep_completed = False
        metrics = None
        if not frame.is_empty and self.has_required_landmarks(frame):
            metrics = self._analyze(frame)

        if metrics is None:
            return ExerciseState(
                name=self.get_exercise_name(),
                phase=self._phase.value,
                rep_count=self.rep_count,
                hold_ms=self.hold_ms,
                analysis_reliable=False,
                error_message="skip_frame"
            )

        self._frame_count += 1
        if self._telemetry_interval > 0 and self._frame_count % self._telemetry_interval == 0:
            self._telemetry = {
                "exercise": self.get_exercise_name(),
                "timestamp_ms": frame.timestamp_ms,
                "phase": self._phase.value,
                "rep_count": self.rep_count,
                "hold_ms": self.hold_ms,
                "signals": self._signals.snapshot(),
                "baselines": self._calibrator.snapshot(),
                **metrics,
            }

        return ExerciseState(
            name=self.get_exercise_name(),
            phase=self._phase.value,
            rep_count=self.rep_count,
            hold_ms=self.hold_ms,
            rep_completed=self._rep_completed,
            messages=list(self._messages),
            metrics=metrics
        )

    @abstractmethod
    def _analyze(self, frame: LandmarkFrame) -> Optional[Dict[str, Any]]:
        """
        Run the state machine for one frame.

        Returns:
            Dict of measured quantities and flags for telemetry, or None when
            the frame could not be analyzed.
        """
        pass

    # --- Output helpers ---
    def _set_phase(self, new_phase: Enum) -> bool:
        if new_phase == self._phase:
            return False
        logger.debug(f"[{self.get_exercise_name()}] {self._phase.value} -> {new_phase.value}")
        self._phase = new_phase
        return True

    def _emit(self, text: str, immediate: bool = False, allow_repeat: bool = False,
              silent: bool = False, speech_only: bool = False) -> None:
        self._messages.append(FeedbackMessage(text, immediate, allow_repeat, silent, speech_only))

    def _hint(self, text: str, now_ms: float, immediate: bool = True) -> bool:
        """Emit a corrective hint unless this analyzer's hint cooldown is still running."""
        cooldown = float(self.settings.get("hint_cooldown_ms", 0))
        if self._last_hint_ms is not None and now_ms - self._last_hint_ms < cooldown:
            return False
        self._last_hint_ms = now_ms
        self._emit(text, immediate=immediate)
        return True

    def _credit_rep(self) -> int:
        count = self._rep_counter.increment()
        self._rep_completed = True
        logger.info(f"[{self.get_exercise_name()}] rep {count}")
        self._emit(f"Rep {count}", immediate=True, speech_only=True)
        return count

    def _almost_below(self, strict: float) -> float:
        """Relaxed bound for thresholds where smaller means further (angles that close)."""
        return strict / self.almost_ratio
