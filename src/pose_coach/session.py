import logging
import time
from typing import Any, Callable, Dict, Optional, Sequence, Union

import numpy as np

from .exercise_analysis.base_analyzer import (
    BaseExerciseAnalyzer, ExerciseMode, ExerciseState, FeedbackMessage, create_analyzer
)
from .exercise_analysis.pose_utils import LandmarkFrame
from .feedback.feedback_throttle import FeedbackChannel, FeedbackSink
from .pose_detection.base_detector import BasePoseDetector, PoseDetectionError

# --- Logger Setup ---
logger = logging.getLogger("CoachSession")
if not logger.hasHandlers():
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)

IDLE_LABEL = "SET"
PAUSED_MESSAGE = "Session paused. Hit start when you want the coach back in."

INTRO_MESSAGES = {
    ExerciseMode.SQUAT: "Tracking squat mechanics - sit back, stay tall, and drive the floor away.",
    ExerciseMode.PLANK: "Tracking plank alignment - reach long, pack shoulders, and breathe.",
    ExerciseMode.PUSHUP: "Tracking push-ups - hands under shoulders, body in one line.",
    ExerciseMode.PULLUP: "Tracking pull-ups - start from a full hang and pull your chin over the bar.",
    ExerciseMode.JUMPING_JACK: "Tracking jumping jacks - feet together, arms down, then jump wide.",
}


class CoachSession:
    """
    Session controller: owns the active analyzer and the feedback channel,
    feeds it one frame at a time and exposes what the UI needs to draw.
    """

    def __init__(self, mode: Union[ExerciseMode, str] = ExerciseMode.SQUAT,
                 sink: Optional[FeedbackSink] = None,
                 detector: Optional[BasePoseDetector] = None,
                 config: Optional[Dict[str, Any]] = None,
                 clock: Callable[[], float] = time.time):
        """
        Args:
            mode: Exercise to coach
            sink: Voice/text sink called as sink(text, speak_now)
            detector: Pose detector used by process_frame
            config: Optional overrides merged into exercise_config.json
            clock: Wall clock in seconds, used for the speech cooldown and
                for frames submitted without a timestamp
        """
        self._config = config
        self._detector = detector
        self._clock = clock
        self._analyzer: BaseExerciseAnalyzer = create_analyzer(mode, config)
        self._channel = FeedbackChannel(
            sink=sink,
            cooldown_s=float(self._analyzer.config["feedback"]["speech_cooldown_s"]),
            clock=clock
        )
        self._running = False
        self._error: Optional[str] = None
        self._busy = False
        self._last_timestamp_ms: Optional[float] = None
        self._last_state: Optional[ExerciseState] = None

    # --- Lifecycle ---
    def start(self, mode: Optional[Union[ExerciseMode, str]] = None) -> None:
        if mode is not None and ExerciseMode.parse(mode) != self.mode:
            self._analyzer = create_analyzer(mode, self._config)
        self._reset()
        self._running = True
        logger.info(f"Session started: {self.mode.value}")
        self._channel.publish(FeedbackMessage(INTRO_MESSAGES[self.mode]))

    def stop(self) -> None:
        was_running = self._running
        self._running = False
        self._reset()
        if was_running:
            logger.info(f"Session stopped: {self.mode.value}")
        self._channel.publish(FeedbackMessage(PAUSED_MESSAGE, silent=True))

    def set_mode(self, mode: Union[ExerciseMode, str]) -> None:
        """Switch exercise. All per-mode state starts over, even for the same mode."""
        mode = ExerciseMode.parse(mode)
        self._analyzer = create_analyzer(mode, self._config)
        self._reset()
        logger.info(f"Exercise mode set to {mode.value}")
        if self._running:
            self._channel.publish(FeedbackMessage(INTRO_MESSAGES[mode]))

    def _reset(self) -> None:
        self._analyzer.reset()
        self._error = None
        self._last_timestamp_ms = None
        self._last_state = None

    # --- Frame intake ---
    def process_landmarks(self, landmarks: Optional[Union[LandmarkFrame, Sequence[Any]]],
                          timestamp_ms: Optional[float] = None) -> Optional[ExerciseState]:
        """
        Analyze one set of landmarks and publish the resulting feedback.

        Returns the ExerciseState, or None when the frame was ignored (session
        not running, halted, re-entrant call, stale timestamp or no landmarks).
        """
        if not self.is_running or landmarks is None:
            return None
        if self._busy:
            logger.warning("Frame dropped: previous frame still being processed")
            return None

        if timestamp_ms is None:
            if isinstance(landmarks, LandmarkFrame):
                timestamp_ms = landmarks.timestamp_ms
            else:
                timestamp_ms = self._clock() * 1000.0
        if self._last_timestamp_ms is not None and timestamp_ms <= self._last_timestamp_ms:
            logger.debug(f"Skipping frame at {timestamp_ms} ms (video time did not advance)")
            return None

        self._busy = True
        try:
            self._last_timestamp_ms = timestamp_ms
            frame = LandmarkFrame(
                landmarks,
                timestamp_ms=timestamp_ms,
                min_visibility=self._analyzer.min_landmark_visibility
            )
            state = self._analyzer.analyze_frame(frame)
            self._last_state = state
            if state.messages:
                self._channel.publish_all(state.messages)
            if state.metrics and self._analyzer.telemetry is not None \
                    and self._analyzer.telemetry.get("timestamp_ms") == timestamp_ms:
                logger.debug(f"Telemetry: {self._analyzer.telemetry}")
            return state
        finally:
            self._busy = False

    def process_frame(self, image: np.ndarray, timestamp_ms: float) -> Optional[ExerciseState]:
        """Run the pose detector on a camera frame, then analyze its landmarks."""
        if not self.is_running:
            return None
        if self._detector is None:
            raise RuntimeError("No pose detector configured for this session")
        try:
            landmarks = self._detector.detect(image, timestamp_ms)
        except PoseDetectionError as e:
            self._error = str(e)
            logger.error(f"Pose detection failed, session halted: {e}")
            return None
        return self.process_landmarks(landmarks, timestamp_ms)

    # --- Read-only views ---
    @property
    def mode(self) -> ExerciseMode:
        return self._analyzer.MODE

    @property
    def analyzer(self) -> BaseExerciseAnalyzer:
        return self._analyzer

    @property
    def is_running(self) -> bool:
        return self._running and self._error is None

    @property
    def rep_count(self) -> int:
        return self._analyzer.rep_count

    @property
    def hold_ms(self) -> float:
        return self._analyzer.hold_ms

    @property
    def phase(self) -> str:
        return self._analyzer.phase.value

    @property
    def state_label(self) -> str:
        if not self.is_running:
            return IDLE_LABEL
        return self._analyzer.phase_label

    @property
    def feedback_text(self) -> str:
        return self._channel.displayed_text

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def last_state(self) -> Optional[ExerciseState]:
        return self._last_state

    @property
    def telemetry(self) -> Optional[Dict[str, Any]]:
        return self._analyzer.telemetry
