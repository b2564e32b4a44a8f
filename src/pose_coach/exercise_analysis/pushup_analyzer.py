from enum import Enum
from typing import Any, Dict, Optional
import logging

from .base_analyzer import BaseExerciseAnalyzer, ExerciseMode, register_exercise_analyzer
from .pose_utils import (
    LEFT_ANKLE, LEFT_ELBOW, LEFT_HIP, LEFT_SHOULDER, LEFT_WRIST,
    RIGHT_ANKLE, RIGHT_ELBOW, RIGHT_HIP, RIGHT_SHOULDER, RIGHT_WRIST,
    LandmarkFrame, joint_angle, mean_of
)

logger = logging.getLogger("PushupAnalyzer")


class PushupPhase(Enum):
    """Push-up exercise phases."""
    SETUP = "setup"        # Getting into position, arms not yet confirmed extended
    LOWERING = "lowering"  # Chest travelling toward the floor
    PRESS = "press"        # Pressed back up to extended arms


@register_exercise_analyzer(ExerciseMode.PUSHUP)
class PushupAnalyzer(BaseExerciseAnalyzer):
    """
    Push-up rep counter driven by the shoulder-elbow-wrist angle.

    LOWERING -> PRESS credits a rep only when the elbow closed to the bottom
    threshold (for the dwell) during that same LOWERING phase. The bottom flag
    is cleared every time LOWERING is entered, so one deep excursion can never
    pay for two reps.
    """

    INITIAL_PHASE = PushupPhase.SETUP
    PHASE_LABELS = {PushupPhase.SETUP: "SET", PushupPhase.LOWERING: "LOW", PushupPhase.PRESS: "UP"}
    REQUIRED_LANDMARK_GROUPS = (
        (LEFT_SHOULDER, RIGHT_SHOULDER),
        (LEFT_ELBOW, RIGHT_ELBOW),
        (LEFT_WRIST, RIGHT_WRIST),
    )

    def _reset_state(self) -> None:
        self._signals.add("elbow_angle", "angle")
        self._extended = self._dwell()
        self._lowering = self._dwell()
        self._bottom = self._dwell()
        self._armed = False  # extended arms confirmed since the last LOWERING began
        self._bottom_reached = False
        self._deepest_elbow: Optional[float] = None

    def _analyze(self, frame: LandmarkFrame) -> Optional[Dict[str, Any]]:
        cfg = self.settings
        points = dict(zip(
            ("ls", "rs", "le", "re", "lw", "rw", "lh", "rh", "la", "ra"),
            frame.points(LEFT_SHOULDER, RIGHT_SHOULDER, LEFT_ELBOW, RIGHT_ELBOW, LEFT_WRIST,
                         RIGHT_WRIST, LEFT_HIP, RIGHT_HIP, LEFT_ANKLE, RIGHT_ANKLE)
        ))
        raw_elbow = mean_of([
            joint_angle(points["rs"], points["re"], points["rw"]),
            joint_angle(points["ls"], points["le"], points["lw"]),
        ])
        smoothed_elbow = self._signals.update("elbow_angle", raw_elbow)
        if raw_elbow is None:
            return None
        elbow_angle = raw_elbow
        body_line = mean_of([
            joint_angle(points["rs"], points["rh"], points["ra"]),
            joint_angle(points["ls"], points["lh"], points["la"]),
        ])

        is_extended = elbow_angle >= cfg["top_elbow_angle"]
        is_lowering = elbow_angle <= cfg["lowering_elbow_angle"]
        at_bottom = elbow_angle <= cfg["bottom_elbow_angle"]
        extended_ok = self._extended.update(is_extended)
        lowering_ok = self._lowering.update(is_lowering)
        bottom_ok = self._bottom.update(at_bottom)
        now_ms = frame.timestamp_ms

        if self._phase == PushupPhase.SETUP:
            if extended_ok and not self._armed:
                self._armed = True
                self._emit("Arms locked out - lower with control.", silent=True)

        if self._phase in (PushupPhase.SETUP, PushupPhase.PRESS) and self._armed and lowering_ok:
            self._set_phase(PushupPhase.LOWERING)
            self._armed = False
            self._bottom_reached = False
            self._deepest_elbow = None
            self._extended.reset()
            self._emit("Lowering - keep elbows at about 45 degrees.", silent=True)

        if self._phase == PushupPhase.LOWERING:
            if self._deepest_elbow is None or elbow_angle < self._deepest_elbow:
                self._deepest_elbow = elbow_angle
            if bottom_ok and not self._bottom_reached:
                self._bottom_reached = True
                self._emit("Good depth - press the floor away.", silent=True)
            if body_line is not None and body_line < cfg["min_body_line_angle"]:
                self._hint("Keep your core tight and body straight.", now_ms)
            if extended_ok:
                self._finish_press()

        return {
            "elbow_angle": smoothed_elbow,
            "raw_elbow_angle": elbow_angle,
            "body_line_angle": body_line,
            "is_extended": is_extended,
            "at_bottom": at_bottom,
            "bottom_reached": self._bottom_reached,
            "armed": self._armed,
        }

    def _finish_press(self) -> None:
        self._set_phase(PushupPhase.PRESS)
        self._armed = True
        self._lowering.reset()
        self._bottom.reset()
        if self._bottom_reached:
            self._credit_rep()
            self._emit("Strong press - reset and go again.", silent=True)
        elif self._deepest_elbow is not None and self._deepest_elbow <= self._almost_below(self.settings["bottom_elbow_angle"]):
            self._emit("Almost - lower your chest a bit more for the rep to count.", immediate=True)
        else:
            logger.debug(f"Shallow push-up ignored (deepest elbow angle {self._deepest_elbow})")
            self._emit("Go lower - chest toward the floor for the rep to count.")
        self._bottom_reached = False
