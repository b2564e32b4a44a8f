from enum import Enum
from typing import Any, Dict, Optional
import logging

from .base_analyzer import BaseExerciseAnalyzer, ExerciseMode, register_exercise_analyzer
from .pose_utils import (
    LEFT_ANKLE, LEFT_HIP, LEFT_KNEE, RIGHT_ANKLE, RIGHT_HIP, RIGHT_KNEE,
    LandmarkFrame, horizontal_gap, joint_angle, mean_of, mean_y
)

logger = logging.getLogger("SquatAnalyzer")


# --- Phase Enum ---
class SquatPhase(Enum):
    START = "start"  # Waiting for a confirmed standing posture
    UP = "up"        # Standing, baseline calibrated
    DOWN = "down"    # Descending / at the bottom


@register_exercise_analyzer(ExerciseMode.SQUAT)
class SquatAnalyzer(BaseExerciseAnalyzer):
    """
    Squat rep counter.

    A rep is the cycle UP -> DOWN -> UP, credited on the return to standing
    only if the DOWN phase reached a qualifying bottom: knee angle at or below
    the bottom threshold, hips dropped below the knees with enough hip travel,
    or (front view) knees driven wide at a moderate knee angle.
    """

    INITIAL_PHASE = SquatPhase.START
    PHASE_LABELS = {SquatPhase.START: "SET", SquatPhase.UP: "UP", SquatPhase.DOWN: "LOW"}
    REQUIRED_LANDMARK_GROUPS = ((LEFT_HIP, RIGHT_HIP), (LEFT_KNEE, RIGHT_KNEE))

    def _reset_state(self) -> None:
        self._signals.add("knee_angle", "angle")
        self._signals.add("hip_y", "positional")
        self._standing = self._dwell()
        self._descent = self._dwell()
        self._bottom = self._dwell()
        self._bottom_reached = False
        self._deepest_knee: Optional[float] = None
        self._max_hip_drop: Optional[float] = None

    def _analyze(self, frame: LandmarkFrame) -> Optional[Dict[str, Any]]:
        cfg = self.settings
        left_hip, right_hip, left_knee, right_knee, left_ankle, right_ankle = frame.points(
            LEFT_HIP, RIGHT_HIP, LEFT_KNEE, RIGHT_KNEE, LEFT_ANKLE, RIGHT_ANKLE
        )
        raw_knee = mean_of([
            joint_angle(right_hip, right_knee, right_ankle),
            joint_angle(left_hip, left_knee, left_ankle),
        ])
        smoothed_knee = self._signals.update("knee_angle", raw_knee)
        hip_y = self._signals.update("hip_y", mean_y([left_hip, right_hip]))
        knee_y = mean_y([left_knee, right_knee])
        if raw_knee is None or hip_y is None or knee_y is None:
            return None
        # Phase thresholds read this frame's angle; the smoothed one only feeds telemetry
        knee_angle = raw_knee

        hip_vertical_diff = hip_y - knee_y  # positive once the hips sit below the knees
        hip_width = horizontal_gap(left_hip, right_hip)
        knee_width = horizontal_gap(left_knee, right_knee)
        base_hip_width = self._calibrator.get("standing_hip_width") or hip_width
        knee_width_ratio = None
        if base_hip_width and base_hip_width > 0 and knee_width is not None:
            knee_width_ratio = knee_width / base_hip_width
        knees_wide = knee_width_ratio is not None and knee_width_ratio >= cfg["min_knee_width_ratio"]

        standing_hip = self._calibrator.get("standing_hip_y")
        hip_drop = hip_y - standing_hip if standing_hip is not None else None
        min_hip_drop = self._calibrator.margin(base_hip_width, cfg["min_hip_drop_abs"], cfg["min_hip_drop_rel"])

        hip_returned = hip_drop is None or abs(hip_drop) <= max(cfg["hip_return_tolerance"], min_hip_drop * 0.35)
        is_standing = knee_angle >= cfg["standing_knee_angle"] and (hip_returned or hip_vertical_diff <= 0)
        is_descending = knee_angle <= cfg["descent_knee_angle"]
        depth_sufficient = hip_drop is not None and hip_drop >= min_hip_drop
        hip_below_knee = hip_vertical_diff >= cfg["hip_below_knee_threshold"]
        knees_wide_bottom = knees_wide and knee_angle <= cfg["front_knee_angle_max"]
        at_bottom = knee_angle <= cfg["bottom_knee_angle"] or (
            depth_sufficient and (hip_below_knee or knees_wide_bottom)
        )

        standing_ok = self._standing.update(is_standing)
        descent_ok = self._descent.update(is_descending and not is_standing)
        bottom_ok = self._bottom.update(at_bottom)

        if self._phase == SquatPhase.START:
            if standing_ok:
                self._set_phase(SquatPhase.UP)
                self._emit("Brace, set your stance, and control the next descent.")
            elif not is_standing:
                self._hint("Stand tall facing the camera so the coach can calibrate.", frame.timestamp_ms, immediate=False)

        if self._phase == SquatPhase.UP:
            if standing_ok:
                self._calibrator.observe("standing_hip_y", hip_y)
                self._calibrator.observe("standing_hip_width", hip_width)
            elif descent_ok:
                self._set_phase(SquatPhase.DOWN)
                self._standing.reset()
                self._bottom_reached = False
                self._deepest_knee = None
                self._max_hip_drop = None
                self._emit("Control the descent - hips back, knees tracking over toes.")

        if self._phase == SquatPhase.DOWN:
            self._track_excursion(knee_angle, hip_drop)
            if bottom_ok and not self._bottom_reached:
                self._bottom_reached = True
                if hip_vertical_diff < cfg["hip_below_knee_threshold"]:
                    self._emit("Drop another inch so hips finish just below the knees.", immediate=True)
                else:
                    self._emit("Great depth. Stay tight and drive up through your heels.", immediate=True)
            if (knee_width_ratio is not None and knee_width_ratio < cfg["min_knee_width_ratio"]
                    and is_descending):
                self._hint("Push your knees out over your toes.", frame.timestamp_ms)
            if standing_ok:
                self._finish_rep()

        return {
            "knee_angle": smoothed_knee,
            "raw_knee_angle": knee_angle,
            "deepest_knee_angle": self._deepest_knee,
            "hip_y": hip_y,
            "hip_vertical_diff": hip_vertical_diff,
            "hip_drop": hip_drop,
            "max_hip_drop": self._max_hip_drop,
            "min_hip_drop": min_hip_drop,
            "knee_width_ratio": knee_width_ratio,
            "is_standing": is_standing,
            "at_bottom": at_bottom,
            "bottom_reached": self._bottom_reached,
        }

    def _track_excursion(self, knee_angle: float, hip_drop: Optional[float]) -> None:
        if self._deepest_knee is None or knee_angle < self._deepest_knee:
            self._deepest_knee = knee_angle
        if hip_drop is not None and (self._max_hip_drop is None or hip_drop > self._max_hip_drop):
            self._max_hip_drop = hip_drop

    def _finish_rep(self) -> None:
        self._set_phase(SquatPhase.UP)
        if self._bottom_reached:
            self._credit_rep()
            self._emit("Stand tall and lock the rep before the next drive.")
        elif self._deepest_knee is not None and self._deepest_knee <= self._almost_below(self.settings["bottom_knee_angle"]):
            self._emit("Almost there - sink a little lower for the rep to count.", immediate=True)
        else:
            logger.debug(f"Shallow squat ignored (deepest knee angle {self._deepest_knee}, max hip drop {self._max_hip_drop})")
            self._emit("Go deeper - hips toward knee level for the rep to count.")
        self._bottom_reached = False
        self._descent.reset()
        self._bottom.reset()
