from enum import Enum
from typing import Any, Dict, Optional
import logging

from .base_analyzer import BaseExerciseAnalyzer, ExerciseMode, register_exercise_analyzer
from .pose_utils import (
    LEFT_ANKLE, LEFT_HIP, LEFT_SHOULDER, RIGHT_ANKLE, RIGHT_HIP, RIGHT_SHOULDER,
    LandmarkFrame, joint_angle, mean_of, mean_y
)

logger = logging.getLogger("PlankAnalyzer")


class PlankPhase(Enum):
    SETUP = "setup"    # Getting into position
    HOLD = "hold"      # Active hold, timer running
    ADJUST = "adjust"  # Hold broken, waiting for form to be restored


@register_exercise_analyzer(ExerciseMode.PLANK)
class PlankAnalyzer(BaseExerciseAnalyzer):
    """
    Continuous-hold analyzer. Instead of reps it accumulates a hold timer while
    the shoulder-hip-ankle line stays straight and the body stays horizontal.

    Invalid frames pause the timer; a sustained run of them (or a shorter run
    of near-standing frames) breaks the hold and zeroes the timer.
    """

    INITIAL_PHASE = PlankPhase.SETUP
    PHASE_LABELS = {PlankPhase.SETUP: "SET", PlankPhase.HOLD: "HOLD", PlankPhase.ADJUST: "FIX"}
    REQUIRED_LANDMARK_GROUPS = (
        (LEFT_SHOULDER, RIGHT_SHOULDER),
        (LEFT_HIP, RIGHT_HIP),
        (LEFT_ANKLE, RIGHT_ANKLE),
    )

    def _reset_state(self) -> None:
        self._signals.add("body_angle", "angle")
        self._valid = self._dwell()
        self._hold_ms = 0.0
        self._last_timestamp_ms: Optional[float] = None
        self._invalid_streak = 0
        self._upright_streak = 0
        self._next_milestone_ms = float(self.settings["milestone_interval_ms"])

    @property
    def hold_ms(self) -> float:
        return self._hold_ms if self._phase == PlankPhase.HOLD else 0.0

    def _analyze(self, frame: LandmarkFrame) -> Optional[Dict[str, Any]]:
        cfg = self.settings
        left_shoulder, right_shoulder, left_hip, right_hip, left_ankle, right_ankle = frame.points(
            LEFT_SHOULDER, RIGHT_SHOULDER, LEFT_HIP, RIGHT_HIP, LEFT_ANKLE, RIGHT_ANKLE
        )
        raw_angle = mean_of([
            joint_angle(right_shoulder, right_hip, right_ankle),
            joint_angle(left_shoulder, left_hip, left_ankle),
        ])
        if raw_angle is None:
            return None
        smoothed_angle = self._signals.update("body_angle", raw_angle)
        body_angle = raw_angle

        shoulder_y = mean_y([left_shoulder, right_shoulder])
        hip_y = mean_y([left_hip, right_hip])
        ankle_y = mean_y([left_ankle, right_ankle])
        vertical_span = ankle_y - shoulder_y
        hip_offset = hip_y - (shoulder_y + ankle_y) / 2  # > 0 sagging, < 0 piking

        upright = vertical_span >= cfg["upright_span"]
        hip_aligned = abs(hip_offset) <= cfg["max_hip_offset"]
        form_valid = body_angle >= cfg["min_body_angle"] and hip_aligned and not upright
        valid_ok = self._valid.update(form_valid)
        now_ms = frame.timestamp_ms

        if self._phase in (PlankPhase.SETUP, PlankPhase.ADJUST):
            if valid_ok:
                self._start_hold(now_ms)
            elif upright:
                self._hint("Get down into your plank - elbows under shoulders, legs long.", now_ms, immediate=False)
            elif not form_valid:
                self._hint(self._correction(hip_offset), now_ms)
        elif self._phase == PlankPhase.HOLD:
            self._update_hold(now_ms, form_valid, upright, hip_offset)

        return {
            "body_angle": smoothed_angle,
            "raw_body_angle": body_angle,
            "vertical_span": vertical_span,
            "hip_offset": hip_offset,
            "upright": upright,
            "hip_aligned": hip_aligned,
            "form_valid": form_valid,
            "invalid_streak": self._invalid_streak,
        }

    def _start_hold(self, now_ms: float) -> None:
        self._set_phase(PlankPhase.HOLD)
        self._hold_ms = 0.0
        self._last_timestamp_ms = now_ms
        self._invalid_streak = 0
        self._upright_streak = 0
        self._next_milestone_ms = float(self.settings["milestone_interval_ms"])
        self._emit("Strong plank - stay long through your spine and keep breathing.")

    def _update_hold(self, now_ms: float, form_valid: bool, upright: bool, hip_offset: float) -> None:
        cfg = self.settings
        elapsed = now_ms - self._last_timestamp_ms if self._last_timestamp_ms is not None else 0.0
        self._last_timestamp_ms = now_ms

        if form_valid:
            self._invalid_streak = 0
            self._upright_streak = 0
            if elapsed > 0:
                self._hold_ms += min(elapsed, float(cfg["max_frame_gap_ms"]))
            if self._hold_ms >= self._next_milestone_ms:
                seconds = int(self._next_milestone_ms // 1000)
                self._next_milestone_ms += float(cfg["milestone_interval_ms"])
                self._emit(f"{seconds} seconds - keep breathing and stay tight.")
            return

        self._invalid_streak += 1
        self._upright_streak = self._upright_streak + 1 if upright else 0
        if self._upright_streak >= cfg["upright_grace_frames"] or self._invalid_streak >= cfg["invalid_frames_to_break"]:
            logger.info(f"Plank hold broken after {self._hold_ms / 1000:.1f}s")
            self._set_phase(PlankPhase.ADJUST)
            self._hold_ms = 0.0
            self._valid.reset()
            self._invalid_streak = 0
            self._upright_streak = 0
            if upright:
                self._emit("Hold broken - get back down into your plank.", immediate=True)
            else:
                self._emit(self._correction(hip_offset), immediate=True)
        elif not upright:
            self._hint(self._correction(hip_offset), now_ms)

    def _correction(self, hip_offset: float) -> str:
        tolerance = self.settings["max_hip_offset"]
        if hip_offset > tolerance:
            return "Hips are sagging - squeeze your glutes and brace your core."
        if hip_offset < -tolerance:
            return "Lower your hips into one straight line from shoulders to heels."
        return "Lock in a straight line from ears to heels."
