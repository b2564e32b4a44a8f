from enum import Enum
from typing import Any, Dict, Optional
import logging

from .base_analyzer import BaseExerciseAnalyzer, ExerciseMode, register_exercise_analyzer
from .pose_utils import (
    LEFT_ANKLE, LEFT_SHOULDER, LEFT_WRIST, RIGHT_ANKLE, RIGHT_SHOULDER, RIGHT_WRIST,
    LandmarkFrame, distance
)

logger = logging.getLogger("JumpingJackAnalyzer")

_MIN_SHOULDER_WIDTH = 1e-3


class JumpingJackPhase(Enum):
    CENTER = "center"  # Feet together, arms at sides
    WIDE = "wide"      # Feet apart, arms overhead


@register_exercise_analyzer(ExerciseMode.JUMPING_JACK)
class JumpingJackAnalyzer(BaseExerciseAnalyzer):
    """
    Jumping-jack rep counter.

    A rep is credited on CENTER -> WIDE, and only after a calibrated CENTER was
    confirmed since the previous rep. Every confirmed CENTER frame blends the
    neutral ankle and wrist gaps into the baseline; the "wide enough" bars for
    feet and hands are those baselines plus the larger of an absolute margin
    and a shoulder-width margin, so they scale with the subject's size and
    distance.
    """

    INITIAL_PHASE = JumpingJackPhase.CENTER
    PHASE_LABELS = {JumpingJackPhase.CENTER: "IN", JumpingJackPhase.WIDE: "OUT"}
    REQUIRED_LANDMARK_GROUPS = (
        (LEFT_SHOULDER,), (RIGHT_SHOULDER,),
        (LEFT_WRIST,), (RIGHT_WRIST,),
        (LEFT_ANKLE,), (RIGHT_ANKLE,),
    )

    def _reset_state(self) -> None:
        self._wide = self._dwell()
        self._center = self._dwell()
        self._center_ready = False

    @property
    def center_ready(self) -> bool:
        return self._center_ready

    def _analyze(self, frame: LandmarkFrame) -> Optional[Dict[str, Any]]:
        cfg = self.settings
        left_shoulder, right_shoulder, left_wrist, right_wrist, left_ankle, right_ankle = frame.points(
            LEFT_SHOULDER, RIGHT_SHOULDER, LEFT_WRIST, RIGHT_WRIST, LEFT_ANKLE, RIGHT_ANKLE
        )
        shoulder_width = distance(left_shoulder, right_shoulder)
        if shoulder_width < _MIN_SHOULDER_WIDTH:
            return None

        ankle_gap = distance(left_ankle, right_ankle)
        wrist_gap = distance(left_wrist, right_wrist)
        avg_shoulder_y = (left_shoulder.y + right_shoulder.y) / 2
        avg_wrist_y = (left_wrist.y + right_wrist.y) / 2
        arm_raise = (avg_shoulder_y - avg_wrist_y) / shoulder_width

        center_ankle_threshold = self._calibrator.threshold(
            "neutral_ankle_gap", shoulder_width, cfg["center_margin_abs"], cfg["center_margin_rel"],
            default=cfg["center_ankle_ratio"] * shoulder_width
        )
        center_wrist_threshold = self._calibrator.threshold(
            "neutral_wrist_gap", shoulder_width, cfg["center_margin_abs"], cfg["center_margin_rel"],
            default=cfg["center_wrist_ratio"] * shoulder_width
        )
        wide_ankle_threshold = self._calibrator.threshold(
            "neutral_ankle_gap", shoulder_width, cfg["wide_ankle_margin_abs"], cfg["wide_ankle_margin_rel"],
            floor=cfg["wide_ankle_floor"]
        )
        wide_wrist_threshold = self._calibrator.threshold(
            "neutral_wrist_gap", shoulder_width, cfg["wide_wrist_margin_abs"], cfg["wide_wrist_margin_rel"],
            default=cfg["wide_wrist_ratio"] * shoulder_width
        )

        arms_high = arm_raise >= cfg["arms_up_ratio"]
        arms_down = arm_raise <= cfg["arms_down_ratio"]
        legs_wide = ankle_gap >= wide_ankle_threshold
        arms_wide = wrist_gap >= wide_wrist_threshold
        legs_centered = ankle_gap <= center_ankle_threshold
        wrists_centered = wrist_gap <= center_wrist_threshold

        is_wide = arms_high and legs_wide and arms_wide
        is_center = arms_down and legs_centered and wrists_centered
        wide_ok = self._wide.update(is_wide)
        center_ok = self._center.update(is_center)

        if wide_ok:
            if self._center_ready:
                self._center_ready = False
                self._set_phase(JumpingJackPhase.WIDE)
                self._credit_rep()
                self._emit("Nice rep - stay tall and keep landing softly.", silent=True)
            elif self._set_phase(JumpingJackPhase.WIDE):
                self._emit("Bring your feet together and arms down to start counting.", silent=True)
        elif center_ok:
            if self._set_phase(JumpingJackPhase.CENTER):
                self._emit("Reset stance, then hit full reach on the next rep.", silent=True)
            self._calibrator.observe("neutral_ankle_gap", ankle_gap)
            self._calibrator.observe("neutral_wrist_gap", wrist_gap)
            if not self._center_ready:
                logger.debug(f"Center confirmed (ankle gap {ankle_gap:.3f}, wrist gap {wrist_gap:.3f})")
            self._center_ready = True
        elif self._center_ready:
            self._near_miss_hint(frame.timestamp_ms, arm_raise, ankle_gap, wide_ankle_threshold,
                                 arms_high, legs_wide, arms_wide)

        return {
            "ankle_gap": ankle_gap,
            "wrist_gap": wrist_gap,
            "arm_raise": arm_raise,
            "shoulder_width": shoulder_width,
            "center_ankle_threshold": center_ankle_threshold,
            "center_wrist_threshold": center_wrist_threshold,
            "wide_ankle_threshold": wide_ankle_threshold,
            "wide_wrist_threshold": wide_wrist_threshold,
            "arms_high": arms_high,
            "arms_down": arms_down,
            "legs_wide": legs_wide,
            "arms_wide": arms_wide,
            "legs_centered": legs_centered,
            "wrists_centered": wrists_centered,
            "center_ready": self._center_ready,
        }

    def _near_miss_hint(self, now_ms, arm_raise, ankle_gap, wide_ankle_threshold,
                        arms_high, legs_wide, arms_wide) -> None:
        cfg = self.settings
        arms_almost_high = arm_raise >= cfg["arms_up_ratio"] * cfg["arms_almost_ratio"]
        legs_almost_wide = ankle_gap >= wide_ankle_threshold * cfg["legs_almost_ratio"]
        if not arms_high and legs_wide and arms_almost_high:
            self._hint("Arms not raised high enough - reach overhead.", now_ms)
        elif not legs_wide and arms_high and legs_almost_wide:
            self._hint("Legs too close - step wider.", now_ms)
        elif arms_high and legs_wide and not arms_wide:
            self._hint("Open your arms wider as they go overhead.", now_ms)
