from enum import Enum
from typing import Any, Dict, Optional
import logging

from .base_analyzer import BaseExerciseAnalyzer, ExerciseMode, register_exercise_analyzer
from .pose_utils import (
    LEFT_HIP, LEFT_SHOULDER, LEFT_WRIST, NOSE, RIGHT_HIP, RIGHT_SHOULDER, RIGHT_WRIST,
    LandmarkFrame, mean_y, torso_length
)

logger = logging.getLogger("PullupAnalyzer")


class PullupPhase(Enum):
    HANG = "hang"  # Hanging below the bar
    PULL = "pull"  # Travelling up
    TOP = "top"    # Chin over the bar


@register_exercise_analyzer(ExerciseMode.PULLUP)
class PullupAnalyzer(BaseExerciseAnalyzer):
    """
    Pull-up rep counter.

    Distances are normalized by torso length so they do not depend on how far
    the athlete hangs from the camera:
      reach     = (shoulder y - wrist y) / torso   (large at a dead hang)
      chin gap  = (nose y - wrist y) / torso       (<= 0 once the chin clears the bar)
      head lift = (shoulder y - nose y) / torso    (must be positive: upright hang)

    PULL -> TOP credits a rep only when a full hang was confirmed before the
    pull started. That hang is consumed by the rep and must be re-confirmed.
    """

    INITIAL_PHASE = PullupPhase.HANG
    PHASE_LABELS = {PullupPhase.HANG: "HANG", PullupPhase.PULL: "PULL", PullupPhase.TOP: "TOP"}
    REQUIRED_LANDMARK_GROUPS = (
        (NOSE,),
        (LEFT_SHOULDER, RIGHT_SHOULDER),
        (LEFT_WRIST, RIGHT_WRIST),
        (LEFT_HIP, RIGHT_HIP),
    )

    def _reset_state(self) -> None:
        self._signals.add("reach", "positional")
        self._signals.add("chin_gap", "positional")
        self._hang = self._dwell()
        self._pull = self._dwell()
        self._top = self._dwell()
        self._hang_qualified = False
        self._best_chin_gap: Optional[float] = None
        self._lowering_noted = False

    def _analyze(self, frame: LandmarkFrame) -> Optional[Dict[str, Any]]:
        cfg = self.settings
        torso = torso_length(frame)
        nose = frame.point(NOSE)
        shoulder_y = mean_y(frame.points(LEFT_SHOULDER, RIGHT_SHOULDER))
        wrist_y = mean_y(frame.points(LEFT_WRIST, RIGHT_WRIST))
        if torso is None or nose is None or shoulder_y is None or wrist_y is None:
            return None
        head_lift = (shoulder_y - nose.y) / torso
        if head_lift <= 0:
            # Head below the shoulders: not an upright hang, nothing to judge
            return None

        reach = self._signals.update("reach", (shoulder_y - wrist_y) / torso)
        chin_gap = self._signals.update("chin_gap", (nose.y - wrist_y) / torso)

        hang_reach = cfg["hang_reach"]
        is_hanging = reach >= hang_reach
        is_pulling = reach < hang_reach * cfg["pull_start_ratio"]
        chin_clear = chin_gap <= cfg["chin_clear_gap"]
        chin_almost = not chin_clear and chin_gap <= cfg["chin_almost_gap"]

        hang_ok = self._hang.update(is_hanging)
        pull_ok = self._pull.update(is_pulling)
        top_ok = self._top.update(chin_clear)
        now_ms = frame.timestamp_ms

        if self._phase == PullupPhase.HANG:
            if hang_ok:
                self._calibrator.observe("hang_reach", reach)
                if not self._hang_qualified:
                    self._hang_qualified = True
                    self._emit("Full hang - pull when ready.", silent=True)
            elif pull_ok:
                self._set_phase(PullupPhase.PULL)
                self._best_chin_gap = None
                self._hang.reset()
                self._emit("Drive your elbows down and pull your chest to the bar.", silent=True)

        if self._phase == PullupPhase.PULL:
            if self._best_chin_gap is None or chin_gap < self._best_chin_gap:
                self._best_chin_gap = chin_gap
            if top_ok:
                self._reach_top()
            elif hang_ok:
                # Dropped back to a full hang without clearing the bar
                self._set_phase(PullupPhase.HANG)
                self._pull.reset()
                self._emit("Pull higher - get your chin over the bar.", immediate=True)
            elif chin_almost:
                self._hint("Reach higher - chin over the bar.", now_ms)
        elif self._phase == PullupPhase.TOP:
            if hang_ok:
                self._set_phase(PullupPhase.HANG)
                self._hang_qualified = True
                self._pull.reset()
                self._top.reset()
                self._emit("Full hang - pull when ready.", silent=True)
            elif not chin_clear and not self._lowering_noted:
                self._lowering_noted = True
                self._emit("Lower all the way to a full hang before the next pull.", silent=True)

        return {
            "reach": reach,
            "chin_gap": chin_gap,
            "head_lift": head_lift,
            "torso_length": torso,
            "hang_qualified": self._hang_qualified,
            "chin_clear": chin_clear,
        }

    def _reach_top(self) -> None:
        self._set_phase(PullupPhase.TOP)
        self._lowering_noted = False
        self._hang.reset()
        if self._hang_qualified:
            self._credit_rep()
            self._emit("Chin over the bar - control the way down.", silent=True)
        else:
            logger.debug("Pull-up top reached without a prior full hang")
            self._emit("Start each rep from a full hang for it to count.", immediate=True)
        self._hang_qualified = False
