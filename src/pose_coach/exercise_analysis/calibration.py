import logging
import math
from typing import Dict, Optional

logger = logging.getLogger("BaselineCalibrator")


# --- Per-session neutral-posture calibration ---
class BaselineCalibrator:
    """
    Adaptive "neutral stance" references, learned only from frames an analyzer
    has confirmed to be in its resting posture.

    Each reference starts undefined (None). The first observation seeds it and
    later observations blend in with a fixed weight. Thresholds derived from a
    reference add a margin that is the larger of an absolute offset and an
    offset relative to a body-scale proxy (hip or shoulder width), so detection
    behaves the same for near, far, tall and short subjects.
    """

    def __init__(self, blend_weight: float = 0.2):
        if not 0.0 < blend_weight <= 1.0:
            raise ValueError(f"blend_weight must be in (0, 1], got {blend_weight}")
        self.blend_weight = blend_weight
        self._references: Dict[str, float] = {}
        self._observations: Dict[str, int] = {}

    def observe(self, name: str, value: Optional[float]) -> Optional[float]:
        """Blend a neutral-posture sample into the named reference."""
        if value is None or not math.isfinite(value):
            return self._references.get(name)
        current = self._references.get(name)
        if current is None:
            self._references[name] = float(value)
            logger.debug(f"Baseline '{name}' seeded at {value:.4f}")
        else:
            self._references[name] = current + self.blend_weight * (value - current)
        self._observations[name] = self._observations.get(name, 0) + 1
        return self._references[name]

    def get(self, name: str) -> Optional[float]:
        return self._references.get(name)

    def observations(self, name: str) -> int:
        return self._observations.get(name, 0)

    def is_calibrated(self, *names: str) -> bool:
        return all(name in self._references for name in names)

    @staticmethod
    def margin(scale: Optional[float], abs_margin: float, rel_margin: float) -> float:
        """Larger of the absolute offset and the body-scale-relative offset."""
        if scale is None or not math.isfinite(scale) or scale <= 0:
            return abs_margin
        return max(abs_margin, rel_margin * scale)

    def threshold(
        self,
        name: str,
        scale: Optional[float],
        abs_margin: float,
        rel_margin: float,
        floor: float = 0.0,
        default: Optional[float] = None
    ) -> float:
        """
        Reference plus margin, floored at `floor`.

        Before the reference exists, `default` is used (or `floor` when no
        default is given) so the first frames still have a meaningful bar.
        """
        reference = self._references.get(name)
        if reference is None:
            return max(floor, default) if default is not None else floor
        return max(floor, reference + self.margin(scale, abs_margin, rel_margin))

    def reset(self) -> None:
        self._references.clear()
        self._observations.clear()

    def snapshot(self) -> Dict[str, float]:
        return dict(self._references)
