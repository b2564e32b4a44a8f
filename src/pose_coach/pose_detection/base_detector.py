from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from ..exercise_analysis.pose_utils import LandmarkFrame


class PoseDetectionError(RuntimeError):
    """The detector itself failed (as opposed to finding no person)."""


class BasePoseDetector(ABC):
    """Base class for pose detection implementations."""

    @abstractmethod
    def detect(self, frame: np.ndarray, timestamp_ms: float) -> Optional[LandmarkFrame]:
        """
        Detect pose landmarks in the given frame.

        Args:
            frame: Input frame as numpy array (BGR, as delivered by OpenCV)
            timestamp_ms: Monotonically increasing timestamp of the frame

        Returns:
            LandmarkFrame with 33 landmarks, or None when no person was found

        Raises:
            PoseDetectionError: if detection failed outright
        """
        pass

    def close(self) -> None:
        """Release model resources."""
