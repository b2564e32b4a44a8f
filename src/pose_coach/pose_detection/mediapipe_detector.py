from typing import Optional
import logging

import cv2
import mediapipe as mp
import numpy as np
from mediapipe.tasks import python as mp_tasks
from mediapipe.tasks.python import vision

from .base_detector import BasePoseDetector, PoseDetectionError
from ..exercise_analysis.pose_utils import Landmark, LandmarkFrame

logger = logging.getLogger("MediaPipePoseDetector")


class MediaPipePoseDetector(BasePoseDetector):
    """MediaPipe Tasks PoseLandmarker in VIDEO mode, tracking a single person."""

    def __init__(self, model_path: str, min_detection_confidence: float = 0.5,
                 min_presence_confidence: float = 0.5, min_tracking_confidence: float = 0.5,
                 min_landmark_visibility: float = 0.3):
        """
        Initialize the MediaPipe pose detector.

        Args:
            model_path: Path to a pose_landmarker *.task model bundle
            min_detection_confidence: Minimum confidence for pose detection
            min_presence_confidence: Minimum confidence that a pose is present
            min_tracking_confidence: Minimum confidence for pose tracking
            min_landmark_visibility: Landmarks below this visibility are treated as absent
        """
        options = vision.PoseLandmarkerOptions(
            base_options=mp_tasks.BaseOptions(model_asset_path=model_path),
            running_mode=vision.RunningMode.VIDEO,
            num_poses=1,
            min_pose_detection_confidence=min_detection_confidence,
            min_pose_presence_confidence=min_presence_confidence,
            min_tracking_confidence=min_tracking_confidence
        )
        self._landmarker = vision.PoseLandmarker.create_from_options(options)
        logger.info(f"Pose landmarker loaded from {model_path}")
        self._min_landmark_visibility = min_landmark_visibility
        self._last_timestamp_ms = -1

    def detect(self, frame: np.ndarray, timestamp_ms: float) -> Optional[LandmarkFrame]:
        # The landmarker rejects timestamps that do not strictly increase
        ts = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = ts
        try:
            frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
            image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)
            results = self._landmarker.detect_for_video(image, ts)
        except Exception as e:
            raise PoseDetectionError(f"Pose detection failed: {e}") from e

        if not results.pose_landmarks:
            return None
        landmarks = [
            Landmark(lm.x, lm.y, lm.visibility)
            for lm in results.pose_landmarks[0]
        ]
        return LandmarkFrame(landmarks, timestamp_ms=timestamp_ms, min_visibility=self._min_landmark_visibility)

    def close(self) -> None:
        if self._landmarker is not None:
            self._landmarker.close()
            self._landmarker = None
