import argparse
import logging
import os
import sys
import time
import traceback

import cv2
import numpy as np

from .exercise_analysis.base_analyzer import ExerciseMode
from .feedback.voice_feedback import VoiceFeedback
from .pose_detection.mediapipe_detector import MediaPipePoseDetector
from .session import CoachSession

WINDOW_NAME = "Pose Coach"

LOGGER_NAMES = (
    "CoachSession", "ExerciseAnalyzer", "SquatAnalyzer", "PlankAnalyzer", "PushupAnalyzer",
    "PullupAnalyzer", "JumpingJackAnalyzer", "BaselineCalibrator", "FeedbackChannel",
    "VoiceFeedback", "MediaPipePoseDetector",
)

# Number keys switch exercise while the window has focus
MODE_KEYS = {
    ord('1'): ExerciseMode.SQUAT,
    ord('2'): ExerciseMode.PLANK,
    ord('3'): ExerciseMode.PUSHUP,
    ord('4'): ExerciseMode.PULLUP,
    ord('5'): ExerciseMode.JUMPING_JACK,
}


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Pose Coach - real-time exercise feedback from a webcam")
    parser.add_argument(
        "--exercise",
        type=str,
        default="squat",
        choices=[m.value for m in ExerciseMode],
        help="Exercise to coach"
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--camera", type=int, default=0, help="Camera device ID")
    source.add_argument("--video", type=str, help="Analyze a video file instead of the camera")
    parser.add_argument("--model", type=str, required=True, help="Path to a MediaPipe pose_landmarker .task model")
    parser.add_argument("--mute", action="store_true", help="Show feedback without speaking it")
    parser.add_argument("--debug", action="store_true", help="Log telemetry and phase transitions")
    return parser.parse_args(argv)


def draw_hud(frame: np.ndarray, session: CoachSession) -> None:
    """Minimal overlay: exercise, phase label, reps or hold time, and the coach's text."""
    if session.mode == ExerciseMode.PLANK:
        progress = f"Hold: {session.hold_ms / 1000.0:.1f}s"
    else:
        progress = f"Reps: {session.rep_count}"
    lines = [
        (f"Exercise: {session.mode.value}", (0, 255, 0)),
        (f"Phase: {session.state_label}", (0, 255, 0)),
        (progress, (0, 255, 0)),
    ]
    if session.error:
        lines.append((f"Error: {session.error}", (0, 0, 255)))
    elif session.last_state is not None and not session.last_state.analysis_reliable:
        lines.append(("We can't see your full body. Adjust your position or camera.", (0, 0, 255)))
    for idx, (text, color) in enumerate(lines):
        cv2.putText(frame, text, (10, 30 + 30 * idx), cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2)
    if session.feedback_text:
        cv2.putText(frame, session.feedback_text, (10, frame.shape[0] - 20),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 200, 255), 2)


def run(args: argparse.Namespace) -> int:
    if args.video and not os.path.isfile(args.video):
        print(f"Video file not found: {args.video}")
        return 1

    voice = VoiceFeedback(muted=args.mute)
    detector = MediaPipePoseDetector(model_path=args.model)
    session = CoachSession(mode=args.exercise, sink=voice, detector=detector)
    cap = cv2.VideoCapture(args.video if args.video else args.camera)
    if not cap.isOpened():
        detector.close()
        voice.shutdown()
        raise RuntimeError("Failed to open video source")

    started_at = time.time()
    session.start()
    try:
        while True:
            ret, frame = cap.read()
            if not ret:
                break
            if args.video:
                timestamp_ms = cap.get(cv2.CAP_PROP_POS_MSEC)
            else:
                timestamp_ms = (time.time() - started_at) * 1000.0
            session.process_frame(frame, timestamp_ms)
            draw_hud(frame, session)
            cv2.imshow(WINDOW_NAME, frame)

            key = cv2.waitKey(1) & 0xFF
            if key == ord('q'):
                break
            if key in MODE_KEYS:
                session.set_mode(MODE_KEYS[key])
            elif key == ord('s') and not session.is_running:
                session.start()
    except KeyboardInterrupt:
        print("\n[INFO] KeyboardInterrupt received. Exiting gracefully...")
    finally:
        print(f"Session finished: {session.mode.value}, reps {session.rep_count}")
        session.stop()
        cap.release()
        cv2.destroyAllWindows()
        detector.close()
        voice.shutdown()
    return 0


def configure_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    for name in LOGGER_NAMES:
        named = logging.getLogger(name)
        if not named.hasHandlers():
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(message)s'))
            named.addHandler(handler)
        named.setLevel(level)


def main(argv=None) -> None:
    """Main entry point for the pose-coach command."""
    args = parse_args(argv)
    configure_logging(args.debug)
    try:
        sys.exit(run(args))
    except Exception as e:
        print(f"Error starting coach: {e}")
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
