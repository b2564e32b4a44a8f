from typing import Optional
import logging
import queue
import threading

import pyttsx3

logger = logging.getLogger("VoiceFeedback")


class VoiceFeedback:
    """
    Voice/text sink backed by pyttsx3.

    Called as sink(text, speak_now). Display-only calls are ignored; text
    marked speak_now is queued for the background TTS thread. A newer
    utterance replaces any that has not started yet, so the voice never lags
    behind the coach.
    """

    def __init__(self, rate: int = 160, volume: float = 1.0, muted: bool = False):
        """
        Initialize the voice feedback system.

        Args:
            rate: Speech rate (words per minute)
            volume: Speech volume (0.0 to 1.0)
            muted: Log utterances instead of speaking them
        """
        self.rate = rate
        self.volume = volume
        self.muted = muted
        self._tts_queue: "queue.Queue[Optional[str]]" = queue.Queue()
        self._tts_thread = None
        if not muted:
            self._tts_thread = threading.Thread(target=self._tts_worker, daemon=True)
            self._tts_thread.start()

    def __call__(self, text: str, speak_now: bool) -> None:
        if not speak_now:
            return
        if self.muted:
            logger.info(f"[VOICE MUTED] {text}")
            return
        self._discard_pending()
        self._tts_queue.put(text)

    def shutdown(self, timeout: float = 2.0) -> None:
        if self._tts_thread is None:
            return
        self._discard_pending()
        self._tts_queue.put(None)
        self._tts_thread.join(timeout=timeout)
        self._tts_thread = None

    def _discard_pending(self) -> None:
        while True:
            try:
                self._tts_queue.get_nowait()
            except queue.Empty:
                return

    def _tts_worker(self):
        # pyttsx3 engines must be created on the thread that drives them
        try:
            engine = pyttsx3.init()
            engine.setProperty('rate', self.rate)
            engine.setProperty('volume', self.volume)
        except Exception as e:
            logger.error(f"Could not initialize speech engine: {e}")
            return
        while True:
            msg = self._tts_queue.get()
            if msg is None:
                break
            try:
                engine.say(msg)
                engine.runAndWait()
            except Exception as e:
                logger.error(f"Speech error: {e}")
