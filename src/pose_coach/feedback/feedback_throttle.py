import logging
import time
from typing import Callable, Iterable, Optional

from ..exercise_analysis.base_analyzer import FeedbackMessage

logger = logging.getLogger("FeedbackChannel")

# sink(text, speak_now): speak_now=False is a display-only refresh. What is on
# screen is FeedbackChannel.displayed_text, not anything the sink tracks.
FeedbackSink = Callable[[str, bool], None]


class FeedbackChannel:
    """
    Shared voice/text channel with deduplication, cooldown and escalation.

    - A message whose text differs from what is displayed replaces it; unless
      silent, it is also spoken, subject to the global speech cooldown.
    - An unchanged text is only spoken again when the message allows repeats.
    - Immediate messages bypass the cooldown (rep calls, safety corrections).
    - Silent messages change the display and never speak.
    - Speech-only messages are spoken without touching the display.
    """

    def __init__(self, sink: Optional[FeedbackSink] = None, cooldown_s: float = 3.0,
                 clock: Callable[[], float] = time.time, initial_text: str = ""):
        self._sink = sink
        self.cooldown_s = cooldown_s
        self._clock = clock
        self._displayed_text = initial_text
        self._last_spoken_at: Optional[float] = None

    @property
    def displayed_text(self) -> str:
        return self._displayed_text

    @property
    def last_spoken_at(self) -> Optional[float]:
        return self._last_spoken_at

    def publish(self, message: FeedbackMessage) -> bool:
        """Route one message. Returns True if it was spoken."""
        if message.speech_only:
            return self.speak(message.text, immediate=message.immediate)

        if message.text != self._displayed_text:
            self._displayed_text = message.text
            if not message.silent and self.speak(message.text, immediate=message.immediate):
                return True
            self._notify(message.text, False)
            return False

        if not message.silent and message.allow_repeat:
            return self.speak(message.text, immediate=message.immediate)
        return False

    def publish_all(self, messages: Iterable[FeedbackMessage]) -> int:
        return sum(1 for message in messages if self.publish(message))

    def speak(self, text: str, immediate: bool = False) -> bool:
        now = self._clock()
        if not immediate and self._last_spoken_at is not None and now - self._last_spoken_at < self.cooldown_s:
            logger.debug(f"Speech suppressed by cooldown: {text}")
            return False
        self._last_spoken_at = now
        self._notify(text, True)
        return True

    def _notify(self, text: str, speak_now: bool) -> None:
        if self._sink is not None:
            self._sink(text, speak_now)
