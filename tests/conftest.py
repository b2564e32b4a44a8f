import pytest

from pose_coach.exercise_analysis import create_analyzer

from builders import FrameFeeder


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSink:
    def __init__(self):
        self.calls = []

    def __call__(self, text, speak_now):
        self.calls.append((text, speak_now))

    @property
    def spoken(self):
        return [text for text, speak_now in self.calls if speak_now]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def feeder():
    """Factory: feeder("squat") -> FrameFeeder around a fresh analyzer."""
    def make(mode, config=None):
        return FrameFeeder(create_analyzer(mode, config))
    return make
