import math
from typing import Dict, Optional


class SmoothedSignal:
    """
    Exponential moving average over a scalar time series.

    smoothed <- smoothed + alpha * (raw - smoothed), seeded with the first
    finite sample. Missing or NaN samples leave the accumulator untouched.
    """

    def __init__(self, name: str, alpha: float):
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        self.name = name
        self.alpha = alpha
        self._value: Optional[float] = None

    @property
    def value(self) -> Optional[float]:
        return self._value

    def update(self, raw: Optional[float]) -> Optional[float]:
        if raw is None or not math.isfinite(raw):
            return self._value
        if self._value is None:
            self._value = float(raw)
        else:
            self._value += self.alpha * (raw - self._value)
        return self._value

    def reset(self) -> None:
        self._value = None

    def __repr__(self):
        return f"SmoothedSignal({self.name!r}, alpha={self.alpha}, value={self._value})"


class SignalBank:
    """Named SmoothedSignals owned by one analyzer, with alpha chosen per signal class."""

    def __init__(self, alphas: Dict[str, float]):
        self._alphas = dict(alphas)
        self._signals: Dict[str, SmoothedSignal] = {}

    def add(self, name: str, signal_class: str) -> SmoothedSignal:
        signal = SmoothedSignal(name, self._alphas[signal_class])
        self._signals[name] = signal
        return signal

    def update(self, name: str, raw: Optional[float]) -> Optional[float]:
        return self._signals[name].update(raw)

    def reset(self) -> None:
        for signal in self._signals.values():
            signal.reset()

    def snapshot(self) -> Dict[str, Optional[float]]:
        return {name: signal.value for name, signal in self._signals.items()}
