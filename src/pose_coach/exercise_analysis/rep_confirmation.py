"""
Rep confirmation primitives shared by the discrete-rep analyzers.

A transition candidate must persist for a minimum number of frames before it
is accepted (dwell), and a rep is only credited once per full
Ready(A) -> Ready(B) -> Ready(A) cycle.
"""


class DwellCounter:
    """
    Counts consecutive-ish frames a candidate condition holds.

    A matching frame adds one (capped at `required`); a non-matching frame
    takes one away instead of zeroing, so a single glitch frame slows
    confirmation down without throwing away progress.
    """

    def __init__(self, required: int = 2):
        if required < 1:
            raise ValueError(f"required must be >= 1, got {required}")
        self.required = required
        self.count = 0

    def update(self, condition: bool) -> bool:
        if condition:
            self.count = min(self.count + 1, self.required)
        else:
            self.count = max(self.count - 1, 0)
        return self.confirmed

    @property
    def confirmed(self) -> bool:
        return self.count >= self.required

    def reset(self) -> None:
        self.count = 0


class RepCounter:
    """Non-negative, non-decreasing repetition count."""

    def __init__(self):
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    def increment(self) -> int:
        self._count += 1
        return self._count

    def reset(self) -> None:
        self._count = 0
