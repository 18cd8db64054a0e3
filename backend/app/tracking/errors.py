"""Exceptions raised by the tracking core.

Bad samples are never raised: they come back as a FixStatus on the result.
Only caller mistakes (wrong lifecycle order, invalid configuration) raise.
"""


class TrackingError(Exception):
    """Base class for tracking errors."""


class SessionStateError(TrackingError, ValueError):
    """A lifecycle call was made in a state that does not allow it."""

    def __init__(self, action: str, state: str):
        self.action = action
        self.state = state
        super().__init__(f"cannot {action} while session is {state}")


class InvalidSegmentSize(TrackingError, ValueError):
    """Segment size must be a positive number of metres."""

    def __init__(self, size):
        self.size = size
        super().__init__(f"segment size must be > 0 (got {size!r})")
