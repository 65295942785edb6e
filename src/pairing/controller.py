"""
Per-attempt pairing controller
Created for one pairing attempt and passed to it explicitly; cancellation is
cooperative and only observed between polls
"""

MIN_TIMEOUT_SECONDS = 0
MAX_TIMEOUT_SECONDS = 30
DEFAULT_TIMEOUT_SECONDS = 10


class PairingController:
    """How long the user has to press the link button, and a cancel flag"""

    def __init__(self, timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS):
        self.timeout_seconds = timeout_seconds
        self.cancel_requested = False

    @property
    def timeout_seconds(self) -> int:
        return self._timeout_seconds

    @timeout_seconds.setter
    def timeout_seconds(self, value: int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError("timeout_seconds must be an integer")
        if not MIN_TIMEOUT_SECONDS <= value <= MAX_TIMEOUT_SECONDS:
            raise ValueError(
                f"timeout_seconds must be between {MIN_TIMEOUT_SECONDS} and {MAX_TIMEOUT_SECONDS} (inclusive)"
            )
        self._timeout_seconds = value

    def cancel(self):
        """Ask the running attempt to stop at its next tick"""
        self.cancel_requested = True

    def consume_cancel(self) -> bool:
        """Return and reset the cancel flag"""
        if self.cancel_requested:
            self.cancel_requested = False
            return True
        return False


# Name used by callers coming from the discovery flow
DiscoveryTimeoutController = PairingController
