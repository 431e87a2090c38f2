# File: podscribe/core/tasks/cancellation.py
import threading


class CancellationToken:
    """
    Cooperative cancellation flag threaded explicitly through every call.
    Nothing is interrupted: workers poll is_cancelled() at safe points.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleeps up to `timeout` seconds, waking early on cancellation."""
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled()})"
