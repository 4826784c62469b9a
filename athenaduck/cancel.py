from __future__ import annotations

import threading
import time


class CancelToken:
    """Cancellation signal threaded through waiting and page fetching.

    Another thread may call :meth:`cancel`. A deadline makes the token fire
    on its own once it passes.
    """

    def __init__(self, deadline: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = deadline

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancelToken":
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._event.set()

    @property
    def deadline_exceeded(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.deadline_exceeded

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``. Returns True if the token has fired."""
        if self._deadline is not None:
            seconds = min(seconds, max(0.0, self._deadline - time.monotonic()))
        self._event.wait(seconds)
        return self.cancelled

    def reason(self) -> str:
        return "query deadline exceeded" if self.deadline_exceeded else "query cancelled"
