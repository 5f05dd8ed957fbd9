"""A future completed with the response to one request."""

from __future__ import annotations

import threading
from typing import Any, Callable

from .errors import RequestTimeoutError
from .graphson_writer import Request
from .response import Response


class ResponseFuture:
    """Completed once with a response; waiters block until then.

    The optional ``callback`` runs once when the future completes, before
    waiters are woken.
    """

    def __init__(self, request: Request, callback: Callable[[], Any] | None = None) -> None:
        self.request = request
        self.response: Response | None = None
        self._callback = callback
        self._lock = threading.Lock()
        self._completed = False
        self._done = threading.Event()

    def complete(self, response: Response | None = None) -> None:
        """Complete the future; later calls have no effect."""
        with self._lock:
            if self._completed:
                return
            self._completed = True
        try:
            if response is not None:
                self.response = response
            if self._callback is not None:
                self._callback()
        finally:
            self._done.set()

    def is_completed(self) -> bool:
        return self._completed

    def fix_response(self, fn: Callable[[Response], Any]) -> None:
        """Apply ``fn`` to the response, creating an empty one if needed."""
        if self.response is None:
            self.response = Response(request_id=self.request.request_id)
        fn(self.response)

    def get(self, timeout: float | None = None) -> Response | None:
        """Wait for completion and return the response.

        ``timeout`` is in seconds; None waits forever. Raises
        RequestTimeoutError when the wait runs out.
        """
        if not self._done.wait(timeout):
            raise RequestTimeoutError("get result timeout")
        return self.response