import threading
import time


class BillIdGenerator:
    """
    Produces bill ids of the form ``B<milliseconds since epoch>``.

    Values are strictly increasing within one generator: when the clock has
    not moved past the previous value, the previous value plus one is used.
    """

    def __init__(self, clock=None):
        self._clock = clock or time.time
        self._last = 0
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            now_ms = int(self._clock() * 1000)
            self._last = max(now_ms, self._last + 1)
            return f"B{self._last}"


bill_ids = BillIdGenerator()
