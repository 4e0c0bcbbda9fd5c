import logging
import threading
import time

from django.conf import settings

logger = logging.getLogger("booking")


class Admission:
    """
    Outcome of admitting a key into the gate.

    NEW means the caller owns the execution and must publish a result.
    PENDING means another caller is executing; wait() blocks until it is done.
    CACHED means a completed result is available right away.
    """

    NEW = "new"
    PENDING = "pending"
    CACHED = "cached"

    def __init__(self, state, entry):
        self.state = state
        self._entry = entry

    def wait(self, timeout=None):
        """Block until the owning execution publishes, then return or raise its outcome."""
        return self._entry.result(timeout)


class _Entry:
    def __init__(self):
        self._done = threading.Event()
        self._value = None
        self._error = None
        self.completed_at = None

    @property
    def done(self):
        return self._done.is_set()

    def publish(self, now, value=None, error=None):
        self._value = value
        self._error = error
        self.completed_at = now
        self._done.set()

    def result(self, timeout=None):
        if not self._done.wait(timeout):
            raise TimeoutError("Timed out waiting for in-flight operation.")
        if self._error is not None:
            raise self._error
        return self._value


class IdempotencyGate:
    """
    At-most-once execution of a side-effecting operation per key.

    Concurrent callers with the same key share the single in-flight execution
    and all receive the same result object (or the same exception). Successful
    results stay cached for ``ttl`` seconds, and at most ``max_entries`` keys are
    retained. Failures are handed to the waiters of the current execution and
    then evicted so the key can be retried.
    """

    def __init__(self, ttl=None, clock=time.monotonic, max_entries=None):
        self._ttl = ttl
        self._max_entries = max_entries
        self._clock = clock
        self._entries = {}
        self._lock = threading.Lock()

    @property
    def ttl(self):
        if self._ttl is not None:
            return self._ttl
        return settings.BOOKING_IDEMPOTENCY_TTL

    @property
    def max_entries(self):
        if self._max_entries is not None:
            return self._max_entries
        return settings.BOOKING_IDEMPOTENCY_MAX_ENTRIES

    def admit(self, key):
        with self._lock:
            self._purge_expired()
            entry = self._entries.get(key)
            if entry is None:
                self._enforce_capacity()
                entry = _Entry()
                self._entries[key] = entry
                return Admission(Admission.NEW, entry)
            if entry.done:
                return Admission(Admission.CACHED, entry)
            return Admission(Admission.PENDING, entry)

    def complete(self, key, admission, value):
        admission._entry.publish(self._clock(), value=value)

    def fail(self, key, admission, error):
        admission._entry.publish(self._clock(), error=error)
        with self._lock:
            if self._entries.get(key) is admission._entry:
                del self._entries[key]

    def run(self, key, operation):
        admission = self.admit(key)
        if admission.state == Admission.CACHED:
            logger.info(f"Idempotency gate: returning cached result for {key}")
            return admission.wait()
        if admission.state == Admission.PENDING:
            logger.info(f"Idempotency gate: waiting on in-flight request for {key}")
            return admission.wait()

        try:
            value = operation()
        except BaseException as exc:
            self.fail(key, admission, exc)
            raise
        self.complete(key, admission, value)
        return value

    def forget(self, key):
        with self._lock:
            self._entries.pop(key, None)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def _purge_expired(self):
        now = self._clock()
        ttl = self.ttl
        expired = [
            key for key, entry in self._entries.items()
            if entry.done and entry.completed_at is not None
            and now - entry.completed_at >= ttl
        ]
        for key in expired:
            del self._entries[key]

    def _enforce_capacity(self):
        """Drop the oldest completed entries once the gate is full. In-flight entries stay."""
        overflow = len(self._entries) - self.max_entries + 1
        if overflow <= 0:
            return
        completed = sorted(
            (entry.completed_at, key) for key, entry in self._entries.items() if entry.done
        )
        for _, key in completed[:overflow]:
            del self._entries[key]


booking_gate = IdempotencyGate()
