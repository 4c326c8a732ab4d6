"""Time-ordered unique identifiers.

Layout of the 64-bit id, most significant bits first:

    41 bits  milliseconds since TWITTER_EPOCH
     5 bits  worker id
     5 bits  process id
    12 bits  per-millisecond sequence

Ids are rendered as decimal strings.
"""

import threading
import time
from datetime import UTC, datetime

TWITTER_EPOCH = 1288834974657

WORKER_ID_BITS = 5
PROCESS_ID_BITS = 5
SEQUENCE_BITS = 12

MAX_WORKER_ID = (1 << WORKER_ID_BITS) - 1
MAX_PROCESS_ID = (1 << PROCESS_ID_BITS) - 1
SEQUENCE_MASK = (1 << SEQUENCE_BITS) - 1

PROCESS_ID_SHIFT = SEQUENCE_BITS
WORKER_ID_SHIFT = SEQUENCE_BITS + PROCESS_ID_BITS
TIMESTAMP_SHIFT = SEQUENCE_BITS + PROCESS_ID_BITS + WORKER_ID_BITS


class Snowflake:
    """Generator of strictly increasing snowflake ids for one worker/process."""

    def __init__(self, worker_id: int = 1, process_id: int = 0, epoch: int = TWITTER_EPOCH) -> None:
        if not 0 <= worker_id <= MAX_WORKER_ID:
            raise ValueError(f"worker_id must be between 0 and {MAX_WORKER_ID}")
        if not 0 <= process_id <= MAX_PROCESS_ID:
            raise ValueError(f"process_id must be between 0 and {MAX_PROCESS_ID}")
        self.worker_id = worker_id
        self.process_id = process_id
        self.epoch = epoch
        self._last_timestamp = -1
        self._sequence = 0
        self._lock = threading.Lock()

    def _millis(self) -> int:
        return time.time_ns() // 1_000_000 - self.epoch

    def next_id(self) -> int:
        with self._lock:
            timestamp = self._millis()
            # Clock went backwards: keep issuing from the last seen millisecond
            timestamp = max(timestamp, self._last_timestamp)

            if timestamp == self._last_timestamp:
                self._sequence = (self._sequence + 1) & SEQUENCE_MASK
                if self._sequence == 0:
                    # Sequence exhausted for this millisecond, wait for the next one
                    while timestamp <= self._last_timestamp:
                        timestamp = self._millis()
            else:
                self._sequence = 0

            self._last_timestamp = timestamp
            return (
                (timestamp << TIMESTAMP_SHIFT)
                | (self.worker_id << WORKER_ID_SHIFT)
                | (self.process_id << PROCESS_ID_SHIFT)
                | self._sequence
            )

    def timestamp_of(self, snowflake: int | str) -> datetime:
        """Creation time encoded in a snowflake."""
        millis = (int(snowflake) >> TIMESTAMP_SHIFT) + self.epoch
        return datetime.fromtimestamp(millis / 1000, UTC)


_generator = Snowflake(worker_id=1)


def generate_snowflake() -> str:
    return str(_generator.next_id())


def snowflake_time(snowflake: int | str) -> datetime:
    return _generator.timestamp_of(snowflake)
