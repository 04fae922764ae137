"""Thread-safe allocator for integers in a closed [min, max] range."""

import threading
from typing import Dict, Set

from ..exceptions import GidConflict, GidInvalidRange, GidOutOfRange, GidRangeFull


class MinMaxAllocator:
    """Allocates integers from a [min, max] range.

    Allocated values outside the current range (left behind by set_range)
    stay allocated and can still be released, but are never handed out.

    Every public method takes the instance lock, so a single table can be
    shared between request threads.
    """

    def __init__(self, gid_min: int, gid_max: int):
        if gid_min > gid_max:
            raise GidInvalidRange(details=f"min {gid_min} is greater than max {gid_max}")
        self._lock = threading.Lock()
        self._min = gid_min
        self._max = gid_max
        self._free = gid_max - gid_min + 1
        self._used: Set[int] = set()

    def _in_range(self, value: int) -> bool:
        return self._min <= value <= self._max

    @property
    def gid_min(self) -> int:
        return self._min

    @property
    def gid_max(self) -> int:
        return self._max

    def set_range(self, gid_min: int, gid_max: int) -> None:
        """Change the range, keeping every existing allocation."""
        if gid_min > gid_max:
            raise GidInvalidRange(details=f"min {gid_min} is greater than max {gid_max}")
        with self._lock:
            if self._min == gid_min and self._max == gid_max:
                return
            self._min = gid_min
            self._max = gid_max
            self._free = gid_max - gid_min + 1
            self._free -= sum(1 for value in self._used if self._in_range(value))

    def allocate(self, value: int) -> None:
        """Allocate a specific value.

        Raises:
            GidOutOfRange: value is outside the current range
            GidConflict: value is already allocated
        """
        with self._lock:
            if not self._in_range(value):
                raise GidOutOfRange(gid=value, gid_min=self._min, gid_max=self._max)
            if value in self._used:
                raise GidConflict(gid=value)
            self._used.add(value)
            self._free -= 1

    def allocate_next(self) -> int:
        """Allocate the lowest free value in the range.

        Raises:
            GidRangeFull: every value in the range is allocated
        """
        with self._lock:
            if self._free <= 0:
                raise GidRangeFull(gid_min=self._min, gid_max=self._max)
            for value in range(self._min, self._max + 1):
                if value not in self._used:
                    self._used.add(value)
                    self._free -= 1
                    return value
            raise GidRangeFull(gid_min=self._min, gid_max=self._max)

    def release(self, value: int) -> bool:
        """Release a value; releasing a free value is a no-op.

        Returns:
            True if the value was allocated
        """
        with self._lock:
            if value not in self._used:
                return False
            self._used.discard(value)
            if self._in_range(value):
                self._free += 1
            return True

    def has(self, value: int) -> bool:
        with self._lock:
            return value in self._used

    def free(self) -> int:
        with self._lock:
            return self._free

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "gid_min": self._min,
                "gid_max": self._max,
                "free": self._free,
                "allocated": sorted(self._used),
            }
