"""Per-storage-class GID allocation."""

import threading
from typing import Dict, Mapping, Optional, Tuple

from oslo_log import log as logging

from ..exceptions import GidInvalidRange, GidRangeFull, InvalidParameter
from ..models import VOLUME_GID_ANNOTATION_KEY, PersistentVolume, VolumeOptions
from .base import GidReclaimer
from .minmax import MinMaxAllocator

LOG = logging.getLogger(__name__)

DEFAULT_GID_MIN = 2000
DEFAULT_GID_MAX = 2147483647

ABSOLUTE_GID_MIN = 2000
ABSOLUTE_GID_MAX = 2147483647


def parse_class_parameters(parameters: Mapping[str, str]) -> Tuple[int, int]:
    """Read gidMin/gidMax from class parameters (keys are case-insensitive).

    Returns:
        Tuple of (gid_min, gid_max)

    Raises:
        InvalidParameter: A bound is not an integer, lies outside
            [ABSOLUTE_GID_MIN, ABSOLUTE_GID_MAX], or gidMin > gidMax
    """
    gid_min = DEFAULT_GID_MIN
    gid_max = DEFAULT_GID_MAX

    for key, value in (parameters or {}).items():
        lowered = key.lower()
        if lowered not in ("gidmin", "gidmax"):
            continue
        try:
            parsed = int(value)
        except (TypeError, ValueError):
            raise InvalidParameter(key=key, value=value, reason="not an integer")
        if parsed < ABSOLUTE_GID_MIN:
            raise InvalidParameter(key=key, value=value, reason=f"must be >= {ABSOLUTE_GID_MIN}")
        if parsed > ABSOLUTE_GID_MAX:
            raise InvalidParameter(key=key, value=value, reason=f"must be <= {ABSOLUTE_GID_MAX}")
        if lowered == "gidmin":
            gid_min = parsed
        else:
            gid_max = parsed

    if gid_min > gid_max:
        raise InvalidParameter(key="gidMax", value=gid_max, reason=f"must be >= gidMin {gid_min}")

    return gid_min, gid_max


def get_volume_gid(volume: PersistentVolume) -> Optional[int]:
    """Return the GID annotated on a volume, or None if it has none.

    Raises:
        InvalidParameter: The annotation is not an integer
    """
    value = volume.annotations.get(VOLUME_GID_ANNOTATION_KEY)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidParameter(
            key=VOLUME_GID_ANNOTATION_KEY, value=value, reason="not an integer"
        )


class GidAllocator:
    """Hands out GIDs from one table per storage class.

    Tables are created on first use. A new table spans the full GID range
    while the reclaimer fills it, and is then narrowed to the class range,
    so GIDs reclaimed outside the current range still count as in use.

    Thread Safety Model:
    --------------------
    ``_tables_lock`` guards the class -> table map and is never held during
    a reclaim scan. The scan of a new table runs under a per-class lock, so
    two requests for a new class cannot reclaim twice while lookups and
    allocations in other classes proceed. Each MinMaxAllocator guards its
    own state.
    """

    def __init__(self, reclaimer: Optional[GidReclaimer] = None):
        self._reclaimer = reclaimer
        self._tables: Dict[str, MinMaxAllocator] = {}
        self._class_locks: Dict[str, threading.Lock] = {}
        self._tables_lock = threading.Lock()

    def get_gid_table(
        self,
        class_name: str,
        gid_min: Optional[int] = None,
        gid_max: Optional[int] = None,
    ) -> MinMaxAllocator:
        """Return the table of a class, creating and reclaiming it if needed.

        A None bound keeps the table's current bound (or the default one for
        a new table).
        """
        with self._tables_lock:
            table = self._tables.get(class_name)
            class_lock = self._class_locks.setdefault(class_name, threading.Lock())

        if table is None:
            with class_lock:
                table = self.find_gid_table(class_name)
                if table is None:
                    return self._reclaim_table(class_name, gid_min, gid_max)

        table.set_range(
            table.gid_min if gid_min is None else gid_min,
            table.gid_max if gid_max is None else gid_max,
        )
        return table

    def _reclaim_table(
        self, class_name: str, gid_min: Optional[int], gid_max: Optional[int]
    ) -> MinMaxAllocator:
        table = MinMaxAllocator(0, ABSOLUTE_GID_MAX)
        if self._reclaimer is not None:
            reclaimed = self._reclaimer.reclaim(class_name, table)
            LOG.info("Reclaimed %d GIDs for storage class %s", reclaimed, class_name)
        table.set_range(
            DEFAULT_GID_MIN if gid_min is None else gid_min,
            DEFAULT_GID_MAX if gid_max is None else gid_max,
        )
        with self._tables_lock:
            self._tables[class_name] = table
        return table

    def prime(self, class_name: str, parameters: Optional[Mapping[str, str]] = None) -> MinMaxAllocator:
        """Create (and reclaim) the table of a class ahead of any request."""
        if parameters:
            gid_min, gid_max = parse_class_parameters(parameters)
            return self.get_gid_table(class_name, gid_min, gid_max)
        return self.get_gid_table(class_name)

    def find_gid_table(self, class_name: str) -> Optional[MinMaxAllocator]:
        with self._tables_lock:
            return self._tables.get(class_name)

    def allocate_next(self, options: VolumeOptions) -> int:
        """Allocate the next free GID for a provisioning request.

        Raises:
            InvalidParameter: Bad gidMin/gidMax parameters
            GidRangeFull: The class range is exhausted
        """
        gid_min, gid_max = parse_class_parameters(options.parameters)
        try:
            table = self.get_gid_table(options.storage_class_name, gid_min, gid_max)
        except GidInvalidRange as e:
            raise InvalidParameter(key="gidMin/gidMax", value=f"{gid_min}-{gid_max}", reason=str(e))

        try:
            gid = table.allocate_next()
        except GidRangeFull:
            LOG.error(
                "No GIDs left in range %d-%d for storage class %s",
                gid_min, gid_max, options.storage_class_name,
            )
            raise

        LOG.debug("Allocated GID %d for storage class %s", gid, options.storage_class_name)
        return gid

    def release(self, volume: PersistentVolume) -> None:
        """Release the GID bound to a volume.

        Volumes without a GID annotation and GIDs that are not allocated are
        ignored, so releasing twice is harmless.

        Raises:
            InvalidParameter: The GID annotation is not an integer
        """
        gid = get_volume_gid(volume)
        if gid is None:
            return

        table = self.get_gid_table(volume.storage_class_name)
        if table.release(gid):
            LOG.debug("Released GID %d for storage class %s", gid, volume.storage_class_name)
        else:
            LOG.debug("GID %d was not allocated for storage class %s", gid, volume.storage_class_name)

    def release_gid(self, class_name: str, gid: int) -> None:
        """Release a GID that was never published on a volume."""
        table = self.find_gid_table(class_name)
        if table is not None:
            table.release(gid)
