"""Base class for GID reclaimers."""

from abc import ABC, abstractmethod


class GidReclaimer(ABC):
    """Repopulates a fresh GID table from state that outlived the process.

    A GidAllocator calls its reclaimer exactly once per storage class, when
    the class table is first created and before any GID is handed out from it.
    """

    @abstractmethod
    def reclaim(self, class_name: str, gid_table) -> int:
        """Mark every GID already in use by class_name as allocated.

        Args:
            class_name: Storage class whose GIDs should be reclaimed
            gid_table: MinMaxAllocator spanning the full GID range

        Returns:
            Number of GIDs reclaimed

        Note:
            Implementations skip unusable entries rather than raise.
        """
        pass
