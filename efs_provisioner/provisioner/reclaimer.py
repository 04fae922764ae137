"""Startup recovery of GIDs from volume metadata on the file system."""

import os

from oslo_log import log as logging

from .exceptions import GidAllocationError, GidConflict, MetadataUnreadable
from .gid_allocators.base import GidReclaimer
from .metadata import read_volume_metadata

LOG = logging.getLogger(__name__)


class FileSystemReclaimer(GidReclaimer):
    """Reclaims GIDs recorded in the metadata of every top-level directory.

    Only reuse-mode directories carry metadata, so ephemeral volumes are
    invisible here; their GIDs are reclaimed from nothing and a restart may
    hand them out again.
    """

    def __init__(self, base_path: str):
        self.base_path = base_path

    def reclaim(self, class_name: str, gid_table) -> int:
        """Add the GID of every directory of class_name to gid_table.

        Errors on individual directories are logged and skipped; only a
        failure to list base_path itself is raised.

        Raises:
            OSError: base_path cannot be listed
        """
        LOG.info("adding gids for any existing directories under %s to the gid table", self.base_path)

        try:
            with os.scandir(self.base_path) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            LOG.error("failed to list contents of %s: %s", self.base_path, e)
            raise

        reclaimed = 0
        for entry in entries:
            try:
                if not entry.is_dir(follow_symlinks=False):
                    continue
            except OSError:
                continue

            md_dir = os.path.join(self.base_path, entry.name)

            try:
                md = read_volume_metadata(md_dir)
            except (MetadataUnreadable, OSError) as e:
                LOG.warning("failed to read volume metadata for %s: %s", md_dir, e)
                continue

            # Written only by classes with reuseVolumes set
            if md is None:
                continue

            if md.gid == "":
                continue

            if md.storage_class_name != class_name:
                continue

            try:
                gid = md.gid_as_int()
            except ValueError:
                LOG.error("invalid GID value '%s' in metadata for %s", md.gid, md_dir)
                continue

            try:
                gid_table.allocate(gid)
            except GidConflict:
                LOG.info(
                    "GID %d found in %s was already allocated for storageclass %s",
                    gid, md_dir, class_name,
                )
                continue
            except GidAllocationError as e:
                LOG.error("failed to store GID %d found in metadata for %s: %s", gid, md_dir, e)
                continue

            reclaimed += 1

        return reclaimed
