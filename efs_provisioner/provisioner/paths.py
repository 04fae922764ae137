"""Translation between local mount paths and remote NFS export paths."""

import posixpath

from oslo_log import log as logging

from .exceptions import PathMismatch

LOG = logging.getLogger(__name__)


class PathTranslator:
    """Maps tenant directory names to local and remote paths.

    The mount source recorded in the mount table looks like
    ``<dns_name>:/some/export``. Stripping the ``<dns_name>:`` prefix gives
    the exported root; everything under the local mount point corresponds
    one-to-one with everything under that root.
    """

    def __init__(self, dns_name: str, mount_point: str, source: str):
        self.dns_name = dns_name
        self.mount_point = posixpath.normpath(mount_point)
        self.source = source
        self.export_root = posixpath.normpath(source.replace(dns_name + ":", "", 1))

    def local_path(self, directory_name: str) -> str:
        return posixpath.normpath(posixpath.join(self.mount_point, directory_name))

    def remote_path(self, directory_name: str) -> str:
        return posixpath.normpath(posixpath.join(self.export_root, directory_name))

    def reverse_translate(self, server: str, remote_path: str) -> str:
        """Return the local path of a remote volume path.

        Args:
            server: NFS server recorded on the volume
            remote_path: NFS path recorded on the volume

        Returns:
            Local path under the mount point

        Raises:
            PathMismatch: The volume is served by another server, or its path
                is not strictly below the exported root
        """
        if server != self.dns_name:
            raise PathMismatch(
                details=(
                    f"volume's NFS server {server} is not equal to the server "
                    f"{self.dns_name} from which this provisioner creates volumes"
                )
            )

        normalized = posixpath.normpath(remote_path)
        if self.export_root == "/":
            prefix = "/"
        else:
            prefix = self.export_root + "/"

        if not normalized.startswith(prefix) or normalized == self.export_root:
            raise PathMismatch(
                details=(
                    f"volume's NFS path {remote_path} is not a child of the server "
                    f"path {self.source} mounted in this provisioner at {self.mount_point}"
                )
            )

        subpath = normalized[len(prefix):]
        local = posixpath.join(self.mount_point, subpath)
        LOG.debug("Translated %s:%s to %s", server, remote_path, local)
        return local
