"""
Mount table inspection.

The provisioner never mounts anything itself; it finds the EFS mount that the
host (or the pod spec) already set up and works beneath it.
"""

import re
from dataclasses import dataclass
from typing import List, Tuple

from efs_provisioner.provisioner.exceptions import MountNotFound

DEFAULT_MOUNTS_FILE = "/proc/mounts"

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


@dataclass(frozen=True)
class MountEntry:
    """One line of the mount table."""

    source: str
    mount_point: str
    fs_type: str = ""
    options: str = ""


def _unescape(field: str) -> str:
    # The kernel escapes space, tab, newline and backslash as \ooo
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


def get_mounts(mounts_file: str = DEFAULT_MOUNTS_FILE) -> List[MountEntry]:
    """
    Read the mount table.

    Args:
        mounts_file: Path to a file in /proc/mounts format

    Returns:
        Mount entries in table order

    Raises:
        OSError: If the file cannot be read
    """
    entries = []
    with open(mounts_file, "r", encoding="utf-8") as f:
        for line in f:
            parts = line.split()
            if len(parts) < 2:
                continue
            entries.append(
                MountEntry(
                    source=_unescape(parts[0]),
                    mount_point=_unescape(parts[1]),
                    fs_type=parts[2] if len(parts) > 2 else "",
                    options=parts[3] if len(parts) > 3 else "",
                )
            )
    return entries


def find_mount(dns_name: str, mounts_file: str = DEFAULT_MOUNTS_FILE) -> Tuple[str, str]:
    """
    Find the mount whose source is served by dns_name.

    Args:
        dns_name: NFS server name (e.g. fs-123.efs.us-east-1.amazonaws.com)
        mounts_file: Path to a file in /proc/mounts format

    Returns:
        Tuple of (mount_point, source)

    Raises:
        MountNotFound: If no entry's source starts with dns_name
    """
    entries = get_mounts(mounts_file)
    for entry in entries:
        if entry.source.startswith(dns_name):
            return entry.mount_point, entry.source

    listing = ", ".join(f"{e.source}:{e.mount_point}" for e in entries)
    raise MountNotFound(server=dns_name, entries=listing)
