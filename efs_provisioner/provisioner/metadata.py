"""
Ownership metadata stored beside each reuse-mode volume directory.

The sidecar records which claim and storage class created a directory and
which GID it was given, so the directory can be safely handed back to the
same claim later and its GID reclaimed after a restart.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from dataclasses import dataclass
from typing import Optional

from oslo_log import log as logging

from .exceptions import MetadataUnreadable

LOG = logging.getLogger(__name__)

METADATA_FILE = ".kube-efs-provisioner-metadata"

METADATA_KEYS = ("gid", "pvcName", "pvcNamespace", "storageClassName")

_GID_PATTERN = re.compile(r"[0-9]+")


@dataclass
class VolumeMetadata:
    gid: str = ""
    pvc_name: str = ""
    pvc_namespace: str = ""
    storage_class_name: str = ""

    def gid_as_int(self) -> int:
        if not _GID_PATTERN.fullmatch(self.gid):
            raise ValueError(f"GID {self.gid!r} is not a decimal number")
        gid = int(self.gid)
        if gid < 0 or gid > 0xFFFFFFFF:
            raise ValueError(f"GID {gid} is not a valid 32-bit group id")
        return gid

    def to_dict(self) -> dict:
        return {
            "gid": self.gid,
            "pvcName": self.pvc_name,
            "pvcNamespace": self.pvc_namespace,
            "storageClassName": self.storage_class_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> VolumeMetadata:
        return cls(
            gid=data.get("gid", ""),
            pvc_name=data.get("pvcName", ""),
            pvc_namespace=data.get("pvcNamespace", ""),
            storage_class_name=data.get("storageClassName", ""),
        )


def get_metadata_path(directory: str) -> str:
    return os.path.join(directory, METADATA_FILE)


def write_volume_metadata(directory: str, metadata: VolumeMetadata) -> None:
    """Write metadata into directory, readable and writable by owner only.

    Raises:
        OSError: If the file cannot be written
    """
    path = get_metadata_path(directory)
    # mkstemp creates the file with mode 0600
    tmp_fd, tmp_path = tempfile.mkstemp(prefix=f"{METADATA_FILE}.", dir=directory)
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as file:
            json.dump(metadata.to_dict(), file, indent=2)
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, path)
    except OSError as e:
        LOG.error("failed to write metadata file %s: %s", path, e)
        raise
    finally:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass


def read_volume_metadata(directory: str) -> Optional[VolumeMetadata]:
    """Read the metadata stored in directory.

    Returns:
        The metadata, or None when the directory has no metadata file (it was
        created by a class that does not reuse volumes)

    Raises:
        MetadataUnreadable: The file exists but does not hold a JSON object
            with string values
        OSError: The file exists but cannot be read
    """
    path = get_metadata_path(directory)
    try:
        with open(path, "rb") as file:
            content = file.read()
    except FileNotFoundError:
        return None
    except OSError as e:
        LOG.error("failed to read metadata file %s: %s", path, e)
        raise

    try:
        data = json.loads(content)
    except ValueError as e:
        LOG.error("failed to unmarshal %s: %s", path, e)
        raise MetadataUnreadable(path=path, reason=str(e))

    if not isinstance(data, dict):
        raise MetadataUnreadable(path=path, reason="expected a JSON object")

    for key in METADATA_KEYS:
        if not isinstance(data.get(key, ""), str):
            raise MetadataUnreadable(path=path, reason=f"{key} must be a string")

    return VolumeMetadata.from_dict(data)
