"""Request and volume descriptor types for the provisioner."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

# Annotation carrying the GID bound to a volume
VOLUME_GID_ANNOTATION_KEY = "pv.beta.kubernetes.io/gid"

# Annotation naming the provisioner that created a volume
PROVISIONED_BY_ANNOTATION_KEY = "pv.kubernetes.io/provisioned-by"

DEFAULT_MOUNT_OPTIONS = ["vers=4.1"]


@dataclass
class VolumeOptions:
    """A provisioning request.

    Attributes:
        pvc_name: Name of the claim being provisioned
        pvc_namespace: Namespace of the claim
        storage_class_name: Class the claim asked for
        pv_name: Unique volume identifier chosen by the orchestrator; one is
            generated when omitted
        parameters: Free-form class parameters (reuseVolumes, volumePrefix,
            gidAllocate, gidMin, gidMax)
        capacity: Requested capacity, passed through untouched
        access_modes: Requested access modes, passed through untouched
        mount_options: Overrides the default NFS mount options
        reclaim_policy: Passed through to the published volume
        selector: Label selector on the claim (not supported)
    """

    pvc_name: str
    pvc_namespace: str
    storage_class_name: str
    pv_name: Optional[str] = None
    parameters: Dict[str, str] = field(default_factory=dict)
    capacity: Optional[str] = None
    access_modes: List[str] = field(default_factory=list)
    mount_options: Optional[List[str]] = None
    reclaim_policy: str = "Delete"
    selector: Optional[Dict[str, Any]] = None


@dataclass
class NFSVolumeSource:
    """Where a published volume lives on the NFS server."""

    server: str
    path: str
    read_only: bool = False


@dataclass
class PersistentVolume:
    """A published volume descriptor."""

    name: str
    nfs: NFSVolumeSource
    storage_class_name: str
    mount_options: List[str] = field(default_factory=lambda: list(DEFAULT_MOUNT_OPTIONS))
    capacity: Optional[str] = None
    access_modes: List[str] = field(default_factory=list)
    reclaim_policy: str = "Delete"
    annotations: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersistentVolume":
        nfs = data.get("nfs") or {}
        return cls(
            name=data["name"],
            nfs=NFSVolumeSource(
                server=nfs.get("server", ""),
                path=nfs.get("path", ""),
                read_only=bool(nfs.get("read_only", False)),
            ),
            storage_class_name=data.get("storage_class_name", ""),
            mount_options=list(data.get("mount_options") or DEFAULT_MOUNT_OPTIONS),
            capacity=data.get("capacity"),
            access_modes=list(data.get("access_modes") or []),
            reclaim_policy=data.get("reclaim_policy", "Delete"),
            annotations=dict(data.get("annotations") or {}),
        )
