"""EFS volume provisioner.

Each volume is a directory on one shared EFS file system, mounted locally
by the provisioner. Volumes are published as NFS volumes pointing at the
file system's DNS name and the directory's path on the export.

Architecture:
    - Ephemeral mode: one directory per volume, named ``<pvc>-<pv>``, removed
      on delete
    - Reuse mode (``reuseVolumes=true``): one directory per claim, named
      ``[<volumePrefix>-]<pvc>-<namespace>``, handed back to the same claim
      on re-provisioning; ownership is recorded in a metadata sidecar
    - Optional per-storage-class GIDs: the directory is group-owned by an
      allocated GID with mode 0771|setgid
"""

import os
import shutil
import stat
import uuid
from typing import Mapping, Optional, Tuple

from oslo_log import log as logging

from efs_provisioner.cli.lib.fsops import change_group
from efs_provisioner.cli.lib.mounts import DEFAULT_MOUNTS_FILE, find_mount
from efs_provisioner.cli.lib.validators import parse_bool, validate_name

from . import efs
from .exceptions import (
    BackendUnreachable,
    ConfigurationMissing,
    GIDInconsistency,
    InvalidParameter,
    MissingMetadata,
    OwnershipMismatch,
    ProvisionerException,
    UnexpectedFileType,
    UnsupportedRequest,
)
from .gid_allocators import GidAllocator
from .metadata import VolumeMetadata, read_volume_metadata, write_volume_metadata
from .models import (
    DEFAULT_MOUNT_OPTIONS,
    PROVISIONED_BY_ANNOTATION_KEY,
    VOLUME_GID_ANNOTATION_KEY,
    NFSVolumeSource,
    PersistentVolume,
    VolumeOptions,
)
from .paths import PathTranslator
from .reclaimer import FileSystemReclaimer

LOG = logging.getLogger(__name__)

VERSION = "0.1.0"

REUSE_VOLUMES_KEY = "reuseVolumes"
VOLUME_PREFIX_KEY = "volumePrefix"
GID_ALLOCATE_KEY = "gidallocate"

DIR_MODE = 0o777
DIR_MODE_WITH_GID = 0o771 | stat.S_ISGID


def reuse_volumes_option(parameters: Mapping[str, str]) -> bool:
    """Return the reuseVolumes class parameter (default False).

    Raises:
        InvalidParameter: The value is not a boolean
    """
    if REUSE_VOLUMES_KEY not in (parameters or {}):
        return False
    value = parameters[REUSE_VOLUMES_KEY]
    try:
        return parse_bool(value)
    except ValueError as e:
        raise InvalidParameter(key=REUSE_VOLUMES_KEY, value=value, reason=str(e))


def gid_allocate_option(parameters: Mapping[str, str]) -> bool:
    """Return the gidAllocate class parameter (default True).

    The key is matched case-insensitively.

    Raises:
        InvalidParameter: The value is not a boolean
    """
    gid_allocate = True
    for key, value in (parameters or {}).items():
        if key.lower() != GID_ALLOCATE_KEY:
            continue
        try:
            gid_allocate = parse_bool(value)
        except ValueError as e:
            raise InvalidParameter(key=key, value=value, reason=str(e))
    return gid_allocate


def get_directory_name(
    options: VolumeOptions, reuse_volumes: bool, pv_name: Optional[str] = None
) -> str:
    """Return the name of the directory backing a request.

    Reuse mode derives a stable name from the claim so the same claim always
    maps to the same directory. Otherwise the name is unique per volume.

    Raises:
        InvalidParameter: A name part would not yield a single path component
    """
    if reuse_volumes:
        parts = [
            ("pvcName", options.pvc_name),
            ("pvcNamespace", options.pvc_namespace),
        ]
        volume_prefix = (options.parameters or {}).get(VOLUME_PREFIX_KEY)
        if volume_prefix:
            parts.insert(0, (VOLUME_PREFIX_KEY, volume_prefix))
    else:
        parts = [("pvcName", options.pvc_name), ("pvName", pv_name or options.pv_name)]

    for key, value in parts:
        try:
            validate_name(value)
        except ValueError as e:
            raise InvalidParameter(key=key, value=value, reason=str(e))

    return "-".join(value for _, value in parts)


def volume_exists(path: str) -> Tuple[bool, Optional[int]]:
    """Check whether a volume directory exists.

    Returns:
        Tuple of (exists, group id of the directory)

    Raises:
        UnexpectedFileType: path exists but is not a directory
        OSError: path cannot be inspected
    """
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return False, None

    if not stat.S_ISDIR(st.st_mode):
        LOG.error("%s already exists but is not a directory", path)
        raise UnexpectedFileType(path=path)

    return True, st.st_gid


def validate_preexisting_volume(
    options: VolumeOptions,
    metadata: Optional[VolumeMetadata],
    path: str,
    existing_gid: int,
) -> Optional[int]:
    """Decide whether an existing directory may be handed to a request.

    Returns:
        The GID bound to the directory, or None if it has none

    Raises:
        MissingMetadata: The directory was not created in reuse mode
        OwnershipMismatch: The directory belongs to another claim or class
        GIDInconsistency: The recorded GID is not the directory's group
    """
    if metadata is None:
        LOG.error("%s already exists but has no volume metadata", path)
        raise MissingMetadata(path=path)

    recorded = (metadata.storage_class_name, metadata.pvc_name, metadata.pvc_namespace)
    requested = (options.storage_class_name, options.pvc_name, options.pvc_namespace)
    if recorded != requested:
        LOG.error("%s already exists but is owned by %s/%s in class %s",
                  path, metadata.pvc_namespace, metadata.pvc_name,
                  metadata.storage_class_name)
        raise OwnershipMismatch(
            path=path,
            recorded="PVC %s/%s with storage class %s" % (
                metadata.pvc_namespace, metadata.pvc_name, metadata.storage_class_name),
            requested="PVC %s/%s with storage class %s" % (
                options.pvc_namespace, options.pvc_name, options.storage_class_name),
        )

    if metadata.gid == "":
        return None

    try:
        recorded_gid = metadata.gid_as_int()
    except ValueError:
        LOG.error("volume metadata for %s contains an invalid GID value: %s", path, metadata.gid)
        raise GIDInconsistency(path=path, actual=existing_gid, recorded=metadata.gid)

    if recorded_gid != existing_gid:
        LOG.error("directory %s has a GID of %s, but the volume metadata shows the GID as %s",
                  path, existing_gid, metadata.gid)
        raise GIDInconsistency(path=path, actual=existing_gid, recorded=metadata.gid)

    return recorded_gid


def _remove_tree(path: str) -> None:
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        LOG.error("Failed to clean up %s: %s", path, e)


def create_volume(path: str, gid: Optional[int]) -> None:
    """Create a volume directory, group-owned by gid when one is given.

    Any failure after the directory exists removes it again.

    Raises:
        OSError: The directory cannot be created or its mode set
        GroupChangeFailed: chgrp failed
    """
    mode = DIR_MODE if gid is None else DIR_MODE_WITH_GID

    os.makedirs(path, mode=mode, exist_ok=True)

    try:
        # makedirs is subject to the umask
        os.chmod(path, mode)
        if gid is not None:
            change_group(path, gid)
    except (OSError, ProvisionerException):
        _remove_tree(path)
        raise


class EFSProvisioner:
    """Provisions NFS volumes as directories on an EFS file system.

    The provisioner is built either from an oslo.config group via
    ``do_setup`` or directly from a translator and allocator.

    Thread Safety Model:
    --------------------
    provision and delete may run concurrently for different claims. GID
    state is guarded inside GidAllocator; directory operations are not
    locked, so two concurrent requests for the same reuse-mode claim are
    not supported.
    """

    VERSION = VERSION

    def __init__(
        self,
        configuration=None,
        translator: Optional[PathTranslator] = None,
        allocator: Optional[GidAllocator] = None,
        provisioner_name: Optional[str] = None,
        efs_client: Optional[efs.EFSClient] = None,
    ):
        self.configuration = configuration
        self.translator = translator
        self.allocator = allocator
        self.provisioner_name = provisioner_name
        self._efs_client = efs_client

    @property
    def dns_name(self) -> str:
        return self.translator.dns_name

    def do_setup(self):
        """Resolve the mount, check the backend and rebuild GID tables.

        Raises:
            ConfigurationMissing: A required option is unset
            MountNotFound: The file system is not mounted
            OSError: The mount point cannot be scanned
        """
        LOG.info("Initializing EFS provisioner version %s", self.VERSION)
        conf = self.configuration

        for option in ("provisioner_name", "file_system_id", "aws_region"):
            if not getattr(conf, option):
                raise ConfigurationMissing(option=option)

        self.provisioner_name = conf.provisioner_name

        dns_name = conf.dns_name or efs.get_dns_name(conf.file_system_id, conf.aws_region)

        if conf.mount_point and conf.mount_source:
            mount_point, source = conf.mount_point, conf.mount_source
            LOG.info("Using configured mount %s at %s", source, mount_point)
        else:
            mount_point, source = find_mount(dns_name, conf.mounts_file or DEFAULT_MOUNTS_FILE)
            LOG.info("Found mount %s at %s", source, mount_point)

        if conf.check_file_system:
            if self._efs_client is None:
                self._efs_client = efs.EFSClient(conf.aws_region)
            try:
                self._efs_client.describe_file_system(conf.file_system_id)
            except BackendUnreachable as e:
                LOG.warning("%s", e)

        self.translator = PathTranslator(dns_name, mount_point, source)
        self.allocator = GidAllocator(FileSystemReclaimer(self.translator.mount_point))

        for class_name in conf.reclaim_storage_classes or []:
            self.allocator.prime(class_name)

        LOG.info("EFS provisioner %s serving %s from %s",
                 self.provisioner_name, source, mount_point)

    def provision(self, options: VolumeOptions) -> PersistentVolume:
        """Create (or reuse) the directory for a claim and describe it.

        Raises:
            UnsupportedRequest: The claim carries a label selector
            InvalidParameter: A class parameter cannot be parsed
            ProvisionerException: Reuse-mode rejection or GID exhaustion
            OSError: Filesystem failure
        """
        if options.selector is not None:
            raise UnsupportedRequest(details="claim selector is not supported")

        reuse_volumes = reuse_volumes_option(options.parameters)
        gid_allocate = gid_allocate_option(options.parameters)

        pv_name = options.pv_name or f"pvc-{uuid.uuid4()}"

        directory_name = get_directory_name(options, reuse_volumes, pv_name)
        local_path = self.translator.local_path(directory_name)
        remote_path = self.translator.remote_path(directory_name)

        LOG.info("provisioning volume at %s", local_path)

        exists = False
        existing_gid = None
        if reuse_volumes:
            exists, existing_gid = volume_exists(local_path)

        if exists:
            LOG.info("%s already exists", local_path)
            metadata = read_volume_metadata(local_path)
            gid = validate_preexisting_volume(options, metadata, local_path, existing_gid)
            LOG.info("%s was reused since the preexisting volume metadata matches the claim",
                     local_path)
        else:
            gid = None
            if gid_allocate:
                gid = self.allocator.allocate_next(options)
            self._create(options, local_path, gid, reuse_volumes)

        return self._build_volume(options, pv_name, remote_path, gid)

    def _create(self, options: VolumeOptions, path: str, gid: Optional[int],
                reuse_volumes: bool) -> None:
        try:
            create_volume(path, gid)
            if reuse_volumes:
                write_volume_metadata(
                    path,
                    VolumeMetadata(
                        gid="" if gid is None else str(gid),
                        pvc_name=options.pvc_name,
                        pvc_namespace=options.pvc_namespace,
                        storage_class_name=options.storage_class_name,
                    ),
                )
        except (OSError, ProvisionerException) as e:
            LOG.error("Failed to provision volume at %s: %s", path, e)
            _remove_tree(path)
            if gid is not None:
                self.allocator.release_gid(options.storage_class_name, gid)
            raise

    def _build_volume(self, options: VolumeOptions, pv_name: str, remote_path: str,
                      gid: Optional[int]) -> PersistentVolume:
        annotations = {}
        if self.provisioner_name:
            annotations[PROVISIONED_BY_ANNOTATION_KEY] = self.provisioner_name
        if gid is not None:
            annotations[VOLUME_GID_ANNOTATION_KEY] = str(gid)

        mount_options = list(DEFAULT_MOUNT_OPTIONS)
        if options.mount_options is not None:
            mount_options = list(options.mount_options)

        return PersistentVolume(
            name=pv_name,
            nfs=NFSVolumeSource(server=self.dns_name, path=remote_path, read_only=False),
            storage_class_name=options.storage_class_name,
            mount_options=mount_options,
            capacity=options.capacity,
            access_modes=list(options.access_modes),
            reclaim_policy=options.reclaim_policy,
            annotations=annotations,
        )

    def delete(self, volume: PersistentVolume) -> None:
        """Release a volume's GID and remove its directory.

        Raises:
            InvalidParameter: The GID annotation cannot be parsed
            PathMismatch: The volume was not created from this mount
            OSError: The directory cannot be removed
        """
        self.allocator.release(volume)

        path = self.translator.reverse_translate(volume.nfs.server, volume.nfs.path)

        LOG.info("Deleting %s", path)
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            LOG.warning("Volume directory %s not found, already deleted", path)

    def get_gid_table(self, class_name: str):
        """Return the GID table state of a class, or None if it has none."""
        table = self.allocator.find_gid_table(class_name)
        if table is None:
            return None
        return table.snapshot()
