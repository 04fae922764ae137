"""
Volume service layer.
"""

from typing import Any, Dict, Optional

from efs_provisioner.api.models import ProvisionRequest, VolumeDelete
from efs_provisioner.provisioner.driver import EFSProvisioner
from efs_provisioner.provisioner.models import NFSVolumeSource, PersistentVolume, VolumeOptions


def create_volume(provisioner: EFSProvisioner, request: ProvisionRequest) -> Dict[str, Any]:
    """
    Provision a volume for a claim.

    Args:
        provisioner: Configured provisioner
        request: Provisioning request

    Returns:
        Volume dictionary
    """
    options = VolumeOptions(
        pvc_name=request.pvc_name,
        pvc_namespace=request.pvc_namespace,
        storage_class_name=request.storage_class_name,
        pv_name=request.pv_name,
        parameters=dict(request.parameters),
        capacity=request.capacity,
        access_modes=list(request.access_modes),
        mount_options=request.mount_options,
        reclaim_policy=request.reclaim_policy,
        selector=request.selector,
    )
    volume = provisioner.provision(options)
    return volume.to_dict()


def delete_volume(provisioner: EFSProvisioner, name: str, request: VolumeDelete) -> None:
    """
    Delete a volume.

    Args:
        provisioner: Configured provisioner
        name: Volume name
        request: NFS location, class and annotations of the volume
    """
    volume = PersistentVolume(
        name=name,
        nfs=NFSVolumeSource(server=request.server, path=request.path),
        storage_class_name=request.storage_class_name,
        annotations=dict(request.annotations),
    )
    provisioner.delete(volume)


def get_gid_table(provisioner: EFSProvisioner, class_name: str) -> Optional[Dict[str, Any]]:
    """
    Get the GID table of a storage class.

    Returns:
        GID table dictionary, or None if the class has no table yet
    """
    table = provisioner.get_gid_table(class_name)
    if table is None:
        return None
    return {"storage_class_name": class_name, **table}


def get_health(provisioner: EFSProvisioner) -> Dict[str, Any]:
    translator = provisioner.translator
    return {
        "provisioner_name": provisioner.provisioner_name,
        "server": translator.dns_name,
        "mount_point": translator.mount_point,
        "export_root": translator.export_root,
    }
