"""
Volume management commands.
"""

import os
import stat
from typing import List, Optional

import typer

from efs_provisioner.cli.lib.api_client import DEFAULT_ENDPOINT, ProvisionerClient
from efs_provisioner.cli.lib.validators import parse_key_value, validate_name
from efs_provisioner.provisioner.metadata import read_volume_metadata
from efs_provisioner.provisioner.models import VOLUME_GID_ANNOTATION_KEY

app = typer.Typer(help="Volume management commands")


@app.command()
def create(
    name: str = typer.Argument(..., help="Claim name"),
    namespace: str = typer.Option(..., "--namespace", "-n", help="Claim namespace"),
    storage_class: str = typer.Option(..., "--class", help="Storage class name"),
    param: Optional[List[str]] = typer.Option(None, "--param", "-p", help="Class parameter KEY=VALUE (repeatable)"),
    pv_name: Optional[str] = typer.Option(None, "--pv-name", help="Volume name (generated if omitted)"),
    mount_option: Optional[List[str]] = typer.Option(None, "--mount-option", "-o", help="NFS mount option (repeatable)"),
    capacity: Optional[str] = typer.Option(None, "--capacity", help="Requested capacity (e.g., 5Gi)"),
    endpoint: str = typer.Option(DEFAULT_ENDPOINT, "--endpoint", help="Provisioner API endpoint"),
):
    """
    Provision a volume for a claim.

    Sends the request to a running provisioner and prints the published
    NFS location.
    """
    try:
        validate_name(name)
        validate_name(namespace)
        parameters = dict(parse_key_value(item) for item in (param or []))

        typer.echo(f"Provisioning volume for claim: {namespace}/{name} in class: {storage_class}")

        client = ProvisionerClient(endpoint)
        volume = client.provision(
            pvc_name=name,
            pvc_namespace=namespace,
            storage_class_name=storage_class,
            parameters=parameters,
            pv_name=pv_name,
            mount_options=mount_option or None,
            capacity=capacity,
        )

        nfs = volume.get("nfs", {})
        typer.echo(f"  Volume: {volume.get('name')}")
        typer.echo(f"  NFS: {nfs.get('server')}:{nfs.get('path')}")
        typer.echo(f"  Mount options: {','.join(volume.get('mount_options', []))}")
        gid = volume.get("annotations", {}).get(VOLUME_GID_ANNOTATION_KEY)
        if gid:
            typer.echo(f"  GID: {gid}")

        typer.echo(f"Volume {volume.get('name')} provisioned successfully")

    except Exception as e:
        typer.echo(f"Error provisioning volume: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def delete(
    name: str = typer.Argument(..., help="Volume name"),
    server: str = typer.Option(..., "--server", help="NFS server of the volume"),
    path: str = typer.Option(..., "--path", help="NFS path of the volume"),
    storage_class: str = typer.Option(..., "--class", help="Storage class name"),
    gid: Optional[int] = typer.Option(None, "--gid", help="GID bound to the volume"),
    endpoint: str = typer.Option(DEFAULT_ENDPOINT, "--endpoint", help="Provisioner API endpoint"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """
    Delete a volume.

    Removes the volume directory and releases its GID.
    """
    try:
        if not force:
            typer.confirm(f"Delete volume {name} ({server}:{path})?", abort=True)

        annotations = {}
        if gid is not None:
            annotations[VOLUME_GID_ANNOTATION_KEY] = str(gid)

        typer.echo(f"Deleting volume: {name}")
        client = ProvisionerClient(endpoint)
        client.delete(name, server, path, storage_class, annotations)
        typer.echo(f"Volume {name} deleted successfully")

    except typer.Abort:
        raise
    except Exception as e:
        typer.echo(f"Error deleting volume: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def inspect(
    directory: str = typer.Argument(..., help="Volume directory under the mount point"),
):
    """
    Show the ownership metadata of a volume directory.
    """
    try:
        st = os.stat(directory)
        if not stat.S_ISDIR(st.st_mode):
            typer.echo(f"Error: {directory} is not a directory", err=True)
            raise typer.Exit(1)

        typer.echo(f"Directory: {directory}")
        typer.echo(f"  Mode: {oct(stat.S_IMODE(st.st_mode))}")
        typer.echo(f"  Group: {st.st_gid}")

        metadata = read_volume_metadata(directory)
        if metadata is None:
            typer.echo("  No volume metadata (not created in reuse mode)")
            return

        typer.echo(f"  Claim: {metadata.pvc_namespace}/{metadata.pvc_name}")
        typer.echo(f"  Storage class: {metadata.storage_class_name}")
        typer.echo(f"  GID: {metadata.gid or '-'}")

    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error inspecting volume: {e}", err=True)
        raise typer.Exit(1)
