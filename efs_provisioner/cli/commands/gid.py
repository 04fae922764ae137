"""
GID table commands.
"""

from typing import Optional

import typer

from efs_provisioner.cli.lib.api_client import DEFAULT_ENDPOINT, ProvisionerClient
from efs_provisioner.cli.lib.mounts import find_mount
from efs_provisioner.provisioner import configuration, efs
from efs_provisioner.provisioner.exceptions import ConfigurationMissing
from efs_provisioner.provisioner.gid_allocators import MinMaxAllocator
from efs_provisioner.provisioner.gid_allocators.allocator import ABSOLUTE_GID_MAX
from efs_provisioner.provisioner.reclaimer import FileSystemReclaimer

app = typer.Typer(help="GID table commands")


def _resolve_mount_point(config_file: Optional[str]) -> str:
    config_files = [config_file] if config_file else None
    conf = configuration.load_config(config_files=config_files)
    group = getattr(conf, configuration.CONF_GROUP)
    if group.mount_point:
        return group.mount_point
    dns_name = group.dns_name
    if not dns_name:
        for option in ("file_system_id", "aws_region"):
            if not getattr(group, option):
                raise ConfigurationMissing(option=option)
        dns_name = efs.get_dns_name(group.file_system_id, group.aws_region)
    mount_point, _source = find_mount(dns_name, group.mounts_file)
    return mount_point


@app.command()
def reclaim(
    storage_class: str = typer.Option(..., "--class", help="Storage class name"),
    mount_point: Optional[str] = typer.Option(
        None, "--mount-point", help="EFS mount point (default: from config or mount table)"
    ),
    config_file: Optional[str] = typer.Option(None, "--config-file", help="Configuration file"),
):
    """
    Scan volume metadata and show the GIDs a restart would reclaim.

    Nothing is changed on disk or in a running provisioner.
    """
    try:
        if not mount_point:
            mount_point = _resolve_mount_point(config_file)

        typer.echo(f"Scanning {mount_point} for storage class: {storage_class}")

        table = MinMaxAllocator(0, ABSOLUTE_GID_MAX)
        count = FileSystemReclaimer(mount_point).reclaim(storage_class, table)
        allocated = table.snapshot()["allocated"]

        typer.echo(f"Reclaimed {count} GIDs")
        for gid in allocated:
            typer.echo(f"  {gid}")

    except Exception as e:
        typer.echo(f"Error reclaiming GIDs: {e}", err=True)
        raise typer.Exit(1)


@app.command("list")
def list_gids(
    storage_class: str = typer.Option(..., "--class", help="Storage class name"),
    endpoint: str = typer.Option(DEFAULT_ENDPOINT, "--endpoint", help="Provisioner API endpoint"),
):
    """
    Show the GID table of a running provisioner.
    """
    try:
        client = ProvisionerClient(endpoint)
        table = client.list_gids(storage_class)

        typer.echo(f"Storage class: {storage_class}")
        typer.echo(f"  Range: {table.get('gid_min')}-{table.get('gid_max')}")
        typer.echo(f"  Free: {table.get('free')}")
        allocated = table.get("allocated", [])
        typer.echo(f"  Allocated: {', '.join(str(gid) for gid in allocated) or '-'}")

    except Exception as e:
        typer.echo(f"Error listing GIDs: {e}", err=True)
        raise typer.Exit(1)
