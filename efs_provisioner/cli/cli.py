#!/usr/bin/env python3
"""
Main CLI entry point using Typer.
"""

import sys
from typing import Optional

import typer
import uvicorn

from efs_provisioner.cli.commands import gid, volume
from efs_provisioner.provisioner import configuration
from efs_provisioner.provisioner.driver import EFSProvisioner
from efs_provisioner.provisioner.exceptions import ProvisionerException

app = typer.Typer(
    name="efs-provisioner",
    help="EFS per-claim directory volume provisioner",
    add_completion=False,
)

# Add command groups
app.add_typer(volume.app, name="volume", help="Volume management commands")
app.add_typer(gid.app, name="gid", help="GID table commands")


@app.command()
def serve(
    config_file: Optional[str] = typer.Option(None, "--config-file", help="Configuration file"),
    host: Optional[str] = typer.Option(None, "--host", help="Bind host (default: from config or 127.0.0.1)"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port (default: from config or 8080)"),
    log_level: str = typer.Option("info", "--log-level", help="Uvicorn log level"),
):
    """
    Run the provisioner API server.

    Resolves the EFS mount and rebuilds the GID tables of the configured
    storage classes before accepting requests.
    """
    from efs_provisioner.api.main import app as api_app

    config_files = [config_file] if config_file else None
    conf = configuration.load_config(config_files=config_files)
    configuration.setup_logging(conf)
    group = getattr(conf, configuration.CONF_GROUP)

    provisioner = EFSProvisioner(configuration=group)
    try:
        provisioner.do_setup()
    except (ProvisionerException, OSError) as e:
        typer.echo(f"Error starting provisioner: {e}", err=True)
        raise typer.Exit(1)

    api_app.state.provisioner = provisioner
    uvicorn.run(api_app, host=host or group.api_host, port=port or group.api_port, log_level=log_level)


def main() -> int:
    """Main entry point."""
    try:
        app()
        return 0
    except KeyboardInterrupt:
        typer.echo("\nOperation cancelled by user", err=True)
        return 130
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
