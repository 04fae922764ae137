"""Configuration options for the EFS provisioner."""

import os

from oslo_config import cfg
from oslo_log import log as logging

# Configuration group name
CONF_GROUP = "efs_provisioner"

CONFIG_FILE_ENV = "EFS_PROVISIONER_CONFIG_FILE"
DEFAULT_CONFIG_FILE = "/etc/efs-provisioner/efs-provisioner.conf"

# option name -> environment variable supplying its default
ENV_DEFAULTS = {
    "provisioner_name": "PROVISIONER_NAME",
    "file_system_id": "FILE_SYSTEM_ID",
    "aws_region": "AWS_REGION",
    "dns_name": "DNS_NAME",
}


def _get_efs_provisioner_opts():
    """Get EFS provisioner configuration options.

    Returns:
        List of oslo_config options
    """
    return [
        # Identity
        cfg.StrOpt(
            "provisioner_name",
            default=None,
            help=(
                "Name this provisioner answers to. Recorded on every volume "
                "in the pv.kubernetes.io/provisioned-by annotation."
            ),
        ),
        # Backend
        cfg.StrOpt(
            "file_system_id",
            default=None,
            help="EFS file system ID (e.g., fs-47a2c22e)",
        ),
        cfg.StrOpt(
            "aws_region",
            default=None,
            help="AWS region of the file system (e.g., us-west-2)",
        ),
        cfg.StrOpt(
            "dns_name",
            default=None,
            help=(
                "NFS server name of the file system. Defaults to "
                "<file_system_id>.efs.<aws_region>.amazonaws.com"
            ),
        ),
        cfg.BoolOpt(
            "check_file_system",
            default=True,
            help=(
                "Describe the file system through the EFS API at startup. "
                "A failure is logged as a warning and does not stop the service."
            ),
        ),
        # Mount
        cfg.StrOpt(
            "mount_point",
            default=None,
            help=(
                "Local mount point of the file system. When set together with "
                "mount_source, mount discovery is skipped."
            ),
        ),
        cfg.StrOpt(
            "mount_source",
            default=None,
            help="Mount source of the file system (e.g., <dns_name>:/)",
        ),
        cfg.StrOpt(
            "mounts_file",
            default="/proc/mounts",
            help="Mount table scanned to discover the file system mount",
        ),
        # GID reclaim
        cfg.ListOpt(
            "reclaim_storage_classes",
            default=[],
            help=(
                "Storage classes whose GID tables are rebuilt from volume "
                "metadata at startup. Other classes are rebuilt on first use."
            ),
        ),
        # API server
        cfg.HostAddressOpt(
            "api_host",
            default="127.0.0.1",
            help="Address the provisioner API listens on",
        ),
        cfg.PortOpt(
            "api_port",
            default=8080,
            help="Port the provisioner API listens on",
        ),
    ]


def register_opts(conf, group=None):
    """Register EFS provisioner options.

    Args:
        conf: oslo_config.cfg.ConfigOpts instance
        group: Configuration group name (default: CONF_GROUP)
    """
    if group is None:
        group = CONF_GROUP
    conf.register_opts(_get_efs_provisioner_opts(), group=group)


def list_opts():
    """Return a list of oslo.config options available in the provisioner.

    This is used by oslo-config-generator to generate sample config files.

    Returns:
        List of (group_name, options) tuples
    """
    return [
        (CONF_GROUP, _get_efs_provisioner_opts()),
    ]


def get_efs_provisioner_opts():
    return _get_efs_provisioner_opts()


def _apply_env_defaults(conf, group):
    for name, env_name in ENV_DEFAULTS.items():
        value = os.environ.get(env_name)
        if value:
            conf.set_default(name, value, group=group)


def _default_config_files():
    path = os.environ.get(CONFIG_FILE_ENV)
    if path:
        return [path]
    if os.path.exists(DEFAULT_CONFIG_FILE):
        return [DEFAULT_CONFIG_FILE]
    return []


def load_config(argv=None, config_files=None, conf=None):
    """Build a ConfigOpts with the provisioner and logging options loaded.

    Environment variables (PROVISIONER_NAME, FILE_SYSTEM_ID, AWS_REGION,
    DNS_NAME) become option defaults, so a config file still wins over
    them.

    Args:
        argv: Command line arguments passed to oslo.config (default: none)
        config_files: Config files to read (default: $EFS_PROVISIONER_CONFIG_FILE
            or /etc/efs-provisioner/efs-provisioner.conf when present)
        conf: ConfigOpts to load into (default: a new instance)

    Returns:
        oslo_config.cfg.ConfigOpts
    """
    if conf is None:
        conf = cfg.ConfigOpts()

    register_opts(conf)
    logging.register_options(conf)
    _apply_env_defaults(conf, CONF_GROUP)

    if config_files is None:
        config_files = _default_config_files()

    conf(
        args=list(argv or []),
        project="efs-provisioner",
        default_config_files=config_files,
    )
    return conf


def setup_logging(conf):
    """Configure oslo.log for the provisioner process."""
    logging.setup(conf, "efs-provisioner")
