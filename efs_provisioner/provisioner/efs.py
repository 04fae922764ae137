"""AWS EFS management API access.

Only used at startup to confirm that the configured file system exists;
every volume operation works through the local mount.
"""

from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from oslo_log import log as logging

from .exceptions import BackendUnreachable

LOG = logging.getLogger(__name__)


def get_dns_name(file_system_id: str, aws_region: str) -> str:
    return f"{file_system_id}.efs.{aws_region}.amazonaws.com"


class EFSClient:
    """Thin wrapper around the boto3 EFS client."""

    def __init__(self, aws_region: str, session: Optional[boto3.session.Session] = None):
        self.aws_region = aws_region
        self._session = session or boto3.session.Session()
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = self._session.client("efs", region_name=self.aws_region)
        return self._client

    def describe_file_system(self, file_system_id: str) -> Dict[str, Any]:
        """Describe one file system.

        Raises:
            BackendUnreachable: The call failed or returned no file system
        """
        try:
            response = self.client.describe_file_systems(FileSystemId=file_system_id)
        except (BotoCoreError, ClientError) as e:
            raise BackendUnreachable(file_system_id=file_system_id, details=str(e))

        file_systems = response.get("FileSystems") or []
        if not file_systems:
            raise BackendUnreachable(file_system_id=file_system_id, details="no such file system")

        LOG.debug(
            "EFS file system %s is %s",
            file_system_id,
            file_systems[0].get("LifeCycleState", "unknown"),
        )
        return file_systems[0]
