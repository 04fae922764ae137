"""
Pytest configuration and fixtures.
"""

import shutil
import tempfile
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from efs_provisioner.provisioner.driver import EFSProvisioner
from efs_provisioner.provisioner.gid_allocators import GidAllocator
from efs_provisioner.provisioner.paths import PathTranslator
from efs_provisioner.provisioner.reclaimer import FileSystemReclaimer

DNS_NAME = "fs-47a2c22e.efs.us-west-2.amazonaws.com"


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external services")
    config.addinivalue_line("markers", "integration: API and CLI tests through their entry points")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def mock_subprocess():
    """Mock subprocess.run for testing."""
    with patch("subprocess.run") as mock:
        mock.return_value = Mock(returncode=0, stdout="", stderr="")
        yield mock


@pytest.fixture
def mount_point(temp_dir):
    """Directory standing in for the EFS mount."""
    path = temp_dir / "efs"
    path.mkdir()
    return path


@pytest.fixture
def translator(mount_point):
    return PathTranslator(DNS_NAME, str(mount_point), f"{DNS_NAME}:/")


@pytest.fixture
def provisioner(translator, mock_subprocess):
    """Provisioner over a temporary mount with chgrp mocked out."""
    allocator = GidAllocator(FileSystemReclaimer(translator.mount_point))
    return EFSProvisioner(
        translator=translator,
        allocator=allocator,
        provisioner_name="example.com/aws-efs",
    )


@pytest.fixture
def mock_provisioner_config(mount_point):
    """Create a mock oslo.config-like configuration group for the provisioner."""
    config = Mock()

    config.provisioner_name = "example.com/aws-efs"
    config.file_system_id = "fs-47a2c22e"
    config.aws_region = "us-west-2"
    config.dns_name = None

    config.mount_point = str(mount_point)
    config.mount_source = f"{DNS_NAME}:/"
    config.mounts_file = "/proc/mounts"

    config.check_file_system = False
    config.reclaim_storage_classes = []

    config.api_host = "127.0.0.1"
    config.api_port = 8080

    return config
