"""
Unit tests for startup GID reclaim.
"""

import os
from unittest.mock import patch

import pytest

from efs_provisioner.provisioner.gid_allocators import MinMaxAllocator
from efs_provisioner.provisioner.metadata import METADATA_FILE, VolumeMetadata, write_volume_metadata
from efs_provisioner.provisioner.reclaimer import FileSystemReclaimer


def make_dir(base, name, gid="", pvc_name="claim", namespace="ns1", class_name="aws-efs"):
    path = base / name
    path.mkdir()
    write_volume_metadata(
        str(path),
        VolumeMetadata(gid=gid, pvc_name=pvc_name, pvc_namespace=namespace, storage_class_name=class_name),
    )
    return path


@pytest.fixture
def table():
    return MinMaxAllocator(0, 2147483647)


class TestFileSystemReclaimer:
    """Tests for FileSystemReclaimer.reclaim."""

    @pytest.mark.unit
    def test_reclaims_matching_class(self, temp_dir, table):
        make_dir(temp_dir, "a-ns1", gid="2000")
        make_dir(temp_dir, "b-ns1", gid="2005")
        make_dir(temp_dir, "c-ns1", gid="3000", class_name="other")

        count = FileSystemReclaimer(str(temp_dir)).reclaim("aws-efs", table)

        assert count == 2
        assert table.snapshot()["allocated"] == [2000, 2005]

    @pytest.mark.unit
    def test_skips_entries_without_gid(self, temp_dir, table):
        """Test files, plain directories and GID-less metadata are skipped."""
        (temp_dir / "plain").mkdir()
        (temp_dir / "file").write_text("x")
        make_dir(temp_dir, "no-gid-ns1", gid="")

        assert FileSystemReclaimer(str(temp_dir)).reclaim("aws-efs", table) == 0
        assert table.snapshot()["allocated"] == []

    @pytest.mark.unit
    def test_symlinks_not_followed(self, temp_dir, table):
        target = make_dir(temp_dir, "real-ns1", gid="2000")
        base = temp_dir / "base"
        base.mkdir()
        os.symlink(str(target), str(base / "link"))

        assert FileSystemReclaimer(str(base)).reclaim("aws-efs", table) == 0

    @pytest.mark.unit
    def test_duplicate_gid_logged_and_skipped(self, temp_dir, table):
        """Test a GID recorded twice is reclaimed once and the repeat logged."""
        make_dir(temp_dir, "a-ns1", gid="2000", pvc_name="a")
        make_dir(temp_dir, "b-ns1", gid="2000", pvc_name="b")

        with patch("efs_provisioner.provisioner.reclaimer.LOG") as mock_log:
            count = FileSystemReclaimer(str(temp_dir)).reclaim("aws-efs", table)

        assert count == 1
        assert table.has(2000)
        mock_log.info.assert_any_call(
            "GID %d found in %s was already allocated for storageclass %s",
            2000, str(temp_dir / "b-ns1"), "aws-efs",
        )

    @pytest.mark.unit
    def test_bad_entries_do_not_abort_scan(self, temp_dir, table):
        """Test corrupt metadata and invalid GIDs are skipped."""
        corrupt = temp_dir / "a-ns1"
        corrupt.mkdir()
        (corrupt / METADATA_FILE).write_text("{broken")
        make_dir(temp_dir, "b-ns1", gid="not-a-number")
        make_dir(temp_dir, "c-ns1", gid="2010")

        with patch("efs_provisioner.provisioner.reclaimer.LOG") as mock_log:
            count = FileSystemReclaimer(str(temp_dir)).reclaim("aws-efs", table)

        assert count == 1
        assert table.has(2010)
        mock_log.warning.assert_called_once()
        mock_log.error.assert_called_once()

    @pytest.mark.unit
    def test_undecodable_metadata_does_not_abort_scan(self, temp_dir, table):
        """Test a sidecar that is not valid UTF-8 is skipped like any corrupt file."""
        corrupt = temp_dir / "a-ns1"
        corrupt.mkdir()
        (corrupt / METADATA_FILE).write_bytes(b'{"gid": "\xff\xfe"}')
        make_dir(temp_dir, "b-ns1", gid="2010")

        with patch("efs_provisioner.provisioner.reclaimer.LOG") as mock_log:
            count = FileSystemReclaimer(str(temp_dir)).reclaim("aws-efs", table)

        assert count == 1
        assert table.has(2010)
        mock_log.warning.assert_called_once()

    @pytest.mark.unit
    def test_out_of_range_gid_logged(self, temp_dir):
        """Test a GID outside the table range is logged and skipped."""
        make_dir(temp_dir, "a-ns1", gid="10")
        narrow = MinMaxAllocator(2000, 3000)

        with patch("efs_provisioner.provisioner.reclaimer.LOG") as mock_log:
            count = FileSystemReclaimer(str(temp_dir)).reclaim("aws-efs", narrow)

        assert count == 0
        mock_log.error.assert_called_once()

    @pytest.mark.unit
    def test_missing_base_path(self, temp_dir, table):
        with pytest.raises(OSError):
            FileSystemReclaimer(str(temp_dir / "missing")).reclaim("aws-efs", table)
