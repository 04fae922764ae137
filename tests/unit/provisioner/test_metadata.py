"""
Unit tests for the volume metadata sidecar.
"""

import json
import os
import stat

import pytest

from efs_provisioner.provisioner.exceptions import MetadataUnreadable
from efs_provisioner.provisioner.metadata import (
    METADATA_FILE,
    VolumeMetadata,
    get_metadata_path,
    read_volume_metadata,
    write_volume_metadata,
)


class TestWriteVolumeMetadata:
    """Tests for write_volume_metadata."""

    @pytest.mark.unit
    def test_file_format(self, temp_dir):
        """Test the sidecar is indented JSON with camelCase keys."""
        md = VolumeMetadata(gid="2000", pvc_name="claim-a", pvc_namespace="ns1", storage_class_name="aws-efs")
        write_volume_metadata(str(temp_dir), md)

        path = temp_dir / METADATA_FILE
        content = path.read_text()
        assert json.loads(content) == {
            "gid": "2000",
            "pvcName": "claim-a",
            "pvcNamespace": "ns1",
            "storageClassName": "aws-efs",
        }
        assert '\n  "gid": "2000"' in content

    @pytest.mark.unit
    def test_file_mode(self, temp_dir):
        """Test the sidecar is readable and writable by its owner only."""
        write_volume_metadata(str(temp_dir), VolumeMetadata(pvc_name="claim-a"))
        mode = stat.S_IMODE(os.stat(get_metadata_path(str(temp_dir))).st_mode)
        assert mode == 0o600

    @pytest.mark.unit
    def test_no_temporary_files_left(self, temp_dir):
        """Test only the sidecar remains after writing twice."""
        write_volume_metadata(str(temp_dir), VolumeMetadata(pvc_name="claim-a"))
        write_volume_metadata(str(temp_dir), VolumeMetadata(pvc_name="claim-b"))
        assert os.listdir(temp_dir) == [METADATA_FILE]
        assert read_volume_metadata(str(temp_dir)).pvc_name == "claim-b"

    @pytest.mark.unit
    def test_missing_directory(self, temp_dir):
        """Test writing into a missing directory raises OSError."""
        with pytest.raises(OSError):
            write_volume_metadata(str(temp_dir / "missing"), VolumeMetadata())


class TestReadVolumeMetadata:
    """Tests for read_volume_metadata."""

    @pytest.mark.unit
    def test_round_trip(self, temp_dir):
        """Test written metadata reads back equal."""
        md = VolumeMetadata(gid="", pvc_name="claim-a", pvc_namespace="ns1", storage_class_name="aws-efs")
        write_volume_metadata(str(temp_dir), md)
        assert read_volume_metadata(str(temp_dir)) == md

    @pytest.mark.unit
    def test_absent(self, temp_dir):
        """Test a directory without a sidecar has no metadata."""
        assert read_volume_metadata(str(temp_dir)) is None

    @pytest.mark.unit
    def test_invalid_json(self, temp_dir):
        """Test a corrupt sidecar is reported as unreadable."""
        (temp_dir / METADATA_FILE).write_text("{not json")
        with pytest.raises(MetadataUnreadable):
            read_volume_metadata(str(temp_dir))

    @pytest.mark.unit
    def test_not_an_object(self, temp_dir):
        """Test a JSON value that is not an object is reported as unreadable."""
        (temp_dir / METADATA_FILE).write_text('["2000"]')
        with pytest.raises(MetadataUnreadable, match="JSON object"):
            read_volume_metadata(str(temp_dir))

    @pytest.mark.unit
    def test_undecodable(self, temp_dir):
        """Test a sidecar that is not valid UTF-8 is reported as unreadable."""
        (temp_dir / METADATA_FILE).write_bytes(b'{"gid": "\xff\xfe"}')
        with pytest.raises(MetadataUnreadable):
            read_volume_metadata(str(temp_dir))

    @pytest.mark.unit
    @pytest.mark.parametrize("content", ['{"gid": 0}', '{"gid": 2000}', '{"pvcName": null}'])
    def test_non_string_values(self, temp_dir, content):
        (temp_dir / METADATA_FILE).write_text(content)
        with pytest.raises(MetadataUnreadable, match="must be a string"):
            read_volume_metadata(str(temp_dir))

    @pytest.mark.unit
    def test_missing_keys_read_as_empty(self, temp_dir):
        """Test keys absent from the file read as empty strings."""
        (temp_dir / METADATA_FILE).write_text('{"pvcName": "claim-a"}')
        md = read_volume_metadata(str(temp_dir))
        assert md.pvc_name == "claim-a"
        assert md.gid == ""
        assert md.storage_class_name == ""


class TestGidAsInt:
    """Tests for VolumeMetadata.gid_as_int."""

    @pytest.mark.unit
    def test_valid(self):
        assert VolumeMetadata(gid="2000").gid_as_int() == 2000

    @pytest.mark.unit
    @pytest.mark.parametrize("gid", ["abc", "", "-1", "+2000", "2_000", " 2000", "2000\n", "4294967296"])
    def test_invalid(self, gid):
        with pytest.raises(ValueError):
            VolumeMetadata(gid=gid).gid_as_int()
