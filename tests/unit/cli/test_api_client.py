"""
Unit tests for the provisioner REST client.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from efs_provisioner.cli.lib.api_client import ProvisionerClient
from efs_provisioner.provisioner.exceptions import APIConnectionError, APIError, APITimeout


def make_response(status_code, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def client():
    return ProvisionerClient("http://127.0.0.1:8080/", timeout=5, retry_count=1)


class TestProvisionerClient:
    """Tests for ProvisionerClient."""

    @pytest.mark.unit
    def test_only_get_is_retried(self, client):
        adapter = client.session.get_adapter("http://127.0.0.1:8080")
        assert set(adapter.max_retries.allowed_methods) == {"GET"}

    @pytest.mark.unit
    def test_provision(self, client):
        volume = {"name": "pvc-1", "nfs": {"server": "fs.example.com", "path": "/claim-a-ns1"}}
        with patch.object(client.session, "request") as mock_request:
            mock_request.return_value = make_response(201, {"status": "ok", "data": {"volume": volume}})
            result = client.provision("claim-a", "ns1", "aws-efs", parameters={"reuseVolumes": "true"})

        assert result == volume
        kwargs = mock_request.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == "http://127.0.0.1:8080/v1/volumes"
        assert kwargs["timeout"] == 5
        assert kwargs["json"] == {
            "pvc_name": "claim-a",
            "pvc_namespace": "ns1",
            "storage_class_name": "aws-efs",
            "parameters": {"reuseVolumes": "true"},
        }

    @pytest.mark.unit
    def test_delete(self, client):
        with patch.object(client.session, "request") as mock_request:
            mock_request.return_value = make_response(200, {"status": "ok", "data": {"deleted": True}})
            client.delete("pvc-1", "fs.example.com", "/claim-a-pvc-1", "aws-efs", {"pv.beta.kubernetes.io/gid": "2000"})

        kwargs = mock_request.call_args.kwargs
        assert kwargs["method"] == "DELETE"
        assert kwargs["url"] == "http://127.0.0.1:8080/v1/volumes/pvc-1"
        assert kwargs["json"]["annotations"] == {"pv.beta.kubernetes.io/gid": "2000"}

    @pytest.mark.unit
    def test_http_error_detail(self, client):
        with patch.object(client.session, "request") as mock_request:
            mock_request.return_value = make_response(409, {"detail": "/claim-a-ns1 already exists"})
            with pytest.raises(APIError, match="HTTP 409: /claim-a-ns1 already exists") as exc_info:
                client.provision("claim-a", "ns1", "aws-efs")
        assert exc_info.value.status_code == 409

    @pytest.mark.unit
    def test_http_error_envelope(self, client):
        with patch.object(client.session, "request") as mock_request:
            mock_request.return_value = make_response(
                500, {"status": "error", "error": {"message": "Internal server error"}}
            )
            with pytest.raises(APIError, match="Internal server error"):
                client.health()

    @pytest.mark.unit
    def test_http_error_not_json(self, client):
        with patch.object(client.session, "request") as mock_request:
            mock_request.return_value = make_response(502, text="Bad Gateway")
            with pytest.raises(APIError, match="Bad Gateway"):
                client.list_gids("aws-efs")

    @pytest.mark.unit
    def test_timeout(self, client):
        with patch.object(client.session, "request", side_effect=requests.exceptions.Timeout()):
            with pytest.raises(APITimeout, match="5 seconds"):
                client.health()

    @pytest.mark.unit
    def test_connection_error(self, client):
        with patch.object(client.session, "request", side_effect=requests.exceptions.ConnectionError("refused")):
            with pytest.raises(APIConnectionError, match="refused"):
                client.health()

    @pytest.mark.unit
    def test_list_gids(self, client):
        gids = {"storage_class_name": "aws-efs", "gid_min": 2000, "gid_max": 2010, "free": 10, "allocated": [2000]}
        with patch.object(client.session, "request") as mock_request:
            mock_request.return_value = make_response(200, {"status": "ok", "data": {"gids": gids}})
            assert client.list_gids("aws-efs") == gids
        assert mock_request.call_args.kwargs["url"] == "http://127.0.0.1:8080/v1/storage-classes/aws-efs/gids"
