"""REST API client for the EFS provisioner."""

from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from oslo_log import log as logging

from efs_provisioner.provisioner.exceptions import APIConnectionError, APIError, APITimeout

LOG = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://127.0.0.1:8080"


class ProvisionerClient:
    """REST API client for provisioning and deleting volumes.

    Only GET requests are retried; provision and delete are never sent twice.
    """

    def __init__(self, endpoint: str = DEFAULT_ENDPOINT, timeout: int = 30, retry_count: int = 3):
        """Initialize the provisioner API client.

        Args:
            endpoint: Provisioner API URL (e.g., http://127.0.0.1:8080)
            timeout: HTTP request timeout in seconds
            retry_count: Number of retries for failed GET requests
        """
        self.base_url = endpoint.rstrip("/")
        self.timeout = timeout
        self.retry_count = retry_count

        self.session = requests.Session()

        retry_strategy = Retry(
            total=retry_count,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def _make_request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Make HTTP request to the provisioner API.

        Returns:
            Response data dictionary (empty dict for 204 No Content)

        Raises:
            APIConnectionError: Connection failed
            APITimeout: Request timed out
            APIError: API returned an error
        """
        url = self.base_url + path

        LOG.debug("Making %s request to %s with json_data=%s", method, path, json_data)

        try:
            response = self.session.request(
                method=method,
                url=url,
                json=json_data,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            LOG.error("Request timeout after %ss: %s", self.timeout, path)
            raise APITimeout(timeout=self.timeout)
        except requests.exceptions.ConnectionError as e:
            LOG.error("Connection error: %s, %s", path, e)
            raise APIConnectionError(details=str(e))
        except requests.exceptions.RequestException as e:
            LOG.error("Request exception: %s, %s", path, e)
            raise APIError(details=str(e))

        LOG.debug("Response status: %s", response.status_code)

        if response.status_code >= 400:
            try:
                error_data = response.json()
                # FastAPI HTTPException format first ({"detail": "..."})
                error_msg = error_data.get("detail")
                if not error_msg:
                    error_msg = error_data.get("error", {}).get("message", response.text)
            except ValueError:
                error_msg = response.text
            raise APIError(
                details=f"HTTP {response.status_code}: {error_msg}",
                status_code=response.status_code,
            )

        if response.status_code == 204:
            return {}

        return response.json()

    # Volume operations

    def provision(
        self,
        pvc_name: str,
        pvc_namespace: str,
        storage_class_name: str,
        parameters: Optional[Dict[str, str]] = None,
        pv_name: Optional[str] = None,
        mount_options: Optional[List[str]] = None,
        capacity: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Provision a volume for a claim.

        Returns:
            Published volume descriptor
        """
        data: Dict[str, Any] = {
            "pvc_name": pvc_name,
            "pvc_namespace": pvc_namespace,
            "storage_class_name": storage_class_name,
            "parameters": parameters or {},
        }
        if pv_name:
            data["pv_name"] = pv_name
        if mount_options:
            data["mount_options"] = mount_options
        if capacity:
            data["capacity"] = capacity

        response = self._make_request("POST", "/v1/volumes", json_data=data)
        volume = response.get("data", {}).get("volume", {})
        LOG.info("Provisioned volume %s for claim %s/%s", volume.get("name"), pvc_namespace, pvc_name)
        return volume

    def delete(
        self,
        name: str,
        server: str,
        path: str,
        storage_class_name: str,
        annotations: Optional[Dict[str, str]] = None,
    ) -> None:
        """Delete a volume."""
        data = {
            "server": server,
            "path": path,
            "storage_class_name": storage_class_name,
            "annotations": annotations or {},
        }
        self._make_request("DELETE", f"/v1/volumes/{name}", json_data=data)
        LOG.info("Deleted volume %s", name)

    # GID operations

    def list_gids(self, storage_class_name: str) -> Dict[str, Any]:
        response = self._make_request("GET", f"/v1/storage-classes/{storage_class_name}/gids")
        return response.get("data", {}).get("gids", {})

    def health(self) -> Dict[str, Any]:
        response = self._make_request("GET", "/v1/health")
        return response.get("data", {}).get("health", {})
