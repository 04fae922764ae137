"""
Pydantic models for API requests and responses.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from efs_provisioner.cli.lib.validators import validate_name


# Volume Models


class ProvisionRequest(BaseModel):
    """Request model for provisioning a volume for a claim."""

    pvc_name: str = Field(..., description="Claim name", min_length=1, max_length=253)
    pvc_namespace: str = Field(..., description="Claim namespace", min_length=1, max_length=253)
    storage_class_name: str = Field(..., description="Storage class of the claim", min_length=1)
    pv_name: Optional[str] = Field(None, description="Volume name (generated if omitted)")
    parameters: Dict[str, str] = Field(
        default_factory=dict,
        description="Storage class parameters (reuseVolumes, volumePrefix, gidAllocate, gidMin, gidMax)",
    )
    capacity: Optional[str] = Field(None, description="Requested capacity (e.g., 5Gi)")
    access_modes: List[str] = Field(default_factory=lambda: ["ReadWriteMany"])
    mount_options: Optional[List[str]] = Field(None, description="NFS mount options (default: vers=4.1)")
    reclaim_policy: str = Field("Delete", description="Reclaim policy of the published volume")
    selector: Optional[Dict[str, Any]] = Field(None, description="Claim label selector (not supported)")

    @field_validator("pvc_name", "pvc_namespace", "pv_name")
    def validate_names(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        validate_name(v)
        return v


class VolumeDelete(BaseModel):
    """Request model for deleting a volume."""

    server: str = Field(..., description="NFS server recorded on the volume")
    path: str = Field(..., description="NFS path recorded on the volume")
    storage_class_name: str = Field(..., description="Storage class of the volume")
    annotations: Dict[str, str] = Field(default_factory=dict, description="Volume annotations")


class VolumeResponse(BaseModel):
    """Response model for volume operations."""

    request_id: str
    status: str
    data: dict


# GID Models


class GidTableResponse(BaseModel):
    """Response model for GID table queries."""

    request_id: str
    status: str
    data: dict


# Service Models


class HealthResponse(BaseModel):
    """Response model for health checks."""

    request_id: str
    status: str
    data: dict


class SuccessResponse(BaseModel):
    """Generic success response."""

    request_id: str
    status: str
    data: dict

