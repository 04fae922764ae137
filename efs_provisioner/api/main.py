"""
FastAPI main application.
"""

import logging
import uuid
from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from efs_provisioner.api.models import (
    GidTableResponse,
    HealthResponse,
    ProvisionRequest,
    SuccessResponse,
    VolumeDelete,
    VolumeResponse,
)
from efs_provisioner.api.services import volume_service
from efs_provisioner.provisioner.driver import EFSProvisioner
from efs_provisioner.provisioner.exceptions import (
    GIDInconsistency,
    GidRangeFull,
    InvalidParameter,
    MetadataUnreadable,
    MissingMetadata,
    OwnershipMismatch,
    PathMismatch,
    UnexpectedFileType,
    UnsupportedRequest,
)

app = FastAPI(
    title="EFS Provisioner API",
    description="REST API for provisioning NFS volumes on a shared EFS file system",
    version="0.1.0",
)
logger = logging.getLogger(__name__)

# Client errors: the request itself is wrong
BAD_REQUEST_ERRORS = (InvalidParameter, UnsupportedRequest, PathMismatch)

# The request is valid but collides with what is on the file system
CONFLICT_ERRORS = (
    UnexpectedFileType,
    MissingMetadata,
    MetadataUnreadable,
    OwnershipMismatch,
    GIDInconsistency,
    GidRangeFull,
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler."""
    request_id = str(uuid.uuid4())
    logger.exception("Unhandled error (request_id=%s, path=%s)", request_id, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "request_id": request_id,
            "status": "error",
            "error": {"code": "INTERNAL_ERROR", "message": "Internal server error", "details": {}},
        },
    )


def get_provisioner(request: Request) -> EFSProvisioner:
    provisioner = getattr(request.app.state, "provisioner", None)
    if provisioner is None:
        raise HTTPException(status_code=503, detail="Provisioner is not initialized")
    return provisioner


# Service endpoints


@app.get("/v1/health", response_model=HealthResponse)
def health(provisioner: EFSProvisioner = Depends(get_provisioner)) -> Dict[str, Any]:
    """
    Report the mount and server this provisioner serves.
    """
    request_id = str(uuid.uuid4())
    result = volume_service.get_health(provisioner)
    return {"request_id": request_id, "status": "ok", "data": {"health": result}}


# Volume endpoints


@app.post("/v1/volumes", response_model=VolumeResponse, status_code=201)
def create_volume(
    volume: ProvisionRequest, provisioner: EFSProvisioner = Depends(get_provisioner)
) -> Dict[str, Any]:
    """
    Provision a volume for a claim.

    In reuse mode (``reuseVolumes: "true"`` in parameters) provisioning the
    same claim again returns the same directory.
    """
    request_id = str(uuid.uuid4())
    try:
        result = volume_service.create_volume(provisioner, volume)
        return {"request_id": request_id, "status": "ok", "data": {"volume": result}}
    except BAD_REQUEST_ERRORS as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CONFLICT_ERRORS as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.delete("/v1/volumes/{name}", response_model=SuccessResponse)
def delete_volume(
    name: str, volume: VolumeDelete, provisioner: EFSProvisioner = Depends(get_provisioner)
) -> Dict[str, Any]:
    """
    Delete a volume and release its GID.
    """
    request_id = str(uuid.uuid4())
    try:
        volume_service.delete_volume(provisioner, name, volume)
        return {"request_id": request_id, "status": "ok", "data": {"deleted": True}}
    except BAD_REQUEST_ERRORS as e:
        raise HTTPException(status_code=400, detail=str(e))


# GID endpoints


@app.get("/v1/storage-classes/{class_name}/gids", response_model=GidTableResponse)
def list_gids(class_name: str, provisioner: EFSProvisioner = Depends(get_provisioner)) -> Dict[str, Any]:
    """
    Show the GID table of a storage class.
    """
    request_id = str(uuid.uuid4())
    result = volume_service.get_gid_table(provisioner, class_name)
    if result is None:
        raise HTTPException(status_code=404, detail=f"No GID table for storage class {class_name}")
    return {"request_id": request_id, "status": "ok", "data": {"gids": result}}
