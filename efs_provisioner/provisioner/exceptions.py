"""EFS Provisioner exceptions."""


class ProvisionerException(Exception):
    """Base exception for provisioner errors."""

    message = "An unknown exception occurred."

    def __init__(self, message=None, **kwargs):
        """Initialize exception with optional custom message."""
        self.kwargs = kwargs
        if message:
            self.message = message
        super(ProvisionerException, self).__init__(self.message % kwargs)


class ConfigurationMissing(ProvisionerException):
    """A required startup option is not set."""

    message = "Required option %(option)s is not set. Please set it."


class MountNotFound(ProvisionerException):
    """No mount entry exists for the configured file system."""

    message = "No mount entry found for %(server)s among entries %(entries)s"


class BackendUnreachable(ProvisionerException):
    """The EFS management API could not confirm the file system.

    Only ever logged; the provisioner keeps running without the check.
    """

    message = "Couldn't confirm that the EFS file system %(file_system_id)s exists: %(details)s"


class InvalidParameter(ProvisionerException):
    """A request parameter or annotation has an unusable value."""

    message = "Invalid value %(value)s for parameter %(key)s: %(reason)s"


class UnsupportedRequest(ProvisionerException):
    """The request asks for something this provisioner does not do."""

    message = "Unsupported request: %(details)s"


class PathMismatch(ProvisionerException):
    """A volume path does not belong to the file system mounted here."""

    message = "%(details)s"


class UnexpectedFileType(ProvisionerException):
    """The target path exists but is not a directory."""

    message = "%(path)s already exists but is not a directory"


class MissingMetadata(ProvisionerException):
    """A reuse-mode directory exists without ownership metadata.

    Unmanaged directories are never adopted.
    """

    message = "%(path)s already exists but has no volume metadata"


class MetadataUnreadable(ProvisionerException):
    """The metadata file exists but cannot be parsed."""

    message = "Failed to parse volume metadata %(path)s: %(reason)s"


class OwnershipMismatch(ProvisionerException):
    """A reuse-mode directory was created for a different claim or class."""

    message = (
        "%(path)s already exists but was created for %(recorded)s "
        "instead of the currently requested %(requested)s"
    )


class GIDInconsistency(ProvisionerException):
    """The metadata GID disagrees with the directory's group owner."""

    message = (
        "%(path)s already exists, but its gid is %(actual)s while the "
        "volume metadata says the gid should be %(recorded)s"
    )


class GroupChangeFailed(ProvisionerException):
    """chgrp exited with an error."""

    message = "chgrp failed with error: %(details)s, output: %(output)s"


class GidAllocationError(ProvisionerException):
    """Base class for GID table errors."""

    message = "GID allocation error: %(details)s"


class GidConflict(GidAllocationError):
    """The GID is already allocated in the table."""

    message = "GID %(gid)s is already allocated"


class GidOutOfRange(GidAllocationError):
    """The GID lies outside the table's range."""

    message = "GID %(gid)s is out of range %(gid_min)s-%(gid_max)s"


class GidRangeFull(GidAllocationError):
    """Every GID in the range is allocated.

    Non-retryable: the operator has to widen gidMin/gidMax or delete volumes.
    """

    message = "No free GIDs left in range %(gid_min)s-%(gid_max)s"


class GidInvalidRange(GidAllocationError):
    """The requested range is empty or outside the allowed bounds."""

    message = "Invalid GID range: %(details)s"


class APIError(ProvisionerException):
    """The provisioner API returned an error."""

    message = "API error occurred: %(details)s"

    @property
    def status_code(self):
        return self.kwargs.get("status_code")


class APIConnectionError(ProvisionerException):
    """API connection error."""

    message = "Failed to connect to provisioner API: %(details)s"


class APITimeout(ProvisionerException):
    """API timeout error."""

    message = "Provisioner API request timed out after %(timeout)s seconds"
