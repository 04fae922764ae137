"""
Filesystem ownership helpers.
"""

import subprocess

from efs_provisioner.provisioner.exceptions import GroupChangeFailed


def change_group(path: str, gid: int) -> None:
    """
    Change the group owner of a path with chgrp.

    Args:
        path: File or directory path
        gid: Numeric group id

    Raises:
        GroupChangeFailed: If chgrp fails
    """
    try:
        result = subprocess.run(
            ["chgrp", str(gid), path],
            capture_output=True,
            text=True,
            check=False
        )
    except OSError as e:
        raise GroupChangeFailed(details=str(e), output="")

    if result.returncode != 0:
        output = (result.stdout or "") + (result.stderr or "")
        raise GroupChangeFailed(
            details=f"exit status {result.returncode}",
            output=output.strip(),
        )
