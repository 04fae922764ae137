"""
EFS Provisioner - per-claim NFS directory volumes on a shared EFS mount.

This package provides the volume directory lifecycle engine, an HTTP API that
exposes it to an orchestrator, and a CLI for operating both.
"""

__version__ = "0.1.0"
__all__ = ["api", "cli", "provisioner"]
