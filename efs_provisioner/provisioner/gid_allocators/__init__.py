"""GID allocation for the EFS provisioner.

- MinMaxAllocator: lock-guarded integer range table
- GidAllocator: one table per storage class, filled by a GidReclaimer
"""

from .allocator import GidAllocator, parse_class_parameters
from .base import GidReclaimer
from .minmax import MinMaxAllocator

__all__ = ["GidAllocator", "GidReclaimer", "MinMaxAllocator", "parse_class_parameters"]
