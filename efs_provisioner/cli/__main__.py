#!/usr/bin/env python3
"""
Entry point for efs-provisioner CLI tool.
"""

import sys

from efs_provisioner.cli.cli import main

if __name__ == "__main__":
    sys.exit(main())
