"""Build utilities for vendorbuild.

This module provides small helpers shared by the fetch and build stages.
"""

import shutil
from pathlib import Path
from typing import Optional

import psutil


def remove_tree(path: Path) -> None:
    """Remove a directory tree, ignoring only its absence.

    Args:
        path: Directory to remove

    Raises:
        OSError: For any failure other than the path not existing
    """
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass


def detect_jobs(override: Optional[int] = None) -> int:
    """Number of parallel compile jobs.

    Args:
        override: Explicit job count; used as-is when given

    Returns:
        The override, else the logical CPU count (at least 1)
    """
    if override is not None:
        return max(1, int(override))
    return psutil.cpu_count(logical=True) or 1
