"""Threading utilities for sizing the status worker pool."""

import os
import sys
from typing import Dict, Any, Optional

# Each worker mostly waits on a git subprocess; more than this only adds contention
MAX_WORKERS = 16


def is_free_threading_enabled() -> bool:
    """Detect if Python is running with free-threading enabled.

    Returns:
        True if running on Python 3.13+ with the GIL disabled
    """
    is_gil_enabled = getattr(sys, "_is_gil_enabled", None)
    return is_gil_enabled is not None and not is_gil_enabled()


def get_optimal_worker_count(user_specified: Optional[int] = None, task_count: Optional[int] = None) -> int:
    """Calculate the worker count for per-worktree status queries.

    Args:
        user_specified: User-specified worker count, if provided
        task_count: Number of worktrees to process; no point in more workers

    Returns:
        Number of workers, at least 1
    """
    if user_specified is not None and user_specified > 0:
        workers = user_specified
    else:
        cpu_count = os.cpu_count() or 1
        # I/O-bound work: CPU_count + 4, bounded
        workers = min(MAX_WORKERS, cpu_count + 4)

    if task_count is not None:
        workers = min(workers, max(1, task_count))
    return workers


def get_threading_info() -> Dict[str, Any]:
    """Get information about the Python threading configuration."""
    return {
        "free_threading": is_free_threading_enabled(),
        "cpu_count": os.cpu_count() or 1,
        "optimal_workers": get_optimal_worker_count(),
        "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
    }
