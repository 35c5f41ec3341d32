"""
git-workty - Git worktrees as daily-driver workspaces
"""

import os

# Surface a missing git executable as GitUnavailableError instead of failing at import
os.environ.setdefault("GIT_PYTHON_REFRESH", "quiet")

from .__version__ import __version__  # noqa: E402
from .core import Workty  # noqa: E402
from .cli.main import main  # noqa: E402

__all__ = ["Workty", "main", "__version__"]
