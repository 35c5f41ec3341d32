"""Services that make up the worktree engine."""
