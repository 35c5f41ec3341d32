"""Data models for git-workty."""
