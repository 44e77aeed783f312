"""Workspace-session synchronization core."""
