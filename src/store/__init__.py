"""Snapshot storage layer.

This package persists append-only snapshots of cluster resources and answers
as-of queries over their recorded history.
"""
