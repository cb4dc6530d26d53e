"""
Release Tracker API (Lambda + Asana)

Where: AWS Lambda via Function URL (dashboard frontend calls it directly).
What:  List release projects and upcoming tasks from an Asana workspace.
Why:   Small read-only aggregation layer for a music-release dashboard.
"""

__all__ = [
    "asana",
    "aws_secrets",
    "config",
    "handler",
    "releases",
    "tasks",
]
