"""
Release project classification and ordering.

A "release" project is any non-archived project whose name contains one of
RELEASE_KEYWORDS, case-insensitively, as a plain substring. Substring
matching means names like "EPIC" or "Prerelease notes" also qualify.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from .asana import PROJECT_OPT_FIELDS, AsanaClient
from .config import Settings

logger = logging.getLogger(__name__)

RELEASE_KEYWORDS: tuple[str, ...] = (
    "release",
    "ep",
    "single",
    "album",
    "[ep",
    "[single",
    "[album",
    "[release",
    "EP Release",
    "Single Release",
    "Album Release",
)

_LOWER_KEYWORDS = tuple(k.lower() for k in RELEASE_KEYWORDS)


def parse_due(value: Any) -> date | None:
    """Parse an Asana YYYY-MM-DD date; None when unset or malformed."""
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def is_release_project(project: dict[str, Any]) -> bool:
    if project.get("archived"):
        return False
    name = (project.get("name") or "").lower()
    return any(k in name for k in _LOWER_KEYWORDS)


def filter_release_projects(projects: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [p for p in projects if is_release_project(p)]


def sort_projects_by_due_date(projects: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Earliest due date first; projects without one go last, in input order."""

    def _key(p: dict[str, Any]) -> tuple[bool, date]:
        due = parse_due(p.get("due_date"))
        return (due is None, due or date.max)

    return sorted(projects, key=_key)


def fetch_release_projects(
    settings: Settings, client: AsanaClient
) -> tuple[list[dict[str, Any]], int]:
    """Return (release projects in upstream order, total project count)."""
    projects = client.list_projects(settings.workspace_id or "", PROJECT_OPT_FIELDS)
    return filter_release_projects(projects), len(projects)


def get_releases(settings: Settings, client: AsanaClient) -> tuple[list[dict[str, Any]], int]:
    releases, total = fetch_release_projects(settings, client)
    releases = sort_projects_by_due_date(releases)
    logger.info(
        "Found %d release projects out of %d total projects", len(releases), total
    )
    return releases, total
