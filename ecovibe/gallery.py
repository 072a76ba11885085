"""
Search, filter and sort helpers for the gallery and the admin project list.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ecovibe.db import OptionRecord, ProjectRecord

ALL_CATEGORIES = "all"

SORT_OPTIONS = {
    "updatedAt": "Last Updated",
    "createdAt": "Date Created",
    "title": "Title",
    "category": "Category",
    "displayOrder": "Manual Order",
}


def search_projects(projects: Iterable[ProjectRecord], term: Optional[str]) -> list[ProjectRecord]:
    term = (term or "").strip().lower()
    if not term:
        return list(projects)
    return [
        p
        for p in projects
        if term in p.title.lower()
        or term in p.description.lower()
        or any(term in tag.lower() for tag in p.tags)
    ]


def filter_by_category(
    projects: Iterable[ProjectRecord], category: Optional[str]
) -> list[ProjectRecord]:
    if not category or category == ALL_CATEGORIES:
        return list(projects)
    return [p for p in projects if p.category == category]


def sort_projects(projects: Iterable[ProjectRecord], sort_by: Optional[str]) -> list[ProjectRecord]:
    if sort_by == "title":
        return sorted(projects, key=lambda p: p.title.lower())
    if sort_by == "category":
        return sorted(projects, key=lambda p: p.category.lower())
    if sort_by == "createdAt":
        return sorted(projects, key=lambda p: p.created_at, reverse=True)
    if sort_by == "displayOrder":
        return sorted(projects, key=lambda p: p.display_order, reverse=True)
    return sorted(projects, key=lambda p: p.updated_at, reverse=True)


def admin_view(
    projects: Iterable[ProjectRecord],
    term: Optional[str] = None,
    category: Optional[str] = None,
    sort_by: Optional[str] = "updatedAt",
) -> list[ProjectRecord]:
    matches = filter_by_category(search_projects(projects, term), category)
    return sort_projects(matches, sort_by)


def gallery_categories(projects: Iterable[ProjectRecord]) -> list[str]:
    """Filter buttons: "all" then each category in order of first appearance."""
    categories = [ALL_CATEGORIES]
    for project in projects:
        if project.category not in categories:
            categories.append(project.category)
    return categories


def type_label(project_types: Iterable[OptionRecord], value: str) -> str:
    return next((t.label for t in project_types if t.value == value), value)
