"""
In-memory catalog of projects, categories, project types and the founder.

The catalog is a read cache over the database: it is filled by `load()` and
kept current by write-through mutations. There is no conflict resolution;
the last write wins.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, Optional, TypeVar

from ecovibe.db import (
    CATEGORIES_TABLE,
    PROJECT_TYPES_TABLE,
    DbClient,
    FounderRecord,
    OptionRecord,
    ProjectRecord,
    now_ms,
    sort_key,
)
from ecovibe.errors import NotFoundError, StorageError, StoreBusyError
from ecovibe.storage import StorageClient, path_from_public_url

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRY_ATTEMPTS = 3
RETRY_BACKOFF_SECONDS = 1.0

IMAGE_TYPES = ("additional", "beforeImage2", "afterImage2")


def _image_urls(project: ProjectRecord) -> set[str]:
    return {
        project.before_image_1,
        project.after_image_1,
        project.before_image_2,
        project.after_image_2,
        *project.additional_images,
    } - {""}


def with_busy_retry(
    operation: Callable[[], T],
    *,
    attempts: int = RETRY_ATTEMPTS,
    backoff_seconds: float = RETRY_BACKOFF_SECONDS,
    label: str = "write",
) -> T:
    """Run `operation`, retrying with linear backoff while the store is busy."""
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except StoreBusyError:
            if attempt == attempts:
                raise
            logger.info("Retry %d/%d for %s...", attempt, attempts, label)
            time.sleep(backoff_seconds * attempt)
    raise AssertionError("unreachable")


class CatalogCache:
    """Cached site content with write-through mutations."""

    def __init__(self, db: DbClient, storage: StorageClient):
        self.db = db
        self.storage = storage
        self.projects: list[ProjectRecord] = []
        self.categories: list[OptionRecord] = []
        self.project_types: list[OptionRecord] = []
        self.founder: Optional[FounderRecord] = None
        self.loading = True
        self._lock = threading.Lock()

    def _set(self, attr: str, value) -> None:
        with self._lock:
            setattr(self, attr, value)

    def _load_one(self, attr: str, fetch: Callable[[], object]) -> None:
        try:
            value = fetch()
        except Exception:
            logger.exception("Error loading %s", attr)
            return
        self._set(attr, value)
        if isinstance(value, list):
            logger.info("Loaded %s: %d", attr, len(value))
        else:
            logger.info("Loaded %s: %s", attr, "present" if value else "none")

    def load(self) -> None:
        """Fetch every collection concurrently; failures are logged per collection."""
        self.loading = True
        logger.info("Loading initial data...")
        fetches = {
            "categories": lambda: self.db.list_options(CATEGORIES_TABLE),
            "project_types": lambda: self.db.list_options(PROJECT_TYPES_TABLE),
            "founder": self.db.get_founder,
            "projects": self.db.list_projects,
        }
        try:
            with ThreadPoolExecutor(max_workers=len(fetches)) as pool:
                for attr, fetch in fetches.items():
                    pool.submit(self._load_one, attr, fetch)
        finally:
            self.loading = False
            logger.info("Initial data loading completed")

    # Projects

    def get_project(self, project_id: str) -> Optional[ProjectRecord]:
        with self._lock:
            return next((p for p in self.projects if p.id == project_id), None)

    def hero_project(self) -> Optional[ProjectRecord]:
        with self._lock:
            hero = next((p for p in self.projects if p.is_hero), None)
            return hero or (self.projects[0] if self.projects else None)

    def featured_projects(self, count: int = 2) -> list[ProjectRecord]:
        """Hero project first, then the next projects in display order."""
        hero = self.hero_project()
        if hero is None:
            return []
        with self._lock:
            rest = [p for p in self.projects if p.id != hero.id]
        return [hero] + rest[: count - 1]

    def _replace_project(self, record: ProjectRecord) -> None:
        with self._lock:
            self.projects = [record if p.id == record.id else p for p in self.projects]

    def add_project(self, data: dict) -> ProjectRecord:
        record = self.db.insert_project(data)
        with self._lock:
            self.projects = [record] + self.projects
        logger.info("Project added: %s", record.id)
        return record

    def update_project(self, project_id: str, data: dict) -> ProjectRecord:
        record = with_busy_retry(
            lambda: self.db.update_project(project_id, data),
            label=f"project update {project_id}",
        )
        self._replace_project(record)
        logger.info("Project updated: %s", project_id)
        return record

    def delete_project(self, project_id: str) -> None:
        self.db.delete_project(project_id)
        with self._lock:
            self.projects = [p for p in self.projects if p.id != project_id]
        logger.info("Project deleted: %s", project_id)

    def delete_project_image(
        self, project_id: str, image_url: str, image_type: str
    ) -> ProjectRecord:
        """Detach one optional image from a project, then remove the stored file."""
        if image_type not in IMAGE_TYPES:
            raise ValueError(f"Unknown image type: {image_type}")
        project = self.get_project(project_id) or self.db.get_project(project_id)
        if project is None:
            raise NotFoundError("project", project_id)

        attached = {
            "additional": image_url in project.additional_images,
            "beforeImage2": bool(image_url) and image_url == project.before_image_2,
            "afterImage2": bool(image_url) and image_url == project.after_image_2,
        }
        if not attached[image_type]:
            raise NotFoundError(f"{image_type} image", image_url)

        if image_type == "additional":
            project = replace(
                project,
                additional_images=[u for u in project.additional_images if u != image_url],
            )
        elif image_type == "beforeImage2":
            project = replace(project, before_image_2="")
        else:
            project = replace(project, after_image_2="")

        record = self.db.update_project(
            project_id,
            {
                "additional_images": project.additional_images,
                "before_image_2": project.before_image_2,
                "after_image_2": project.after_image_2,
            },
        )

        if image_url in _image_urls(record):
            logger.info("Image still referenced by project %s, keeping file", project_id)
        else:
            try:
                self.storage.remove([path_from_public_url(image_url)])
            except StorageError:
                logger.warning(
                    "Could not delete image from storage: %s", image_url, exc_info=True
                )

        self._replace_project(record)
        logger.info("Image deleted from project %s", project_id)
        return record

    def reorder_projects(self, project_ids: list[str]) -> list[ProjectRecord]:
        """
        Persist a new manual order. The first id gets the largest key; each
        following id gets a key one lower, derived from the current time so
        later reorders always sort above older defaults.
        """
        known = {p.id for p in self.db.list_projects()}
        missing = [pid for pid in project_ids if pid not in known]
        if missing:
            raise NotFoundError("project", missing[0])

        base = now_ms()
        for index, project_id in enumerate(project_ids):
            order = base - index
            record = with_busy_retry(
                lambda: self.db.update_project(project_id, {"display_order": order}),
                label=f"reorder {project_id}",
            )
            self._replace_project(record)

        with self._lock:
            self.projects = sorted(self.projects, key=sort_key, reverse=True)
            return list(self.projects)

    # Categories and project types

    def _options_attr(self, table: str) -> str:
        return "categories" if table == CATEGORIES_TABLE else "project_types"

    def add_option(self, table: str, value: str, label: str) -> OptionRecord:
        record = self.db.insert_option(table, value, label)
        attr = self._options_attr(table)
        with self._lock:
            updated = getattr(self, attr) + [record]
            setattr(self, attr, sorted(updated, key=lambda o: o.label.lower()))
        logger.info("Added %s option %s", table, value)
        return record

    def update_option(
        self, table: str, option_id: str, value: str, label: str
    ) -> OptionRecord:
        record = self.db.update_option(table, option_id, value, label)
        attr = self._options_attr(table)
        with self._lock:
            updated = [record if o.id == option_id else o for o in getattr(self, attr)]
            setattr(self, attr, sorted(updated, key=lambda o: o.label.lower()))
        return record

    def delete_option(self, table: str, option_id: str) -> None:
        self.db.delete_option(table, option_id)
        attr = self._options_attr(table)
        with self._lock:
            setattr(self, attr, [o for o in getattr(self, attr) if o.id != option_id])

    def add_category(self, value: str, label: str) -> OptionRecord:
        return self.add_option(CATEGORIES_TABLE, value, label)

    def update_category(self, option_id: str, value: str, label: str) -> OptionRecord:
        return self.update_option(CATEGORIES_TABLE, option_id, value, label)

    def delete_category(self, option_id: str) -> None:
        self.delete_option(CATEGORIES_TABLE, option_id)

    def add_project_type(self, value: str, label: str) -> OptionRecord:
        return self.add_option(PROJECT_TYPES_TABLE, value, label)

    def update_project_type(
        self, option_id: str, value: str, label: str
    ) -> OptionRecord:
        return self.update_option(PROJECT_TYPES_TABLE, option_id, value, label)

    def delete_project_type(self, option_id: str) -> None:
        self.delete_option(PROJECT_TYPES_TABLE, option_id)

    # Founder

    def update_founder(self, data: dict) -> FounderRecord:
        record = self.db.save_founder(data)
        self._set("founder", record)
        logger.info("Founder updated: %s", record.name)
        return record
