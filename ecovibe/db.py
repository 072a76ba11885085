"""
Database abstraction for Postgres and an in-memory test implementation.
"""

from __future__ import annotations

import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Dict, Iterator, Optional, Protocol

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    String,
    Text,
    create_engine,
    func,
    select,
)
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from ecovibe.errors import TRANSIENT_BUSY_CODE, NotFoundError, StoreBusyError

CATEGORIES_TABLE = "categories"
PROJECT_TYPES_TABLE = "project_types"
OPTION_TABLES = (CATEGORIES_TABLE, PROJECT_TYPES_TABLE)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ProjectRecord:
    id: str
    title: str
    description: str
    category: str
    project_type: str
    before_image_1: str
    after_image_1: str
    before_image_2: str = ""
    after_image_2: str = ""
    tags: list[str] = field(default_factory=list)
    additional_images: list[str] = field(default_factory=list)
    duration: str = ""
    budget: str = ""
    materials: list[str] = field(default_factory=list)
    is_hero: bool = False
    display_order: int = 0
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


# Fields an admin submission may set; everything else is owned by the store.
PROJECT_FIELDS = tuple(
    f.name
    for f in fields(ProjectRecord)
    if f.name not in ("id", "created_at", "updated_at")
)


@dataclass
class OptionRecord:
    """A (machine value, human label) pair: a category or a project type."""

    id: str
    value: str
    label: str
    created_at: str = field(default_factory=utc_now_iso)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "value": self.value,
            "label": self.label,
            "created_at": self.created_at,
        }


@dataclass
class FounderRecord:
    id: str
    name: str
    photo_url: str = ""
    background: str = ""
    more_info: str = ""
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def sort_key(project: ProjectRecord) -> tuple[int, str]:
    return (project.display_order, project.created_at)


class DbClient(Protocol):
    """Interface for database access."""

    def list_projects(self) -> list[ProjectRecord]:
        ...

    def count_projects(self) -> int:
        ...

    def get_project(self, project_id: str) -> Optional[ProjectRecord]:
        ...

    def insert_project(self, data: dict) -> ProjectRecord:
        ...

    def update_project(self, project_id: str, data: dict) -> ProjectRecord:
        ...

    def delete_project(self, project_id: str) -> None:
        ...

    def list_options(self, table: str) -> list[OptionRecord]:
        ...

    def insert_option(self, table: str, value: str, label: str) -> OptionRecord:
        ...

    def update_option(
        self, table: str, option_id: str, value: str, label: str
    ) -> OptionRecord:
        ...

    def delete_option(self, table: str, option_id: str) -> None:
        ...

    def get_founder(self) -> Optional[FounderRecord]:
        ...

    def save_founder(self, data: dict) -> FounderRecord:
        ...


def _check_table(table: str) -> None:
    if table not in OPTION_TABLES:
        raise ValueError(f"Unknown option table: {table}")


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.projects: Dict[str, ProjectRecord] = {}
        self.options: Dict[str, Dict[str, OptionRecord]] = {
            table: {} for table in OPTION_TABLES
        }
        self.founder: Optional[FounderRecord] = None

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.projects.clear()
        for table in self.options.values():
            table.clear()
        self.founder = None

    def list_projects(self) -> list[ProjectRecord]:
        return sorted(self.projects.values(), key=sort_key, reverse=True)

    def count_projects(self) -> int:
        return len(self.projects)

    def get_project(self, project_id: str) -> Optional[ProjectRecord]:
        return self.projects.get(project_id)

    def insert_project(self, data: dict) -> ProjectRecord:
        values = {k: v for k, v in data.items() if k in PROJECT_FIELDS}
        values.setdefault("display_order", now_ms())
        record = ProjectRecord(id=uuid.uuid4().hex, **values)
        self.projects[record.id] = record
        return record

    def update_project(self, project_id: str, data: dict) -> ProjectRecord:
        record = self.projects.get(project_id)
        if not record:
            raise NotFoundError("project", project_id)
        for key, value in data.items():
            if key in PROJECT_FIELDS:
                setattr(record, key, value)
        record.updated_at = utc_now_iso()
        return record

    def delete_project(self, project_id: str) -> None:
        if self.projects.pop(project_id, None) is None:
            raise NotFoundError("project", project_id)

    def list_options(self, table: str) -> list[OptionRecord]:
        _check_table(table)
        return sorted(self.options[table].values(), key=lambda o: o.label.lower())

    def insert_option(self, table: str, value: str, label: str) -> OptionRecord:
        _check_table(table)
        record = OptionRecord(id=uuid.uuid4().hex, value=value, label=label)
        self.options[table][record.id] = record
        return record

    def update_option(
        self, table: str, option_id: str, value: str, label: str
    ) -> OptionRecord:
        _check_table(table)
        record = self.options[table].get(option_id)
        if not record:
            raise NotFoundError(table, option_id)
        record.value = value
        record.label = label
        return record

    def delete_option(self, table: str, option_id: str) -> None:
        _check_table(table)
        if self.options[table].pop(option_id, None) is None:
            raise NotFoundError(table, option_id)

    def get_founder(self) -> Optional[FounderRecord]:
        return self.founder

    def save_founder(self, data: dict) -> FounderRecord:
        if self.founder is None:
            self.founder = FounderRecord(id=uuid.uuid4().hex, name=data.get("name", ""))
        for key in ("name", "photo_url", "background", "more_info"):
            if key in data:
                setattr(self.founder, key, data[key] or "")
        self.founder.updated_at = utc_now_iso()
        return self.founder


def _error_code(exc: DBAPIError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.Session() as session:
                yield session
        except DBAPIError as exc:
            if _error_code(exc) == TRANSIENT_BUSY_CODE:
                raise StoreBusyError(str(exc.orig)) from exc
            raise

    def _option_row(self, table: str):
        _check_table(table)
        return CategoryRow if table == CATEGORIES_TABLE else ProjectTypeRow

    def _to_project(self, row: "ProjectRow") -> ProjectRecord:
        return ProjectRecord(
            id=row.id,
            title=row.title,
            description=row.description,
            category=row.category,
            project_type=row.project_type,
            before_image_1=row.before_image_1,
            after_image_1=row.after_image_1,
            before_image_2=row.before_image_2 or "",
            after_image_2=row.after_image_2 or "",
            tags=list(row.tags or []),
            additional_images=list(row.additional_images or []),
            duration=row.duration or "",
            budget=row.budget or "",
            materials=list(row.materials or []),
            is_hero=bool(row.is_hero),
            display_order=row.display_order or 0,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _to_option(row) -> OptionRecord:
        return OptionRecord(
            id=row.id, value=row.value, label=row.label, created_at=row.created_at
        )

    @staticmethod
    def _to_founder(row: "FounderRow") -> FounderRecord:
        return FounderRecord(
            id=row.id,
            name=row.name,
            photo_url=row.photo_url or "",
            background=row.background or "",
            more_info=row.more_info or "",
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _apply_project(row: "ProjectRow", data: dict) -> None:
        for key, value in data.items():
            if key not in PROJECT_FIELDS:
                continue
            # Optional text columns are stored as NULL when blank.
            if key in ("before_image_2", "after_image_2", "duration", "budget"):
                value = value or None
            setattr(row, key, value)

    def list_projects(self) -> list[ProjectRecord]:
        with self._session() as session:
            stmt = select(ProjectRow).order_by(
                ProjectRow.display_order.desc(), ProjectRow.created_at.desc()
            )
            return [self._to_project(row) for row in session.execute(stmt).scalars()]

    def count_projects(self) -> int:
        with self._session() as session:
            return session.execute(select(func.count(ProjectRow.id))).scalar_one()

    def get_project(self, project_id: str) -> Optional[ProjectRecord]:
        with self._session() as session:
            row = session.get(ProjectRow, project_id)
            return self._to_project(row) if row else None

    def insert_project(self, data: dict) -> ProjectRecord:
        now = utc_now_iso()
        with self._session() as session:
            row = ProjectRow(
                id=uuid.uuid4().hex,
                tags=[],
                additional_images=[],
                materials=[],
                is_hero=False,
                display_order=now_ms(),
                created_at=now,
                updated_at=now,
            )
            self._apply_project(row, data)
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_project(row)

    def update_project(self, project_id: str, data: dict) -> ProjectRecord:
        with self._session() as session:
            row = session.get(ProjectRow, project_id)
            if not row:
                raise NotFoundError("project", project_id)
            self._apply_project(row, data)
            row.updated_at = utc_now_iso()
            session.commit()
            session.refresh(row)
            return self._to_project(row)

    def delete_project(self, project_id: str) -> None:
        with self._session() as session:
            row = session.get(ProjectRow, project_id)
            if not row:
                raise NotFoundError("project", project_id)
            session.delete(row)
            session.commit()

    def list_options(self, table: str) -> list[OptionRecord]:
        model = self._option_row(table)
        with self._session() as session:
            rows = session.execute(select(model).order_by(model.label)).scalars()
            return [self._to_option(row) for row in rows]

    def insert_option(self, table: str, value: str, label: str) -> OptionRecord:
        model = self._option_row(table)
        with self._session() as session:
            row = model(
                id=uuid.uuid4().hex, value=value, label=label, created_at=utc_now_iso()
            )
            session.add(row)
            session.commit()
            return self._to_option(row)

    def update_option(
        self, table: str, option_id: str, value: str, label: str
    ) -> OptionRecord:
        model = self._option_row(table)
        with self._session() as session:
            row = session.get(model, option_id)
            if not row:
                raise NotFoundError(table, option_id)
            row.value = value
            row.label = label
            session.commit()
            return self._to_option(row)

    def delete_option(self, table: str, option_id: str) -> None:
        model = self._option_row(table)
        with self._session() as session:
            row = session.get(model, option_id)
            if not row:
                raise NotFoundError(table, option_id)
            session.delete(row)
            session.commit()

    def get_founder(self) -> Optional[FounderRecord]:
        with self._session() as session:
            row = session.execute(select(FounderRow).limit(1)).scalar_one_or_none()
            return self._to_founder(row) if row else None

    def save_founder(self, data: dict) -> FounderRecord:
        now = utc_now_iso()
        with self._session() as session:
            row = session.execute(select(FounderRow).limit(1)).scalar_one_or_none()
            if not row:
                row = FounderRow(id=uuid.uuid4().hex, name="", created_at=now)
                session.add(row)
            for key in ("name", "photo_url", "background", "more_info"):
                if key in data:
                    value = data[key]
                    setattr(row, key, value if key == "name" else (value or None))
            row.updated_at = now
            session.commit()
            return self._to_founder(row)


Base = declarative_base()


class ProjectRow(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=False, index=True)
    project_type = Column(String, nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    before_image_1 = Column(String, nullable=False)
    after_image_1 = Column(String, nullable=False)
    before_image_2 = Column(String, nullable=True)
    after_image_2 = Column(String, nullable=True)
    additional_images = Column(JSON, nullable=False, default=list)
    duration = Column(String, nullable=True)
    budget = Column(String, nullable=True)
    materials = Column(JSON, nullable=False, default=list)
    is_hero = Column(Boolean, nullable=False, default=False)
    display_order = Column(BigInteger, nullable=False, default=0, index=True)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)


class CategoryRow(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True)
    value = Column(String, nullable=False)
    label = Column(String, nullable=False)
    created_at = Column(String, nullable=False)


class ProjectTypeRow(Base):
    __tablename__ = "project_types"

    id = Column(String, primary_key=True)
    value = Column(String, nullable=False)
    label = Column(String, nullable=False)
    created_at = Column(String, nullable=False)


class FounderRow(Base):
    __tablename__ = "founder"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    photo_url = Column(String, nullable=True)
    background = Column(Text, nullable=True)
    more_info = Column(Text, nullable=True)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)
