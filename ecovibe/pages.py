"""
Server-rendered pages: home, project detail, login and the admin panel.

The admin panel posts plain HTML forms back to handlers under the admin path.
Each handler calls the same catalog operations as the JSON API and redirects
back to the panel, or re-renders the form with the validation errors.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from ecovibe import auth
from ecovibe.catalog import IMAGE_TYPES, CatalogCache
from ecovibe.config import get_settings
from ecovibe.contact import ContactInfo, mailto_link
from ecovibe.db import CATEGORIES_TABLE, PROJECT_TYPES_TABLE, ProjectRecord
from ecovibe.dependencies import get_catalog, get_session_store, get_storage_client
from ecovibe.gallery import (
    ALL_CATEGORIES,
    SORT_OPTIONS,
    admin_view,
    filter_by_category,
    gallery_categories,
    sort_projects,
    type_label,
)
from ecovibe.routes import store_uploads
from ecovibe.schemas import FounderPayload, OptionPayload, ProjectPayload
from ecovibe.sessions import SessionStore
from ecovibe.slider import Slider
from ecovibe.storage import StorageClient

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
templates.env.filters["type_label"] = type_label

# URL segment -> option table
OPTION_KINDS = {
    "categories": CATEGORIES_TABLE,
    "project-types": PROJECT_TYPES_TABLE,
}


def pinterest_share_url(page_url: str, image_url: str, description: str) -> str:
    return (
        "https://pinterest.com/pin/create/button/"
        f"?url={quote(page_url, safe='')}"
        f"&media={quote(image_url, safe='')}"
        f"&description={quote(description, safe='')}"
    )


def reorder_moves(order: list[str]) -> dict[str, dict[str, list[str]]]:
    """For each id, the full id order after moving it one step up or down."""
    moves: dict[str, dict[str, list[str]]] = {}
    for index, project_id in enumerate(order):
        moves[project_id] = {}
        if index > 0:
            up = list(order)
            up[index - 1], up[index] = up[index], up[index - 1]
            moves[project_id]["up"] = up
        if index < len(order) - 1:
            down = list(order)
            down[index], down[index + 1] = down[index + 1], down[index]
            moves[project_id]["down"] = down
    return moves


def validation_messages(exc: ValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        name = str(error["loc"][0]) if error["loc"] else "form"
        messages.append(f"{name.replace('_', ' ').capitalize()}: {error['msg']}")
    return messages


def _base_context(catalog: CatalogCache) -> dict:
    settings = get_settings()
    contact = ContactInfo.from_settings(settings)
    return {
        "site_name": settings.site_name,
        "admin_path": settings.admin_path,
        "contact": contact,
        "mailto": mailto_link(contact),
        "categories": catalog.categories,
        "project_types": catalog.project_types,
        "founder": catalog.founder,
        "loading": catalog.loading,
        "slider": Slider(),
    }


def _first_upload(storage: StorageClient, upload: Optional[UploadFile]) -> str:
    if upload is None or not upload.filename:
        return ""
    urls = store_uploads(storage, [upload])
    return urls[0] if urls else ""


def create_pages_router() -> APIRouter:
    settings = get_settings()
    router = APIRouter()

    def admin_url(path: str = "") -> str:
        return f"{settings.admin_path.rstrip('/')}{path}"

    def signed_in(request: Request, sessions: SessionStore) -> bool:
        return auth.is_authenticated(request, sessions, settings)

    def to_login() -> RedirectResponse:
        return RedirectResponse("/login", status_code=303)

    def to_admin() -> RedirectResponse:
        return RedirectResponse(admin_url(), status_code=303)

    def render_admin(
        request: Request,
        catalog: CatalogCache,
        search: str = "",
        category: str = ALL_CATEGORIES,
        sort_by: str = "updatedAt",
        errors: Optional[list[str]] = None,
        status_code: int = 200,
    ):
        context = _base_context(catalog)
        order = [p.id for p in sort_projects(catalog.projects, "displayOrder")]
        context.update(
            projects=admin_view(catalog.projects, search, category, sort_by),
            search=search,
            selected_category=category,
            sort_by=sort_by,
            sort_options=SORT_OPTIONS,
            filtering=bool(search) or category != ALL_CATEGORIES,
            moves=reorder_moves(order),
            option_kinds=[
                ("categories", "Categories", catalog.categories),
                ("project-types", "Project Types", catalog.project_types),
            ],
            errors=errors or [],
        )
        return templates.TemplateResponse(
            request, "admin.html", context, status_code=status_code
        )

    def render_project_form(
        request: Request,
        catalog: CatalogCache,
        project: Optional[ProjectRecord] = None,
        values: Optional[dict] = None,
        errors: Optional[list[str]] = None,
        status_code: int = 200,
    ):
        context = _base_context(catalog)
        if values is None:
            values = project.as_dict() if project else {}
        context.update(
            project=project,
            values=values,
            errors=errors or [],
        )
        return templates.TemplateResponse(
            request, "project_form.html", context, status_code=status_code
        )

    # Public pages

    @router.get("/")
    def home(
        request: Request,
        category: str = ALL_CATEGORIES,
        catalog: CatalogCache = Depends(get_catalog),
    ):
        projects = list(catalog.projects)
        context = _base_context(catalog)
        context.update(
            featured=catalog.featured_projects(2),
            gallery=filter_by_category(projects, category),
            gallery_categories=gallery_categories(projects),
            selected_category=category,
        )
        return templates.TemplateResponse(request, "home.html", context)

    @router.get("/project/{project_id}")
    def project_detail(
        request: Request,
        project_id: str,
        catalog: CatalogCache = Depends(get_catalog),
    ):
        context = _base_context(catalog)
        project = catalog.get_project(project_id)
        if not project:
            return templates.TemplateResponse(
                request, "not_found.html", context, status_code=404
            )
        page_url = str(request.url)
        context.update(
            project=project,
            pin_before=pinterest_share_url(page_url, project.before_image_1, project.title),
            pin_after=pinterest_share_url(page_url, project.after_image_1, project.title),
        )
        return templates.TemplateResponse(request, "project.html", context)

    @router.get("/login")
    def login_form(request: Request, catalog: CatalogCache = Depends(get_catalog)):
        return templates.TemplateResponse(request, "login.html", _base_context(catalog))

    @router.post("/login")
    def login_submit(
        request: Request,
        email: str = Form(...),
        password: str = Form(...),
        passcode: Optional[str] = Form(None),
        sessions: SessionStore = Depends(get_session_store),
        catalog: CatalogCache = Depends(get_catalog),
    ):
        token = auth.login(settings, sessions, email, password, passcode)
        if not token:
            context = _base_context(catalog)
            context.update(error="Invalid email or password", email=email)
            return templates.TemplateResponse(
                request, "login.html", context, status_code=401
            )
        response = RedirectResponse(admin_url(), status_code=303)
        response.set_cookie(
            settings.session_cookie_name,
            token,
            max_age=settings.session_ttl_seconds,
            httponly=True,
            samesite="lax",
        )
        return response

    @router.post("/logout")
    def logout(request: Request, sessions: SessionStore = Depends(get_session_store)):
        token = auth.request_token(request, settings)
        if token:
            sessions.delete(token)
        response = RedirectResponse("/", status_code=303)
        response.delete_cookie(settings.session_cookie_name)
        return response

    # Admin panel

    def admin(
        request: Request,
        search: str = "",
        category: str = ALL_CATEGORIES,
        sort_by: str = "updatedAt",
        sessions: SessionStore = Depends(get_session_store),
        catalog: CatalogCache = Depends(get_catalog),
    ):
        if not signed_in(request, sessions):
            return to_login()
        return render_admin(request, catalog, search, category, sort_by)

    router.add_api_route(settings.admin_path, admin, methods=["GET"])

    @router.get(admin_url("/projects/new"))
    def new_project(
        request: Request,
        sessions: SessionStore = Depends(get_session_store),
        catalog: CatalogCache = Depends(get_catalog),
    ):
        if not signed_in(request, sessions):
            return to_login()
        return render_project_form(request, catalog)

    @router.get(admin_url("/projects/{project_id}/edit"))
    def edit_project(
        request: Request,
        project_id: str,
        sessions: SessionStore = Depends(get_session_store),
        catalog: CatalogCache = Depends(get_catalog),
    ):
        if not signed_in(request, sessions):
            return to_login()
        project = catalog.get_project(project_id)
        if not project:
            return templates.TemplateResponse(
                request, "not_found.html", _base_context(catalog), status_code=404
            )
        return render_project_form(request, catalog, project)

    @router.post(admin_url("/projects"))
    @router.post(admin_url("/projects/{project_id}"))
    def save_project(
        request: Request,
        project_id: Optional[str] = None,
        title: str = Form(""),
        description: str = Form(""),
        category: str = Form(""),
        project_type: str = Form(""),
        before_image_1: str = Form(""),
        after_image_1: str = Form(""),
        before_image_2: str = Form(""),
        after_image_2: str = Form(""),
        tags: str = Form(""),
        materials: str = Form(""),
        duration: str = Form(""),
        budget: str = Form(""),
        is_hero: Optional[str] = Form(None),
        additional_images: list[str] = Form([]),
        before_image_1_file: Optional[UploadFile] = File(None),
        after_image_1_file: Optional[UploadFile] = File(None),
        before_image_2_file: Optional[UploadFile] = File(None),
        after_image_2_file: Optional[UploadFile] = File(None),
        additional_files: Optional[list[UploadFile]] = File(None),
        sessions: SessionStore = Depends(get_session_store),
        storage: StorageClient = Depends(get_storage_client),
        catalog: CatalogCache = Depends(get_catalog),
    ):
        """Create or update a project from the admin form, uploading any chosen files first."""
        if not signed_in(request, sessions):
            return to_login()
        project = catalog.get_project(project_id) if project_id else None
        if project_id and not project:
            return templates.TemplateResponse(
                request, "not_found.html", _base_context(catalog), status_code=404
            )

        values = {
            "title": title,
            "description": description,
            "category": category,
            "project_type": project_type,
            "before_image_1": before_image_1,
            "after_image_1": after_image_1,
            "before_image_2": before_image_2,
            "after_image_2": after_image_2,
            "tags": tags.splitlines(),
            "materials": materials.splitlines(),
            "duration": duration,
            "budget": budget,
            "is_hero": is_hero is not None,
            "additional_images": list(additional_images),
        }
        try:
            for key, upload in (
                ("before_image_1", before_image_1_file),
                ("after_image_1", after_image_1_file),
                ("before_image_2", before_image_2_file),
                ("after_image_2", after_image_2_file),
            ):
                values[key] = _first_upload(storage, upload) or values[key]
            extra = [u for u in additional_files or [] if u.filename]
            values["additional_images"] += store_uploads(storage, extra)
        except HTTPException as exc:
            return render_project_form(
                request, catalog, project, values, [str(exc.detail)], status_code=400
            )

        try:
            payload = ProjectPayload.model_validate(values)
        except ValidationError as exc:
            messages = validation_messages(exc)
            logger.info("Project form rejected: %s", messages)
            return render_project_form(
                request, catalog, project, values, messages, status_code=422
            )

        if project:
            catalog.update_project(project.id, payload.to_record_fields())
        else:
            catalog.add_project(payload.to_record_fields())
        return to_admin()

    @router.post(admin_url("/projects/{project_id}/delete"))
    def remove_project(
        request: Request,
        project_id: str,
        sessions: SessionStore = Depends(get_session_store),
        catalog: CatalogCache = Depends(get_catalog),
    ):
        if not signed_in(request, sessions):
            return to_login()
        catalog.delete_project(project_id)
        return to_admin()

    @router.post(admin_url("/projects/{project_id}/images/delete"))
    def remove_project_image(
        request: Request,
        project_id: str,
        image_url: str = Form(...),
        image_type: str = Form(...),
        sessions: SessionStore = Depends(get_session_store),
        catalog: CatalogCache = Depends(get_catalog),
    ):
        if not signed_in(request, sessions):
            return to_login()
        if image_type not in IMAGE_TYPES:
            raise HTTPException(status_code=400, detail=f"Unknown image type: {image_type}")
        catalog.delete_project_image(project_id, image_url, image_type)
        return RedirectResponse(admin_url(f"/projects/{project_id}/edit"), status_code=303)

    @router.post(admin_url("/reorder"))
    def reorder(
        request: Request,
        ids: list[str] = Form(...),
        sessions: SessionStore = Depends(get_session_store),
        catalog: CatalogCache = Depends(get_catalog),
    ):
        if not signed_in(request, sessions):
            return to_login()
        catalog.reorder_projects(ids)
        return RedirectResponse(admin_url("?sort_by=displayOrder"), status_code=303)

    @router.post(admin_url("/founder"))
    def save_founder(
        request: Request,
        name: str = Form(""),
        photo_url: str = Form(""),
        background: str = Form(""),
        more_info: str = Form(""),
        photo_file: Optional[UploadFile] = File(None),
        sessions: SessionStore = Depends(get_session_store),
        storage: StorageClient = Depends(get_storage_client),
        catalog: CatalogCache = Depends(get_catalog),
    ):
        if not signed_in(request, sessions):
            return to_login()
        try:
            photo_url = _first_upload(storage, photo_file) or photo_url
            payload = FounderPayload(
                name=name, photo_url=photo_url, background=background, more_info=more_info
            )
        except HTTPException as exc:
            return render_admin(request, catalog, errors=[str(exc.detail)], status_code=400)
        except ValidationError as exc:
            return render_admin(
                request, catalog, errors=validation_messages(exc), status_code=422
            )
        catalog.update_founder(payload.model_dump())
        return to_admin()

    def option_table(kind: str) -> str:
        if kind not in OPTION_KINDS:
            raise HTTPException(status_code=404, detail=f"Unknown option list: {kind}")
        return OPTION_KINDS[kind]

    @router.post(admin_url("/{kind}"))
    @router.post(admin_url("/{kind}/{option_id}"))
    def save_option(
        request: Request,
        kind: str,
        option_id: Optional[str] = None,
        value: str = Form(""),
        label: str = Form(""),
        sessions: SessionStore = Depends(get_session_store),
        catalog: CatalogCache = Depends(get_catalog),
    ):
        if not signed_in(request, sessions):
            return to_login()
        table = option_table(kind)
        try:
            payload = OptionPayload(value=value, label=label)
        except ValidationError as exc:
            return render_admin(
                request, catalog, errors=validation_messages(exc), status_code=422
            )
        if option_id:
            catalog.update_option(table, option_id, payload.value, payload.label)
        else:
            catalog.add_option(table, payload.value, payload.label)
        return to_admin()

    @router.post(admin_url("/{kind}/{option_id}/delete"))
    def remove_option(
        request: Request,
        kind: str,
        option_id: str,
        sessions: SessionStore = Depends(get_session_store),
        catalog: CatalogCache = Depends(get_catalog),
    ):
        if not signed_in(request, sessions):
            return to_login()
        catalog.delete_option(option_table(kind), option_id)
        return to_admin()

    return router
