"""
HTTP routes for the site API.
"""

from __future__ import annotations

import logging

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Query,
    Request,
    Response,
    UploadFile,
)

from ecovibe import auth
from ecovibe.catalog import CatalogCache
from ecovibe.config import get_settings
from ecovibe.contact import ContactInfo, mailto_link
from ecovibe.db import DbClient, FounderRecord, OptionRecord, ProjectRecord
from ecovibe.dependencies import (
    get_catalog,
    get_db_client,
    get_session_store,
    get_storage_client,
)
from ecovibe.errors import StorageError
from ecovibe.gallery import admin_view
from ecovibe.schemas import (
    ContactResponse,
    DeleteImagePayload,
    FounderPayload,
    FounderResponse,
    HealthResponse,
    ListProjectsResponse,
    LoginRequest,
    OptionPayload,
    OptionResponse,
    ProjectPayload,
    ProjectResponse,
    ReorderPayload,
    SessionResponse,
    TokenResponse,
    UploadResponse,
)
from ecovibe.sessions import SessionStore
from ecovibe.storage import StorageClient, new_image_path

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter(prefix="/admin", dependencies=[Depends(auth.require_admin)])


def _project(record: ProjectRecord) -> ProjectResponse:
    return ProjectResponse.model_validate(record.as_dict())


def _option(record: OptionRecord) -> OptionResponse:
    return OptionResponse.model_validate(record.as_dict())


def _founder(record: FounderRecord) -> FounderResponse:
    return FounderResponse.model_validate(record.as_dict())


@router.get("/health", response_model=HealthResponse)
def health(db: DbClient = Depends(get_db_client)):
    """Database check: reports whether the project table can be read."""
    try:
        count = db.count_projects()
    except Exception:
        logger.exception("Database check failed")
        return HealthResponse(backend="running", database="not-available")
    return HealthResponse(backend="running", database="connected", projects=count)


@router.get("/projects", response_model=ListProjectsResponse)
def list_projects(
    category: str | None = Query(None),
    search: str | None = Query(None),
    sort_by: str = Query("displayOrder", alias="sortBy"),
    catalog: CatalogCache = Depends(get_catalog),
):
    projects = admin_view(catalog.projects, search, category, sort_by)
    return ListProjectsResponse(
        projects=[_project(p) for p in projects], total=len(projects)
    )


@router.get("/projects/{project_id}", response_model=ProjectResponse)
def get_project(project_id: str, catalog: CatalogCache = Depends(get_catalog)):
    project = catalog.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return _project(project)


@router.get("/hero", response_model=ProjectResponse)
def get_hero_project(catalog: CatalogCache = Depends(get_catalog)):
    project = catalog.hero_project()
    if not project:
        raise HTTPException(status_code=404, detail="No projects yet")
    return _project(project)


@router.get("/categories", response_model=list[OptionResponse])
def list_categories(catalog: CatalogCache = Depends(get_catalog)):
    return [_option(o) for o in catalog.categories]


@router.get("/project-types", response_model=list[OptionResponse])
def list_project_types(catalog: CatalogCache = Depends(get_catalog)):
    return [_option(o) for o in catalog.project_types]


@router.get("/founder", response_model=FounderResponse)
def get_founder(catalog: CatalogCache = Depends(get_catalog)):
    if not catalog.founder:
        raise HTTPException(status_code=404, detail="Founder not found")
    return _founder(catalog.founder)


@router.get("/contact", response_model=ContactResponse)
def get_contact():
    contact = ContactInfo.from_settings(get_settings())
    return ContactResponse(
        email=contact.email,
        phone=contact.phone,
        phone_display=contact.phone_display,
        service_area=contact.service_area,
        instagram_handle=contact.instagram_handle,
        instagram_url=contact.instagram_url,
        mailto_link=mailto_link(contact),
    )


@router.post("/auth/login", response_model=TokenResponse)
def login(
    payload: LoginRequest,
    response: Response,
    sessions: SessionStore = Depends(get_session_store),
):
    settings = get_settings()
    token = auth.login(
        settings, sessions, payload.email, payload.password, payload.passcode
    )
    if not token:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        samesite="lax",
    )
    return TokenResponse(access_token=token)


@router.post("/auth/logout", status_code=204)
def logout(
    token: str = Depends(auth.require_admin),
    sessions: SessionStore = Depends(get_session_store),
):
    sessions.delete(token)
    response = Response(status_code=204)
    response.delete_cookie(get_settings().session_cookie_name)
    return response


@router.get("/auth/session", response_model=SessionResponse)
def session_status(
    request: Request,
    sessions: SessionStore = Depends(get_session_store),
):
    return SessionResponse(
        authenticated=auth.is_authenticated(request, sessions, get_settings())
    )


@admin_router.post("/projects", response_model=ProjectResponse, status_code=201)
def create_project(
    payload: ProjectPayload, catalog: CatalogCache = Depends(get_catalog)
):
    return _project(catalog.add_project(payload.to_record_fields()))


@admin_router.put("/projects/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: str,
    payload: ProjectPayload,
    catalog: CatalogCache = Depends(get_catalog),
):
    return _project(catalog.update_project(project_id, payload.to_record_fields()))


@admin_router.delete("/projects/{project_id}", status_code=204)
def delete_project(project_id: str, catalog: CatalogCache = Depends(get_catalog)):
    catalog.delete_project(project_id)
    return Response(status_code=204)


@admin_router.delete("/projects/{project_id}/images", response_model=ProjectResponse)
def delete_project_image(
    project_id: str,
    payload: DeleteImagePayload,
    catalog: CatalogCache = Depends(get_catalog),
):
    record = catalog.delete_project_image(
        project_id, payload.image_url, payload.image_type
    )
    return _project(record)


@admin_router.post("/projects/reorder", response_model=ListProjectsResponse)
def reorder_projects(
    payload: ReorderPayload, catalog: CatalogCache = Depends(get_catalog)
):
    projects = catalog.reorder_projects(payload.ids)
    return ListProjectsResponse(
        projects=[_project(p) for p in projects], total=len(projects)
    )


@admin_router.post("/categories", response_model=OptionResponse, status_code=201)
def create_category(payload: OptionPayload, catalog: CatalogCache = Depends(get_catalog)):
    return _option(catalog.add_category(payload.value, payload.label))


@admin_router.put("/categories/{option_id}", response_model=OptionResponse)
def update_category(
    option_id: str, payload: OptionPayload, catalog: CatalogCache = Depends(get_catalog)
):
    return _option(catalog.update_category(option_id, payload.value, payload.label))


@admin_router.delete("/categories/{option_id}", status_code=204)
def delete_category(option_id: str, catalog: CatalogCache = Depends(get_catalog)):
    catalog.delete_category(option_id)
    return Response(status_code=204)


@admin_router.post("/project-types", response_model=OptionResponse, status_code=201)
def create_project_type(
    payload: OptionPayload, catalog: CatalogCache = Depends(get_catalog)
):
    return _option(catalog.add_project_type(payload.value, payload.label))


@admin_router.put("/project-types/{option_id}", response_model=OptionResponse)
def update_project_type(
    option_id: str, payload: OptionPayload, catalog: CatalogCache = Depends(get_catalog)
):
    return _option(catalog.update_project_type(option_id, payload.value, payload.label))


@admin_router.delete("/project-types/{option_id}", status_code=204)
def delete_project_type(option_id: str, catalog: CatalogCache = Depends(get_catalog)):
    catalog.delete_project_type(option_id)
    return Response(status_code=204)


@admin_router.put("/founder", response_model=FounderResponse)
def update_founder(payload: FounderPayload, catalog: CatalogCache = Depends(get_catalog)):
    return _founder(catalog.update_founder(payload.model_dump()))


def store_uploads(storage: StorageClient, files: list[UploadFile]) -> list[str]:
    """
    Store each image under the flat project folder and return public URLs.
    Files that fail to upload are logged and left out of the result.
    """
    for upload in files:
        if not (upload.content_type or "").startswith("image/"):
            raise HTTPException(
                status_code=400, detail=f"Image file required: {upload.filename}"
            )

    urls: list[str] = []
    for upload in files:
        path = new_image_path(upload.filename or "upload")
        data = upload.file.read()
        try:
            storage.upload_bytes(path, data, upload.content_type or "application/octet-stream")
        except StorageError:
            logger.exception("Upload error for %s", upload.filename)
            continue
        urls.append(storage.public_url(path))
    return urls


@admin_router.post("/uploads", response_model=UploadResponse)
def upload_images(
    files: list[UploadFile] = File(...),
    storage: StorageClient = Depends(get_storage_client),
):
    return UploadResponse(urls=store_uploads(storage, files))


@admin_router.post("/refresh", response_model=ListProjectsResponse)
def refresh_catalog(catalog: CatalogCache = Depends(get_catalog)):
    catalog.load()
    return ListProjectsResponse(
        projects=[_project(p) for p in catalog.projects], total=len(catalog.projects)
    )


router.include_router(admin_router)
