"""
Pydantic schemas for the site API.

Records are stored with snake_case columns; the JSON API speaks camelCase.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def normalize_items(items: list[str] | None) -> list[str]:
    """Trim entries, drop blanks and duplicates, keeping first occurrences."""
    result: list[str] = []
    for item in items or []:
        item = (item or "").strip()
        if item and item not in result:
            result.append(item)
    return result


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProjectPayload(CamelModel):
    title: str
    description: str
    category: str
    project_type: str
    before_image_1: str
    after_image_1: str
    before_image_2: Optional[str] = ""
    after_image_2: Optional[str] = ""
    tags: list[str] = Field(default_factory=list)
    additional_images: list[str] = Field(default_factory=list)
    duration: Optional[str] = ""
    budget: Optional[str] = ""
    materials: list[str] = Field(default_factory=list)
    is_hero: bool = False
    display_order: Optional[int] = None

    @field_validator(
        "title",
        "description",
        "category",
        "project_type",
        "before_image_1",
        "after_image_1",
    )
    @classmethod
    def _required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("before_image_2", "after_image_2", "duration", "budget")
    @classmethod
    def _optional_text(cls, value: Optional[str]) -> str:
        return (value or "").strip()

    @field_validator("tags", "materials", "additional_images")
    @classmethod
    def _items(cls, value: list[str]) -> list[str]:
        return normalize_items(value)

    def to_record_fields(self) -> dict:
        data = self.model_dump(exclude={"display_order"})
        if self.display_order is not None:
            data["display_order"] = self.display_order
        return data


class ProjectResponse(CamelModel):
    id: str
    title: str
    description: str
    category: str
    project_type: str
    before_image_1: str
    after_image_1: str
    before_image_2: str = ""
    after_image_2: str = ""
    tags: list[str]
    additional_images: list[str]
    duration: str = ""
    budget: str = ""
    materials: list[str]
    is_hero: bool
    display_order: int
    created_at: str
    updated_at: str


class ListProjectsResponse(CamelModel):
    projects: list[ProjectResponse]
    total: int


class OptionPayload(CamelModel):
    value: str
    label: str

    @field_validator("value", "label")
    @classmethod
    def _required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class OptionResponse(CamelModel):
    id: str
    value: str
    label: str
    created_at: str


class FounderPayload(CamelModel):
    name: str
    photo_url: Optional[str] = ""
    background: Optional[str] = ""
    more_info: Optional[str] = ""

    @field_validator("name")
    @classmethod
    def _required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class FounderResponse(CamelModel):
    id: str
    name: str
    photo_url: str
    background: str
    more_info: str
    created_at: str
    updated_at: str


class DeleteImagePayload(CamelModel):
    image_url: str = Field(..., min_length=1)
    image_type: Literal["additional", "beforeImage2", "afterImage2"]


class ReorderPayload(CamelModel):
    ids: list[str] = Field(..., min_length=1)


class UploadResponse(CamelModel):
    urls: list[str]


class LoginRequest(CamelModel):
    email: str
    password: str
    passcode: Optional[str] = None


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"


class SessionResponse(CamelModel):
    authenticated: bool


class ContactResponse(CamelModel):
    email: str
    phone: str
    phone_display: str
    service_area: str
    instagram_handle: str
    instagram_url: str
    mailto_link: str


class HealthResponse(CamelModel):
    backend: str
    database: str
    projects: Optional[int] = None
