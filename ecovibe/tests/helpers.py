import os
from unittest.mock import patch

from ecovibe.config import get_settings
from ecovibe.dependencies import reset_dependencies

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "secret-pass"


def project_fields(**overrides) -> dict:
    data = {
        "title": "Modern Kitchen Renovation",
        "description": "Complete transformation of a dated kitchen.",
        "category": "kitchen",
        "project_type": "residential",
        "before_image_1": "https://example.test/storage/project-images/projects/b1.jpg",
        "after_image_1": "https://example.test/storage/project-images/projects/a1.jpg",
        "tags": ["modern"],
        "materials": ["Quartz countertops"],
    }
    data.update(overrides)
    return data


def project_payload(**overrides) -> dict:
    payload = {
        "title": "Modern Kitchen Renovation",
        "description": "Complete transformation of a dated kitchen.",
        "category": "kitchen",
        "projectType": "residential",
        "beforeImage1": "https://example.test/storage/project-images/projects/b1.jpg",
        "afterImage1": "https://example.test/storage/project-images/projects/a1.jpg",
        "tags": ["modern", " modern ", "", "open plan"],
        "materials": ["Quartz countertops"],
        "duration": "8 weeks",
        "budget": "$45,000 - $65,000",
    }
    payload.update(overrides)
    return payload


def use_in_memory_backends(test_case, **env) -> None:
    """Point settings at in-memory backends for the duration of a test."""
    values = {
        "ECOVIBE_USE_IN_MEMORY_BACKENDS": "true",
        "ADMIN_EMAIL": ADMIN_EMAIL,
        "ADMIN_PASSWORD": ADMIN_PASSWORD,
    }
    values.update(env)
    patcher = patch.dict(os.environ, values)
    patcher.start()
    test_case.addCleanup(patcher.stop)
    get_settings.cache_clear()
    test_case.addCleanup(get_settings.cache_clear)
    reset_dependencies()
    test_case.addCleanup(reset_dependencies)
