import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from ecovibe.app import create_app
from ecovibe.dependencies import get_catalog, get_storage_client
from ecovibe.errors import StorageError, StoreBusyError
from ecovibe.tests.helpers import (
    ADMIN_EMAIL,
    ADMIN_PASSWORD,
    project_payload,
    use_in_memory_backends,
)


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        use_in_memory_backends(self)
        self.client = TestClient(create_app())

    def login(self):
        response = self.client.post(
            "/api/auth/login",
            json={"email": ADMIN_EMAIL.upper(), "password": ADMIN_PASSWORD},
        )
        self.assertEqual(response.status_code, 200)
        return response.json()["accessToken"]

    def create_project(self, **overrides):
        response = self.client.post(
            "/api/admin/projects", json=project_payload(**overrides)
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_health_reports_connected_database(self):
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"backend": "running", "database": "connected", "projects": 0},
        )

    def test_admin_routes_require_login(self):
        response = self.client.post("/api/admin/projects", json=project_payload())
        self.assertEqual(response.status_code, 401)

        session = self.client.get("/api/auth/session")
        self.assertEqual(session.json(), {"authenticated": False})

    def test_login_rejects_wrong_password(self):
        response = self.client.post(
            "/api/auth/login", json={"email": ADMIN_EMAIL, "password": "nope"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Invalid email or password")

    def test_bearer_token_and_logout(self):
        token = self.login()
        anonymous = TestClient(create_app())
        headers = {"Authorization": f"Bearer {token}"}

        session = anonymous.get("/api/auth/session", headers=headers)
        self.assertEqual(session.json(), {"authenticated": True})

        logout = anonymous.post("/api/auth/logout", headers=headers)
        self.assertEqual(logout.status_code, 204)

        response = anonymous.post(
            "/api/admin/projects", json=project_payload(), headers=headers
        )
        self.assertEqual(response.status_code, 401)

    def test_create_and_fetch_project(self):
        self.login()
        created = self.create_project()
        self.assertEqual(created["projectType"], "residential")
        self.assertEqual(created["tags"], ["modern", "open plan"])
        self.assertEqual(created["beforeImage2"], "")
        self.assertFalse(created["isHero"])

        listing = self.client.get("/api/projects").json()
        self.assertEqual(listing["total"], 1)
        self.assertEqual(listing["projects"][0]["id"], created["id"])

        detail = self.client.get(f"/api/projects/{created['id']}")
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(detail.json()["title"], "Modern Kitchen Renovation")

        self.assertEqual(self.client.get("/api/projects/missing").status_code, 404)

    def test_create_project_requires_before_and_after_images(self):
        self.login()
        response = self.client.post(
            "/api/admin/projects", json=project_payload(beforeImage1="  ")
        )
        self.assertEqual(response.status_code, 422)

    def test_update_and_delete_project(self):
        self.login()
        created = self.create_project()
        updated = self.client.put(
            f"/api/admin/projects/{created['id']}",
            json=project_payload(title="Kitchen, Revisited", isHero=True),
        )
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.json()["title"], "Kitchen, Revisited")
        self.assertTrue(updated.json()["isHero"])

        deleted = self.client.delete(f"/api/admin/projects/{created['id']}")
        self.assertEqual(deleted.status_code, 204)
        self.assertEqual(self.client.get("/api/projects").json()["total"], 0)

        missing = self.client.delete(f"/api/admin/projects/{created['id']}")
        self.assertEqual(missing.status_code, 404)

    def test_hero_prefers_flagged_project(self):
        self.login()
        self.assertEqual(self.client.get("/api/hero").status_code, 404)
        hero = self.create_project(title="Luxury Master Bathroom", isHero=True)
        self.create_project(title="Cozy Bedroom Retreat")

        response = self.client.get("/api/hero")
        self.assertEqual(response.json()["id"], hero["id"])

    def test_list_projects_filters_and_searches(self):
        self.login()
        self.create_project(title="Modern Kitchen", category="kitchen")
        self.create_project(title="Spa Bathroom", category="bathroom", tags=["marble"])

        kitchens = self.client.get("/api/projects", params={"category": "kitchen"})
        self.assertEqual([p["title"] for p in kitchens.json()["projects"]], ["Modern Kitchen"])

        marble = self.client.get("/api/projects", params={"search": "MARBLE"})
        self.assertEqual([p["title"] for p in marble.json()["projects"]], ["Spa Bathroom"])

    def test_reorder_projects(self):
        self.login()
        first = self.create_project(title="First")
        second = self.create_project(title="Second")
        third = self.create_project(title="Third")

        ids = [second["id"], third["id"], first["id"]]
        response = self.client.post("/api/admin/projects/reorder", json={"ids": ids})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([p["id"] for p in response.json()["projects"]], ids)

        listing = self.client.get("/api/projects", params={"sortBy": "displayOrder"})
        self.assertEqual([p["id"] for p in listing.json()["projects"]], ids)

        unknown = self.client.post("/api/admin/projects/reorder", json={"ids": ["nope"]})
        self.assertEqual(unknown.status_code, 404)

    def test_category_management(self):
        self.login()
        bath = self.client.post(
            "/api/admin/categories", json={"value": "bathroom", "label": "Bathroom"}
        )
        self.assertEqual(bath.status_code, 201)
        self.client.post("/api/admin/categories", json={"value": "attic", "label": "Attic"})

        labels = [c["label"] for c in self.client.get("/api/categories").json()]
        self.assertEqual(labels, ["Attic", "Bathroom"])

        renamed = self.client.put(
            f"/api/admin/categories/{bath.json()['id']}",
            json={"value": "bath", "label": "Bath"},
        )
        self.assertEqual(renamed.json()["value"], "bath")

        deleted = self.client.delete(f"/api/admin/categories/{bath.json()['id']}")
        self.assertEqual(deleted.status_code, 204)
        labels = [c["label"] for c in self.client.get("/api/categories").json()]
        self.assertEqual(labels, ["Attic"])

    def test_project_type_management(self):
        self.login()
        created = self.client.post(
            "/api/admin/project-types",
            json={"value": "commercial", "label": "Commercial"},
        )
        self.assertEqual(created.status_code, 201)
        types = self.client.get("/api/project-types").json()
        self.assertEqual(types[0]["createdAt"], created.json()["createdAt"])

        blank = self.client.post(
            "/api/admin/project-types", json={"value": " ", "label": "Blank"}
        )
        self.assertEqual(blank.status_code, 422)

    def test_founder_profile(self):
        self.assertEqual(self.client.get("/api/founder").status_code, 404)
        self.login()
        response = self.client.put(
            "/api/admin/founder",
            json={"name": "Shabnam Rumpf", "photoUrl": "https://example.test/me.jpg"},
        )
        self.assertEqual(response.status_code, 200)

        founder = self.client.get("/api/founder").json()
        self.assertEqual(founder["name"], "Shabnam Rumpf")
        self.assertEqual(founder["photoUrl"], "https://example.test/me.jpg")
        self.assertEqual(founder["moreInfo"], "")

    def test_upload_images(self):
        self.login()
        response = self.client.post(
            "/api/admin/uploads",
            files=[
                ("files", ("before.JPG", b"jpeg-bytes", "image/jpeg")),
                ("files", ("after.png", b"png-bytes", "image/png")),
            ],
        )
        self.assertEqual(response.status_code, 200)
        urls = response.json()["urls"]
        self.assertEqual(len(urls), 2)
        self.assertIn("/projects/", urls[0])
        self.assertTrue(urls[0].endswith(".jpg"))

        storage = get_storage_client()
        self.assertEqual(len(storage.stored_objects), 2)

    def test_upload_rejects_non_images(self):
        self.login()
        response = self.client.post(
            "/api/admin/uploads",
            files=[("files", ("notes.txt", b"hello", "text/plain"))],
        )
        self.assertEqual(response.status_code, 400)

    def test_delete_project_image(self):
        self.login()
        upload = self.client.post(
            "/api/admin/uploads",
            files=[("files", ("extra.jpg", b"jpeg-bytes", "image/jpeg"))],
        )
        extra_url = upload.json()["urls"][0]
        created = self.create_project(
            additionalImages=[extra_url, "https://example.test/keep.jpg"],
            beforeImage2="https://example.test/b2.jpg",
        )

        response = self.client.request(
            "DELETE",
            f"/api/admin/projects/{created['id']}/images",
            json={"imageUrl": extra_url, "imageType": "additional"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json()["additionalImages"], ["https://example.test/keep.jpg"]
        )
        self.assertEqual(get_storage_client().stored_objects, {})

        cleared = self.client.request(
            "DELETE",
            f"/api/admin/projects/{created['id']}/images",
            json={"imageUrl": "https://example.test/b2.jpg", "imageType": "beforeImage2"},
        )
        self.assertEqual(cleared.json()["beforeImage2"], "")

    def test_delete_project_image_rejects_unattached_url(self):
        self.login()
        created = self.create_project()
        response = self.client.request(
            "DELETE",
            f"/api/admin/projects/{created['id']}/images",
            json={"imageUrl": created["beforeImage1"], "imageType": "additional"},
        )
        self.assertEqual(response.status_code, 404)

    @patch("ecovibe.catalog.time.sleep")
    def test_busy_database_returns_503(self, mock_sleep):
        self.login()
        created = self.create_project()
        catalog = get_catalog()

        with patch.object(catalog.db, "update_project", side_effect=StoreBusyError()):
            response = self.client.put(
                f"/api/admin/projects/{created['id']}", json=project_payload()
            )

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["detail"], "Database busy, please try again")
        self.assertEqual(mock_sleep.call_count, 2)

    def test_storage_failure_returns_502(self):
        self.login()
        created = self.create_project()
        catalog = get_catalog()

        with patch.object(
            catalog, "delete_project", side_effect=StorageError("bucket unavailable")
        ):
            response = self.client.delete(f"/api/admin/projects/{created['id']}")

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["detail"], "bucket unavailable")

    def test_failed_upload_is_left_out(self):
        self.login()
        storage = get_storage_client()
        real_upload = storage.upload_bytes

        def upload_bytes(path, data, content_type):
            if data == b"broken":
                raise StorageError(f"Upload failed for {path}")
            real_upload(path, data, content_type)

        with patch.object(storage, "upload_bytes", side_effect=upload_bytes):
            with self.assertLogs("ecovibe.routes", level="ERROR"):
                response = self.client.post(
                    "/api/admin/uploads",
                    files=[
                        ("files", ("first.jpg", b"broken", "image/jpeg")),
                        ("files", ("second.jpg", b"jpeg-bytes", "image/jpeg")),
                    ],
                )

        self.assertEqual(response.status_code, 200)
        urls = response.json()["urls"]
        self.assertEqual(len(urls), 1)
        self.assertEqual(list(storage.stored_objects.values()), [b"jpeg-bytes"])

    def test_contact_details(self):
        contact = self.client.get("/api/contact").json()
        self.assertEqual(contact["phoneDisplay"], "(352) 214-2078")
        self.assertTrue(contact["mailtoLink"].startswith(f"mailto:{contact['email']}?subject="))


class PasscodeLoginTests(unittest.TestCase):
    def setUp(self):
        use_in_memory_backends(self, ADMIN_PASSCODE="2468")
        self.client = TestClient(create_app())

    def test_passcode_is_required_when_configured(self):
        missing = self.client.post(
            "/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
        )
        self.assertEqual(missing.status_code, 401)

        ok = self.client.post(
            "/api/auth/login",
            json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "passcode": "2468"},
        )
        self.assertEqual(ok.status_code, 200)


if __name__ == "__main__":
    unittest.main()
