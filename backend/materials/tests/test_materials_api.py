import os
import shutil
import tempfile
from unittest import mock

from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from rest_framework.test import APITestCase

from materials.models import Material, Section

ADMIN_TOKEN = "test-admin-token"
YOUTUBE_URL = "https://youtu.be/dQw4w9WgXcQ"
DRIVE_URL = "https://drive.google.com/file/d/1aBcD/view"


def make_image_bytes(size_bytes: int, seed: int = 1) -> bytes:
    # deterministic bytes; content doesn't matter, only name and size are checked
    return (seed.to_bytes(4, "big") * ((size_bytes // 4) + 1))[:size_bytes]


class TestMaterialsAPI(APITestCase):
    """
    End-to-end tests for the materials API:
        - Admin token gate on writes, public reads
        - Section create/update with slug derivation and conflicts
        - Material create per file type, embed/open URLs
        - Validation errors (no row written)
        - Image upload, replacement and rejection
        - Material delete and section cascade delete releasing image blobs

    Each test isolates MEDIA_ROOT via a temp dir and cleans up afterward.
    """

    def setUp(self):
        # fresh MEDIA_ROOT per test
        self.temp_media_dir = tempfile.mkdtemp(prefix="media_")
        self.addCleanup(lambda: shutil.rmtree(self.temp_media_dir, ignore_errors=True))

        self.base_overrides = override_settings(
            MEDIA_ROOT=self.temp_media_dir,
            MATERIALS={"ADMIN_TOKEN": ADMIN_TOKEN, "IMAGE_UPLOAD_DIR": "images", "ALLOW_EMPTY_IMAGE": False},
        )
        self.base_overrides.enable()
        self.addCleanup(self.base_overrides.disable)

        self.sections_url = "/api/sections/"
        self.materials_url = "/api/materials/"
        self.h_admin = {"HTTP_X_ADMIN_TOKEN": ADMIN_TOKEN}

    # ------------------ helpers ------------------
    def _create_section(self, name, slug="", headers=None):
        return self.client.post(self.sections_url, {"name": name, "slug": slug}, format="json",
                                **(self.h_admin if headers is None else headers))

    def _create_material(self, data, image=None):
        payload = dict(data)
        if image is not None:
            payload["image"] = image
        return self.client.post(self.materials_url, payload, format="multipart", **self.h_admin)

    def _update_material(self, material_id, data, image=None):
        payload = dict(data)
        if image is not None:
            payload["image"] = image
        return self.client.patch(f"{self.materials_url}{material_id}/", payload, format="multipart", **self.h_admin)

    def _image(self, name="photo.png", size=4096, seed=1):
        return SimpleUploadedFile(name, make_image_bytes(size, seed), content_type="image/png")

    def _section(self, name="Physics"):
        r = self._create_section(name)
        self.assertEqual(r.status_code, 201, r.content)
        return r.json()

    def _blob_path(self, name):
        return os.path.join(self.temp_media_dir, name)

    # ------------------ tests ------------------
    '''
        Admin gate:
            Reads need no token; writes without / with a wrong token get 403.
    '''
    def test_01_writes_require_admin_token(self):
        self.assertEqual(self.client.get(self.sections_url).status_code, 200)
        self.assertEqual(self._create_section("Nope", headers={}).status_code, 403)
        wrong = self._create_section("Nope", headers={"HTTP_X_ADMIN_TOKEN": "guess"})
        self.assertEqual(wrong.status_code, 403)
        self.assertFalse(Section.objects.exists())

    '''
        Sections:
            Slug derived from the name, explicit slugs normalised,
            duplicates rejected with slug_conflict, lookup by slug.
    '''
    def test_02_section_slugs(self):
        r1 = self._create_section("Intro to Python")
        self.assertEqual(r1.status_code, 201)
        self.assertEqual(r1.json()["slug"], "intro-to-python")
        self.assertEqual(r1.json()["material_count"], 0)

        r2 = self._create_section("Another", slug="Intro To Python")
        self.assertEqual(r2.status_code, 400)
        self.assertEqual(r2.json()["code"], "slug_conflict")

        r3 = self._create_section("   ")
        self.assertEqual(r3.status_code, 400)
        self.assertEqual(r3.json()["code"], "name_required")

        by_slug = self.client.get(f"{self.sections_url}by-slug/intro-to-python/")
        self.assertEqual(by_slug.status_code, 200)
        self.assertEqual(by_slug.json()["id"], r1.json()["id"])
        self.assertEqual(self.client.get(f"{self.sections_url}by-slug/missing/").status_code, 404)

    def test_03_section_update_keeps_own_slug(self):
        section = self._section("Chemistry")
        url = f"{self.sections_url}{section['id']}/"

        # same slug on the same section is not a conflict
        r = self.client.put(url, {"name": "Chemistry 101", "slug": "chemistry"}, format="json", **self.h_admin)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["name"], "Chemistry 101")
        self.assertEqual(r.json()["slug"], "chemistry")

        # PATCH without slug keeps it
        r = self.client.patch(url, {"name": "Organic Chemistry"}, format="json", **self.h_admin)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["slug"], "chemistry")

        other = self._section("Biology")
        r = self.client.patch(url, {"slug": other["slug"]}, format="json", **self.h_admin)
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["code"], "slug_conflict")

    '''
        Materials per type:
            YouTube and Drive get embed + open URLs; image gets a served URL.
    '''
    def test_04_create_materials_and_display_urls(self):
        section = self._section()

        yt = self._create_material({"section_id": section["id"], "title": "Video", "file_type": "youtube",
                                    "file_url": YOUTUBE_URL})
        self.assertEqual(yt.status_code, 201, yt.content)
        d = yt.json()
        self.assertEqual(d["embed_url"], "https://www.youtube.com/embed/dQw4w9WgXcQ")
        self.assertEqual(d["open_url"], "https://www.youtube.com/watch?v=dQw4w9WgXcQ")
        self.assertIsNone(d["image_path"])
        self.assertEqual(d["section_slug"], "physics")
        self.assertEqual(d["file_type_label"], "Youtube")

        doc = self._create_material({"section_id": section["id"], "title": "Notes", "file_type": "gdrive_pdf",
                                     "file_url": DRIVE_URL})
        self.assertEqual(doc.status_code, 201, doc.content)
        self.assertEqual(doc.json()["embed_url"], "https://drive.google.com/file/d/1aBcD/preview")
        self.assertEqual(doc.json()["open_url"], DRIVE_URL)

        img = self._create_material({"section_id": section["id"], "title": "Diagram", "file_type": "image",
                                     "file_url": DRIVE_URL}, image=self._image("diagram.PNG"))
        self.assertEqual(img.status_code, 201, img.content)
        d = img.json()
        self.assertIsNone(d["file_url"])
        self.assertTrue(d["image_path"].endswith(".png"))
        self.assertEqual(d["image_url"], f"/media/{d['image_path']}")
        self.assertEqual(d["embed_url"], d["image_url"])
        self.assertTrue(os.path.exists(self._blob_path(d["image_path"])))

        listing = self.client.get(self.materials_url, {"section_slug": "physics"})
        self.assertEqual(listing.status_code, 200)
        self.assertEqual(len(listing.json()), 3)

        self.assertEqual(self.client.get(self.sections_url).json()[0]["material_count"], 3)

        stats = self.client.get(f"{self.materials_url}stats/").json()
        self.assertEqual(stats["sections"], 1)
        self.assertEqual(stats["materials"], 3)
        self.assertEqual(stats["by_file_type"], {"youtube": 1, "gdrive_pdf": 1, "image": 1})

    '''
        Validation:
            Each failure returns its code and writes nothing.
    '''
    def test_05_validation_errors_write_nothing(self):
        section = self._section()
        cases = [
            ({"section_id": section["id"], "title": "", "file_type": "youtube", "file_url": YOUTUBE_URL}, "title_required"),
            ({"section_id": 9999, "title": "T", "file_type": "youtube", "file_url": YOUTUBE_URL}, "section_required"),
            ({"section_id": section["id"], "title": "T", "file_type": "pdf", "file_url": DRIVE_URL}, "invalid_file_type"),
            ({"section_id": section["id"], "title": "T", "file_type": "youtube", "file_url": ""}, "youtube_url_required"),
            ({"section_id": section["id"], "title": "T", "file_type": "youtube", "file_url": "not a url"}, "invalid_youtube_url"),
            ({"section_id": section["id"], "title": "T", "file_type": "image"}, "image_required"),
        ]
        for data, code in cases:
            with self.subTest(code=code):
                r = self._create_material(data)
                self.assertEqual(r.status_code, 400)
                self.assertEqual(r.json()["code"], code)
        self.assertFalse(Material.objects.exists())

    '''
        Upload rejection:
            6 MiB image and .exe file are rejected, no blob written.
    '''
    def test_06_upload_rejected(self):
        section = self._section()
        base = {"section_id": section["id"], "title": "Pic", "file_type": "image"}

        too_big = self._create_material(base, image=self._image("big.png", size=6 * 1024 * 1024))
        self.assertEqual(too_big.status_code, 400)
        self.assertEqual(too_big.json()["code"], "image_upload_failed")

        exe = self._create_material(base, image=self._image("setup.exe"))
        self.assertEqual(exe.status_code, 400)
        self.assertEqual(exe.json()["code"], "image_upload_failed")

        self.assertFalse(Material.objects.exists())
        self.assertFalse(os.path.exists(self._blob_path("images")) and os.listdir(self._blob_path("images")))

    '''
        Image replacement:
            New blob stored, old blob released, path changes.
            Keeping the image (no upload) leaves the blob alone.
    '''
    def test_07_replace_image_releases_old_blob(self):
        section = self._section()
        created = self._create_material({"section_id": section["id"], "title": "Pic", "file_type": "image"},
                                        image=self._image("a.png", seed=1))
        self.assertEqual(created.status_code, 201, created.content)
        old_path = created.json()["image_path"]

        kept = self._update_material(created.json()["id"], {"title": "Pic renamed"})
        self.assertEqual(kept.status_code, 200, kept.content)
        self.assertEqual(kept.json()["image_path"], old_path)
        self.assertTrue(default_storage.exists(old_path))

        replaced = self._update_material(created.json()["id"], {}, image=self._image("b.webp", seed=2))
        self.assertEqual(replaced.status_code, 200, replaced.content)
        new_path = replaced.json()["image_path"]
        self.assertNotEqual(new_path, old_path)
        self.assertTrue(new_path.endswith(".webp"))
        self.assertTrue(default_storage.exists(new_path))
        self.assertFalse(default_storage.exists(old_path))

    def test_08_failed_replacement_keeps_old_image(self):
        section = self._section()
        created = self._create_material({"section_id": section["id"], "title": "Pic", "file_type": "image"},
                                        image=self._image())
        old_path = created.json()["image_path"]

        r = self._update_material(created.json()["id"], {}, image=self._image("bad.exe"))
        self.assertEqual(r.status_code, 400)
        self.assertTrue(default_storage.exists(old_path))
        self.assertEqual(Material.objects.get(pk=created.json()["id"]).image_path, old_path)

    def test_09_type_change_releases_image(self):
        section = self._section()
        created = self._create_material({"section_id": section["id"], "title": "Pic", "file_type": "image"},
                                        image=self._image())
        old_path = created.json()["image_path"]

        r = self._update_material(created.json()["id"], {"file_type": "youtube", "file_url": YOUTUBE_URL})
        self.assertEqual(r.status_code, 200, r.content)
        self.assertIsNone(r.json()["image_path"])
        self.assertEqual(r.json()["file_url"], YOUTUBE_URL)
        self.assertFalse(default_storage.exists(old_path))

    '''
        Deletes:
            Material delete releases its blob; section delete cascades to
            all its materials and releases their blobs.
    '''
    def test_10_delete_material_releases_blob(self):
        section = self._section()
        created = self._create_material({"section_id": section["id"], "title": "Pic", "file_type": "image"},
                                        image=self._image())
        path = created.json()["image_path"]

        r = self.client.delete(f"{self.materials_url}{created.json()['id']}/", **self.h_admin)
        self.assertEqual(r.status_code, 204)
        self.assertFalse(Material.objects.exists())
        self.assertFalse(default_storage.exists(path))

    def test_11_delete_section_cascades(self):
        section = self._section()
        other = self._section("Biology")
        img = self._create_material({"section_id": section["id"], "title": "Pic", "file_type": "image"},
                                    image=self._image())
        self._create_material({"section_id": section["id"], "title": "Video", "file_type": "youtube",
                               "file_url": YOUTUBE_URL})
        survivor = self._create_material({"section_id": other["id"], "title": "Doc", "file_type": "gdrive_word",
                                          "file_url": "https://docs.google.com/document/d/xyz/edit"})
        path = img.json()["image_path"]
        self.assertTrue(default_storage.exists(path))

        r = self.client.delete(f"{self.sections_url}{section['id']}/", **self.h_admin)
        self.assertEqual(r.status_code, 204)

        self.assertFalse(Section.objects.filter(pk=section["id"]).exists())
        self.assertFalse(Material.objects.filter(section_id=section["id"]).exists())
        self.assertFalse(default_storage.exists(path))
        self.assertTrue(Material.objects.filter(pk=survivor.json()["id"]).exists())
        self.assertEqual(
            survivor.json()["embed_url"], "https://docs.google.com/document/d/xyz/preview",
        )

    '''
        Field shapes (JSON body):
            A number is read as text; lists, objects and over-long
            titles are field errors. Nothing reaches the validator.
    '''
    def test_12_json_field_shapes(self):
        section = self._section()
        base = {"section_id": section["id"], "title": "T", "file_type": "youtube", "file_url": YOUTUBE_URL}

        numeric = self.client.post(self.materials_url, {**base, "title": 123}, format="json", **self.h_admin)
        self.assertEqual(numeric.status_code, 201, numeric.content)
        self.assertEqual(numeric.json()["title"], "123")

        listed = self.client.post(self.materials_url, {**base, "file_url": [YOUTUBE_URL]}, format="json",
                                  **self.h_admin)
        self.assertEqual(listed.status_code, 400)
        self.assertIn("file_url", listed.json())

        for title in [{"en": "T"}, "x" * 256]:
            with self.subTest(title=str(title)[:10]):
                r = self.client.post(self.materials_url, {**base, "title": title}, format="json", **self.h_admin)
                self.assertEqual(r.status_code, 400)
                self.assertIn("title", r.json())

        self.assertEqual(Material.objects.count(), 1)

    '''
        Unset token:
            With no ADMIN_TOKEN configured every write is refused,
            an empty header included.
    '''
    def test_13_empty_admin_token_closes_writes(self):
        with override_settings(MATERIALS={"ADMIN_TOKEN": "", "IMAGE_UPLOAD_DIR": "images", "ALLOW_EMPTY_IMAGE": False}):
            self.assertEqual(self._create_section("Nope", headers={"HTTP_X_ADMIN_TOKEN": ""}).status_code, 403)
            self.assertEqual(self._create_section("Nope", headers={}).status_code, 403)
        self.assertFalse(Section.objects.exists())

    '''
        Blob write failure:
            The storage backend raising is a 500 with blob_write_failed
            and no material row.
    '''
    def test_14_blob_write_failure_is_500(self):
        section = self._section()
        with mock.patch("django.core.files.storage.FileSystemStorage.save", side_effect=OSError("disk full")):
            r = self._create_material({"section_id": section["id"], "title": "Pic", "file_type": "image"},
                                      image=self._image())
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json()["code"], "blob_write_failed")
        self.assertFalse(Material.objects.exists())
