"""
Unit tests for photo storage on disk
"""

import io
import os
import tempfile
import time
import unittest
from datetime import timedelta
from pathlib import Path

from starlette.datastructures import Headers
from fastapi import UploadFile

import support  # noqa: F401
from errors import InvalidUpload
from storage import PhotoStorage


def make_upload(data, filename="receipt.png", content_type="image/png"):
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


class TestPhotoStorage(unittest.TestCase):
    """Test save / delete / sweep_orphans"""

    def setUp(self):
        self.dir = tempfile.mkdtemp(prefix="photos-")
        self.storage = PhotoStorage(self.dir, max_bytes=1024)

    def test_save_writes_file(self):
        stored = self.storage.save(make_upload(b"x" * 100, filename="../../etc/my receipt.png"))
        self.assertEqual(stored.file_size, 100)
        self.assertEqual(stored.file_type, "image/png")
        self.assertEqual(stored.file_name, "etc_my_receipt.png")
        path = Path(stored.file_path)
        self.assertEqual(path.parent, Path(self.dir))
        self.assertTrue(path.name.endswith("_etc_my_receipt.png"))
        self.assertEqual(path.read_bytes(), b"x" * 100)

    def test_same_name_does_not_collide(self):
        first = self.storage.save(make_upload(b"a"))
        second = self.storage.save(make_upload(b"b"))
        self.assertNotEqual(first.file_path, second.file_path)

    def test_rejects_non_image(self):
        with self.assertRaises(InvalidUpload):
            self.storage.save(make_upload(b"%PDF", filename="a.pdf", content_type="application/pdf"))
        self.assertEqual(os.listdir(self.dir), [])

    def test_rejects_oversized_and_cleans_up(self):
        with self.assertRaises(InvalidUpload):
            self.storage.save(make_upload(b"x" * 1025))
        self.assertEqual(os.listdir(self.dir), [])

    def test_limit_is_inclusive(self):
        stored = self.storage.save(make_upload(b"x" * 1024))
        self.assertEqual(stored.file_size, 1024)

    def test_rejects_empty(self):
        with self.assertRaises(InvalidUpload):
            self.storage.save(make_upload(b""))
        self.assertEqual(os.listdir(self.dir), [])

    def test_delete_missing_file_is_quiet(self):
        stored = self.storage.save(make_upload(b"abc"))
        self.storage.delete(stored.file_path)
        self.assertFalse(os.path.exists(stored.file_path))
        self.storage.delete(stored.file_path)

    def test_sweep_removes_only_old_unreferenced_files(self):
        kept = self.storage.save(make_upload(b"kept")).file_path
        orphan = self.storage.save(make_upload(b"orphan")).file_path
        fresh = self.storage.save(make_upload(b"fresh")).file_path
        old = time.time() - 7200
        for path in (kept, orphan):
            os.utime(path, (old, old))

        removed = self.storage.sweep_orphans([kept], older_than=timedelta(hours=1))

        self.assertEqual(removed, 1)
        self.assertTrue(os.path.exists(kept))
        self.assertFalse(os.path.exists(orphan))
        self.assertTrue(os.path.exists(fresh))

    def test_sweep_without_directory(self):
        storage = PhotoStorage(os.path.join(self.dir, "missing"), max_bytes=10)
        self.assertEqual(storage.sweep_orphans([], older_than=timedelta(0)), 0)


if __name__ == "__main__":
    unittest.main()
