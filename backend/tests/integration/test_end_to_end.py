"""End-to-end integration tests for the image vault.

These tests drive the public registry and collection API through complete
curation workflows and check the catalog against the files on disk.
"""

import shutil
import tempfile
from pathlib import Path

import pytest
from PIL import Image

from image_vault import CollectionRegistry, DuplicateError, ImageStatus


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def photos(temp_dir):
    """Five distinct source photos in mixed formats."""
    source = temp_dir / "photos"
    source.mkdir()
    specs = [
        ("beach.jpg", (1600, 1200), (30, 144, 255), "JPEG"),
        ("forest.png", (900, 1200), (34, 139, 34), "PNG"),
        ("sunset.webp", (1920, 1080), (255, 99, 71), "WEBP"),
        ("portrait.jpeg", (600, 900), (210, 180, 140), "JPEG"),
        ("icon.png", (64, 64), (0, 0, 0), "PNG"),
    ]
    paths = []
    for filename, size, color, fmt in specs:
        path = source / filename
        Image.new("RGB", size, color=color).save(path, format=fmt)
        paths.append(path)
    return paths


def assert_consistent(collection):
    """Every row has both files and every file has a row."""
    records = collection.get_images()
    originals = {p.name for p in collection.store.originals_dir.iterdir()}
    thumbnails = {p.name for p in collection.store.thumbnails_dir.iterdir()}

    assert originals == {r.original_filename for r in records}
    assert thumbnails == {f"{r.id}.jpg" for r in records}


class TestCurationWorkflow:
    """Full add, curate and delete cycle."""

    def test_full_workflow(self, temp_dir, photos):
        """Test ingest, duplicate rejection, curation, deletion and reload."""
        registry = CollectionRegistry(temp_dir / "collections")

        with registry.create("holiday") as collection:
            added = [collection.add_image(path) for path in photos]
            assert len(collection) == 5
            assert all(r.status == ImageStatus.INBOX for r in added)
            assert_consistent(collection)

            copy = temp_dir / "photos" / "beach-copy.jpg"
            shutil.copyfile(photos[0], copy)
            with pytest.raises(DuplicateError):
                collection.add_image(copy)
            assert len(collection) == 5

            collection.update_images({added[0].id: "COLLECTION", added[1].id: "COLLECTION"})
            collection.update_image_status(added[2].id, "ARCHIVE")
            collection.delete_image(added[3].id)

            stats = collection.get_stats()
            assert stats["INBOX"] == 1
            assert stats["COLLECTION"] == 2
            assert stats["ARCHIVE"] == 1
            assert stats["total"] == 4
            assert_consistent(collection)

        with registry.load("holiday") as collection:
            curated = collection.get_images(status="COLLECTION", order_by="created_at", direction="ASC")
            assert [r.id for r in curated] == [added[0].id, added[1].id]
            assert collection.get_image_data(added[4].id) == photos[4].read_bytes()
            assert_consistent(collection)

        registry.delete("holiday")
        assert registry.list() == []


class TestScenarios:
    """Reference scenarios for the public API."""

    def test_duplicate_content(self, temp_dir, photos):
        """Test identical bytes under a new name are rejected."""
        registry = CollectionRegistry(temp_dir / "collections")
        copy = temp_dir / "photos" / "a-copy.jpg"
        shutil.copyfile(photos[0], copy)

        with registry.create("c1") as collection:
            record = collection.add_image(photos[0])
            assert record.status == ImageStatus.INBOX

            with pytest.raises(DuplicateError):
                collection.add_image(copy)
            assert len(collection.get_images()) == 1

    def test_status_filtering(self, temp_dir, photos):
        """Test a moved image leaves the INBOX listing."""
        registry = CollectionRegistry(temp_dir / "collections")

        with registry.create("c1") as collection:
            record = collection.add_image(photos[1])
            collection.update_image_status(record.id, "COLLECTION")

            assert record.id in [r.id for r in collection.get_images(status="COLLECTION")]
            assert record.id not in [r.id for r in collection.get_images(status="INBOX")]

    def test_duplicate_collection(self, temp_dir):
        """Test a second create with the same name is rejected."""
        registry = CollectionRegistry(temp_dir / "collections")
        registry.create("x").close()

        with pytest.raises(DuplicateError):
            registry.create("x")
        assert registry.list() == ["x"]
