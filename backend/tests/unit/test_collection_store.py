"""Tests for the collection directory layout."""

import pytest

from image_vault.storage import CollectionStore, UnsafePathError
from image_vault.storage.collection_store import safe_component


@pytest.fixture
def store(tmp_path):
    """Store for collection c1 with its layout created and catalog open."""
    store = CollectionStore(tmp_path, "c1")
    store.collection_path.mkdir()
    store.create_layout()
    store.open(create=True)
    yield store
    store.close()


class TestLayout:
    """Tests for paths below the collection directory."""

    def test_paths(self, store, tmp_path):
        """Test the persisted directory layout."""
        root = tmp_path / "c1"
        assert store.db_path == root / "collection.db"
        assert store.originals_dir == root / "images" / "original"
        assert store.thumbnails_dir == root / "images" / "thumbnails"
        assert store.original_path("abc", "png") == root / "images" / "original" / "abc.png"
        assert store.thumbnail_path("abc") == root / "images" / "thumbnails" / "abc.jpg"

    def test_layout_created(self, store):
        """Test create_layout builds both image directories."""
        assert store.exists()
        assert store.originals_dir.is_dir()
        assert store.thumbnails_dir.is_dir()
        assert store.db_path.is_file()

    @pytest.mark.parametrize("value", ["", "..", "../x", "a/b", "a\\b", "nul\x00"])
    def test_unsafe_components(self, store, value):
        """Test traversal attempts are refused."""
        with pytest.raises(UnsafePathError):
            store.thumbnail_path(value)
        with pytest.raises(UnsafePathError):
            safe_component(value)

    def test_unsafe_collection_id(self, tmp_path):
        """Test the collection id itself is checked."""
        with pytest.raises(UnsafePathError):
            CollectionStore(tmp_path, "../outside")


class TestLifecycle:
    """Tests for opening and closing."""

    def test_close_once(self, store):
        """Test close releases the catalog and is idempotent."""
        assert store.is_open
        store.close()
        store.close()
        assert not store.is_open

    def test_reopen(self, store):
        """Test a closed store can be opened again."""
        store.close()
        store.open()
        assert store.is_open
