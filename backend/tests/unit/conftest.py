"""Shared fixtures for unit tests."""

from pathlib import Path

import pytest
from PIL import Image

from image_vault.storage import CollectionRegistry


def write_image(path: Path, size=(800, 600), color=(200, 30, 30), fmt=None) -> Path:
    """Write a solid-color test image and return its path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = 'RGBA' if len(color) == 4 else 'RGB'
    img = Image.new(mode, size, color=color)
    img.save(path, format=fmt)
    return path


@pytest.fixture
def collections_root(tmp_path):
    """Temporary collections root directory."""
    return tmp_path / "collections"


@pytest.fixture
def registry(collections_root):
    """Registry over an empty root."""
    return CollectionRegistry(collections_root)


@pytest.fixture
def collection(registry):
    """Open collection named c1, closed after the test."""
    col = registry.create("c1")
    yield col
    col.close()


@pytest.fixture
def source_dir(tmp_path):
    """Directory for source images outside the collections root."""
    path = tmp_path / "source"
    path.mkdir()
    return path


@pytest.fixture
def jpg_image(source_dir):
    """800x600 JPEG."""
    return write_image(source_dir / "a.jpg", size=(800, 600))


@pytest.fixture
def png_image(source_dir):
    """300x500 PNG with alpha."""
    return write_image(source_dir / "b.png", size=(300, 500), color=(10, 120, 200, 128))


@pytest.fixture
def webp_image(source_dir):
    """640x480 WebP."""
    return write_image(source_dir / "c.webp", size=(640, 480), color=(20, 200, 20))


@pytest.fixture
def make_image(source_dir):
    """Factory writing test images into the source directory."""
    def _make(filename, size=(800, 600), color=(200, 30, 30), fmt=None):
        return write_image(source_dir / filename, size=size, color=color, fmt=fmt)
    return _make
