"""Tests for the image-vault command line."""

import json

import pytest
from click.testing import CliRunner

from image_vault import __version__
from image_vault.cli.main import cli
from image_vault.storage import CollectionRegistry


@pytest.fixture
def data_home(tmp_path, monkeypatch):
    """Isolate the CLI from the user's real configuration."""
    home = tmp_path / "vault-home"
    monkeypatch.setenv("IMAGE_VAULT_DATA_HOME", str(home))
    monkeypatch.delenv("COLLECTIONS_DIRECTORY", raising=False)
    return home


@pytest.fixture
def run(data_home, collections_root):
    """Invoke the CLI against the temporary collections root."""
    runner = CliRunner()

    def _run(*args, **kwargs):
        return runner.invoke(cli, ["--root", str(collections_root), *args], **kwargs)
    return _run


@pytest.fixture
def stored_image(collections_root, jpg_image):
    """Collection c1 holding one image; returns the image id."""
    with CollectionRegistry(collections_root).create("c1") as col:
        return col.add_image(jpg_image).id


class TestCollectionsCommands:
    """Tests for version, init and collection management."""

    def test_version(self, run):
        """Test the version command."""
        result = run("version")
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_init(self, data_home):
        """Test init writes a default config once."""
        runner = CliRunner()

        first = runner.invoke(cli, ["init"])
        second = runner.invoke(cli, ["init"])

        assert first.exit_code == 0
        assert "Config created" in first.output
        assert "Config already exists" in second.output
        config = json.loads((data_home / "config.json").read_text())
        assert config["thumbnails"]["max_dimension"] == 400

    def test_create_and_list(self, run):
        """Test created collections are listed."""
        assert run("create", "c1").exit_code == 0
        assert run("create", "c2").exit_code == 0

        result = run("list")

        assert result.exit_code == 0
        assert result.output.split() == ["c1", "c2"]

    def test_list_empty(self, run):
        """Test the empty listing message."""
        result = run("list")
        assert result.exit_code == 0
        assert "no collections" in result.output

    def test_create_duplicate_exit_code(self, run):
        """Test duplicate names exit with the duplicate code."""
        run("create", "c1")

        result = run("create", "c1")

        assert result.exit_code == 4
        assert "DUPLICATE" in result.output

    def test_create_invalid_exit_code(self, run):
        """Test invalid names exit with the validation code."""
        result = run("create", "not valid")
        assert result.exit_code == 2

    def test_delete(self, run):
        """Test delete --yes removes the collection."""
        run("create", "c1")

        result = run("delete", "c1", "--yes")

        assert result.exit_code == 0
        assert "no collections" in run("list").output

    def test_delete_declined(self, run):
        """Test declining the prompt keeps the collection."""
        run("create", "c1")

        result = run("delete", "c1", input="n\n")

        assert result.exit_code != 0
        assert "c1" in run("list").output

    def test_delete_missing(self, run):
        """Test deleting an unknown collection exits with the not-found code."""
        assert run("delete", "ghost", "--yes").exit_code == 3

    def test_clear(self, run):
        """Test clear --yes removes everything."""
        run("create", "c1")
        run("create", "c2")

        result = run("clear", "--yes")

        assert result.exit_code == 0
        assert "no collections" in run("list").output


class TestConfigurationErrors:
    """Tests that bad settings exit cleanly with the validation code."""

    def test_non_numeric_env_override(self, run):
        """Test a non-numeric thumbnail quality is reported."""
        result = run("list", env={"THUMBNAIL_QUALITY": "high"})

        assert result.exit_code == 2
        assert "VALIDATION" in result.output
        assert isinstance(result.exception, SystemExit)

    def test_out_of_range_env_override(self, run):
        """Test a thumbnail quality outside 1-100 is reported."""
        result = run("list", env={"THUMBNAIL_QUALITY": "500"})

        assert result.exit_code == 2
        assert isinstance(result.exception, SystemExit)

    def test_malformed_config_file(self, run, tmp_path):
        """Test an unparsable config.json is reported."""
        config_path = tmp_path / "broken.json"
        config_path.write_text("{not json")

        result = run("--config", str(config_path), "list")

        assert result.exit_code == 2
        assert "Invalid configuration" in result.output

    def test_clear_with_bad_settings(self, run):
        """Test clear reports bad settings before prompting."""
        result = run("clear", env={"THUMBNAIL_MAX_DIMENSION": "0"})

        assert result.exit_code == 2
        assert isinstance(result.exception, SystemExit)


class TestImageCommands:
    """Tests for images, show and status."""

    def test_images_json(self, run, stored_image):
        """Test the JSON listing."""
        result = run("images", "c1", "--json")

        assert result.exit_code == 0
        records = json.loads(result.output)
        assert [r["id"] for r in records] == [stored_image]
        assert records[0]["status"] == "INBOX"

    def test_images_table(self, run, stored_image):
        """Test the table listing renders."""
        result = run("images", "c1")

        assert result.exit_code == 0
        assert "1 images" in result.output

    def test_images_status_filter(self, run, stored_image):
        """Test filtering the listing by status."""
        result = run("images", "c1", "--status", "ARCHIVE", "--json")

        assert result.exit_code == 0
        assert json.loads(result.output) == []

    def test_show(self, run, stored_image):
        """Test show prints the record."""
        result = run("show", "c1", stored_image)

        assert result.exit_code == 0
        assert json.loads(result.output)["name"] == "a"

    def test_show_missing_image(self, run, stored_image):
        """Test unknown ids exit with the not-found code."""
        result = run("show", "c1", "00000000-0000-0000-0000-000000000000")
        assert result.exit_code == 3

    def test_status(self, run, stored_image):
        """Test moving an image to another status."""
        result = run("status", "c1", stored_image, "ARCHIVE")

        assert result.exit_code == 0
        assert f"{stored_image}: ARCHIVE" in result.output
        listed = json.loads(run("images", "c1", "--status", "ARCHIVE", "--json").output)
        assert [r["id"] for r in listed] == [stored_image]

    def test_images_unknown_collection(self, run):
        """Test listing images of a missing collection."""
        assert run("images", "ghost").exit_code == 3
