"""Integration tests for the CLI layer."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner, Result
from PIL import Image

from imagemap_publisher.cli.main import cli
from imagemap_publisher.core.exceptions import UploadError
from imagemap_publisher.core.registry import ToolRegistry

WIDTHS = ("1040", "700", "460", "300", "240")


@pytest.fixture(autouse=True)
def _fresh_registry() -> Iterator[None]:
    """Give every test its own registry singleton."""
    ToolRegistry.reset()
    yield
    ToolRegistry.reset()


@pytest.fixture()
def cat_image(tmp_path: Path) -> Path:
    """Create 'cat.jpg' (400x300)."""
    path = tmp_path / "cat.jpg"
    Image.new("RGB", (400, 300), color=(200, 100, 50)).save(str(path))
    return path


@pytest.fixture()
def mock_gcs() -> Iterator[MagicMock]:
    """Replace ``GcsStorage`` in the CLI with a recording fake."""
    storage = MagicMock()
    storage.upload_file.side_effect = lambda bucket, destination, source, content_type: f"gs://{bucket}/{destination}"
    with patch("imagemap_publisher.cli.main.GcsStorage", return_value=storage) as factory:
        factory.storage = storage
        yield factory


def _invoke(*args: str, config_dir: Path) -> Result:
    runner = CliRunner()
    return runner.invoke(cli, ["--config-dir", str(config_dir), *args])


class TestPublishCommand:
    """Tests for the ``publish`` sub-command."""

    def test_help_shows_options(self) -> None:
        """``-h`` lists the three required flags."""
        result = CliRunner().invoke(cli, ["publish", "-h"])

        assert result.exit_code == 0
        assert "--bucket" in result.output
        assert "--to" in result.output
        assert "--from" in result.output

    def test_cat_scenario(self, cat_image: Path, mock_gcs: MagicMock, tmp_path: Path) -> None:
        """'cat.jpg' is converted under tmp-cat/cat and uploaded to photos/imagemaps/cat."""
        result = _invoke(
            "publish", "--bucket", "photos", "--to", "imagemaps/cat", "--from", str(cat_image),
            config_dir=tmp_path / "cfg",
        )

        assert result.exit_code == 0, result.output
        variant_dir = tmp_path / "tmp-cat" / "cat"
        assert sorted(p.name for p in variant_dir.iterdir()) == sorted(WIDTHS)

        calls = mock_gcs.storage.upload_file.call_args_list
        assert len(calls) == 5
        assert {c.args[0] for c in calls} == {"photos"}
        assert {c.args[1] for c in calls} == {f"imagemaps/cat/{w}" for w in WIDTHS}
        assert {c.args[3] for c in calls} == {"image/png"}
        assert "Published 5 variants to gs://photos/imagemaps/cat" in result.output

    def test_short_flags(self, cat_image: Path, mock_gcs: MagicMock, tmp_path: Path) -> None:
        """``-b``, ``-t`` and ``-f`` are accepted aliases."""
        result = _invoke("publish", "-b", "photos", "-t", "x", "-f", str(cat_image), config_dir=tmp_path / "cfg")

        assert result.exit_code == 0, result.output
        assert mock_gcs.storage.upload_file.call_count == 5

    def test_missing_source_has_no_side_effects(self, mock_gcs: MagicMock, tmp_path: Path) -> None:
        """A missing image is reported; nothing is written or uploaded."""
        missing = tmp_path / "missing.png"

        result = _invoke("publish", "-b", "photos", "-t", "x", "-f", str(missing), config_dir=tmp_path / "cfg")

        assert result.exit_code != 0
        assert "does not exist" in result.output
        assert list(tmp_path.iterdir()) == []
        mock_gcs.storage.upload_file.assert_not_called()

    def test_missing_required_flag(self, cat_image: Path, mock_gcs: MagicMock, tmp_path: Path) -> None:
        """Omitting ``--bucket`` is rejected before any work."""
        result = _invoke("publish", "-t", "x", "-f", str(cat_image), config_dir=tmp_path / "cfg")

        assert result.exit_code != 0
        assert "--bucket" in result.output
        assert not (tmp_path / "tmp-cat").exists()
        mock_gcs.storage.upload_file.assert_not_called()

    def test_corrupt_source_prevents_uploads(self, mock_gcs: MagicMock, tmp_path: Path) -> None:
        """An undecodable image fails conversion and no upload is attempted."""
        bad = tmp_path / "broken.png"
        bad.write_bytes(b"definitely not a png")

        result = _invoke("publish", "-b", "photos", "-t", "x", "-f", str(bad), config_dir=tmp_path / "cfg")

        assert result.exit_code == 1
        assert "could not be decoded" in result.output
        mock_gcs.storage.upload_file.assert_not_called()

    def test_upload_failure_exits_non_zero(self, cat_image: Path, mock_gcs: MagicMock, tmp_path: Path) -> None:
        """A rejected upload is reported and the command fails."""

        def _upload(bucket: str, destination: str, source: Path, content_type: str) -> str:
            if source.name == "460":
                msg = "404 bucket not found"
                raise UploadError(msg)
            return f"gs://{bucket}/{destination}"

        mock_gcs.storage.upload_file.side_effect = _upload

        result = _invoke("publish", "-b", "photos", "-t", "x", "-f", str(cat_image), config_dir=tmp_path / "cfg")

        assert result.exit_code == 1
        assert "1 of 5 uploads failed" in result.output
        assert mock_gcs.storage.upload_file.call_count == 5

    def test_cleanup_removes_scratch_dir(self, cat_image: Path, mock_gcs: MagicMock, tmp_path: Path) -> None:
        """``--cleanup`` deletes tmp-<name> after publishing."""
        result = _invoke(
            "publish", "-b", "photos", "-t", "x", "-f", str(cat_image), "--cleanup", config_dir=tmp_path / "cfg"
        )

        assert result.exit_code == 0, result.output
        assert not (tmp_path / "tmp-cat").exists()

    def test_cleanup_from_config(self, cat_image: Path, mock_gcs: MagicMock, tmp_path: Path) -> None:
        """``cleanup = true`` in config.toml removes the scratch directory."""
        cfg = tmp_path / "cfg"
        cfg.mkdir()
        (cfg / "config.toml").write_text("cleanup = true\n")

        result = _invoke("publish", "-b", "photos", "-t", "x", "-f", str(cat_image), config_dir=cfg)

        assert result.exit_code == 0, result.output
        assert not (tmp_path / "tmp-cat").exists()

    def test_project_from_tool_config(self, cat_image: Path, mock_gcs: MagicMock, tmp_path: Path) -> None:
        """The uploader's per-tool config supplies the GCP project."""
        tools_dir = tmp_path / "cfg" / "tools"
        tools_dir.mkdir(parents=True)
        (tools_dir / "variant_uploader.toml").write_text('project = "demo-project"\n')

        result = _invoke("publish", "-b", "photos", "-t", "x", "-f", str(cat_image), config_dir=tmp_path / "cfg")

        assert result.exit_code == 0, result.output
        mock_gcs.assert_called_once_with(project="demo-project")

    def test_symlinked_source_keeps_link_layout(self, mock_gcs: MagicMock, tmp_path: Path) -> None:
        """The scratch directory sits beside the link and is named after it."""
        store = tmp_path / "store"
        work = tmp_path / "work"
        store.mkdir()
        work.mkdir()
        target = store / "IMG_1234.jpg"
        Image.new("RGB", (400, 300)).save(str(target))
        (work / "cat.jpg").symlink_to(target)

        result = _invoke(
            "publish", "-b", "photos", "-t", "imagemaps/cat", "-f", str(work / "cat.jpg"),
            config_dir=tmp_path / "cfg",
        )

        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in (work / "tmp-cat" / "cat").iterdir()) == sorted(WIDTHS)
        assert sorted(p.name for p in store.iterdir()) == ["IMG_1234.jpg"]

    def test_unexpected_storage_error_is_reported(
        self, cat_image: Path, mock_gcs: MagicMock, tmp_path: Path
    ) -> None:
        """A non-``UploadError`` from the store still ends in a clean exit 1."""
        mock_gcs.storage.upload_file.side_effect = ValueError("checksum mismatch")

        result = _invoke("publish", "-b", "photos", "-t", "x", "-f", str(cat_image), config_dir=tmp_path / "cfg")

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "5 of 5 uploads failed" in result.output
        assert mock_gcs.storage.upload_file.call_count == 5


class TestResizeCommand:
    """Tests for the ``resize`` sub-command."""

    def test_resize_only(self, cat_image: Path, mock_gcs: MagicMock, tmp_path: Path) -> None:
        """Variants are written and nothing is uploaded."""
        result = _invoke("resize", "-f", str(cat_image), config_dir=tmp_path / "cfg")

        assert result.exit_code == 0, result.output
        assert "Converted 5 variants" in result.output
        assert (tmp_path / "tmp-cat" / "cat" / "1040").exists()
        mock_gcs.assert_not_called()

    def test_resize_to_custom_dir(self, cat_image: Path, tmp_path: Path) -> None:
        """``--output`` overrides the scratch root."""
        out = tmp_path / "work"
        result = _invoke("resize", "-f", str(cat_image), "-o", str(out), config_dir=tmp_path / "cfg")

        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in (out / "cat").iterdir()) == sorted(WIDTHS)

    def test_invalid_width_set_in_config(self, cat_image: Path, tmp_path: Path) -> None:
        """An unknown width set in config is reported as an error."""
        tools_dir = tmp_path / "cfg" / "tools"
        tools_dir.mkdir(parents=True)
        (tools_dir / "variant_resizer.toml").write_text('width_set = "retina"\n')

        result = _invoke("resize", "-f", str(cat_image), config_dir=tmp_path / "cfg")

        assert result.exit_code == 1
        assert "must be one of" in result.output


class TestTopLevelCli:
    """Tests for the root CLI group."""

    def test_version_flag(self) -> None:
        """``--version`` prints the package version."""
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_help_flag_shows_usage(self) -> None:
        """``-h`` on the root group shows usage text."""
        result = CliRunner().invoke(cli, ["-h"])

        assert result.exit_code == 0
        assert "Imagemap Publisher" in result.output
        assert "publish" in result.output
        assert "resize" in result.output

    def test_invalid_config_file(self, tmp_path: Path) -> None:
        """A malformed config.toml is reported as an error."""
        cfg = tmp_path / "cfg"
        cfg.mkdir()
        (cfg / "config.toml").write_text("cleanup = = true\n")

        result = CliRunner().invoke(cli, ["--config-dir", str(cfg), "resize", "-h"])

        assert result.exit_code == 1
        assert "Invalid configuration file" in result.output
