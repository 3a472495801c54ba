"""Tests for the art upload and art download commands."""

import argparse
from pathlib import Path
from unittest.mock import Mock, patch

from artstore.exceptions import RefExistsError, RefNotFoundError
from cli.__main__ import build_parser, main
from cli.commands.transfer import _handle_download, _handle_upload


def _upload_args(**overrides) -> argparse.Namespace:
    values = {
        "ref": "v1.0.0",
        "paths": ["model.bin"],
        "base_dir": None,
        "force": False,
        "message": None,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


class TestUploadCommand:
    """Tests for the upload command."""

    def test_uploads_and_reports(self, capsys):
        """Test that a successful upload prints a summary."""
        # Arrange
        args = _upload_args(force=True, message="nightly")
        manifest = Mock(entries=[Mock(), Mock()], ref="v1.0.0", total_size=2048)

        # Act
        with patch("cli.commands.transfer.build_manager") as mock_build:
            mock_build.return_value.upload.return_value = manifest

            result = _handle_upload(args)

            # Assert
            assert result == 0
            mock_build.return_value.upload.assert_called_once_with(
                ["model.bin"], "v1.0.0", base_dir=None, force=True, message="nightly"
            )

        assert capsys.readouterr().out == "Uploaded 2 files as v1.0.0 (2048 bytes)\n"

    def test_requires_paths(self, capsys):
        with patch("cli.commands.transfer.build_manager") as mock_build:
            result = _handle_upload(_upload_args(paths=[]))

            assert result == 1
            mock_build.assert_not_called()

        assert "requires a ref and at least one path" in capsys.readouterr().err

    def test_existing_ref_reported(self, capsys):
        with patch("cli.commands.transfer.build_manager") as mock_build:
            mock_build.return_value.upload.side_effect = RefExistsError(
                "version already exists; use force to replace it", ref="v1.0.0"
            )

            result = _handle_upload(_upload_args())

        assert result == 0
        assert capsys.readouterr().out == (
            "upload version already exists; use force to replace it (ref=v1.0.0) \n"
        )

    def test_parser_options(self):
        ns = build_parser().parse_args(
            ["upload", "v2", "a", "b", "--force", "-m", "msg", "--base-dir", "root"]
        )

        assert ns.ref == "v2"
        assert ns.paths == ["a", "b"]
        assert ns.force is True
        assert ns.message == "msg"
        assert ns.base_dir == "root"
        assert ns.func is _handle_upload


class TestDownloadCommand:
    """Tests for the download command."""

    def test_single_argument_downloads_latest(self, capsys):
        args = argparse.Namespace(args=["out"], no_verify=False)
        manifest = Mock(entries=[Mock()], ref="v3")

        with patch("cli.commands.transfer.build_manager") as mock_build:
            mock_build.return_value.download.return_value = manifest

            result = _handle_download(args)

            assert result == 0
            mock_build.return_value.download.assert_called_once_with("latest", "out", verify=None)

        assert capsys.readouterr().out == "Downloaded 1 files of v3 to out\n"

    def test_ref_and_destination(self):
        args = argparse.Namespace(args=["v1", "out"], no_verify=True)

        with patch("cli.commands.transfer.build_manager") as mock_build:
            result = _handle_download(args)

            assert result == 0
            mock_build.return_value.download.assert_called_once_with("v1", "out", verify=False)

    def test_wrong_argument_count(self, capsys):
        for argv in ([], ["a", "b", "c"]):
            with patch("cli.commands.transfer.build_manager") as mock_build:
                assert _handle_download(argparse.Namespace(args=argv, no_verify=False)) == 1
                mock_build.assert_not_called()

        assert "requires [ref] and a destination directory" in capsys.readouterr().err

    def test_missing_ref_reported(self, capsys):
        with patch("cli.commands.transfer.build_manager") as mock_build:
            mock_build.return_value.download.side_effect = RefNotFoundError(
                "version not found", ref="v9"
            )

            result = _handle_download(argparse.Namespace(args=["v9", "out"], no_verify=False))

        assert result == 0
        assert capsys.readouterr().out == "download version not found (ref=v9) \n"


class TestTransferEndToEnd:
    """Tests running upload and download against a local repository."""

    def test_upload_then_download(self, tmp_path: Path, capsys, monkeypatch):
        monkeypatch.setenv("ART_REPOSITORY", str(tmp_path / "repo"))
        source = tmp_path / "model.bin"
        source.write_bytes(b"weights")
        env = ["--env-file", str(tmp_path / "none.env")]

        assert main([*env, "upload", "v1", str(source)]) == 0
        assert capsys.readouterr().out == "Uploaded 1 files as v1 (7 bytes)\n"

        assert main([*env, "upload", "v1", str(source)]) == 0
        assert capsys.readouterr().out.startswith("upload version already exists")

        assert main([*env, "download", str(tmp_path / "out")]) == 0
        assert (tmp_path / "out" / "model.bin").read_bytes() == b"weights"
