"""Tests for repomix invocation. repomix itself is never run."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from repo_architect.errors import ScanError
from repo_architect.scan import REPOMIX_ARGS, _repomix_command, scan_files, scan_repo

PACKED = (
    "<files>\n"
    '<file path="src/app.py">print("hi")</file>\n'
    '<file path="src/orders.py">class Order: ...</file>\n'
    "</files>\n"
)


@pytest.fixture
def repomix_bin(monkeypatch):
    monkeypatch.setenv("REPOMIX_BIN", "/usr/local/bin/repomix")
    return "/usr/local/bin/repomix"


class TestRepomixCommand:

    def test_explicit_binary(self, repomix_bin):
        assert _repomix_command() == [repomix_bin]

    def test_path_then_npx(self, monkeypatch):
        monkeypatch.delenv("REPOMIX_BIN", raising=False)
        with patch("repo_architect.scan.shutil.which", side_effect=lambda name: "/bin/repomix" if name == "repomix" else None):
            assert _repomix_command() == ["/bin/repomix"]
        with patch("repo_architect.scan.shutil.which", side_effect=lambda name: "/bin/npx" if name == "npx" else None):
            assert _repomix_command() == ["/bin/npx", "--yes", "repomix"]

    def test_not_found(self, monkeypatch):
        monkeypatch.delenv("REPOMIX_BIN", raising=False)
        with patch("repo_architect.scan.shutil.which", return_value=None):
            with pytest.raises(ScanError, match="repomix not found"):
                _repomix_command()


class TestScanRepo:

    def test_counts_files(self, repomix_bin, tmp_path):
        with patch("repo_architect.scan.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(stdout=PACKED)
            result = scan_repo(tmp_path)

        assert result.content == PACKED
        assert result.file_count == 2
        args, kwargs = mock_run.call_args
        assert args[0] == [repomix_bin, *REPOMIX_ARGS]
        assert kwargs["cwd"] == tmp_path

    def test_ignore_and_include(self, repomix_bin, tmp_path):
        with patch("repo_architect.scan.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(stdout="")
            scan_repo(tmp_path, ignore=["*.gen.ts", "vendor/**"], include=["src/**"])

        command = mock_run.call_args[0][0]
        assert command[-4:] == ["--ignore", "*.gen.ts,vendor/**", "--include", "src/**"]

    def test_failure_raises_scan_error(self, repomix_bin, tmp_path):
        error = subprocess.CalledProcessError(2, ["repomix"], stderr="boom")
        with patch("repo_architect.scan.subprocess.run", side_effect=error):
            with pytest.raises(ScanError, match="boom"):
                scan_repo(tmp_path)

    def test_missing_binary_raises_scan_error(self, repomix_bin, tmp_path):
        with patch("repo_architect.scan.subprocess.run", side_effect=FileNotFoundError("repomix")):
            with pytest.raises(ScanError):
                scan_repo(tmp_path)


class TestScanFiles:

    def test_only_given_files(self, repomix_bin, tmp_path):
        with patch("repo_architect.scan.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(stdout=PACKED)
            result = scan_files(tmp_path, ["src/app.py", "src/orders.py"])

        assert result.file_count == 2
        assert mock_run.call_args[0][0][-2:] == ["--include", "src/app.py,src/orders.py"]

    def test_no_files_skips_repomix(self, tmp_path):
        with patch("repo_architect.scan.subprocess.run") as mock_run:
            result = scan_files(tmp_path, [])

        assert result.content == ""
        assert result.file_count == 0
        mock_run.assert_not_called()
