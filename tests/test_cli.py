"""Tests for the gscp command line."""

from unittest.mock import MagicMock, Mock, patch

import pytest
from googleapiclient.errors import HttpError

from gscp import cli
from gscp.google import RemotePathError
from gscp.storage import Authenticated, AuthorizationNeeded


@pytest.fixture
def env(tmp_path, monkeypatch):
    """Point configuration at a temporary cache and .env file."""
    monkeypatch.setattr(cli, "ENV_FILE", tmp_path / ".env")
    monkeypatch.setenv("GSCP_CLIENT_ID", "id")
    monkeypatch.setenv("GSCP_CLIENT_SECRET", "secret")
    monkeypatch.setenv("GSCP_CACHE", str(tmp_path / "gscp" / "cache.json"))
    monkeypatch.delenv("GSCP_CODE", raising=False)
    return tmp_path


@pytest.fixture
def storage():
    """Replace StorageClient with an authenticated mock."""
    client = MagicMock()
    client.authenticate.return_value = Authenticated(service=MagicMock(), session=MagicMock())
    with patch.object(cli, "StorageClient", return_value=client):
        yield client


class TestUsage:
    """Test argument validation."""

    @pytest.mark.parametrize("argv", [[], ["a", "b", "c"]])
    def test_wrong_arity(self, argv, capsys):
        """Should print usage and exit 1."""
        assert cli.main(argv) == 1
        captured = capsys.readouterr()
        assert "usage: gscp" in captured.err
        assert captured.out == ""

    def test_missing_client_id(self, env, monkeypatch, capsys):
        """Should report missing credentials."""
        monkeypatch.delenv("GSCP_CLIENT_ID")
        assert cli.main(["project"]) == 1
        assert "Please set GSCP_CLIENT_ID" in capsys.readouterr().err

    def test_creates_cache_file(self, env, storage):
        """Should create an empty token cache."""
        storage.buckets.return_value = []
        cli.main(["project"])
        assert (env / "gscp" / "cache.json").read_text() == ""


class TestAuthorization:
    """Test authorization output."""

    def test_prints_authorization_url(self, env, storage, capsys):
        """Should print the URL and stop before any operation."""
        storage.authenticate.return_value = AuthorizationNeeded("https://accounts.google.com/x")

        assert cli.main(["p@b:o", "out.txt"]) == 1

        out = capsys.readouterr().out
        assert "GSCP_CODE=YOUR_CODE" in out
        assert "https://accounts.google.com/x" in out
        storage.get.assert_not_called()

    def test_reports_cached_token(self, env, storage, capsys):
        """Should say where the exchanged token was cached."""
        storage.authenticate.return_value = Authenticated(
            service=MagicMock(), session=MagicMock(), exchanged=True
        )
        storage.config.cache_path = env / "gscp" / "cache.json"
        storage.buckets.return_value = []

        assert cli.main(["project"]) == 0
        assert "Token is cached in" in capsys.readouterr().out


class TestCommands:
    """Test command dispatch."""

    def test_download(self, env, storage):
        """Should download when the source is remote."""
        assert cli.main(["p@b:o", "out.txt"]) == 0
        storage.get.assert_called_once_with("p@b:o", "out.txt")
        storage.put.assert_not_called()

    def test_upload(self, env, storage):
        """Should upload when the source is local."""
        assert cli.main(["in.txt", "p@b:o"]) == 0
        storage.put.assert_called_once_with("in.txt", "p@b:o")
        storage.chmod.assert_not_called()

    def test_upload_public(self, env, storage):
        """Should grant public read after upload with --public."""
        assert cli.main(["--public", "in.txt", "p@b:o"]) == 0
        storage.chmod.assert_called_once_with("p@b:o")

    def test_list_objects(self, env, storage, capsys):
        """Should print object names for project@bucket."""
        storage.ls.return_value = ["a", "b"]
        assert cli.main(["p@b"]) == 0
        assert capsys.readouterr().out.splitlines() == ["a", "b"]
        storage.ls.assert_called_once_with("p@b")

    def test_list_buckets(self, env, storage, capsys):
        """Should print bucket IDs for a bare project."""
        storage.buckets.return_value = ["b1", "b2"]
        assert cli.main(["p"]) == 0
        assert capsys.readouterr().out.splitlines() == ["b1", "b2"]
        storage.buckets.assert_called_once_with("p")

    def test_remote_path_error(self, env, storage, capsys):
        """Should print malformed remote paths and exit 1."""
        storage.get.side_effect = RemotePathError("p@b", "project@bucket:object")
        assert cli.main(["p@b", "out.txt"]) == 1
        assert "not fully specified" in capsys.readouterr().err

    def test_api_error(self, env, storage):
        """Should exit 1 on API errors."""
        storage.buckets.side_effect = HttpError(Mock(status=403, reason="Forbidden"), b"denied")
        assert cli.main(["p"]) == 1

    def test_io_error(self, env, storage):
        """Should exit 1 when the local file cannot be read."""
        storage.put.side_effect = FileNotFoundError("in.txt")
        assert cli.main(["in.txt", "p@b:o"]) == 1


class TestTokenCommands:
    """Test --status and --logout."""

    def test_status_no_token(self, env, capsys):
        """Should report a missing token."""
        assert cli.main(["--status"]) == 1
        assert "No token found" in capsys.readouterr().out

    def test_status_with_token(self, env, storage, capsys):
        """Should print token details."""
        storage.oauth.get_token_info.return_value = {
            "status": "valid",
            "cache": "cache.json",
            "scopes": ["s"],
            "expires_in": "0:30:00",
        }
        assert cli.main(["--status"]) == 0
        assert "Status     : valid" in capsys.readouterr().out

    def test_logout(self, env, storage):
        """Should revoke the token."""
        assert cli.main(["--logout"]) == 0
        storage.oauth.revoke_token.assert_called_once()
