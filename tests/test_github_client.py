"""Tests for the GitHub comparison client."""

import json
from unittest.mock import patch, MagicMock

import pytest

from errors import ResolutionError
from repository.github import GitHubClient
from versioning.models import CompareStatus

HASH = "0123456789abcdef0123456789abcdef01234567"


def _response(status, payload=None, text=None):
    res = MagicMock()
    res.status_code = status
    res.text = text if text is not None else json.dumps(payload or {})
    return res


class TestCompare:
    """Commit ancestry checks."""

    @pytest.mark.parametrize("status,ancestor", [
        ("identical", True),
        ("ahead", True),
        ("behind", False),
        ("diverged", False),
    ])
    @patch('repository.github.safe_get')
    def test_statuses(self, mock_safe_get, status, ancestor):
        """Test each comparison status."""
        mock_safe_get.return_value = _response(200, {"status": status})

        result = GitHubClient(token="").compare("jenkinsci", "lib-plugin", HASH, "main")

        assert result is CompareStatus(status)
        assert result.is_ancestor is ancestor

    @patch('repository.github.safe_get')
    def test_url_keeps_fork_branch_separator(self, mock_safe_get):
        """Test the fork:branch separator is not encoded."""
        mock_safe_get.return_value = _response(200, {"status": "ahead"})

        GitHubClient(token="").compare("jenkinsci", "lib-plugin", HASH, "forker:topic")

        assert mock_safe_get.call_args[0][0] == (
            f"https://api.github.com/repos/jenkinsci/lib-plugin/compare/{HASH}...forker:topic"
        )

    @patch('repository.github.safe_get')
    def test_url_keeps_slashes_in_branch(self, mock_safe_get):
        """Test slashes in branch names are not encoded."""
        mock_safe_get.return_value = _response(200, {"status": "ahead"})

        GitHubClient(token="").compare("jenkinsci", "lib-plugin", HASH, "forker:feature/x")

        assert mock_safe_get.call_args[0][0].endswith(f"/compare/{HASH}...forker:feature/x")

    @patch('repository.github.safe_get')
    def test_not_found(self, mock_safe_get):
        """Test 404 means unknown repository or branch."""
        mock_safe_get.return_value = _response(404)

        assert GitHubClient(token="").compare("o", "r", HASH, "gone") is None

    @patch('repository.github.safe_get')
    def test_server_error(self, mock_safe_get):
        """Test server errors are fatal."""
        mock_safe_get.return_value = _response(502)

        with pytest.raises(ResolutionError):
            GitHubClient(token="").compare("o", "r", HASH, "main")

    @pytest.mark.parametrize("text", ["not json", "[]", '{"status": "sideways"}'])
    @patch('repository.github.safe_get')
    def test_unexpected_payload(self, mock_safe_get, text):
        """Test malformed payloads are fatal."""
        mock_safe_get.return_value = _response(200, text=text)

        with pytest.raises(ResolutionError):
            GitHubClient(token="").compare("o", "r", HASH, "main")


class TestHeaders:
    """Optional authentication."""

    def test_token_from_environment(self, monkeypatch):
        """Test the token is read from the environment."""
        monkeypatch.setenv("GITHUB_TOKEN", "secret")
        assert GitHubClient()._get_headers()["Authorization"] == "Bearer secret"

    def test_anonymous(self, monkeypatch):
        """Test requests without a token."""
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        assert "Authorization" not in GitHubClient()._get_headers()

    def test_custom_base_url(self):
        """Test a custom API base URL."""
        assert GitHubClient(base_url="https://ghe.example/api/v3/").base_url == "https://ghe.example/api/v3"
