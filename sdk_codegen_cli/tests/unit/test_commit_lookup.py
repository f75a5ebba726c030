"""Unit tests for GitHub commit lookups."""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from sdk_codegen_cli.infrastructure.github.commit_lookup import GitHubCommitLookup

CLIENT_PATH = "sdk_codegen_cli.infrastructure.github.commit_lookup.httpx.AsyncClient"


def _mock_response(data, status_code=200):
    """Create a mock httpx response."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data
    return resp


def _mock_client(mock_client_cls, *responses):
    mock_client = AsyncMock()
    mock_client_cls.return_value.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client_cls.return_value.__aexit__ = AsyncMock(return_value=False)
    mock_client.get.side_effect = list(responses)
    return mock_client


@pytest.mark.asyncio
@patch(CLIENT_PATH)
async def test_path_exists(mock_client_cls):
    """path_exists queries the contents API on the branch."""
    mock_client = _mock_client(mock_client_cls, _mock_response([{"name": "main.tsp"}]))
    lookup = GitHubCommitLookup(api_base="https://api.github.com", token="")

    assert await lookup.path_exists("Azure", "azure-rest-api-specs", "specification/widget/") is True

    call = mock_client.get.call_args
    assert call.args[0] == "https://api.github.com/repos/Azure/azure-rest-api-specs/contents/specification/widget"
    assert call.kwargs["params"] == {"ref": "main"}


@pytest.mark.asyncio
@patch(CLIENT_PATH)
async def test_path_missing(mock_client_cls):
    """A 404 from the contents API means the path does not exist."""
    _mock_client(mock_client_cls, _mock_response({"message": "Not Found"}, status_code=404))
    lookup = GitHubCommitLookup(token="")

    assert await lookup.path_exists("Azure", "azure-rest-api-specs", "specification/gone") is False


@pytest.mark.asyncio
@patch(CLIENT_PATH)
async def test_latest_commit_for_path(mock_client_cls):
    """latest_commit_for_path returns the newest SHA touching the path."""
    mock_client = _mock_client(mock_client_cls, _mock_response([{"sha": "abc123"}]))
    lookup = GitHubCommitLookup(token="")

    sha = await lookup.latest_commit_for_path("Azure", "azure-rest-api-specs", "specification/widget")

    assert sha == "abc123"
    assert mock_client.get.call_args.kwargs["params"] == {
        "path": "specification/widget",
        "sha": "main",
        "per_page": 1,
    }


@pytest.mark.asyncio
@patch(CLIENT_PATH)
async def test_latest_commit_empty_history(mock_client_cls):
    """An empty commit list yields None."""
    _mock_client(mock_client_cls, _mock_response([]))
    lookup = GitHubCommitLookup(token="")

    assert await lookup.latest_commit("Azure", "azure-rest-api-specs") is None


@pytest.mark.asyncio
@patch(CLIENT_PATH)
async def test_transport_errors_propagate(mock_client_cls):
    """Transport failures are left to the caller."""
    mock_client = _mock_client(mock_client_cls)
    mock_client.get.side_effect = httpx.ConnectError("offline")
    lookup = GitHubCommitLookup(token="")

    with pytest.raises(httpx.HTTPError):
        await lookup.latest_commit("Azure", "azure-rest-api-specs")


@patch.dict(os.environ, {"GITHUB_TOKEN": "ghp_test", "GITHUB_API_URL": "https://github.example/api/v3/"})
def test_environment_configuration():
    """Token and API base come from the environment."""
    lookup = GitHubCommitLookup()

    assert lookup.api_base == "https://github.example/api/v3"
    assert lookup._headers()["Authorization"] == "Bearer ghp_test"
    assert lookup._headers()["User-Agent"] == "sdk-codegen-cli/1.0"


@patch.dict(os.environ, {}, clear=True)
def test_anonymous_requests_have_no_authorization():
    assert "Authorization" not in GitHubCommitLookup()._headers()
