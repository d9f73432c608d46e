"""Pytest configuration and shared fixtures."""

import pytest
import respx

from tests.stubs.trello_api_stub import TrelloAPIStubber

TRELLO_BASE_URL = "https://api.trello.com/1"


@pytest.fixture
def mock_config():
    """Provide a mock Trello configuration for testing."""
    from trello_mcp.config import TrelloConfig

    return TrelloConfig(
        _env_file=None,
        trello_api_key="test_api_key",
        trello_token="test_token",
        trello_board_id="5f1b00000000000000000001",
        trello_workspace_id=None,
        trello_base_url=TRELLO_BASE_URL,
    )


@pytest.fixture
def respx_mock():
    """Provide a respx mock router for HTTP requests."""
    with respx.mock(base_url=TRELLO_BASE_URL, assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
def stub_api(respx_mock):
    """Provide a Trello API stubber."""
    return TrelloAPIStubber(respx_mock)


@pytest.fixture
def mcp(mock_config):
    """Provide a server wired to the mock configuration."""
    from trello_mcp.server import create_server

    return create_server(mock_config)


@pytest.fixture
async def trello_client(mock_config):
    """Provide an open TrelloClient."""
    from trello_mcp.client import TrelloClient

    async with TrelloClient(mock_config) as client:
        yield client
