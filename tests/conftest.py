"""
Shared test fixtures and configuration for the gqlkit test suite.
"""

import pytest
import aioresponses
from yarl import URL

from gqlkit import GraphQLClient, gql

ENDPOINT = "https://api.example.com/graphql"


@pytest.fixture
def endpoint() -> str:
    """GraphQL endpoint used by the tests."""
    return ENDPOINT


@pytest.fixture
def mock_aiohttp():
    """Mock aiohttp responses for testing."""
    with aioresponses.aioresponses() as m:
        yield m


@pytest.fixture
def sent_requests(mock_aiohttp, endpoint):
    """Get the requests recorded by aioresponses for POSTs to a URL."""

    def _sent(url: str = endpoint) -> list:
        return mock_aiohttp.requests.get(("POST", URL(url)), [])

    return _sent


@pytest.fixture
def client(endpoint: str) -> GraphQLClient:
    """Client with a test header."""
    return GraphQLClient(endpoint, {"headers": {"X-Test": "1"}})


@pytest.fixture
def user_query():
    """Query selecting a nested object."""
    return gql(
        """
        query GetUser($id: ID!) {
            user(id: $id) {
                id
                name
            }
        }
        """
    )


@pytest.fixture
def rename_mutation():
    """Mutation selecting a nested object."""
    return gql(
        """
        mutation RenameUser($id: ID!, $name: String!) {
            renameUser(id: $id, name: $name) {
                id
                name
            }
        }
        """
    )
