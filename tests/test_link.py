"""
Tests for transport links.
"""

import pytest
from pydantic import ValidationError

from gqlkit import (
    GraphQLLink,
    GraphQLResponseError,
    GraphQLResult,
    LinkPipeline,
    Operation,
    OperationType,
    UploadLink,
    gql,
)
from gqlkit.link import validate_endpoint


class RecordingLink(GraphQLLink):
    """Non-terminating link that tags the operation context."""

    def __init__(self, tag):
        self.tag = tag

    async def request(self, operation, forward=None):
        operation.context.setdefault("trail", []).append(self.tag)
        return await forward(operation)


class EchoLink(GraphQLLink):
    """Terminating link that answers with the operation context."""

    terminating = True

    async def request(self, operation, forward=None):
        return GraphQLResult(data={"trail": operation.context.get("trail", [])})


@pytest.fixture
def operation():
    """Simple query operation."""
    return Operation(
        document=gql("query Ping { ping }"),
        operation_name="Ping",
        operation_type=OperationType.QUERY,
    )


class TestValidateEndpoint:
    """Test endpoint validation."""

    @pytest.mark.parametrize(
        "uri", ["https://api.example.com/graphql", "http://localhost:4000/graphql"]
    )
    def test_valid(self, uri):
        """Test absolute http(s) endpoints."""
        assert validate_endpoint(uri) == uri

    @pytest.mark.parametrize("uri", ["", "graphql", "/graphql", "ws://example.com/graphql", None])
    def test_invalid(self, uri):
        """Test endpoints that are not absolute http(s) URIs."""
        with pytest.raises(ValidationError):
            validate_endpoint(uri)


class TestLinkPipeline:
    """Test link composition."""

    @pytest.mark.asyncio
    async def test_links_run_in_order(self, operation):
        """Test that operations pass through every link."""
        pipeline = LinkPipeline.from_links(
            [RecordingLink("auth"), RecordingLink("retry"), EchoLink()]
        )

        result = await pipeline.request(operation)

        assert result.data == {"trail": ["auth", "retry"]}
        assert pipeline.terminating

    def test_links_property_is_a_copy(self):
        """Test that the pipeline links cannot be changed from outside."""
        pipeline = LinkPipeline([EchoLink()])

        pipeline.links.append(EchoLink())

        assert len(pipeline.links) == 1

    def test_empty(self):
        """Test that a pipeline needs links."""
        with pytest.raises(ValueError):
            LinkPipeline([])

    def test_not_terminating(self):
        """Test that the last link must terminate."""
        with pytest.raises(ValueError, match="terminating"):
            LinkPipeline([RecordingLink("auth")])

    def test_terminating_link_not_last(self):
        """Test that only the last link may terminate."""
        with pytest.raises(ValueError, match="not last"):
            LinkPipeline([EchoLink(), EchoLink()])

    def test_not_a_link(self):
        """Test that only links can be composed."""
        with pytest.raises(TypeError):
            LinkPipeline([object()])


class TestUploadLink:
    """Test the HTTP link."""

    def test_default_headers(self, endpoint):
        """Test that the User-Agent is set and construction headers copied."""
        headers = {"X-Team": "core"}
        link = UploadLink(endpoint, headers=headers, user_agent="tests/1.0")
        headers["X-Team"] = "other"

        assert link.default_headers == {"User-Agent": "tests/1.0", "X-Team": "core"}

    def test_effective_headers(self, endpoint, operation):
        """Test that context headers are merged over the defaults."""
        link = UploadLink(endpoint, headers={"X-Team": "core", "X-Trace": "1"})
        operation.context["headers"] = {"X-Trace": "2", "Authorization": "Bearer t"}

        assert link.effective_headers(operation) == {
            "User-Agent": "gqlkit/1.0",
            "X-Team": "core",
            "X-Trace": "2",
            "Authorization": "Bearer t",
        }

    def test_effective_headers_ignore_name_case(self, endpoint, operation):
        """Test that context headers replace defaults whatever their case."""
        link = UploadLink(endpoint, headers={"X-Team": "core"})
        operation.context["headers"] = {"user-agent": "custom/2.0", "x-team": "edge"}

        headers = link.effective_headers(operation)

        assert len(headers) == 2
        assert {name.lower(): value for name, value in headers.items()} == {
            "user-agent": "custom/2.0",
            "x-team": "edge",
        }

    def test_invalid_uri(self):
        """Test that the endpoint is validated at construction."""
        with pytest.raises(ValidationError):
            UploadLink("not a uri")

    @pytest.mark.asyncio
    async def test_request(self, endpoint, mock_aiohttp, sent_requests, operation):
        """Test a JSON request."""
        mock_aiohttp.post(
            endpoint,
            payload={"data": {"ping": "pong"}, "extensions": {"cost": 1}},
            headers={"X-Request-Id": "abc"},
        )
        link = UploadLink(endpoint)

        result = await link.request(operation)

        assert result.data == {"ping": "pong"}
        assert result.extensions == {"cost": 1}
        assert result.headers["X-Request-Id"] == "abc"
        assert result.response_time is not None
        assert sent_requests()[0].kwargs["json"] == {
            "query": "query Ping {\n  ping\n}",
            "variables": {},
            "operationName": "Ping",
        }

    @pytest.mark.asyncio
    async def test_single_error_object(self, endpoint, mock_aiohttp, operation):
        """Test that a single error object is returned as a list."""
        mock_aiohttp.post(endpoint, payload={"errors": {"message": "boom"}})
        link = UploadLink(endpoint)

        result = await link.request(operation)

        assert result.error_messages == ["boom"]

    @pytest.mark.asyncio
    async def test_metrics(self, endpoint, mock_aiohttp, operation):
        """Test request and error counters."""
        mock_aiohttp.post(endpoint, payload={"data": {"ping": "pong"}})
        mock_aiohttp.post(endpoint, body="not json")
        link = UploadLink(endpoint)

        await link.request(operation)
        with pytest.raises(GraphQLResponseError):
            await link.request(operation)

        metrics = link.get_metrics()
        assert metrics["request_count"] == 2
        assert metrics["error_count"] == 1
        assert metrics["error_rate"] == 0.5
