"""
Exceptions for the gqlkit GraphQL client.

This module provides the error taxonomy of the client: construction errors
tagged by the stage that failed, transport errors raised when no GraphQL
response could be obtained, and execution errors for the strict error policy.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import aiohttp


class GraphQLClientError(Exception):
    """
    Base exception for all gqlkit errors.

    Attributes:
        message: Human-readable error message
        url: Endpoint that caused the error (if applicable)
        details: Additional error details as keyword arguments
    """

    def __init__(self, message: str, url: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message
        self.url = url
        self.details = kwargs


# Construction errors


class ClientConstructionError(GraphQLClientError):
    """
    Raised when a client cannot be constructed.

    The failed construction step is available as ``stage``; the underlying
    exception is chained as ``__cause__`` and exposed as ``cause``.
    """

    stage = "client"

    @property
    def cause(self) -> Optional[BaseException]:
        """Original exception that made the construction step fail."""
        return self.__cause__


class CacheInitError(ClientConstructionError):
    """Raised when the result cache cannot be initialized."""

    stage = "cache"


class TransportInitError(ClientConstructionError):
    """Raised when the transport link cannot be initialized."""

    stage = "transport"


class EngineBindError(ClientConstructionError):
    """Raised when cache and transport cannot be bound into an engine."""

    stage = "engine"


# Call-level errors


class GraphQLTransportError(GraphQLClientError):
    """
    Raised when no GraphQL response could be obtained.

    Covers connection failures, timeouts and response bodies that are not
    GraphQL responses. GraphQL errors reported by the server never raise this.
    """

    pass


class GraphQLNetworkError(GraphQLTransportError):
    """Raised when the endpoint cannot be reached."""

    pass


class GraphQLTimeoutError(GraphQLTransportError):
    """
    Raised when a request times out.

    Attributes:
        timeout_value: The timeout value that was exceeded (in seconds)
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        timeout_value: Optional[float] = None,
    ) -> None:
        super().__init__(message, url)
        self.timeout_value = timeout_value


class GraphQLResponseError(GraphQLTransportError):
    """Raised when the response body is not a GraphQL response."""

    def __init__(
        self,
        message: str,
        status_code: int,
        url: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        response_text: Optional[str] = None,
    ) -> None:
        super().__init__(message, url)
        self.status_code = status_code
        self.headers = headers or {}
        self.response_text = response_text


class GraphQLExecutionError(GraphQLClientError):
    """
    Raised for GraphQL errors under the strict ``ErrorPolicy.NONE``.

    Attributes:
        errors: Error entries reported by the server
        data: Partial data returned alongside the errors
    """

    def __init__(
        self,
        message: str,
        errors: List[Dict[str, Any]],
        data: Optional[Dict[str, Any]] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message, url)
        self.errors = errors
        self.data = data


class GraphQLOperationError(GraphQLClientError):
    """Raised when a document does not hold the expected operation kind."""

    pass


class ErrorHandler:
    """
    Utility class for translating transport exceptions.

    Converts aiohttp and asyncio exceptions into ``GraphQLTransportError``
    subclasses so callers only deal with one hierarchy.
    """

    @staticmethod
    def handle_aiohttp_error(
        error: BaseException, url: Optional[str] = None, timeout: Optional[float] = None
    ) -> GraphQLTransportError:
        """
        Convert aiohttp exceptions to GraphQLTransportError subclasses.

        Args:
            error: The original exception
            url: The endpoint that caused the error
            timeout: Configured request timeout, reported on timeouts

        Returns:
            Appropriate GraphQLTransportError subclass
        """
        if isinstance(error, (asyncio.TimeoutError, aiohttp.ServerTimeoutError)):
            return GraphQLTimeoutError(
                f"Request timed out: {error}", url=url, timeout_value=timeout
            )

        elif isinstance(error, aiohttp.ClientSSLError):
            return GraphQLNetworkError(f"SSL error: {error}", url=url)

        elif isinstance(error, aiohttp.ClientConnectorError):
            return GraphQLNetworkError(f"Connector error: {error}", url=url)

        elif isinstance(error, aiohttp.ClientConnectionError):
            return GraphQLNetworkError(f"Connection error: {error}", url=url)

        elif isinstance(error, aiohttp.ClientPayloadError):
            return GraphQLNetworkError(f"Payload error: {error}", url=url)

        elif isinstance(error, aiohttp.InvalidURL):
            return GraphQLNetworkError(f"Invalid URL: {error}", url=url)

        else:
            return GraphQLNetworkError(f"Unexpected network error: {error}", url=url)
