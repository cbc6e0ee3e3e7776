"""
Transport links for GraphQL operations.

This module provides the request pipeline used by the engine. A pipeline
is a chain of links; every link may inspect or rewrite an operation before
forwarding it, and the last link sends it to the endpoint. ``UploadLink``
is the terminating HTTP link and supports file uploads through multipart
requests.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

import aiohttp
from multidict import CIMultiDict
from pydantic import AnyHttpUrl, TypeAdapter

from .exceptions import ErrorHandler, GraphQLResponseError, GraphQLTransportError
from .models import DEFAULT_USER_AGENT, GraphQLResult, Operation
from .upload import build_multipart, extract_files

logger = logging.getLogger(__name__)

NextLink = Callable[[Operation], Awaitable[GraphQLResult]]

_ENDPOINT_ADAPTER = TypeAdapter(AnyHttpUrl)


def validate_endpoint(uri: Any) -> str:
    """
    Validate an endpoint and return its string form.

    Args:
        uri: Endpoint URI (string or any object with an absolute URI as str())

    Returns:
        The endpoint serialized with ``str()``

    Raises:
        pydantic.ValidationError: If the endpoint is not an absolute http(s) URI
    """
    value = str(uri)
    _ENDPOINT_ADAPTER.validate_python(value)
    return value


class GraphQLLink(ABC):
    """
    Abstract base class for links.

    Non-terminating links receive a ``forward`` callable that passes the
    operation on to the next link. Terminating links produce the result.
    """

    terminating = False

    @abstractmethod
    async def request(
        self, operation: Operation, forward: Optional[NextLink] = None
    ) -> GraphQLResult:
        """
        Handle an operation.

        Args:
            operation: Operation to execute
            forward: Next link in the pipeline (None for terminating links)

        Returns:
            Result of the operation
        """
        pass


class LinkPipeline(GraphQLLink):
    """Ordered chain of links ending in a terminating link."""

    terminating = True

    def __init__(self, links: Sequence[GraphQLLink]):
        """
        Initialize the pipeline.

        Args:
            links: Links in request order; only the last may be terminating
        """
        if not links:
            raise ValueError("A link pipeline needs at least one link")

        for link in links:
            if not isinstance(link, GraphQLLink):
                raise TypeError(f"Not a GraphQL link: {link!r}")

        *leading, last = links
        if not last.terminating:
            raise ValueError(f"Last link must be terminating, got {type(last).__name__}")
        for link in leading:
            if link.terminating:
                raise ValueError(f"Terminating link {type(link).__name__} is not last")

        self._links: List[GraphQLLink] = list(links)

    @classmethod
    def from_links(cls, links: Sequence[GraphQLLink]) -> "LinkPipeline":
        """Compose links into a pipeline."""
        return cls(links)

    @property
    def links(self) -> List[GraphQLLink]:
        """Links of the pipeline in request order."""
        return list(self._links)

    async def request(
        self, operation: Operation, forward: Optional[NextLink] = None
    ) -> GraphQLResult:
        """Run an operation through every link."""
        return await self._dispatch(0, operation)

    async def _dispatch(self, index: int, operation: Operation) -> GraphQLResult:
        link = self._links[index]
        if link.terminating:
            return await link.request(operation)

        async def forward(next_operation: Operation) -> GraphQLResult:
            return await self._dispatch(index + 1, next_operation)

        return await link.request(operation, forward)


class UploadLink(GraphQLLink):
    """
    Terminating HTTP link with file upload support.

    Operations without files are posted as JSON. Operations whose variables
    contain uploads are posted as multipart requests.

    Headers sent with a request are the link defaults (User-Agent plus the
    headers given at construction) with the operation's context headers
    merged over them.

    Examples:
        ```python
        link = UploadLink("https://api.example.com/graphql", headers={"X-Team": "core"})
        result = await link.request(operation)
        ```

        With a shared session:
        ```python
        async with aiohttp.ClientSession() as session:
            link = UploadLink("https://api.example.com/graphql", session=session)
        ```
    """

    terminating = True

    def __init__(
        self,
        uri: Any,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the link.

        Args:
            uri: GraphQL endpoint
            headers: Default request headers (copied)
            timeout: Total request timeout in seconds
            user_agent: User-Agent header value
            session: Externally owned session; a short-lived session is
                opened per request when omitted
        """
        self.uri = validate_endpoint(uri)
        self._default_headers: Dict[str, str] = {"User-Agent": user_agent}
        self._default_headers.update(headers or {})
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session

        # Metrics
        self._request_count = 0
        self._error_count = 0

        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def default_headers(self) -> Dict[str, str]:
        """Headers sent with every request unless overridden."""
        return dict(self._default_headers)

    def effective_headers(self, operation: Operation) -> Dict[str, str]:
        """
        Get the headers to send for an operation.

        Header names are compared case-insensitively, so ``user-agent`` in
        the context replaces the default ``User-Agent``.

        Args:
            operation: Operation whose context may carry headers

        Returns:
            Default headers with the context headers merged over them
        """
        return dict(self._merge_headers(operation))

    def _merge_headers(self, operation: Operation) -> CIMultiDict:
        headers: CIMultiDict = CIMultiDict(self._default_headers)
        headers.update(operation.context.get("headers") or {})
        return headers

    async def request(
        self, operation: Operation, forward: Optional[NextLink] = None
    ) -> GraphQLResult:
        """
        Send an operation to the endpoint.

        Args:
            operation: Operation to send
            forward: Ignored

        Returns:
            GraphQLResult built from the response

        Raises:
            GraphQLTransportError: If no GraphQL response was obtained
        """
        body = operation.to_dict()
        variables, files = extract_files(body["variables"])
        headers = self._merge_headers(operation)

        self._request_count += 1
        start_time = time.time()

        try:
            if files:
                body["variables"] = variables
                form = await build_multipart(body, files)
                # The multipart boundary is set by aiohttp
                headers.popall("Content-Type", None)
                self._logger.debug(
                    f"Sending {operation.operation_type.value} "
                    f"{operation.operation_name or '<anonymous>'} with {len(files)} file(s)"
                )
                status, response_headers, content = await self._post(
                    dict(headers), data=form
                )
            else:
                headers.setdefault("Content-Type", "application/json")
                self._logger.debug(
                    f"Sending {operation.operation_type.value} "
                    f"{operation.operation_name or '<anonymous>'}"
                )
                status, response_headers, content = await self._post(
                    dict(headers), json=body
                )
        except GraphQLTransportError:
            self._error_count += 1
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._error_count += 1
            error = ErrorHandler.handle_aiohttp_error(e, url=self.uri, timeout=self._timeout.total)
            self._logger.warning(f"GraphQL transport error: {error.message}")
            raise error from e

        response_time = time.time() - start_time
        return self._parse_response(status, response_headers, content, response_time)

    async def _post(self, headers: Dict[str, str], **kwargs: Any) -> Tuple[int, Dict[str, str], bytes]:
        if self._session is not None:
            async with self._session.post(
                self.uri, headers=headers, timeout=self._timeout, **kwargs
            ) as response:
                return response.status, dict(response.headers), await response.read()

        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            async with session.post(self.uri, headers=headers, **kwargs) as response:
                return response.status, dict(response.headers), await response.read()

    def _parse_response(
        self,
        status: int,
        headers: Dict[str, str],
        content: bytes,
        response_time: float,
    ) -> GraphQLResult:
        """Build a result from a response, or raise if it is not a GraphQL response."""
        # GraphQL responses are JSON, which is always UTF-8
        response_text = content.decode("utf-8", errors="replace")
        try:
            payload = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            self._error_count += 1
            raise GraphQLResponseError(
                f"Invalid JSON response (HTTP {status})",
                status_code=status,
                url=self.uri,
                headers=headers,
                response_text=response_text,
            ) from e

        if not isinstance(payload, dict) or ("data" not in payload and "errors" not in payload):
            self._error_count += 1
            raise GraphQLResponseError(
                f"Response is not a GraphQL result (HTTP {status})",
                status_code=status,
                url=self.uri,
                headers=headers,
                response_text=response_text,
            )

        errors = payload.get("errors") or []
        if isinstance(errors, dict):
            errors = [errors]

        return GraphQLResult(
            data=payload.get("data"),
            errors=list(errors),
            extensions=payload.get("extensions"),
            status_code=status,
            headers=headers,
            response_time=response_time,
        )

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get link metrics.

        Returns:
            Dictionary containing request metrics
        """
        return {
            "request_count": self._request_count,
            "error_count": self._error_count,
            "error_rate": self._error_count / max(self._request_count, 1),
        }
