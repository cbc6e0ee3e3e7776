"""
GraphQL client implementation.

This module provides the client for a single GraphQL endpoint. A client
owns its request headers, a normalized result cache and an upload-capable
transport link, and exposes queries and mutations with the "collect all"
error policy: GraphQL errors never fail a call, they are returned together
with whatever data the server sent.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from graphql import DocumentNode

from .cache import InMemoryCache
from .config.models import ClientSettings
from .engine import GraphQLEngine
from .exceptions import CacheInitError, EngineBindError, TransportInitError
from .link import LinkPipeline, UploadLink
from .logging import setup_logging
from .models import ClientOptions, ErrorPolicy, FetchPolicy, GraphQLResult
from .specifier import specify_document

logger = logging.getLogger(__name__)


class GraphQLClient:
    """
    GraphQL client which provides query and mutation functionality.

    File uploads are supported through a multipart-capable transport link:
    any variable holding an ``UploadFile`` or a binary file object is sent
    as a file part.

    Both operations use the error policy ``all``. A call resolves whenever
    the endpoint answered with a GraphQL response, even if that response
    only carries errors, and raises ``GraphQLTransportError`` when no such
    response could be obtained.

    Headers are read from ``client.headers`` at call time and merged over
    the headers given at construction.

    Examples:
        Basic query:
        ```python
        client = GraphQLClient(
            "https://api.example.com/graphql",
            {"headers": {"Authorization": "Bearer token"}},
        )

        result = await client.send_query(
            gql("query GetUser($id: ID!) { user(id: $id) { name } }"),
            {"id": "123"},
        )
        if result.has_errors:
            print(result.error_messages)
        print(result.get_data("user.name"))
        ```

        Uploading a file:
        ```python
        result = await client.send_mutation(
            gql("mutation Upload($file: Upload!) { upload(file: $file) { id } }"),
            {"file": UploadFile(path="report.pdf")},
        )
        ```
    """

    def __init__(
        self,
        endpoint: Any,
        options: Optional[Union[ClientOptions, Dict[str, Any]]] = None,
    ):
        """
        Initialize GraphQL client.

        Args:
            endpoint: Absolute http(s) URI of the GraphQL endpoint
            options: Client options, as ClientOptions or a plain dict

        Raises:
            CacheInitError: If the cache cannot be created
            TransportInitError: If the transport link cannot be created,
                e.g. because the endpoint is not a valid URI
            EngineBindError: If cache and link cannot be bound together
        """
        if options is None:
            options = ClientOptions()
        elif isinstance(options, dict):
            options = ClientOptions(**options)

        headers = dict(options.headers)

        try:
            cache = (
                options.cache
                if options.cache is not None
                else InMemoryCache(options.cache_config)
            )
        except Exception as e:
            raise CacheInitError("An error occurred while initializing the cache") from e

        try:
            upload_link = UploadLink(
                endpoint,
                headers=headers,
                timeout=options.timeout,
                user_agent=options.user_agent,
                session=options.session,
            )
            link = LinkPipeline.from_links([upload_link])
        except Exception as e:
            raise TransportInitError(
                "An error occurred while initializing the transport link",
                url=str(endpoint),
            ) from e

        try:
            engine = GraphQLEngine(cache=cache, link=link)
        except Exception as e:
            raise EngineBindError(
                "An error occurred while binding the cache and transport link"
            ) from e

        self.headers: Dict[str, str] = headers
        self._endpoint = upload_link.uri
        self._cache = cache
        self._link = link
        self._upload_link = upload_link
        self._engine = engine

        logger.debug(f"GraphQL client created for {self._endpoint}")

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        configure_logging: bool = True,
        **options: Any,
    ) -> "GraphQLClient":
        """
        Create a client from loaded settings.

        The logging section of the settings is applied to the ``gqlkit``
        logger unless ``configure_logging`` is False, e.g. when the
        application configures logging itself.

        Args:
            settings: Client settings (see ``gqlkit.config.ConfigLoader``)
            configure_logging: Apply ``settings.logging``
            **options: Additional ClientOptions fields, e.g. ``cache`` or ``session``

        Returns:
            GraphQLClient for the configured endpoint
        """
        client_options = ClientOptions(
            headers=settings.headers,
            cache_config=settings.cache,
            timeout=settings.timeout,
            user_agent=settings.user_agent,
            **options,
        )
        if configure_logging:
            setup_logging(settings.logging)

        return cls(settings.endpoint, client_options)

    @property
    def endpoint(self) -> str:
        """Endpoint URI the client targets."""
        return self._endpoint

    @property
    def cache(self) -> InMemoryCache:
        """Result cache owned by the client."""
        return self._cache

    async def send_query(
        self,
        document: DocumentNode,
        variables: Optional[Dict[str, Any]] = None,
    ) -> GraphQLResult:
        """
        Send a GraphQL query.

        The document is normalized before dispatch. The cache is never read,
        the network is always hit, and the result is written to the cache.

        Args:
            document: Parsed query document
            variables: Variables for the query

        Returns:
            GraphQLResult with data and errors

        Raises:
            GraphQLTransportError: If no GraphQL response was obtained
        """
        return await self._engine.query(
            specify_document(document),
            variables=variables,
            fetch_policy=FetchPolicy.NETWORK_ONLY,
            error_policy=ErrorPolicy.ALL,
            context={"headers": dict(self.headers)},
        )

    async def send_mutation(
        self,
        document: DocumentNode,
        variables: Optional[Dict[str, Any]] = None,
    ) -> GraphQLResult:
        """
        Send a GraphQL mutation.

        The document is sent unchanged and its result is written through to
        the cache.

        Args:
            document: Parsed mutation document
            variables: Variables for the mutation

        Returns:
            GraphQLResult with data and errors

        Raises:
            GraphQLTransportError: If no GraphQL response was obtained
        """
        return await self._engine.mutate(
            document,
            variables=variables,
            error_policy=ErrorPolicy.ALL,
            context={"headers": dict(self.headers)},
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get transport and cache statistics."""
        return {
            "endpoint": self._endpoint,
            "transport": self._upload_link.get_metrics(),
            "cache": self._cache.get_metrics(),
        }
