"""
GraphQL execution engine.

The engine binds a result cache and a link pipeline. It turns documents
into operations, consults and updates the cache according to the fetch
policy, and surfaces GraphQL errors according to the error policy.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict, Optional, Union

from graphql import DocumentNode

from .cache import ROOT_MUTATION, ROOT_QUERY, InMemoryCache
from .exceptions import GraphQLExecutionError, GraphQLOperationError
from .link import GraphQLLink
from .models import ErrorPolicy, FetchPolicy, GraphQLResult, Operation, OperationType
from .specifier import get_operation_name, get_operation_type

logger = logging.getLogger(__name__)


class GraphQLEngine:
    """
    Executes operations against a link and keeps the cache up to date.

    Queries honour a fetch policy:

    - ``cache-first``: serve from the cache when every field is cached,
      otherwise fetch and write the result
    - ``network-only``: always fetch, write the result
    - ``no-cache``: always fetch, never touch the cache
    - ``cache-only``: never fetch

    Mutations always fetch and write their result through to the cache.
    """

    def __init__(self, cache: InMemoryCache, link: GraphQLLink):
        """
        Bind a cache and a link.

        Args:
            cache: Result cache
            link: Terminating link or link pipeline

        Raises:
            TypeError: If cache or link has the wrong type
            ValueError: If link does not terminate
        """
        if not isinstance(cache, InMemoryCache):
            raise TypeError(f"Expected InMemoryCache, got {type(cache).__name__}")
        if not isinstance(link, GraphQLLink):
            raise TypeError(f"Expected GraphQLLink, got {type(link).__name__}")
        if not link.terminating:
            raise ValueError(f"Link {type(link).__name__} does not terminate")

        self._cache = cache
        self._link = link

    @property
    def cache(self) -> InMemoryCache:
        """Result cache bound to the engine."""
        return self._cache

    @property
    def link(self) -> GraphQLLink:
        """Link the engine sends operations through."""
        return self._link

    async def query(
        self,
        document: DocumentNode,
        variables: Optional[Dict[str, Any]] = None,
        fetch_policy: Union[FetchPolicy, str] = FetchPolicy.CACHE_FIRST,
        error_policy: Union[ErrorPolicy, str] = ErrorPolicy.NONE,
        context: Optional[Dict[str, Any]] = None,
    ) -> GraphQLResult:
        """
        Execute a query.

        Args:
            document: Parsed query document
            variables: Operation variables
            fetch_policy: Cache interaction
            error_policy: How GraphQL errors are surfaced
            context: Per-call context (e.g. ``{"headers": {...}}``)

        Returns:
            GraphQLResult with data and errors

        Raises:
            GraphQLOperationError: If the document holds no query
            GraphQLExecutionError: On GraphQL errors under ``ErrorPolicy.NONE``
            GraphQLTransportError: If no GraphQL response was obtained
        """
        fetch_policy = FetchPolicy(fetch_policy)
        error_policy = ErrorPolicy(error_policy)
        operation = self._build_operation(document, variables, OperationType.QUERY, context)

        if fetch_policy in (FetchPolicy.CACHE_FIRST, FetchPolicy.CACHE_ONLY):
            cached = self._cache.read(operation.document, operation.variables, ROOT_QUERY)
            if cached is not None:
                return GraphQLResult(data=cached, from_cache=True)
            if fetch_policy is FetchPolicy.CACHE_ONLY:
                return GraphQLResult(data=None, from_cache=True)

        result = await self._link.request(operation)

        if fetch_policy is not FetchPolicy.NO_CACHE:
            self._write_result(operation, result, error_policy, ROOT_QUERY)

        return self._apply_error_policy(operation, result, error_policy)

    async def mutate(
        self,
        document: DocumentNode,
        variables: Optional[Dict[str, Any]] = None,
        error_policy: Union[ErrorPolicy, str] = ErrorPolicy.NONE,
        context: Optional[Dict[str, Any]] = None,
    ) -> GraphQLResult:
        """
        Execute a mutation.

        Args:
            document: Parsed mutation document
            variables: Operation variables
            error_policy: How GraphQL errors are surfaced
            context: Per-call context (e.g. ``{"headers": {...}}``)

        Returns:
            GraphQLResult with data and errors

        Raises:
            GraphQLOperationError: If the document holds no mutation
            GraphQLExecutionError: On GraphQL errors under ``ErrorPolicy.NONE``
            GraphQLTransportError: If no GraphQL response was obtained
        """
        error_policy = ErrorPolicy(error_policy)
        operation = self._build_operation(
            document, variables, OperationType.MUTATION, context
        )

        result = await self._link.request(operation)
        self._write_result(operation, result, error_policy, ROOT_MUTATION)

        return self._apply_error_policy(operation, result, error_policy)

    def _build_operation(
        self,
        document: DocumentNode,
        variables: Optional[Dict[str, Any]],
        expected: OperationType,
        context: Optional[Dict[str, Any]],
    ) -> Operation:
        if not isinstance(document, DocumentNode):
            raise TypeError(
                f"Expected a parsed DocumentNode, got {type(document).__name__}"
            )

        operation_type = get_operation_type(document)
        if operation_type is not expected:
            found = operation_type.value if operation_type else "no supported operation"
            raise GraphQLOperationError(
                f"Expected a {expected.value} document, got {found}"
            )

        return Operation(
            document=document,
            variables=variables if variables is not None else {},
            operation_name=get_operation_name(document),
            operation_type=operation_type,
            context=dict(context or {}),
        )

    def _write_result(
        self,
        operation: Operation,
        result: GraphQLResult,
        error_policy: ErrorPolicy,
        root: str,
    ) -> None:
        if result.data is None:
            return
        if result.has_errors and error_policy is ErrorPolicy.NONE:
            return
        self._cache.write(operation.document, operation.variables, result.data, root)

    @staticmethod
    def _apply_error_policy(
        operation: Operation, result: GraphQLResult, error_policy: ErrorPolicy
    ) -> GraphQLResult:
        if not result.has_errors:
            return result

        name = operation.operation_name or "<anonymous>"
        logger.info(
            f"GraphQL {operation.operation_type.value} {name} returned "
            f"{len(result.errors)} error(s): {'; '.join(result.error_messages)}"
        )

        if error_policy is ErrorPolicy.ALL:
            return result

        if error_policy is ErrorPolicy.IGNORE:
            return dataclasses.replace(result, errors=[])

        raise GraphQLExecutionError(
            f"GraphQL execution errors: {'; '.join(result.error_messages)}",
            errors=result.errors,
            data=result.data,
        )
