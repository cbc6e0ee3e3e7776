"""
gqlkit - GraphQL client with a normalized cache and file uploads.

This package provides a client for a single GraphQL endpoint that sends
queries and mutations over an upload-capable HTTP link, keeps a normalized
in-memory result cache and always returns GraphQL errors together with the
data the server sent.
"""

from .cache import CacheConfig, InMemoryCache
from .client import GraphQLClient
from .engine import GraphQLEngine
from .exceptions import (
    CacheInitError,
    ClientConstructionError,
    EngineBindError,
    GraphQLClientError,
    GraphQLExecutionError,
    GraphQLNetworkError,
    GraphQLOperationError,
    GraphQLResponseError,
    GraphQLTimeoutError,
    GraphQLTransportError,
    TransportInitError,
)
from .link import GraphQLLink, LinkPipeline, UploadLink
from .models import (
    ClientOptions,
    ErrorPolicy,
    FetchPolicy,
    GraphQLResult,
    Operation,
    OperationType,
)
from .specifier import gql, specify_document
from .upload import UploadFile

__version__ = "1.0.0"

__all__ = [
    # Client
    "GraphQLClient",
    "ClientOptions",
    # Engine
    "GraphQLEngine",
    "InMemoryCache",
    "CacheConfig",
    "GraphQLLink",
    "LinkPipeline",
    "UploadLink",
    # Models
    "Operation",
    "OperationType",
    "GraphQLResult",
    "FetchPolicy",
    "ErrorPolicy",
    "UploadFile",
    # Documents
    "gql",
    "specify_document",
    # Exceptions
    "GraphQLClientError",
    "ClientConstructionError",
    "CacheInitError",
    "TransportInitError",
    "EngineBindError",
    "GraphQLTransportError",
    "GraphQLNetworkError",
    "GraphQLTimeoutError",
    "GraphQLResponseError",
    "GraphQLExecutionError",
    "GraphQLOperationError",
]
