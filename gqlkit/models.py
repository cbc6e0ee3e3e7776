"""
GraphQL models and data structures.

This module defines the operation and result types exchanged between the
client, the engine and the transport link, together with the fetch and
error policies and the client options.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import aiohttp
from graphql import DocumentNode, print_ast
from pydantic import BaseModel, ConfigDict, Field

from .cache import CacheConfig

DEFAULT_USER_AGENT = "gqlkit/1.0"


class OperationType(str, Enum):
    """GraphQL operation types."""

    QUERY = "query"
    MUTATION = "mutation"


class FetchPolicy(str, Enum):
    """How a query interacts with the cache."""

    CACHE_FIRST = "cache-first"
    NETWORK_ONLY = "network-only"
    NO_CACHE = "no-cache"
    CACHE_ONLY = "cache-only"


class ErrorPolicy(str, Enum):
    """How GraphQL errors reported by the server are surfaced."""

    NONE = "none"
    IGNORE = "ignore"
    ALL = "all"


@dataclass
class Operation:
    """A single GraphQL operation on its way through the link pipeline."""

    document: DocumentNode
    variables: Dict[str, Any] = field(default_factory=dict)
    operation_name: Optional[str] = None
    operation_type: OperationType = OperationType.QUERY
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def query(self) -> str:
        """Printed document text."""
        return print_ast(self.document)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: Dict[str, Any] = {
            "query": self.query,
            "variables": self.variables,
        }

        if self.operation_name:
            result["operationName"] = self.operation_name

        return result


@dataclass
class GraphQLResult:
    """Result of a GraphQL operation."""

    data: Optional[Dict[str, Any]] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)
    extensions: Optional[Dict[str, Any]] = None
    status_code: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)
    response_time: Optional[float] = None
    from_cache: bool = False

    @property
    def has_errors(self) -> bool:
        """Check if result has errors."""
        return len(self.errors) > 0

    @property
    def error_messages(self) -> List[str]:
        """Get list of error messages."""
        return [error.get("message", "Unknown error") for error in self.errors]

    def get_data(self, path: Optional[str] = None) -> Any:
        """
        Get data from result with optional path.

        Args:
            path: Dot-separated path to data (e.g., "user.profile.name")

        Returns:
            Data at the specified path or full data if no path
        """
        if not self.data:
            return None

        if not path:
            return self.data

        current: Any = self.data
        for key in path.split("."):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return None

        return current


class ClientOptions(BaseModel):
    """Options for constructing a GraphQL client."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    headers: Dict[str, str] = Field(default_factory=dict, description="Request headers")
    cache: Optional[Any] = Field(default=None, description="Injected result cache")
    cache_config: CacheConfig = Field(
        default_factory=CacheConfig, description="Configuration for a created cache"
    )
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent header")
    session: Optional[aiohttp.ClientSession] = Field(
        default=None, description="Externally owned HTTP session"
    )
