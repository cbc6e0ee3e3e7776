"""
Normalized in-memory cache for GraphQL results.

This module stores operation results in a flat entity table. Objects that
carry a ``__typename`` and an id field are stored once under a key such as
``User:1`` and referenced from wherever they appear, so results of different
operations that touch the same object stay consistent.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from graphql import (
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    SelectionSetNode,
    get_operation_ast,
    value_from_ast_untyped,
)
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

ROOT_QUERY = "ROOT_QUERY"
ROOT_MUTATION = "ROOT_MUTATION"

Fragments = Dict[str, FragmentDefinitionNode]


class CacheConfig(BaseModel):
    """Configuration for the in-memory cache."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id_fields: Tuple[str, ...] = Field(
        default=("id", "_id"), min_length=1, description="Fields identifying an object"
    )
    enable_metrics: bool = Field(default=True, description="Enable cache metrics collection")


class _MissingField(Exception):
    """A field needed by a read is not in the cache."""


class InMemoryCache:
    """
    Normalized result cache.

    The cache is owned by a single client and lives as long as it does.
    All operations are synchronous, so concurrent coroutines on one event
    loop never observe a half-written result.

    Examples:
        ```python
        cache = InMemoryCache()
        document = gql("query { user(id: 1) { __typename id name } }")
        cache.write(document, None, {"user": {"__typename": "User", "id": 1, "name": "Ann"}})

        cache.identify({"__typename": "User", "id": 1})  # "User:1"
        cache.read(document)  # {"user": {"__typename": "User", "id": 1, "name": "Ann"}}
        ```
    """

    def __init__(self, config: Optional[CacheConfig] = None):
        """
        Initialize the cache.

        Args:
            config: Cache configuration
        """
        self.config = config or CacheConfig()
        self._store: Dict[str, Dict[str, Any]] = {}
        self._stats = {
            "hits": 0,
            "misses": 0,
            "writes": 0,
        }
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def identify(self, obj: Any) -> Optional[str]:
        """
        Get the cache key of an object.

        Args:
            obj: Result object

        Returns:
            ``Typename:id`` key, or None if the object cannot be identified
        """
        if not isinstance(obj, dict):
            return None

        typename = obj.get("__typename")
        if not typename:
            return None

        for id_field in self.config.id_fields:
            value = obj.get(id_field)
            if value is not None:
                return f"{typename}:{value}"
        return None

    def write(
        self,
        document: DocumentNode,
        variables: Optional[Dict[str, Any]],
        data: Optional[Dict[str, Any]],
        root: str = ROOT_QUERY,
    ) -> None:
        """
        Write an operation result into the cache.

        Args:
            document: Document the result was produced for
            variables: Variables the operation ran with
            data: Result data (None is ignored)
            root: Root entity the operation fields are stored under
        """
        if not data:
            return

        selection_set, fragments = self._operation_parts(document)
        root_entity = self._store.setdefault(root, {})
        self._write_selection_set(
            selection_set, data, root_entity, variables or {}, fragments
        )

        if self.config.enable_metrics:
            self._stats["writes"] += 1
        self._logger.debug(f"Wrote result under {root}, {len(self._store)} entities cached")

    def read(
        self,
        document: DocumentNode,
        variables: Optional[Dict[str, Any]] = None,
        root: str = ROOT_QUERY,
    ) -> Optional[Dict[str, Any]]:
        """
        Read an operation result from the cache.

        Args:
            document: Document to read
            variables: Variables of the operation
            root: Root entity to read from

        Returns:
            Result data, or None if any selected field is missing
        """
        selection_set, fragments = self._operation_parts(document)
        root_entity = self._store.get(root)

        try:
            if root_entity is None:
                raise _MissingField(root)
            data = self._read_selection_set(
                selection_set, root_entity, variables or {}, fragments
            )
        except _MissingField as e:
            if self.config.enable_metrics:
                self._stats["misses"] += 1
            self._logger.debug(f"Cache miss on {e}")
            return None

        if self.config.enable_metrics:
            self._stats["hits"] += 1
        return data

    def extract(self) -> Dict[str, Dict[str, Any]]:
        """Get a copy of the normalized store."""
        return copy.deepcopy(self._store)

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get cache metrics.

        Returns:
            Dictionary containing cache metrics
        """
        total_reads = self._stats["hits"] + self._stats["misses"]
        return {
            "hits": self._stats["hits"],
            "misses": self._stats["misses"],
            "hit_rate": self._stats["hits"] / max(total_reads, 1),
            "writes": self._stats["writes"],
            "entity_count": len(self._store),
        }

    # Document helpers

    @staticmethod
    def _operation_parts(document: DocumentNode) -> Tuple[SelectionSetNode, Fragments]:
        operation = get_operation_ast(document)
        if operation is None:
            raise ValueError("Document must contain exactly one operation")

        fragments = {
            definition.name.value: definition
            for definition in document.definitions
            if isinstance(definition, FragmentDefinitionNode)
        }
        return operation.selection_set, fragments

    @staticmethod
    def _should_include(node: Any, variables: Dict[str, Any]) -> bool:
        """Evaluate @skip and @include directives."""
        for directive in node.directives or ():
            name = directive.name.value
            if name not in ("skip", "include"):
                continue
            condition = False
            for argument in directive.arguments or ():
                if argument.name.value == "if":
                    condition = bool(value_from_ast_untyped(argument.value, variables))
            if name == "skip" and condition:
                return False
            if name == "include" and not condition:
                return False
        return True

    @staticmethod
    def _store_key(field: FieldNode, variables: Dict[str, Any]) -> str:
        """Key a field is stored under: its name plus serialized arguments."""
        name = field.name.value
        if not field.arguments:
            return name

        arguments = {
            argument.name.value: value_from_ast_untyped(argument.value, variables)
            for argument in field.arguments
        }
        serialized = json.dumps(arguments, sort_keys=True, separators=(",", ":"), default=str)
        return f"{name}({serialized})"

    @staticmethod
    def _response_key(field: FieldNode) -> str:
        return field.alias.value if field.alias else field.name.value

    @staticmethod
    def _fragment_parts(
        selection: Union[InlineFragmentNode, FragmentSpreadNode], fragments: Fragments
    ) -> Tuple[Optional[str], Optional[SelectionSetNode]]:
        if isinstance(selection, InlineFragmentNode):
            fragment: Any = selection
        else:
            fragment = fragments.get(selection.name.value)
            if fragment is None:
                raise ValueError(f"Unknown fragment: {selection.name.value}")

        type_condition = (
            fragment.type_condition.name.value if fragment.type_condition else None
        )
        return type_condition, fragment.selection_set

    # Writing

    def _write_selection_set(
        self,
        selection_set: SelectionSetNode,
        value: Dict[str, Any],
        target: Dict[str, Any],
        variables: Dict[str, Any],
        fragments: Fragments,
    ) -> None:
        for selection in selection_set.selections:
            if not self._should_include(selection, variables):
                continue

            if isinstance(selection, FieldNode):
                response_key = self._response_key(selection)
                if response_key not in value:
                    continue
                target[self._store_key(selection, variables)] = self._normalize(
                    selection, value[response_key], variables, fragments
                )
            else:
                # Fragments only contribute the keys present in the result
                _, fragment_selection_set = self._fragment_parts(selection, fragments)
                self._write_selection_set(
                    fragment_selection_set, value, target, variables, fragments
                )

    def _normalize(
        self,
        field: FieldNode,
        value: Any,
        variables: Dict[str, Any],
        fragments: Fragments,
    ) -> Any:
        if value is None or field.selection_set is None:
            return copy.deepcopy(value)

        if isinstance(value, list):
            return [self._normalize(field, item, variables, fragments) for item in value]

        if not isinstance(value, dict):
            return copy.deepcopy(value)

        key = self.identify(value)
        if key is None:
            nested: Dict[str, Any] = {}
            self._write_selection_set(field.selection_set, value, nested, variables, fragments)
            return nested

        entity = self._store.setdefault(key, {})
        entity["__typename"] = value["__typename"]
        self._write_selection_set(field.selection_set, value, entity, variables, fragments)
        return {"__ref": key}

    # Reading

    def _read_selection_set(
        self,
        selection_set: SelectionSetNode,
        entity: Dict[str, Any],
        variables: Dict[str, Any],
        fragments: Fragments,
    ) -> Dict[str, Any]:
        result: Dict[str, Any] = {}

        for selection in selection_set.selections:
            if not self._should_include(selection, variables):
                continue

            if isinstance(selection, FieldNode):
                store_key = self._store_key(selection, variables)
                if store_key not in entity:
                    raise _MissingField(store_key)
                result[self._response_key(selection)] = self._read_value(
                    selection, entity[store_key], variables, fragments
                )
                continue

            type_condition, fragment_selection_set = self._fragment_parts(
                selection, fragments
            )
            typename = entity.get("__typename")
            if type_condition is None or typename is None or type_condition == typename:
                result.update(
                    self._read_selection_set(
                        fragment_selection_set, entity, variables, fragments
                    )
                )
            else:
                # Abstract type conditions match when every field resolves
                try:
                    result.update(
                        self._read_selection_set(
                            fragment_selection_set, entity, variables, fragments
                        )
                    )
                except _MissingField:
                    pass

        return result

    def _read_value(
        self,
        field: FieldNode,
        value: Any,
        variables: Dict[str, Any],
        fragments: Fragments,
    ) -> Any:
        if value is None or field.selection_set is None:
            return copy.deepcopy(value)

        if isinstance(value, list):
            items: List[Any] = [
                self._read_value(field, item, variables, fragments) for item in value
            ]
            return items

        if isinstance(value, dict) and "__ref" in value:
            entity = self._store.get(value["__ref"])
            if entity is None:
                raise _MissingField(value["__ref"])
            return self._read_selection_set(field.selection_set, entity, variables, fragments)

        if isinstance(value, dict):
            return self._read_selection_set(field.selection_set, value, variables, fragments)

        return copy.deepcopy(value)
