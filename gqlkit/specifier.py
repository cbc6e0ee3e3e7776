"""
Document helpers for gqlkit.

This module parses GraphQL sources into documents and normalizes query
documents before they are dispatched. Normalization adds ``__typename`` to
every nested selection set so results can be identified by the cache.
"""

from __future__ import annotations

from typing import Any, Optional

from graphql import (
    DocumentNode,
    FieldNode,
    NameNode,
    OperationDefinitionNode,
    SelectionSetNode,
    Visitor,
    get_operation_ast,
    parse,
    visit,
)

from .models import OperationType

TYPENAME = "__typename"


def gql(source: str) -> DocumentNode:
    """
    Parse a GraphQL source string into a document.

    Args:
        source: GraphQL document text

    Returns:
        Parsed DocumentNode

    Raises:
        graphql.GraphQLSyntaxError: If the source is not valid GraphQL
    """
    if not isinstance(source, str):
        raise TypeError(f"Expected GraphQL source string, got {type(source).__name__}")
    return parse(source)


def _typename_field() -> FieldNode:
    return FieldNode(
        name=NameNode(value=TYPENAME),
        arguments=(),
        directives=(),
    )


def _has_typename(selection_set: SelectionSetNode) -> bool:
    for selection in selection_set.selections:
        if (
            isinstance(selection, FieldNode)
            and selection.alias is None
            and selection.name.value == TYPENAME
        ):
            return True
    return False


class _TypenameVisitor(Visitor):
    """Append ``__typename`` to nested selection sets."""

    def enter_selection_set(
        self, node: SelectionSetNode, key: Any, parent: Any, *_args: Any
    ) -> Optional[SelectionSetNode]:
        # Operation roots are never typed in results
        if isinstance(parent, OperationDefinitionNode):
            return None
        if _has_typename(node):
            return None
        return SelectionSetNode(
            selections=tuple(node.selections) + (_typename_field(),)
        )


def specify_document(document: DocumentNode) -> DocumentNode:
    """
    Normalize a document before dispatch.

    Returns a new document in which every selection set below the operation
    root selects ``__typename``. The input document is left untouched and
    applying the function twice yields the same document.

    Args:
        document: Parsed GraphQL document

    Returns:
        Normalized document
    """
    if not isinstance(document, DocumentNode):
        raise TypeError(
            f"Expected a parsed DocumentNode, got {type(document).__name__}"
        )
    return visit(document, _TypenameVisitor())


def get_operation_type(
    document: DocumentNode, operation_name: Optional[str] = None
) -> Optional[OperationType]:
    """Get the operation type of a document, or None if it holds no operation."""
    operation = get_operation_ast(document, operation_name)
    if operation is None:
        return None
    try:
        return OperationType(operation.operation.value)
    except ValueError:
        # subscriptions are not supported
        return None


def get_operation_name(document: DocumentNode) -> Optional[str]:
    """Get the name of the first operation in a document."""
    for definition in document.definitions:
        if isinstance(definition, OperationDefinitionNode) and definition.name:
            return definition.name.value
    return None
