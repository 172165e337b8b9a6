"""
Conversion between SchemaNode trees and plain draft-07 schema documents.

``serialize`` produces the canonical document handed to the validator.
``from_document`` accepts the equivalent literal schema object (e.g. one
loaded from a ``.json`` file) and builds the same node tree the
constructors would, so both routes serialize identically.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from jsonshape.errors import SchemaDefinitionError
from jsonshape.models.schema import ABSENT, DRAFT_07_URI, SchemaNode

__all__ = ["DRAFT_07_URI", "as_node", "from_document", "serialize"]

# Identity and annotation keys lead the document; other metadata trails, sorted.
_LEADING_KEYWORDS = ("$schema", "$id", "title", "description", "$comment")


def serialize(node: SchemaNode) -> dict[str, Any] | bool:
    """Return the canonical draft-07 document for ``node``.

    The result is a fresh structure of dicts, lists and scalars; mutating it
    never affects the node.
    """
    if node.literal is not None:
        return node.literal

    document: dict[str, Any] = {}
    for key in _LEADING_KEYWORDS:
        if key in node.metadata:
            document[key] = _dump(node.metadata[key])

    if node.type is not None:
        document["type"] = node.type.value
    if node.const is not ABSENT:
        document["const"] = _dump(node.const)
    if node.enum is not None:
        document["enum"] = [_dump(value) for value in node.enum]
    if node.properties is not None:
        document["properties"] = {name: serialize(sub) for name, sub in node.properties.items()}
    if node.required is not None:
        document["required"] = list(node.required)
    if node.additional_properties is not None:
        document["additionalProperties"] = serialize(node.additional_properties)
    if isinstance(node.items, tuple):
        document["items"] = [serialize(item) for item in node.items]
    elif node.items is not None:
        document["items"] = serialize(node.items)
    if node.additional_items is not None:
        document["additionalItems"] = serialize(node.additional_items)
    for field_name, keyword in (("all_of", "allOf"), ("any_of", "anyOf"), ("one_of", "oneOf")):
        members = getattr(node, field_name)
        if members is not None:
            document[keyword] = [serialize(member) for member in members]
    for field_name, keyword in (("if_", "if"), ("then", "then"), ("else_", "else")):
        sub = getattr(node, field_name)
        if sub is not None:
            document[keyword] = serialize(sub)
    if node.ref is not None:
        document["$ref"] = node.ref
    if node.definitions is not None:
        document["definitions"] = {name: serialize(sub) for name, sub in node.definitions.items()}

    for key in sorted(node.metadata):
        if key not in _LEADING_KEYWORDS:
            document[key] = _dump(node.metadata[key])
    return document


def _dump(value: Any) -> Any:
    if isinstance(value, SchemaNode):
        return serialize(value)
    if isinstance(value, Mapping):
        return {key: _dump(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_dump(item) for item in value]
    return value


def from_document(document: Any, pointer: str = "#") -> SchemaNode:
    """Build a SchemaNode tree from a literal draft-07 schema object.

    Raises SchemaDefinitionError, prefixed with the JSON Pointer of the
    offending sub-schema, under exactly the rules the constructors enforce.
    """
    if isinstance(document, SchemaNode):
        return document
    if isinstance(document, bool):
        return SchemaNode(literal=document)
    if not isinstance(document, Mapping):
        raise SchemaDefinitionError(
            f"{pointer}: a schema must be an object or a boolean, got {type(document).__name__}"
        )

    structure: dict[str, Any] = {}
    metadata: dict[str, Any] = {}
    for key, value in document.items():
        here = f"{pointer}/{_escape(key)}"
        if key in ("type", "required", "const", "enum", "$ref"):
            structure[_FIELD_NAMES[key]] = _plain(value, here)
        elif key in ("properties", "definitions"):
            structure[_FIELD_NAMES[key]] = _schema_map(value, here)
        elif key in ("allOf", "anyOf", "oneOf"):
            structure[_FIELD_NAMES[key]] = _schema_list(value, here)
        elif key == "items" and isinstance(value, list):
            structure["items"] = _schema_list(value, here)
        elif key in ("items", "additionalProperties", "additionalItems", "if", "then", "else"):
            structure[_FIELD_NAMES[key]] = from_document(value, here)
        elif key in ("not", "contains", "propertyNames"):
            metadata[key] = from_document(value, here)
        elif key == "patternProperties":
            metadata[key] = _schema_map(value, here)
        elif key == "dependencies":
            metadata[key] = _dependency_map(value, here)
        else:
            metadata[key] = value

    try:
        return SchemaNode(metadata=metadata, **structure)
    except SchemaDefinitionError as exc:
        raise SchemaDefinitionError(f"{pointer}: {exc}") from exc


def as_node(schema: SchemaNode | Mapping[str, Any] | bool) -> SchemaNode:
    """Accept a node or an equivalent literal schema object."""
    return from_document(schema)


_FIELD_NAMES = {
    "type": "type",
    "required": "required",
    "const": "const",
    "enum": "enum",
    "$ref": "ref",
    "properties": "properties",
    "definitions": "definitions",
    "allOf": "all_of",
    "anyOf": "any_of",
    "oneOf": "one_of",
    "items": "items",
    "additionalProperties": "additional_properties",
    "additionalItems": "additional_items",
    "if": "if_",
    "then": "then",
    "else": "else_",
}


def _plain(value: Any, pointer: str) -> Any:
    if isinstance(value, SchemaNode):
        raise SchemaDefinitionError(f"{pointer}: expected a JSON value, got a SchemaNode")
    return value


def _schema_map(value: Any, pointer: str) -> dict[str, SchemaNode]:
    if not isinstance(value, Mapping):
        raise SchemaDefinitionError(f"{pointer}: expected an object of schemas")
    return {name: from_document(sub, f"{pointer}/{_escape(name)}") for name, sub in value.items()}


def _dependency_map(value: Any, pointer: str) -> Any:
    if not isinstance(value, Mapping):
        return value
    return {
        name: dependency if isinstance(dependency, list) else from_document(dependency, f"{pointer}/{_escape(name)}")
        for name, dependency in value.items()
    }


def _schema_list(value: Any, pointer: str) -> list[SchemaNode]:
    if not isinstance(value, (list, tuple)):
        raise SchemaDefinitionError(f"{pointer}: expected a list of schemas")
    return [from_document(sub, f"{pointer}/{index}") for index, sub in enumerate(value)]


def _escape(token: Any) -> str:
    return str(token).replace("~", "~0").replace("/", "~1")
