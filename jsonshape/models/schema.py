"""
Schema node model.

A SchemaNode is an immutable fragment of a draft-07 JSON Schema. One frozen
dataclass carries every keyword group; the constructors below build the
common shapes, and every node (however it is built) is checked in
``__post_init__`` so a malformed node can never exist.

Keywords with no structural meaning (titles, bounds, patterns, formats, ...)
live in ``metadata``. They are written to the serialized document and
enforced by the validator, but never change the projected shape.
Sub-schema keywords kept in metadata (``not``, ``contains``, ...) hold
SchemaNodes, so the same construction rules apply to them.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, fields
from enum import Enum
from types import MappingProxyType
from typing import Any

from jsonshape.errors import SchemaDefinitionError

DRAFT_07_URI = "http://json-schema.org/draft-07/schema#"


class SimpleType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    NULL = "null"
    OBJECT = "object"
    ARRAY = "array"


class SchemaTag(str, Enum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    NULL = "null"
    OBJECT = "object"
    ARRAY = "array"
    CONST = "const"
    ENUM = "enum"
    ALL_OF = "allOf"
    ANY_OF = "anyOf"
    ONE_OF = "oneOf"
    CONDITIONAL = "conditional"
    REF = "$ref"
    BOOLEAN_LITERAL = "boolean_literal"
    UNCONSTRAINED = "unconstrained"


class _Absent:
    """Marker for a ``const`` keyword that is not set (``None`` is a valid const)."""

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT: Any = _Absent()

# Metadata allowed on any node.
ANNOTATION_KEYWORDS = frozenset(
    {"$id", "$schema", "$comment", "title", "description", "default", "examples", "readOnly", "not"}
)

# Metadata keywords whose values are sub-schemas: a single schema, a map of
# name to schema, or (dependencies) a map of name to schema or property list.
SUBSCHEMA_KEYWORDS: Mapping[str, str] = MappingProxyType(
    {
        "not": "schema",
        "contains": "schema",
        "propertyNames": "schema",
        "patternProperties": "map",
        "dependencies": "dependencies",
    }
)

_STRING_KEYWORDS = frozenset(
    {"format", "pattern", "minLength", "maxLength", "contentMediaType", "contentEncoding"}
)
_NUMERIC_KEYWORDS = frozenset(
    {"multipleOf", "minimum", "maximum", "exclusiveMinimum", "exclusiveMaximum"}
)

# Metadata allowed only on nodes of a given type.
TYPE_KEYWORDS: Mapping[SimpleType, frozenset[str]] = MappingProxyType(
    {
        SimpleType.STRING: _STRING_KEYWORDS,
        SimpleType.NUMBER: _NUMERIC_KEYWORDS,
        SimpleType.INTEGER: _NUMERIC_KEYWORDS,
        SimpleType.BOOLEAN: frozenset(),
        SimpleType.NULL: frozenset(),
        SimpleType.ARRAY: frozenset({"minItems", "maxItems", "uniqueItems", "contains"}),
        SimpleType.OBJECT: frozenset(
            {"minProperties", "maxProperties", "patternProperties", "propertyNames", "dependencies"}
        ),
    }
)

# JSON keyword name for each structural field.
STRUCTURAL_KEYWORDS: Mapping[str, str] = MappingProxyType(
    {
        "type": "type",
        "properties": "properties",
        "required": "required",
        "additional_properties": "additionalProperties",
        "items": "items",
        "additional_items": "additionalItems",
        "const": "const",
        "enum": "enum",
        "all_of": "allOf",
        "any_of": "anyOf",
        "one_of": "oneOf",
        "if_": "if",
        "then": "then",
        "else_": "else",
        "ref": "$ref",
        "definitions": "definitions",
    }
)

_OBJECT_FIELDS = ("properties", "required", "additional_properties")
_ARRAY_FIELDS = ("items", "additional_items")
_REF_EXCLUSIVE_FIELDS = (
    "type", *_OBJECT_FIELDS, *_ARRAY_FIELDS, "enum", "all_of", "any_of", "one_of", "if_", "then", "else_"
)


@dataclass(frozen=True, repr=False)
class SchemaNode:
    """A single schema fragment; sub-schemas are SchemaNodes themselves."""

    type: SimpleType | None = None
    properties: Mapping[str, SchemaNode] | None = None
    required: tuple[str, ...] | None = None
    additional_properties: SchemaNode | None = None
    items: SchemaNode | tuple[SchemaNode, ...] | None = None
    additional_items: SchemaNode | None = None
    const: Any = ABSENT
    enum: tuple[Any, ...] | None = None
    all_of: tuple[SchemaNode, ...] | None = None
    any_of: tuple[SchemaNode, ...] | None = None
    one_of: tuple[SchemaNode, ...] | None = None
    if_: SchemaNode | None = None
    then: SchemaNode | None = None
    else_: SchemaNode | None = None
    ref: str | None = None
    definitions: Mapping[str, SchemaNode] | None = None
    literal: bool | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        _normalize(self)
        _check_keywords(self)

    def __hash__(self) -> int:
        # By value, matching the generated __eq__.
        return hash(tuple(_freeze(getattr(self, f.name)) for f in fields(self)))

    @property
    def tag(self) -> SchemaTag:
        if self.literal is not None:
            return SchemaTag.BOOLEAN_LITERAL
        if self.ref is not None:
            return SchemaTag.REF
        if self.type is not None:
            return SchemaTag(self.type.value)
        if self.const is not ABSENT:
            return SchemaTag.CONST
        if self.enum is not None:
            return SchemaTag.ENUM
        if self.all_of is not None:
            return SchemaTag.ALL_OF
        if self.any_of is not None:
            return SchemaTag.ANY_OF
        if self.one_of is not None:
            return SchemaTag.ONE_OF
        if self.if_ is not None:
            return SchemaTag.CONDITIONAL
        return SchemaTag.UNCONSTRAINED

    def keywords(self) -> tuple[str, ...]:
        """JSON keyword names set on this node (not its children)."""
        names = [
            STRUCTURAL_KEYWORDS[name]
            for name in STRUCTURAL_KEYWORDS
            if _is_set(getattr(self, name), name)
        ]
        return tuple(names) + tuple(self.metadata)

    def subschemas(self) -> Iterator[tuple[str, SchemaNode]]:
        """Yield ``(keyword, child)`` for every direct structural sub-schema."""
        for name, value in (self.properties or {}).items():
            yield f"properties/{name}", value
        if self.additional_properties is not None:
            yield "additionalProperties", self.additional_properties
        if isinstance(self.items, tuple):
            for index, item in enumerate(self.items):
                yield f"items/{index}", item
        elif self.items is not None:
            yield "items", self.items
        if self.additional_items is not None:
            yield "additionalItems", self.additional_items
        for name in ("all_of", "any_of", "one_of"):
            for index, member in enumerate(getattr(self, name) or ()):
                yield f"{STRUCTURAL_KEYWORDS[name]}/{index}", member
        for name in ("if_", "then", "else_"):
            if getattr(self, name) is not None:
                yield STRUCTURAL_KEYWORDS[name], getattr(self, name)
        for keyword, kind in SUBSCHEMA_KEYWORDS.items():
            value = self.metadata.get(keyword)
            if value is None:
                continue
            if kind == "schema":
                yield keyword, value
                continue
            for name, sub in value.items():
                if isinstance(sub, SchemaNode):
                    yield f"{keyword}/{name}", sub
        for name, value in (self.definitions or {}).items():
            yield f"definitions/{name}", value

    def __repr__(self) -> str:
        if self.literal is not None:
            return f"SchemaNode(literal={self.literal!r})"
        parts = [
            f"{f.name}={getattr(self, f.name)!r}"
            for f in fields(self)
            if f.name != "metadata" and _is_set(getattr(self, f.name), f.name)
        ]
        if self.metadata:
            parts.append(f"metadata={dict(self.metadata)!r}")
        return f"SchemaNode({', '.join(parts)})"


def _is_set(value: Any, name: str) -> bool:
    if name == "const":
        return value is not ABSENT
    return value is not None


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return frozenset((key, _freeze(item)) for key, item in value.items())
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


# ---------------------------------------------------------------------------
# Normalization: coerce inputs to immutable forms, copying mutable values
# ---------------------------------------------------------------------------


def _normalize(node: SchemaNode) -> None:
    def put(name: str, value: Any) -> None:
        object.__setattr__(node, name, value)

    if node.type is not None:
        if isinstance(node.type, (list, tuple)):
            raise SchemaDefinitionError("A list of types is not supported; use anyOf instead")
        try:
            put("type", SimpleType(node.type))
        except ValueError:
            raise SchemaDefinitionError(f"Unknown type '{node.type}'") from None

    if node.properties is not None:
        put("properties", _node_map(node.properties, "properties"))
    if node.required is not None:
        if isinstance(node.required, str) or not isinstance(node.required, Iterable):
            raise SchemaDefinitionError("'required' must be a list of property names")
        names = tuple(node.required)
        for name in names:
            if not isinstance(name, str):
                raise SchemaDefinitionError(f"'required' entries must be strings, got {name!r}")
        put("required", names)
    if node.additional_properties is not None:
        put("additional_properties", as_subschema(node.additional_properties, "additionalProperties"))

    if isinstance(node.items, (list, tuple)):
        put("items", _node_list(node.items, "items"))
    elif node.items is not None:
        put("items", as_subschema(node.items, "items"))
    if node.additional_items is not None:
        put("additional_items", as_subschema(node.additional_items, "additionalItems"))

    if node.const is not ABSENT:
        put("const", _json_copy(node.const, "const"))
    if node.enum is not None:
        if isinstance(node.enum, (str, Mapping)) or not isinstance(node.enum, Iterable):
            raise SchemaDefinitionError("'enum' must be a list of values")
        put("enum", tuple(_json_copy(value, "enum") for value in node.enum))

    for name in ("all_of", "any_of", "one_of"):
        members = getattr(node, name)
        if members is not None:
            put(name, _node_list(members, STRUCTURAL_KEYWORDS[name]))
    for name in ("if_", "then", "else_"):
        value = getattr(node, name)
        if value is not None:
            put(name, as_subschema(value, STRUCTURAL_KEYWORDS[name]))

    if node.ref is not None and not isinstance(node.ref, str):
        raise SchemaDefinitionError(f"'$ref' must be a string, got {node.ref!r}")
    if node.definitions is not None:
        put("definitions", _node_map(node.definitions, "definitions"))
    if node.literal is not None and not isinstance(node.literal, bool):
        raise SchemaDefinitionError(f"A boolean schema must be True or False, got {node.literal!r}")

    if not isinstance(node.metadata, Mapping):
        raise SchemaDefinitionError("'metadata' must be a mapping of keyword to value")
    metadata = {}
    for key, value in node.metadata.items():
        if not isinstance(key, str):
            raise SchemaDefinitionError(f"Keyword names must be strings, got {key!r}")
        kind = SUBSCHEMA_KEYWORDS.get(key)
        if kind == "schema":
            metadata[key] = as_subschema(value, key)
        elif kind == "map":
            metadata[key] = _node_map(value, key)
        elif kind == "dependencies":
            metadata[key] = _dependency_map(value)
        else:
            metadata[key] = _json_copy(value, key)
    put("metadata", MappingProxyType(metadata))


def as_subschema(value: Any, where: str) -> SchemaNode:
    """Accept a SchemaNode, or a bool as shorthand for a boolean schema."""
    if isinstance(value, SchemaNode):
        return value
    if isinstance(value, bool):
        return SchemaNode(literal=value)
    raise SchemaDefinitionError(
        f"'{where}' must be a SchemaNode or a bool, got {type(value).__name__}"
    )


def _node_map(value: Any, where: str) -> Mapping[str, SchemaNode]:
    if not isinstance(value, Mapping):
        raise SchemaDefinitionError(f"'{where}' must be a mapping of name to schema")
    result = {}
    for name, sub in value.items():
        if not isinstance(name, str):
            raise SchemaDefinitionError(f"'{where}' names must be strings, got {name!r}")
        result[name] = as_subschema(sub, f"{where}/{name}")
    return MappingProxyType(result)


def _dependency_map(value: Any) -> Mapping[str, Any]:
    """Property dependencies: each entry is a schema or a list of property names."""
    if not isinstance(value, Mapping):
        raise SchemaDefinitionError("'dependencies' must be a mapping of property name to dependency")
    result: dict[str, Any] = {}
    for name, dependency in value.items():
        if not isinstance(name, str):
            raise SchemaDefinitionError(f"'dependencies' names must be strings, got {name!r}")
        if isinstance(dependency, (list, tuple)):
            if not all(isinstance(item, str) for item in dependency):
                raise SchemaDefinitionError(f"'dependencies/{name}' must list property names")
            result[name] = tuple(dependency)
        else:
            result[name] = as_subschema(dependency, f"dependencies/{name}")
    return MappingProxyType(result)


def _node_list(value: Any, where: str) -> tuple[SchemaNode, ...]:
    if isinstance(value, (str, Mapping, SchemaNode)) or not isinstance(value, Iterable):
        raise SchemaDefinitionError(f"'{where}' must be a list of schemas")
    members = tuple(as_subschema(sub, f"{where}/{i}") for i, sub in enumerate(value))
    if not members:
        raise SchemaDefinitionError(f"'{where}' must contain at least one schema")
    return members


def _json_copy(value: Any, where: str) -> Any:
    """Deep-copy ``value``, failing if it is not representable as JSON."""
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise SchemaDefinitionError(f"'{where}' contains a non-finite number: {value!r}")
        return value
    if isinstance(value, (list, tuple)):
        return [_json_copy(item, where) for item in value]
    if isinstance(value, Mapping):
        result = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise SchemaDefinitionError(f"'{where}' contains a non-string object key: {key!r}")
            result[key] = _json_copy(item, where)
        return result
    raise SchemaDefinitionError(f"'{where}' contains a non-JSON value of type {type(value).__name__}")


# ---------------------------------------------------------------------------
# Keyword combination rules
# ---------------------------------------------------------------------------


def matches_type(value: Any, simple_type: SimpleType) -> bool:
    """True when the JSON value is an instance of the draft-07 type."""
    if simple_type is SimpleType.STRING:
        return isinstance(value, str)
    if simple_type is SimpleType.BOOLEAN:
        return isinstance(value, bool)
    if simple_type is SimpleType.NULL:
        return value is None
    if simple_type is SimpleType.OBJECT:
        return isinstance(value, Mapping)
    if simple_type is SimpleType.ARRAY:
        return isinstance(value, (list, tuple))
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if simple_type is SimpleType.INTEGER:
        return isinstance(value, int) or value.is_integer()
    return True


def _check_keywords(node: SchemaNode) -> None:
    if node.literal is not None:
        extra = list(node.keywords())
        if extra:
            raise SchemaDefinitionError(
                f"A boolean schema cannot carry other keywords: {', '.join(extra)}"
            )
        return

    if node.ref is not None:
        siblings = [
            STRUCTURAL_KEYWORDS[name]
            for name in (*_REF_EXCLUSIVE_FIELDS, "const")
            if _is_set(getattr(node, name), name)
        ]
        if siblings:
            raise SchemaDefinitionError(
                f"'$ref' cannot be combined with {', '.join(siblings)}; "
                "draft-07 ignores keywords beside a reference"
            )

    if node.type is not SimpleType.OBJECT:
        for name in _OBJECT_FIELDS:
            if getattr(node, name) is not None:
                raise SchemaDefinitionError(
                    f"'{STRUCTURAL_KEYWORDS[name]}' is only valid on object schemas"
                )
    if node.type is not SimpleType.ARRAY:
        for name in _ARRAY_FIELDS:
            if getattr(node, name) is not None:
                raise SchemaDefinitionError(
                    f"'{STRUCTURAL_KEYWORDS[name]}' is only valid on array schemas"
                )
    if node.additional_items is not None and not isinstance(node.items, tuple):
        raise SchemaDefinitionError("'additionalItems' requires 'items' to be a list of schemas")

    if node.required is not None:
        duplicates = sorted({name for name in node.required if node.required.count(name) > 1})
        if duplicates:
            raise SchemaDefinitionError(f"Duplicate names in 'required': {duplicates}")
        declared = node.properties or {}
        unknown = [name for name in node.required if name not in declared]
        if unknown:
            raise SchemaDefinitionError(
                f"Required properties {unknown} are not declared in 'properties'"
            )

    if node.type is not None:
        if node.const is not ABSENT and not matches_type(node.const, node.type):
            raise SchemaDefinitionError(
                f"'const' value {node.const!r} is not of type '{node.type.value}'"
            )
        for value in node.enum or ():
            if not matches_type(value, node.type):
                raise SchemaDefinitionError(
                    f"'enum' value {value!r} is not of type '{node.type.value}'"
                )

    if node.if_ is None and (node.then is not None or node.else_ is not None):
        raise SchemaDefinitionError("'then' and 'else' require 'if'")
    if node.if_ is not None and node.then is None and node.else_ is None:
        raise SchemaDefinitionError("'if' requires at least one of 'then' or 'else'")

    _check_metadata(node)


def _check_metadata(node: SchemaNode) -> None:
    allowed = ANNOTATION_KEYWORDS | TYPE_KEYWORDS.get(node.type, frozenset())
    for key in node.metadata:
        if key in allowed:
            continue
        if key in STRUCTURAL_KEYWORDS.values():
            raise SchemaDefinitionError(
                f"'{key}' is a structural keyword and cannot be passed as metadata"
            )
        owners = sorted(t.value for t, names in TYPE_KEYWORDS.items() if key in names)
        if owners:
            raise SchemaDefinitionError(
                f"'{key}' is only valid on {' or '.join(owners)} schemas"
            )
        raise SchemaDefinitionError(f"Unsupported keyword '{key}'")

    uri = node.metadata.get("$schema")
    if uri is not None and uri != DRAFT_07_URI:
        raise SchemaDefinitionError(f"'$schema' must be '{DRAFT_07_URI}', got {uri!r}")


# ---------------------------------------------------------------------------
# Constructors, one per tag
# ---------------------------------------------------------------------------


def _build(keywords: dict[str, Any], extra: Mapping[str, Any] | None, **structure: Any) -> SchemaNode:
    metadata = dict(extra or {})
    metadata.update(keywords)
    return SchemaNode(metadata=metadata, **structure)


def string_schema(*, enum=None, definitions=None, extra=None, **keywords) -> SchemaNode:
    return _build(keywords, extra, type=SimpleType.STRING, enum=enum, definitions=definitions)


def number_schema(*, enum=None, definitions=None, extra=None, **keywords) -> SchemaNode:
    return _build(keywords, extra, type=SimpleType.NUMBER, enum=enum, definitions=definitions)


def integer_schema(*, enum=None, definitions=None, extra=None, **keywords) -> SchemaNode:
    return _build(keywords, extra, type=SimpleType.INTEGER, enum=enum, definitions=definitions)


def boolean_schema(*, enum=None, definitions=None, extra=None, **keywords) -> SchemaNode:
    return _build(keywords, extra, type=SimpleType.BOOLEAN, enum=enum, definitions=definitions)


def null_schema(*, definitions=None, extra=None, **keywords) -> SchemaNode:
    return _build(keywords, extra, type=SimpleType.NULL, definitions=definitions)


def object_schema(
    properties: Mapping[str, SchemaNode | bool] | None = None,
    *,
    required: Iterable[str] | None = None,
    additional_properties: SchemaNode | bool | None = None,
    enum=None,
    definitions=None,
    extra=None,
    **keywords,
) -> SchemaNode:
    """Build an object schema.

    Properties are optional unless listed in ``required``; every required
    name must be a declared property.
    """
    return _build(
        keywords,
        extra,
        type=SimpleType.OBJECT,
        properties=properties,
        required=required,
        additional_properties=additional_properties,
        enum=enum,
        definitions=definitions,
    )


def array_schema(
    items: SchemaNode | bool | Iterable[SchemaNode | bool] | None = None,
    *,
    additional_items: SchemaNode | bool | None = None,
    enum=None,
    definitions=None,
    extra=None,
    **keywords,
) -> SchemaNode:
    """Build an array schema.

    A single ``items`` schema describes a homogeneous list; a list of schemas
    describes positional items, optionally followed by ``additional_items``.
    """
    return _build(
        keywords,
        extra,
        type=SimpleType.ARRAY,
        items=items,
        additional_items=additional_items,
        enum=enum,
        definitions=definitions,
    )


def const_schema(value: Any, *, definitions=None, extra=None, **keywords) -> SchemaNode:
    return _build(keywords, extra, const=value, definitions=definitions)


def enum_schema(values: Iterable[Any], *, definitions=None, extra=None, **keywords) -> SchemaNode:
    return _build(keywords, extra, enum=values, definitions=definitions)


def all_of(*members: SchemaNode | bool, definitions=None, extra=None, **keywords) -> SchemaNode:
    return _build(keywords, extra, all_of=members, definitions=definitions)


def any_of(*members: SchemaNode | bool, definitions=None, extra=None, **keywords) -> SchemaNode:
    return _build(keywords, extra, any_of=members, definitions=definitions)


def one_of(*members: SchemaNode | bool, definitions=None, extra=None, **keywords) -> SchemaNode:
    return _build(keywords, extra, one_of=members, definitions=definitions)


def conditional(
    if_: SchemaNode | bool,
    then: SchemaNode | bool | None = None,
    else_: SchemaNode | bool | None = None,
    *,
    definitions=None,
    extra=None,
    **keywords,
) -> SchemaNode:
    return _build(keywords, extra, if_=if_, then=then, else_=else_, definitions=definitions)


def ref(pointer: str, *, definitions=None, extra=None, **keywords) -> SchemaNode:
    return _build(keywords, extra, ref=pointer, definitions=definitions)


def literal_schema(value: bool) -> SchemaNode:
    """The ``true`` schema accepts everything, the ``false`` schema nothing."""
    return SchemaNode(literal=value)


def schema(
    *,
    type: SimpleType | str | None = None,
    properties=None,
    required=None,
    additional_properties=None,
    items=None,
    additional_items=None,
    const: Any = ABSENT,
    enum=None,
    all_of=None,
    any_of=None,
    one_of=None,
    if_=None,
    then=None,
    else_=None,
    ref=None,
    definitions=None,
    extra=None,
    **keywords,
) -> SchemaNode:
    """Build a node from any legal keyword combination.

    Use this when a node mixes keyword groups, e.g. a string that must also
    match one of several sub-schemas.
    """
    return _build(
        keywords,
        extra,
        type=type,
        properties=properties,
        required=required,
        additional_properties=additional_properties,
        items=items,
        additional_items=additional_items,
        const=const,
        enum=enum,
        all_of=all_of,
        any_of=any_of,
        one_of=one_of,
        if_=if_,
        then=then,
        else_=else_,
        ref=ref,
        definitions=definitions,
    )

