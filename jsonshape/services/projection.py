"""
Type projection: compute the shape of the values a schema accepts.

``project`` is pure and total. Each keyword group on a node is projected on
its own and the results are intersected, so a node carrying both ``type``
and ``anyOf`` yields ``type & (a | b)``.

Known approximations (all over-approximate, never under-approximate):
- ``oneOf`` is projected like ``anyOf``; exclusivity is not modelled.
- ``items`` + ``additionalItems`` gives ``rest`` without tying it to the
  positions after the fixed prefix.
- ``if``/``then``/``else`` is only narrowed when both branches exist;
  ``if`` itself is never evaluated.
- ``$ref`` is never resolved and projects to Unknown.
"""

from __future__ import annotations

from jsonshape.models.schema import ABSENT, SchemaNode, SimpleType
from jsonshape.models.types import (
    NEVER,
    UNKNOWN,
    Field,
    Literal,
    Primitive,
    Record,
    Tuple,
    TypeDescriptor,
    intersection,
    union,
    with_required,
)


def project(node: SchemaNode) -> TypeDescriptor:
    """Return the TypeDescriptor for ``node``; Never if it accepts nothing."""
    if node.literal is not None:
        return UNKNOWN if node.literal else NEVER
    if node.ref is not None:
        return UNKNOWN

    groups: list[TypeDescriptor] = []
    if node.type is not None:
        groups.extend(_project_type(node))
    elif node.enum is not None:
        groups.append(_literals(node.enum))
    if node.const is not ABSENT:
        groups.append(Literal(node.const))
    if node.all_of is not None:
        groups.append(intersection(*(project(member) for member in node.all_of)))
    if node.any_of is not None:
        groups.append(union(*(project(member) for member in node.any_of)))
    if node.one_of is not None:
        groups.append(union(*(project(member) for member in node.one_of)))
    if node.if_ is not None:
        groups.append(_project_conditional(node))
    return intersection(*groups)


def _literals(values) -> TypeDescriptor:
    return union(*(Literal(value) for value in values))


def _project_type(node: SchemaNode) -> list[TypeDescriptor]:
    if node.type is SimpleType.OBJECT:
        groups = [_project_object(node)]
    elif node.type is SimpleType.ARRAY:
        groups = [_project_array(node)]
    elif node.enum is not None:
        # Enum values were checked against the type, so they replace it.
        return [_literals(node.enum)]
    else:
        return [Primitive(node.type.value)]
    if node.enum is not None:
        groups.append(_literals(node.enum))
    return groups


def _project_object(node: SchemaNode) -> Record:
    if node.additional_properties is None:
        index = UNKNOWN
    else:
        index = project(node.additional_properties)
    record = Record(
        {name: Field(project(sub)) for name, sub in (node.properties or {}).items()},
        index,
    )
    return with_required(record, node.required or ())


def _project_array(node: SchemaNode) -> Tuple:
    if node.items is None:
        return Tuple((), UNKNOWN)
    if isinstance(node.items, SchemaNode):
        return Tuple((), project(node.items))
    rest = UNKNOWN if node.additional_items is None else project(node.additional_items)
    return Tuple(tuple(project(item) for item in node.items), rest)


def _project_conditional(node: SchemaNode) -> TypeDescriptor:
    if node.then is not None and node.else_ is not None:
        return union(project(node.then), project(node.else_))
    return UNKNOWN
