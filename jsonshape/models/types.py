"""
Type descriptors: the shape of the values a schema accepts.

Descriptors are plain frozen values compared by structure. ``union`` and
``intersection`` are the smart constructors the projection engine uses;
they only apply exact identities (flattening, deduplication, absorption by
Unknown/Never) so a simplified descriptor always describes the same set of
values as the unsimplified one.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any


class TypeDescriptor:
    """Base class for every descriptor variant."""

    def __str__(self) -> str:
        return render(self)


@dataclass(frozen=True)
class Primitive(TypeDescriptor):
    kind: str  # string | number | integer | boolean | null


@dataclass(frozen=True, eq=False)
class Literal(TypeDescriptor):
    """Exactly one JSON value; equality is by JSON value, so ``True != 1``."""

    value: Any

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Literal):
            return NotImplemented
        return freeze_json(self.value) == freeze_json(other.value)

    def __hash__(self) -> int:
        return hash(freeze_json(self.value))


@dataclass(frozen=True)
class Field:
    type: TypeDescriptor
    required: bool = False


@dataclass(frozen=True)
class Record(TypeDescriptor):
    """An object with named fields plus an index signature for all other keys.

    ``fields`` may be passed as a mapping; it is stored sorted by name so
    two records with the same fields compare equal.
    """

    fields: tuple[tuple[str, Field], ...] = ()
    index_signature: TypeDescriptor | None = None

    def __post_init__(self):
        items = self.fields.items() if isinstance(self.fields, Mapping) else self.fields
        object.__setattr__(self, "fields", tuple(sorted(items, key=lambda item: item[0])))

    @property
    def field_map(self) -> dict[str, Field]:
        return dict(self.fields)


@dataclass(frozen=True)
class Tuple(TypeDescriptor):
    """An array: positional ``fixed`` types followed by any number of ``rest``.

    As in draft-07, an array may end before the fixed prefix does.
    """

    fixed: tuple[TypeDescriptor, ...] = ()
    rest: TypeDescriptor | None = None

    def __post_init__(self):
        object.__setattr__(self, "fixed", tuple(self.fixed))


@dataclass(frozen=True)
class Union(TypeDescriptor):
    members: frozenset[TypeDescriptor] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, "members", frozenset(self.members))


@dataclass(frozen=True)
class Intersection(TypeDescriptor):
    members: frozenset[TypeDescriptor] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, "members", frozenset(self.members))


@dataclass(frozen=True)
class Unknown(TypeDescriptor):
    """Any JSON value."""


@dataclass(frozen=True)
class Never(TypeDescriptor):
    """No value at all."""


UNKNOWN = Unknown()
NEVER = Never()


def freeze_json(value: Any) -> Any:
    """A hashable, type-tagged form of a JSON value."""
    if value is None:
        return ("null", None)
    if isinstance(value, bool):
        return ("boolean", value)
    if isinstance(value, (int, float)):
        return ("number", value)
    if isinstance(value, str):
        return ("string", value)
    if isinstance(value, (list, tuple)):
        return ("array", tuple(freeze_json(item) for item in value))
    if isinstance(value, Mapping):
        return ("object", tuple(sorted((key, freeze_json(item)) for key, item in value.items())))
    raise TypeError(f"Not a JSON value: {value!r}")


def _flatten(members: Iterable[TypeDescriptor], kind: type) -> Iterable[TypeDescriptor]:
    for member in members:
        if isinstance(member, kind):
            yield from _flatten(member.members, kind)
        else:
            yield member


def union(*members: TypeDescriptor) -> TypeDescriptor:
    """Union of ``members``: Never for none, the member itself for one."""
    collected = set()
    for member in _flatten(members, Union):
        if isinstance(member, Unknown):
            return UNKNOWN
        if not isinstance(member, Never):
            collected.add(member)
    if not collected:
        return NEVER
    if len(collected) == 1:
        return collected.pop()
    return Union(frozenset(collected))


def intersection(*members: TypeDescriptor) -> TypeDescriptor:
    """Intersection of ``members``: Unknown for none, the member itself for one."""
    collected = set()
    for member in _flatten(members, Intersection):
        if isinstance(member, Never):
            return NEVER
        if not isinstance(member, Unknown):
            collected.add(member)
    if not collected:
        return UNKNOWN
    if len(collected) == 1:
        return collected.pop()
    return Intersection(frozenset(collected))


def with_required(record: Record, names: Iterable[str]) -> Record:
    """Return ``record`` with each field's ``required`` flag set by membership in ``names``."""
    required = set(names)
    return Record(
        {name: Field(f.type, name in required) for name, f in record.fields},
        record.index_signature,
    )


def render(descriptor: TypeDescriptor) -> str:
    """Readable one-line notation, stable across runs (members are sorted)."""
    if isinstance(descriptor, Primitive):
        return descriptor.kind
    if isinstance(descriptor, Literal):
        return json.dumps(descriptor.value, sort_keys=True)
    if isinstance(descriptor, Record):
        parts = [
            f"{json.dumps(name)}{'' if f.required else '?'}: {render(f.type)}"
            for name, f in descriptor.fields
        ]
        if descriptor.index_signature is not None:
            parts.append(f"[key: string]: {render(descriptor.index_signature)}")
        return "{" + ", ".join(parts) + "}"
    if isinstance(descriptor, Tuple):
        parts = [render(item) for item in descriptor.fixed]
        if descriptor.rest is not None:
            parts.append(f"...{_grouped(descriptor.rest)}[]")
        return "[" + ", ".join(parts) + "]"
    if isinstance(descriptor, Union):
        return " | ".join(sorted(_grouped(member) for member in descriptor.members)) or "never"
    if isinstance(descriptor, Intersection):
        return " & ".join(sorted(_grouped(member) for member in descriptor.members)) or "unknown"
    if isinstance(descriptor, Never):
        return "never"
    return "unknown"


def _grouped(descriptor: TypeDescriptor) -> str:
    text = render(descriptor)
    if isinstance(descriptor, (Union, Intersection)) and len(descriptor.members) > 1:
        return f"({text})"
    return text
