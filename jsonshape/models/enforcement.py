"""
How precisely the projected shape captures each schema keyword.

ENFORCED keywords can never be violated by a value consistent with the
projected shape; PARTIALLY_ENFORCED ones are over-approximated; NOT_ENFORCED
ones are checked at runtime only; NO_CONSTRAINT_NEEDED ones are annotations.
``default`` counts as ENFORCED because compilation rejects a default that
fails its own schema.
This table is documentation and test metadata: neither projection nor
validation consults it.
"""

from __future__ import annotations

from enum import Enum

from jsonshape.models.schema import SchemaNode


class EnforcementLevel(str, Enum):
    ENFORCED = "enforced"
    PARTIALLY_ENFORCED = "partially_enforced"
    NOT_ENFORCED = "not_enforced"
    NO_CONSTRAINT_NEEDED = "no_constraint_needed"
    UNSUPPORTED = "unsupported"


_LEVELS: dict[EnforcementLevel, tuple[str, ...]] = {
    EnforcementLevel.ENFORCED: (
        "type", "properties", "required", "additionalProperties", "const", "enum",
        "allOf", "anyOf", "then", "else", "default",
    ),
    # items/additionalItems: rest is not tied to positions past the fixed prefix.
    # oneOf: projected as anyOf, exclusivity is lost.
    EnforcementLevel.PARTIALLY_ENFORCED: ("items", "additionalItems", "oneOf"),
    EnforcementLevel.NOT_ENFORCED: (
        "$ref", "definitions", "not",
        "format", "pattern", "minLength", "maxLength",
        "multipleOf", "minimum", "maximum", "exclusiveMinimum", "exclusiveMaximum",
        "minItems", "maxItems", "uniqueItems", "contains",
        "minProperties", "maxProperties", "patternProperties", "propertyNames", "dependencies",
    ),
    EnforcementLevel.NO_CONSTRAINT_NEEDED: (
        "$id", "$schema", "$comment", "title", "description", "examples", "readOnly",
        "if", "contentMediaType", "contentEncoding",
    ),
}

KEYWORD_ENFORCEMENT: dict[str, EnforcementLevel] = {
    keyword: level for level, keywords in _LEVELS.items() for keyword in keywords
}


def enforcement_level(keyword: str) -> EnforcementLevel:
    return KEYWORD_ENFORCEMENT.get(keyword, EnforcementLevel.UNSUPPORTED)


def enforcement_report(node: SchemaNode) -> dict[str, EnforcementLevel]:
    """Level of every keyword used anywhere in the tree rooted at ``node``."""
    report: dict[str, EnforcementLevel] = {}
    pending = [node]
    while pending:
        current = pending.pop()
        for keyword in current.keywords():
            report[keyword] = enforcement_level(keyword)
        pending.extend(child for _, child in current.subschemas())
    return dict(sorted(report.items()))
