"""Tests for keyword enforcement classification."""

from jsonshape.models.enforcement import EnforcementLevel, enforcement_level, enforcement_report
from jsonshape.models.schema import array_schema, number_schema, object_schema, one_of, string_schema


def test_levels():
    assert enforcement_level("required") is EnforcementLevel.ENFORCED
    assert enforcement_level("additionalItems") is EnforcementLevel.PARTIALLY_ENFORCED
    assert enforcement_level("oneOf") is EnforcementLevel.PARTIALLY_ENFORCED
    assert enforcement_level("pattern") is EnforcementLevel.NOT_ENFORCED
    assert enforcement_level("$ref") is EnforcementLevel.NOT_ENFORCED
    assert enforcement_level("default") is EnforcementLevel.ENFORCED
    assert enforcement_level("title") is EnforcementLevel.NO_CONSTRAINT_NEEDED
    assert enforcement_level("unevaluatedProperties") is EnforcementLevel.UNSUPPORTED


def test_report_walks_the_tree():
    node = object_schema(
        {
            "tags": array_schema([string_schema(pattern="^t")], additional_items=number_schema()),
            "id": one_of(string_schema(), number_schema()),
        },
        required=["id"],
        title="Thing",
    )
    report = enforcement_report(node)
    assert report == {
        "additionalItems": EnforcementLevel.PARTIALLY_ENFORCED,
        "items": EnforcementLevel.PARTIALLY_ENFORCED,
        "oneOf": EnforcementLevel.PARTIALLY_ENFORCED,
        "pattern": EnforcementLevel.NOT_ENFORCED,
        "properties": EnforcementLevel.ENFORCED,
        "required": EnforcementLevel.ENFORCED,
        "title": EnforcementLevel.NO_CONSTRAINT_NEEDED,
        "type": EnforcementLevel.ENFORCED,
    }
    assert list(report) == sorted(report)


def test_report_walks_metadata_subschemas():
    node = array_schema(
        string_schema(),
        contains=string_schema(minLength=2),
        **{"not": array_schema(maxItems=0)},
    )
    report = enforcement_report(node)
    assert report["contains"] is EnforcementLevel.NOT_ENFORCED
    assert report["not"] is EnforcementLevel.NOT_ENFORCED
    assert report["minLength"] is EnforcementLevel.NOT_ENFORCED
    assert report["maxItems"] is EnforcementLevel.NOT_ENFORCED
