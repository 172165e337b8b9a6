"""Tests for the type descriptor algebra."""

from jsonshape.models.types import (
    NEVER,
    UNKNOWN,
    Field,
    Intersection,
    Literal,
    Primitive,
    Record,
    Union,
    intersection,
    union,
    with_required,
)

STRING = Primitive("string")
NUMBER = Primitive("number")


def test_union_identities():
    assert union() == NEVER
    assert union(STRING) == STRING
    assert union(STRING, NEVER) == STRING
    assert union(STRING, UNKNOWN) == UNKNOWN
    assert union(STRING, STRING) == STRING


def test_intersection_identities():
    assert intersection() == UNKNOWN
    assert intersection(STRING, UNKNOWN) == STRING
    assert intersection(STRING, NEVER) == NEVER


def test_nested_members_flatten():
    inner = union(STRING, NUMBER)
    assert union(inner, Literal(None)) == Union({STRING, NUMBER, Literal(None)})
    assert intersection(intersection(STRING, NUMBER), STRING) == Intersection({STRING, NUMBER})


def test_members_are_unordered():
    assert union(STRING, NUMBER) == union(NUMBER, STRING)
    assert hash(union(STRING, NUMBER)) == hash(union(NUMBER, STRING))


def test_literal_equality_is_by_json_value():
    assert Literal({"a": [1, 2]}) == Literal({"a": [1, 2]})
    assert Literal(True) != Literal(1)
    assert Literal(0) != Literal(False)
    assert Literal(None) != Literal("null")
    assert len({Literal([1]), Literal([1]), Literal((1,))}) == 1


def test_record_field_order_does_not_matter():
    first = Record({"a": Field(STRING), "b": Field(NUMBER, True)}, UNKNOWN)
    second = Record({"b": Field(NUMBER, True), "a": Field(STRING)}, UNKNOWN)
    assert first == second
    assert list(first.field_map) == ["a", "b"]


def test_with_required_marks_fields():
    record = Record({"a": Field(STRING), "b": Field(NUMBER, True)}, NEVER)
    marked = with_required(record, {"a"})
    assert marked.field_map["a"].required is True
    assert marked.field_map["b"].required is False
    assert marked.index_signature == NEVER
