"""Every value the validator accepts must fit the projected descriptor."""

import pytest

from jsonshape.models.schema import (
    all_of,
    any_of,
    array_schema,
    boolean_schema,
    conditional,
    const_schema,
    enum_schema,
    integer_schema,
    literal_schema,
    null_schema,
    number_schema,
    object_schema,
    one_of,
    ref,
    string_schema,
)
from jsonshape.models.types import (
    Intersection,
    Literal,
    Never,
    Primitive,
    Record,
    Tuple,
    Union,
    Unknown,
    freeze_json,
)
from jsonshape.services.parser import Parser


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


_PRIMITIVES = {
    "string": lambda value: isinstance(value, str),
    "number": _is_number,
    "integer": lambda value: _is_number(value) and float(value).is_integer(),
    "boolean": lambda value: isinstance(value, bool),
    "null": lambda value: value is None,
}


def conforms(value, descriptor):
    """True when ``value`` is one of the values ``descriptor`` describes."""
    if isinstance(descriptor, Unknown):
        return True
    if isinstance(descriptor, Never):
        return False
    if isinstance(descriptor, Primitive):
        return _PRIMITIVES[descriptor.kind](value)
    if isinstance(descriptor, Literal):
        return freeze_json(value) == freeze_json(descriptor.value)
    if isinstance(descriptor, Union):
        return any(conforms(value, member) for member in descriptor.members)
    if isinstance(descriptor, Intersection):
        return all(conforms(value, member) for member in descriptor.members)
    if isinstance(descriptor, Record):
        if not isinstance(value, dict):
            return False
        fields = descriptor.field_map
        for name, field in fields.items():
            if name in value:
                if not conforms(value[name], field.type):
                    return False
            elif field.required:
                return False
        extra = [key for key in value if key not in fields]
        if descriptor.index_signature is None:
            return not extra
        return all(conforms(value[key], descriptor.index_signature) for key in extra)
    if isinstance(descriptor, Tuple):
        if not isinstance(value, list):
            return False
        # Draft-07 arrays may end before the positional prefix does.
        for index, item in enumerate(value):
            if index < len(descriptor.fixed):
                expected = descriptor.fixed[index]
            elif descriptor.rest is None:
                return False
            else:
                expected = descriptor.rest
            if not conforms(item, expected):
                return False
        return True
    raise TypeError(f"Unknown descriptor {descriptor!r}")


SAMPLES = [
    None, True, False, 0, 1, 2.5, -3, 1.0, "", "a", "B1", "hello",
    [], ["a"], ["a", 1], ["a", 1, 2], ["a", "b"], [1, 2, 3], [None],
    {}, {"a": "x"}, {"a": 1}, {"b": 2}, {"a": "x", "b": 2}, {"a": "x", "c": True},
    {"kind": "circle", "radius": 2}, {"kind": "square", "side": 3}, {"kind": "square", "radius": 1},
    {"x": 1, "y": 2}, {"x": 1}, {"y": "two"},
]


def _accepted(parser):
    return [value for value in SAMPLES if parser.validates(value)]


def _assert_sound(schema):
    parser = Parser(schema)
    accepted = _accepted(parser)
    for value in accepted:
        assert conforms(value, parser.descriptor), (value, str(parser.descriptor))
    return accepted


SCHEMAS = {
    "object": object_schema(
        {"a": string_schema(), "b": number_schema()}, required=["a"]
    ),
    "closed object": object_schema(
        {"a": string_schema()}, additional_properties=literal_schema(False)
    ),
    "typed index": object_schema(
        {"a": string_schema()}, additional_properties=boolean_schema()
    ),
    "homogeneous array": array_schema(integer_schema()),
    "positional array": array_schema([string_schema(), number_schema()]),
    "positional array with additionalItems": array_schema(
        [string_schema()], additional_items=number_schema()
    ),
    "closed positional array": array_schema(
        [string_schema(), number_schema()], additional_items=False
    ),
    "string enum": string_schema(enum=["B1", "B2"]),
    "typeless enum": enum_schema(["a", 1, None, True]),
    "const": const_schema({"a": "x"}),
    "integer": integer_schema(),
    "null": null_schema(),
    "allOf": all_of(
        object_schema({"x": number_schema()}, required=["x"]),
        object_schema({"y": number_schema()}, required=["y"]),
    ),
    "anyOf": any_of(string_schema(), array_schema(string_schema())),
    "oneOf": one_of(integer_schema(), string_schema(minLength=2)),
    "if/then/else": conditional(
        object_schema({"kind": const_schema("circle")}, required=["kind"]),
        object_schema({"radius": number_schema()}, required=["radius"]),
        object_schema({"side": number_schema()}, required=["side"]),
    ),
    "if/then only": conditional(string_schema(), string_schema(minLength=1)),
    "runtime-only bounds": object_schema(
        {"x": integer_schema(minimum=1)},
        required=["x"],
        minProperties=1,
        **{"not": object_schema({"y": string_schema()}, required=["y"])},
    ),
    "contains": array_schema(number_schema(), contains=integer_schema(minimum=2)),
    "ref": object_schema(
        {"a": ref("#/definitions/name")},
        definitions={"name": string_schema()},
    ),
    "false": literal_schema(False),
    "true": literal_schema(True),
}


@pytest.mark.parametrize("name", sorted(SCHEMAS))
def test_accepted_values_fit_the_descriptor(name):
    _assert_sound(SCHEMAS[name])


def test_samples_exercise_every_interesting_schema():
    """Guard against a schema that accepts none of the samples."""
    for name, schema in SCHEMAS.items():
        if name == "false":
            assert _assert_sound(schema) == []
        else:
            assert _assert_sound(schema), name


def test_enum_descriptor_rejects_values_outside_the_enum():
    parser = Parser(string_schema(enum=["B1", "B2"]))
    for value in SAMPLES:
        if conforms(value, parser.descriptor):
            assert value in ("B1", "B2")


def test_descriptor_absent_field_is_never_required():
    parser = Parser(
        object_schema({"a": string_schema(), "b": number_schema()}, required=["a"])
    )
    assert parser.validates({"a": "x"})
    assert conforms({"a": "x"}, parser.descriptor)
    assert not conforms({"b": 2}, parser.descriptor)


def test_shorter_arrays_still_fit_a_positional_prefix():
    parser = Parser(array_schema([string_schema(), number_schema()], additional_items=False))
    assert parser.validates(["a"])
    assert conforms(["a"], parser.descriptor)
    assert not parser.validates(["a", 1, 2])
