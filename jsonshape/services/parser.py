"""
Schema-bound JSON parser.

Ties the pieces together: a Parser owns one schema, its serialized document,
one compiled validator and (lazily) the projected TypeDescriptor. ``parse``
decodes text, validates it and returns the decoded value untouched; a value
returned by a validating call is guaranteed to be consistent with
``parser.descriptor``.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from functools import cached_property
from typing import Any

from jsonshape.errors import JsonSyntaxError, ValidationError
from jsonshape.models.document import as_node, serialize
from jsonshape.models.schema import SchemaNode
from jsonshape.models.types import TypeDescriptor
from jsonshape.schemas.results import CheckResult, ValidationIssue
from jsonshape.services.projection import project
from jsonshape.services.validation import compile_document

logger = logging.getLogger(__name__)


def decode_json(text: str | bytes) -> Any:
    """Decode strict JSON; NaN and Infinity are rejected."""
    try:
        if isinstance(text, (bytes, bytearray)):
            text = text.decode(json.detect_encoding(text), "surrogatepass")
        return json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise JsonSyntaxError(exc.msg, exc.pos, exc.lineno, exc.colno) from exc
    except UnicodeDecodeError as exc:
        raise JsonSyntaxError(f"Invalid text encoding: {exc.reason}", exc.start) from exc
    except _NonJsonConstant as exc:
        raise _constant_error(text, exc.name) from None


class _NonJsonConstant(Exception):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name


def _reject_constant(name: str) -> Any:
    raise _NonJsonConstant(name)


# A string token or a bare constant; strings are skipped so a quoted "NaN" never matches.
_CONSTANT_TOKEN = re.compile(r'"(?:[^"\\]|\\.)*"|(-?Infinity|NaN)')


def _constant_error(text: str, name: str) -> JsonSyntaxError:
    position = next(
        (match.start(1) for match in _CONSTANT_TOKEN.finditer(text) if match.group(1) == name),
        None,
    )
    if position is None:
        return JsonSyntaxError(f"{name} is not a valid JSON value")
    lineno = text.count("\n", 0, position) + 1
    colno = position - text.rfind("\n", 0, position)
    return JsonSyntaxError(f"{name} is not a valid JSON value", position, lineno, colno)


class Parser:
    """
    Parse and validate JSON against a single schema.

    Usage:
        parser = Parser(object_schema({"a": string_schema()}, required=["a"]))
        value = parser.parse('{"a": "hi"}')
        parser.descriptor      # {"a": string, [key: string]: unknown}

    Compilation happens once, here in the constructor. ``check`` is safe to
    call from several threads; ``validates``/``parse`` also write the
    per-instance "last errors" slot read by ``get_errors``, so concurrent
    callers that need reliable diagnostics should use ``check`` or one
    Parser each.
    """

    def __init__(
        self,
        schema: SchemaNode | Mapping[str, Any] | bool,
        *,
        format_check: bool | None = None,
        all_errors: bool | None = None,
    ):
        self.schema = as_node(schema)
        self.document = serialize(self.schema)
        self._validator = compile_document(
            self.document, format_check=format_check, all_errors=all_errors
        )
        self._last_errors: list[ValidationIssue] | None = None
        logger.debug("Parser ready for %s schema", self.schema.tag.value)

    @cached_property
    def descriptor(self) -> TypeDescriptor:
        """The shape every successfully validated value conforms to."""
        return project(self.schema)

    def get_errors(self) -> list[ValidationIssue] | None:
        """Errors from the most recent validating call, or None if it passed."""
        if self._last_errors is None:
            return None
        return list(self._last_errors)

    def check(self, value: Any) -> CheckResult:
        """Validate ``value`` and return the errors directly; no shared state."""
        return self._validator.check(value)

    def validates(self, value: Any) -> bool:
        return self._record(self.check(value)).valid

    def _record(self, result: CheckResult) -> CheckResult:
        if result.valid:
            self._last_errors = None
        else:
            self._last_errors = result.errors
            logger.debug("Validation failed with %d error(s)", len(result.errors))
        return result

    def parse(self, text: str | bytes, skip_validation: bool = False) -> Any:
        """
        Decode ``text`` and validate it against the schema.

        With ``skip_validation=True`` the decoded value is returned unchecked.
        This is unsound: nothing guarantees the value matches ``descriptor``.
        """
        data = decode_json(text)
        if skip_validation:
            logger.debug("Returning unvalidated value (skip_validation=True)")
            return data
        result = self._record(self.check(data))
        if result.valid:
            return data
        raise ValidationError(result.errors)

    def stringify(self, value: Any, skip_validation: bool = False) -> str:
        """Encode ``value`` as JSON text, validating it first."""
        if not skip_validation:
            result = self._record(self.check(value))
            if not result.valid:
                raise ValidationError(result.errors)
        return json.dumps(value, allow_nan=False)
