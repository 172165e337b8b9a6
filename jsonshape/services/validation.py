"""
JSON Schema validation service.

Wraps jsonschema's Draft 7 engine:
- A schema document is checked against the meta-schema and compiled once
- Every check collects all errors rather than failing on the first one
  (unless ALL_ERRORS is turned off)
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Iterator, Mapping
from itertools import islice
from typing import Any

import jsonschema
from jsonschema.exceptions import SchemaError, best_match
from referencing import Registry
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT7

from jsonshape.config import settings
from jsonshape.errors import SchemaCompilationError
from jsonshape.schemas.results import CheckResult, ValidationIssue

logger = logging.getLogger(__name__)

class CompiledValidator:
    """A schema document bound to a ready-to-use Draft 7 validator.

    ``check`` holds no per-call state, so one instance may be shared across
    threads.
    """

    def __init__(self, document: Mapping[str, Any] | bool, validator: jsonschema.Draft7Validator, all_errors: bool):
        self.document = document
        self._validator = validator
        self._all_errors = all_errors

    def check(self, value: Any) -> CheckResult:
        errors: Iterable[jsonschema.ValidationError] = self._validator.iter_errors(value)
        if not self._all_errors:
            errors = islice(errors, 1)
        try:
            issues = [_to_issue(error) for error in errors]
        except Unresolvable as exc:
            raise SchemaCompilationError(f"Unresolvable reference in schema: {exc}") from exc
        return CheckResult(valid=not issues, errors=issues)


def compile_document(
    document: Mapping[str, Any] | bool,
    *,
    format_check: bool | None = None,
    all_errors: bool | None = None,
) -> CompiledValidator:
    """
    Check ``document`` against the draft-07 meta-schema and compile it.
    Raises SchemaCompilationError if the document itself is invalid, a local
    ``$ref`` points nowhere, or a ``default`` fails its own schema.
    """
    if format_check is None:
        format_check = settings.FORMAT_CHECK
    if all_errors is None:
        all_errors = settings.ALL_ERRORS

    try:
        jsonschema.Draft7Validator.check_schema(document)
    except SchemaError as exc:
        location = "/".join(str(part) for part in exc.path) or "<root>"
        raise SchemaCompilationError(f"Invalid schema document at {location}: {exc.message}") from exc
    subschemas = list(_subschemas(document))
    _check_local_refs(document, subschemas)

    validator = jsonschema.Draft7Validator(
        document,
        format_checker=jsonschema.Draft7Validator.FORMAT_CHECKER if format_check else None,
    )
    _check_defaults(validator, subschemas)
    logger.debug("Compiled schema document (format_check=%s, all_errors=%s)", format_check, all_errors)
    return CompiledValidator(document, validator, all_errors)


def _subschemas(document: Mapping[str, Any] | bool) -> Iterator[Mapping[str, Any]]:
    """Yield the root and every sub-schema of the same resource.

    Sub-schemas carrying their own ``$id`` start a new resource and are skipped.
    """
    pending = [DRAFT7.create_resource(document)]
    while pending:
        resource = pending.pop()
        if isinstance(resource.contents, Mapping):
            yield resource.contents
        pending.extend(sub for sub in resource.subresources() if sub.id() is None)


def _check_local_refs(document: Mapping[str, Any] | bool, subschemas: Iterable[Mapping[str, Any]]) -> None:
    resolver = Registry().resolver_with_root(DRAFT7.create_resource(document))
    for contents in subschemas:
        ref = contents.get("$ref")
        if not isinstance(ref, str) or not ref.startswith("#"):
            continue
        try:
            resolver.lookup(ref)
        except Unresolvable as exc:
            raise SchemaCompilationError(f"Unresolvable reference '{ref}'") from exc


def _check_defaults(validator: jsonschema.Draft7Validator, subschemas: Iterable[Mapping[str, Any]]) -> None:
    """Each ``default`` must satisfy the schema it is declared on."""
    for contents in subschemas:
        if "default" not in contents:
            continue
        try:
            error = best_match(validator.evolve(schema=contents).iter_errors(contents["default"]))
        except Unresolvable as exc:
            raise SchemaCompilationError(f"Unresolvable reference in schema: {exc}") from exc
        if error is not None:
            raise SchemaCompilationError(
                f"Default value {contents['default']!r} does not match its schema: {error.message}"
            )


def _to_issue(error: jsonschema.ValidationError) -> ValidationIssue:
    if error.validator is None:
        # Raised by a bare `false` schema.
        return ValidationIssue(
            keyword="false schema",
            path=json_pointer(error.absolute_path),
            message=error.message,
        )
    params: dict[str, Any] = {"schema": copy.deepcopy(error.validator_value)}
    if error.validator == "required" and isinstance(error.instance, Mapping):
        params["missing"] = [name for name in error.validator_value if name not in error.instance]
    return ValidationIssue(
        keyword=str(error.validator),
        path=json_pointer(error.absolute_path),
        message=error.message,
        params=params,
    )


def json_pointer(parts: Iterable[Any]) -> str:
    return "".join("/" + str(part).replace("~", "~0").replace("/", "~1") for part in parts)
