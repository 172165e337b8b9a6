"""Pydantic models for validation results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ValidationIssue(BaseModel):
    """One failed keyword, located by a JSON Pointer into the checked value."""
    keyword: str
    path: str = ""
    message: str
    params: dict[str, Any] = {}


class CheckResult(BaseModel):
    valid: bool
    errors: list[ValidationIssue] = []
