"""Decode the JSON document a chat model embeds in its reply text."""

from __future__ import annotations

import json
import re
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from common.errors import SchemaViolation
from common.schemas import AnalysisResult, FinalSummary

M = TypeVar("M", bound=BaseModel)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def _strip_fence(content: str) -> str:
    content = content.strip()
    match = _FENCE_RE.match(content)
    return match.group(1) if match else content


def decode_model(content: str, model: type[M]) -> M:
    try:
        data = json.loads(_strip_fence(content))
    except json.JSONDecodeError as exc:
        raise SchemaViolation(f"Reply is not valid JSON: {exc}") from exc
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise SchemaViolation(f"Reply does not match {model.__name__}: {exc.error_count()} errors") from exc


def decode_analysis(content: str) -> AnalysisResult:
    return decode_model(content, AnalysisResult)


def decode_final_summary(content: str) -> FinalSummary:
    return decode_model(content, FinalSummary)
