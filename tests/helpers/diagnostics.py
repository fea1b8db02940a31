from __future__ import annotations

import difflib
import json
from dataclasses import asdict, is_dataclass


def _to_jsonable(value):
    if hasattr(value, "to_dict") and callable(value.to_dict):
        return value.to_dict()
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    return value


def dump(value) -> str:
    return json.dumps(_to_jsonable(value), indent=2, ensure_ascii=False)


def text_diff(expected: str, actual: str, label: str, max_lines: int = 60) -> str:
    expected_lines = (expected or "").splitlines()
    actual_lines = (actual or "").splitlines()
    lines = list(
        difflib.unified_diff(
            expected_lines,
            actual_lines,
            fromfile=f"{label}:expected",
            tofile=f"{label}:actual",
            lineterm="",
        )
    )
    if len(lines) > max_lines:
        lines = lines[:max_lines] + ["... diff truncated ..."]
    return "\n".join(lines)
