from __future__ import annotations


class WikitextError(Exception):
    """Base error of the engine. `type` is a category, `code` identifies the exact conflict."""

    type = "internal"

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.data = data
        super().__init__(message or code)

    def to_dict(self) -> dict:
        return {"type": self.type, "code": self.code, "data": dict(self.data)}


class ParseError(WikitextError, ValueError):
    type = "parse"
