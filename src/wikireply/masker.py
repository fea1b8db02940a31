from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .wikitext import generate_tags_regexp

logger = logging.getLogger(__name__)

# \x01...\x02 wrap masked code, \x03...\x04 wrap masked tables.
MARKER_RE = re.compile(r"[\x01\x03](\d+)(?:_\w+)?[\x02\x04]")
TEMPLATE_LENGTH_MARKER_RE = re.compile(r"\x01\d+_template_(\d+)\x02")
KIND_RE = re.compile(r"^\w+$")
COMPLETE_TABLE_RE = re.compile(r"^(:* *)(\{\|[\s\S]*?\n\|\})", re.MULTILINE)
# Tables with a signature inside that are clipped when a comment is edited.
CLIPPED_TABLE_RE = re.compile(r"^(:* *)(\{\|[\s\S]*\n\|)", re.MULTILINE)
WIKILINK_RE = re.compile(r"\[\[[^\[\]\n]*\]\]")


@dataclass(frozen=True)
class MaskedText:
    text: str
    slots: tuple[str, ...]

    def to_dict(self) -> dict:
        return {"text": self.text, "slots": list(self.slots)}


def marker_pattern(kind: str | None = None) -> re.Pattern:
    if not kind:
        return MARKER_RE
    return re.compile(rf"[\x01\x03](\d+)(?:_{kind}(?:_\d+)?)?[\x02\x04]")


def make_marker(index: int, kind: str | None = None, suffix: str = "") -> str:
    is_table = kind == "table"
    return (
        ("\x03" if is_table else "\x01")
        + str(index)
        + (f"_{kind}" if kind else "")
        + suffix
        + ("\x04" if is_table else "\x02")
    )


class TextMasker:
    """Replaces parts of a text with placeholders so that later rewrites can't touch them.

    Methods return the masker itself so that operations can be chained::

        TextMasker(code).mask_sensitive_code().with_text(rewrite).unmask().get_text()

    Pass `masked_texts` when the text already contains markers pointing into that list.
    """

    def __init__(self, text: str, masked_texts: list[str] | None = None):
        self.text = text
        self.masked_texts = masked_texts if masked_texts is not None else []

    def _push(self, code: str) -> int:
        self.masked_texts.append(code)
        return len(self.masked_texts)

    def mask(self, pattern, kind: str | None = None, use_groups: bool = False) -> "TextMasker":
        """Replace matches of `pattern` with markers.

        With `use_groups`, the first group is kept in the text and only the second one is masked.
        """
        if kind and not KIND_RE.match(kind):
            logger.warning("mask kind %r should match ^\\w+$; proceeding nevertheless", kind)
        if isinstance(pattern, str):
            pattern = re.compile(pattern)

        def on_match(match: re.Match) -> str:
            pre_text = ""
            text_to_mask = match.group(0)
            if use_groups:
                pre_text = match.group(1) or ""
                text_to_mask = match.group(2) or match.group(0)
            return pre_text + make_marker(self._push(text_to_mask), kind)

        self.text = pattern.sub(on_match, self.text)
        return self

    def unmask_text(self, text: str, kind: str | None = None) -> str:
        """Restore markers (of `kind`) in `text`, repeating for markers nested in restored code."""
        regexp = marker_pattern(kind)

        def restore(match: re.Match) -> str:
            index = int(match.group(1)) - 1
            # Marker-like text that was typed in rather than masked stays as it is.
            if 0 <= index < len(self.masked_texts):
                return self.masked_texts[index]
            return match.group(0)

        while True:
            restored = regexp.sub(restore, text)
            if restored == text:
                return text
            text = restored

    def unmask(self, kind: str | None = None) -> "TextMasker":
        self.text = self.unmask_text(self.text, kind)
        return self

    def mask_templates_recursively(self, handler=None, add_lengths: bool = False) -> "TextMasker":
        """Mask templates, nested ones included, innermost first.

        Each template becomes a single marker before its enclosing template is examined, so
        the outermost template ends up as one marker whose slot holds markers of the inner
        ones. Unbalanced `{{` and `}}` are left in place as plain text.
        """
        pos = 0
        stack: list[int] = []
        while True:
            left = self.text.find("{{", pos)
            right = self.text.find("}}", pos)

            if left != -1 and (right == -1 or left < right):
                if right == -1:
                    # Nothing closes this or any pending opening brace.
                    break
                stack.append(left)
                pos = left + 2
                continue

            if right == -1:
                break
            if not stack:
                # `}}` without an opening pair.
                pos = right + 2
                continue

            start = stack.pop()
            end = right + 2
            template = self.text[start:end]
            if handler:
                template = handler(template)
            length_suffix = ""
            if add_lengths:
                expanded = TEMPLATE_LENGTH_MARKER_RE.sub(lambda m: " " * int(m.group(1)), template)
                length_suffix = f"_{len(expanded)}"
            marker = make_marker(self._push(template), "template", length_suffix)
            self.text = self.text[:start] + marker + self.text[end:]
            pos = start

        return self

    def mask_tags(self, tags, kind: str) -> "TextMasker":
        return self.mask(generate_tags_regexp(tags), kind)

    def mask_sensitive_code(self, template_handler=None) -> "TextMasker":
        return (
            self.mask_tags(["pre", "source", "syntaxhighlight"], "block")
            .mask_tags(["gallery", "poem"], "gallery")
            .mask_tags(["nowiki"], "inline")
            .mask_templates_recursively(template_handler)
            .mask(COMPLETE_TABLE_RE, "table", use_groups=True)
            .mask(CLIPPED_TABLE_RE, "table", use_groups=True)
        )

    def with_text(self, func) -> "TextMasker":
        """Run `func(text, masker)` and keep its result as the text."""
        self.text = func(self.text, self)
        return self

    def get_text(self) -> str:
        return self.text

    def get_masked_texts(self) -> list[str]:
        return self.masked_texts

    def to_masked_text(self) -> MaskedText:
        return MaskedText(self.text, tuple(self.masked_texts))


def mask(text: str, pattern, kind: str | None = None, use_groups: bool = False) -> MaskedText:
    return TextMasker(text).mask(pattern, kind, use_groups).to_masked_text()


def unmask(masked: MaskedText, kind: str | None = None) -> str:
    return TextMasker(masked.text, list(masked.slots)).unmask(kind).get_text()


def escape_pipes_outside_links(code: str, masked_texts: list[str] | None = None) -> str:
    """Turn `|` into `{{!}}` except inside wikilinks and already masked code."""
    masker = TextMasker(code, masked_texts)
    return (
        masker.mask(WIKILINK_RE, "link")
        .with_text(lambda text, _: text.replace("|", "{{!}}"))
        .unmask("link")
        .get_text()
    )
