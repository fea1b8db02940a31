from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .config import ACTIONS, DEFAULT_CONFIG, MODES, POPULAR_NOT_INLINE_ELEMENTS, WikitextConfig
from .errors import ParseError
from .lists import list_markup_to_tags
from .masker import TextMasker, escape_pipes_outside_links
from .wikitext import generate_tags_regexp, quote_regexp

logger = logging.getLogger(__name__)

PNIE_PATTERN = "(?:" + "|".join(POPULAR_NOT_INLINE_ELEMENTS) + ")"
GALLERY_LINE_RE = re.compile(r"^\x01\d+_gallery\x02$", re.MULTILINE)
ENTIRE_LINE_RE = re.compile(r"^\x01\d+_(?:block|template)\x02 *$")
ENTIRE_LINE_FROM_START_RE = re.compile(r"^(=+).*\1[ \t]*$|^----")
LIST_MARKUP_LINE_RE = re.compile(r"^[:*#;]", re.MULTILINE)
LAST_LINE_IS_LIST_RE = re.compile(r"(?:\A|\n)[:*#;].*\Z")
LAST_LINE_IS_PRE_OR_HEADING_RE = re.compile(r"(?:\A|\n)[ =].*\Z")
LEADING_SPACES_RE = re.compile(r"^ +", re.MULTILINE)
TEMPLATE_PARAMETER_LIST_RE = re.compile(r"\|(?:[^|=}]*=)?(?=[:*#;])")
TEMPLATE_END_AFTER_LIST_RE = re.compile(r"^([:*#;].*?)\}\}\Z", re.MULTILINE)
GALLERY_BEFORE_RE = re.compile(r"(^|[^\n])(\x01\d+_gallery\x02)")
GALLERY_AFTER_RE = re.compile(r"\x01\d+_gallery\x02(?=\Z|[^\n])")
LINES_AFTER_MARKUP_RE = re.compile(r"^((?:[:*#;\x03].+|\x01\d+_gallery\x02))(\n+)(?![:#])", re.MULTILINE)
BLANK_LINES_RE = re.compile(r"^(.*)\n\n+(?!:)", re.MULTILINE)
NEWLINES_INDENTED_RE = re.compile(r"^(.+)\n(?![:#])(?=(.*))", re.MULTILINE)
NEWLINES_RE = re.compile(r"^((?![:*#; ]).+)\n(?![\n:*#; \x03])(?=(.*))", re.MULTILINE)
SMALL_WRAPPER_RE = re.compile(r"<small>([\s\S]*)</small>", re.IGNORECASE)
CLOSING_SMALL_RE = re.compile(r"</small>", re.IGNORECASE)
TRAILING_TILDES_RE = re.compile(r"\s*~{3,}\Z")
SIGNATURE_STARTS_WITH_NEWLINE_RE = re.compile(r"^[ \t]*\n")
STARTS_WITH_LIST_OR_TABLE_RE = re.compile(r"^[*#;\x03]")
STARTS_WITH_LIST_RE = re.compile(r"^[:*#]+")
STARTS_WITH_MARKUP_OR_SPACE_RE = re.compile(r"^[:*#; ]")
INDENTATION_CHAR_RE = re.compile(r"^[:*#;]")


@dataclass(frozen=True)
class TransformRequest:
    """What the user typed plus the context of the comment form."""

    text: str
    mode: str = "reply"
    action: str = "submit"
    indentation: str = ""
    headline: str | None = None
    omit_signature: bool = False
    signature_code: str | None = None
    target_level: int = 0
    heading_level: int | None = None
    is_opening_section: bool = False
    target_code_starts_with_newline: bool = False
    is_reply_outdented: bool = False
    is_new_section_api: bool = False

    def __post_init__(self):
        if self.mode not in MODES:
            raise ValueError(f"mode must be one of {', '.join(MODES)}; got {self.mode!r}.")
        if self.action not in ACTIONS:
            raise ValueError(f"action must be one of {', '.join(ACTIONS)}; got {self.action!r}.")

    @property
    def has_headline_input(self) -> bool:
        return self.headline is not None or self.mode in {"addSection", "addSubsection"}


def resolve_indentation(
    mode: str,
    *,
    reply_indentation: str = "",
    indentation: str = "",
    last_comment_indentation: str | None = None,
    config: WikitextConfig = DEFAULT_CONFIG,
) -> str:
    """Indentation of the new comment for a form mode.

    In a section reply, the first character of the last comment's indentation is reused when it
    is `#` or when the indentation char mode is "mimic".
    """
    if mode == "reply":
        return reply_indentation
    if mode == "edit":
        return indentation
    if mode == "replyInSection":
        if last_comment_indentation and (
            last_comment_indentation[0] == "#" or config.indentation_char_mode == "mimic"
        ):
            return last_comment_indentation[0]
        return config.default_indentation_char
    return ""


def prepend_indentation_to_line(indentation: str, line: str, config: WikitextConfig = DEFAULT_CONFIG) -> str:
    space = " " if indentation and config.space_after_indentation_chars and not INDENTATION_CHAR_RE.match(line) else ""
    return indentation + space + line


class CommentInputTransformer(TextMasker):
    """Turns the text of a comment form into the wikitext to insert into the page."""

    def __init__(self, request: TransformRequest, config: WikitextConfig | None = None):
        super().__init__(request.text.strip())
        self.request = request
        self.config = config or DEFAULT_CONFIG
        self.initial_text = self.text
        self.indentation = request.indentation
        self.rest_lines_indentation = ""
        if self.indentation:
            # In the preview, a pseudolist shows where the lines would break on a real page.
            self.rest_lines_indentation = ":" if request.action == "preview" else self.indentation.replace("*", ":")

        self.signature = ""
        self.wrap_in_small = False
        self.are_there_tags_around_multiple_lines = False
        self.are_there_tags_around_list_markup = False

        self.file_pattern_end = r"\[\[(?:" + "|".join(self.config.file_namespaces) + r")[ _]*:.+\]\]$"

    def transform(self) -> str:
        return (
            self.process_and_mask_sensitive_code()
            .find_wrappers()
            .init_signature_and_fix_code()
            .process_all_code()
            .add_headline()
            .add_signature()
            .add_outdent()
            .add_trailing_newline()
            .add_indentation_chars()
            .unmask()
            .get_text()
        )

    def _prepend(self, indentation: str, line: str) -> str:
        return prepend_indentation_to_line(indentation, line, self.config)

    def process_and_mask_sensitive_code(self):
        return self.mask_sensitive_code(lambda code: self.process_code(code, True))

    def find_wrappers(self):
        if self.indentation:
            matches = [m.group(0) for m in generate_tags_regexp(["[a-z]+"]).finditer(self.text)]
            matches += [m.group(0) for m in quote_regexp(self.config.pair_quote_templates).finditer(self.text)]
            self.are_there_tags_around_multiple_lines = any("\n" in match for match in matches)
            self.are_there_tags_around_list_markup = any(re.search(r"\n[:*#;]", match) for match in matches)

        # A single <small> wrapper is reapplied around the text and the signature later.
        self.wrap_in_small = False
        if not self.request.has_headline_input:
            match = SMALL_WRAPPER_RE.fullmatch(self.text)
            if match and not CLOSING_SMALL_RE.search(match.group(1)):
                self.wrap_in_small = True
                self.text = match.group(1)
        return self

    def init_signature_and_fix_code(self):
        if self.request.omit_signature:
            self.signature = ""
        elif self.request.mode == "edit":
            self.signature = self.request.signature_code or ""
        else:
            self.signature = self.config.user_signature

        # Keep the signature from ending up inside the last list item.
        if (
            self.signature
            and not (self.request.mode == "edit" and SIGNATURE_STARTS_WITH_NEWLINE_RE.match(self.signature))
            and LAST_LINE_IS_LIST_RE.search(self.text)
        ):
            self.text += "\n"
        return self

    def handle_indented_comment(self, code: str, is_wrapped: bool, is_in_template: bool) -> str:
        if not self.indentation:
            return code
        rest = self.rest_lines_indentation

        code = LEADING_SPACES_RE.sub("", code)

        # Otherwise list markup would break the layout.
        if LIST_MARKUP_LINE_RE.search(code) and (is_wrapped or rest == "#"):
            if is_in_template:
                code = TEMPLATE_PARAMETER_LIST_RE.sub(lambda m: m.group(0) + "\n", code, count=1)
                # The closing braces don't belong to the last item.
                code = TEMPLATE_END_AFTER_LIST_RE.sub(lambda m: m.group(1) + "\n}}", code)
            code = list_markup_to_tags(code)

        markup_lines_re = re.compile(
            r"(\n+)([:*#;\x03]|" + self.file_pattern_end + ")", re.MULTILINE | re.IGNORECASE
        )
        code = markup_lines_re.sub(
            lambda m: ("\n\n\n" if len(m.group(1)) > 1 else "\n") + self._prepend(rest, m.group(2)),
            code,
        )

        # Galleries go on lines of their own, even at the start of the comment.
        code = GALLERY_BEFORE_RE.sub(lambda m: m.group(1) + "\n" + m.group(2), code)
        code = GALLERY_AFTER_RE.sub(lambda m: m.group(0) + "\n", code)

        if "#" in rest and "\x03" in code:
            raise ParseError("numberedList-table", "Tables can't be placed in numbered lists.")
        if rest == "#" and GALLERY_LINE_RE.search(code):
            raise ParseError("numberedList", "Galleries can't be placed in numbered lists.")

        code = LINES_AFTER_MARKUP_RE.sub(
            lambda m: m.group(1) + "\n" + self._prepend(rest, "\n\n" if len(m.group(2)) > 1 else ""),
            code,
        )

        if self.config.paragraph_templates:
            paragraph_break = "{{" + self.config.paragraph_templates[0] + "}}\n"
            code = BLANK_LINES_RE.sub(lambda m: m.group(1) + paragraph_break, code)
        elif self.are_there_tags_around_multiple_lines:
            code = BLANK_LINES_RE.sub(lambda m: m.group(1) + "<br> \n", code)
        else:
            code = BLANK_LINES_RE.sub(lambda m: m.group(1) + "\n" + self._prepend(rest, ""), code)
        return code

    def process_newlines(self, code: str, is_in_template: bool = False) -> str:
        """Add `<br>`s at single line breaks where the break is visible on the page.

        `CommentSource.to_input` reverses this.
        """
        file_re = re.compile("^" + self.file_pattern_end, re.IGNORECASE)
        ending_alternatives = [
            f"<{PNIE_PATTERN}(?: [\\w ]+?=[^<>]+?| ?/?)>",
            f"</{PNIE_PATTERN}>",
            r"\x01\d+_block\x02",
            r"\x04",
            r"<br[ \n]*/?>",
        ]
        if self.config.paragraph_templates:
            ending_alternatives.append(re.escape("{{" + self.config.paragraph_templates[0] + "}}"))
        beginning_alternatives = [f"</{PNIE_PATTERN}>", f"<{PNIE_PATTERN}"]
        if is_in_template:
            ending_alternatives.append("=")
            beginning_alternatives += [r"\|", r"\}\}"]
        current_line_ending_re = re.compile("(?:" + "|".join(ending_alternatives) + r") *\Z", re.IGNORECASE)
        next_line_beginning_re = re.compile("^(?:" + "|".join(beginning_alternatives) + ")", re.IGNORECASE)

        newlines_re = NEWLINES_INDENTED_RE if self.indentation else NEWLINES_RE

        def on_newline(match: re.Match) -> str:
            current_line, next_line = match.group(1), match.group(2)
            if self.indentation and not self.config.paragraph_templates:
                logger.debug("line break kept in indented text without a paragraph template: %r", match.group(0))

            no_break = (
                ENTIRE_LINE_RE.search(current_line)
                or ENTIRE_LINE_RE.search(next_line)
                or (
                    not self.indentation
                    and (ENTIRE_LINE_FROM_START_RE.search(current_line) or ENTIRE_LINE_FROM_START_RE.search(next_line))
                )
                or file_re.search(current_line)
                or file_re.search(next_line)
                or GALLERY_LINE_RE.search(current_line)
                or GALLERY_LINE_RE.search(next_line)
                or current_line_ending_re.search(current_line)
                or next_line_beginning_re.search(next_line)
            )
            line_break = "" if no_break else "<br>" + (" " if self.indentation else "")
            newline = "" if self.indentation and not GALLERY_LINE_RE.search(next_line) else "\n"
            return current_line + line_break + newline

        return newlines_re.sub(on_newline, code)

    def process_code(self, code: str, is_in_template: bool = False) -> str:
        code = self.handle_indented_comment(
            code,
            is_in_template or self.are_there_tags_around_list_markup,
            is_in_template,
        )
        return self.process_newlines(code, is_in_template)

    def process_all_code(self):
        self.text = self.process_code(self.text)
        return self

    def add_headline(self):
        request = self.request
        headline = (request.headline or "").strip()
        if not headline or (request.is_new_section_api and request.action == "submit"):
            return self

        if request.mode == "addSection":
            level = 2
        elif request.mode == "addSubsection":
            level = request.target_level + 1
        else:
            level = request.heading_level or 2
        equal_signs = "=" * level

        # Keeps the diff of an edited opening comment clean.
        if request.mode == "addSection" or (
            request.mode == "edit" and request.is_opening_section and request.target_code_starts_with_newline
        ):
            self.text = "\n" + self.text
        self.text = f"{equal_signs} {headline} {equal_signs}\n{self.text}"
        return self

    def add_signature(self):
        if not self.request.omit_signature:
            self.text = TRAILING_TILDES_RE.sub("", self.text)

        if self.request.action == "preview" and self.signature:
            self.signature = f'<span class="wikireply-signature">{self.signature}</span>'

        # A space at the start of the last line creates <pre>, "=" may create a heading.
        if not self.indentation and LAST_LINE_IS_PRE_OR_HEADING_RE.search(self.text):
            self.text += "\n"

        if not self.text or self.text.endswith("\n") or self.text.endswith(" "):
            self.signature = self.signature.lstrip()

        if not self.wrap_in_small:
            self.text += self.signature
            return self

        before = ""
        if STARTS_WITH_MARKUP_OR_SPACE_RE.match(self.text):
            before = "\n" + (self.rest_lines_indentation if self.indentation else "")
        if self.config.small_div_templates and not LIST_MARKUP_LINE_RE.search(self.text):
            code = escape_pipes_outside_links(self.text.strip(), self.masked_texts) + self.signature
            self.text = "{{" + self.config.small_div_templates[0] + "|1=" + code + "}}"
        else:
            self.text = f"<small>{before}{self.text}{self.signature}</small>"
        return self

    def add_outdent(self):
        if self.request.action == "preview" or not self.request.is_reply_outdented:
            return self
        if not self.config.outdent_templates:
            logger.warning("reply is outdented but no outdent template is configured")
            return self

        difference = self.request.target_level - len(self.request.indentation)
        separator = "\n" if STARTS_WITH_LIST_RE.match(self.text) else " "
        self.text = "{{" + f"{self.config.outdent_templates[0]}|{difference}" + "}}" + separator + self.text
        return self

    def add_trailing_newline(self):
        if self.request.mode != "edit":
            self.text += "\n"
        return self

    def add_indentation_chars(self):
        preview = self.request.action == "preview"

        # A comment starting with a list or a table needs colons only to be rendered correctly.
        if self.indentation and not preview and STARTS_WITH_LIST_OR_TABLE_RE.match(self.text):
            self.indentation = self.rest_lines_indentation

        if not preview:
            self.text = self._prepend(self.indentation, self.text)
        elif self.indentation and self.initial_text:
            self.text = self._prepend(":", self.text)
        return self


def transform(request: TransformRequest, config: WikitextConfig | None = None) -> str:
    return CommentInputTransformer(request, config).transform()
