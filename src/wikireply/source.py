from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from .config import DEFAULT_CONFIG, POPULAR_INLINE_ELEMENTS, WikitextConfig
from .errors import ParseError, WikitextError
from .masker import TEMPLATE_LENGTH_MARKER_RE, TextMasker
from .signatures import SignatureOccurrence, extract_signatures, normalize_user_name, unsigned_templates_regexp
from .transformer import PNIE_PATTERN, TransformRequest, resolve_indentation
from .wikitext import (
    WIKILINK_DISPLAY_RE,
    brs_to_newlines,
    calculate_word_overlap,
    count_occurrences,
    mask_distracting_code,
    normalize_code,
    remove_wiki_markup,
    templates_pattern,
)

logger = logging.getLogger(__name__)

PIE_PATTERN = "(?:" + "|".join(POPULAR_INLINE_ELEMENTS) + ")"
HEADING_RE = re.compile(r"([\s\S]*(?:\A|\n))((=+)(.*)\3[ \t\x01\x02]*\n)")
SECTION_HEADING_RE = re.compile(r"^(=+).*\1[ \t]*$", re.MULTILINE)
INDENTATION_PATTERN = r"\n*([:*#]+)( *)"
LAST_LINE_INDENTATION_RE = re.compile(r"\n([:*#]*[:*])(?!:*#).*\Z")
NEXT_HEADING_RE = re.compile(r"\n+(=+).*\1[ \t\x01\x02]*\n|\Z")
INDENTATION_CHARS_RE = re.compile(r"\n([:*#]*)([ \t]*)")
TAGS_BEFORE_SIGNATURE_RE = re.compile(rf"(<{PIE_PATTERN}(?: [\w ]+?=[^<>]+?)?> *)+\Z", re.IGNORECASE)

FILE_LINE_RE_TEMPLATE = r"^\[\[(?:{namespaces})[ _]*:.+\]\]$"
BAD_COMMENT_BEGINNINGS = (
    re.compile(r"^<!--[\s\S]*?--> *\n+"),
    re.compile(r"^(?:----+|<hr>) *\n+", re.IGNORECASE),
    re.compile(r"^\{\|.*?\|\} *\n+(?=[*:#])"),
)
KEEP_IN_SECTION_ENDING = (
    re.compile(r"\n{2,}(?:<!--[\s\S]*?-->\s*)+\Z"),
    re.compile(
        r"\n+(?:<!--[\s\S]*?-->\s*)*</?(?:section|onlyinclude)(?: [\w ]+(?:=[^<>]+?)?)? */?>\s*(?:<!--[\s\S]*?-->\s*)*\Z",
        re.IGNORECASE,
    ),
    re.compile(r"\n+<noinclude>([\s\S]*?)</noinclude>\s*\Z", re.IGNORECASE),
)


@dataclass
class PreviousComment:
    author: str
    timestamp: str | None


@dataclass
class CommentData:
    """What is known about a comment from the rendered page."""

    author: str
    timestamp: str | None
    index: int | None = None
    previous_comments: list[PreviousComment] = field(default_factory=list)
    section_headline: str | None = None
    text: str = ""
    level: int = 0
    is_opening_section: bool = False
    is_table_comment: bool = False
    has_foreign_timestamps: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "CommentData":
        data = dict(data)
        data["previous_comments"] = [
            PreviousComment(item["author"], item.get("timestamp")) for item in data.get("previous_comments", [])
        ]
        return cls(**data)


def _make_indentation_markers(indentation_length: int, total_length: int) -> str:
    return "\x01" * indentation_length + " " * (total_length - indentation_length - 1) + "\x02"


class CommentSource:
    """The source code of a comment, or a candidate for it while locating the comment.

    Offsets point into the context code (page or section) the signature was extracted from.
    """

    def __init__(
        self,
        comment: CommentData,
        signature: SignatureOccurrence,
        context_code: str,
        config: WikitextConfig | None = None,
    ):
        self.comment = comment
        self.config = config or DEFAULT_CONFIG
        self.index = signature.index
        self.author = signature.author
        self.timestamp = signature.timestamp
        self.signature_dirty_code = signature.dirty_code
        self.start_index = signature.comment_start_index
        self.end_index = signature.start_index
        self.signature_end_index = signature.start_index + len(signature.dirty_code)
        self.code = context_code[signature.comment_start_index : signature.start_index]
        self.score = 0.0

        self.line_start_index = self.start_index
        self.heading_match = None
        self.heading_code = None
        self.heading_start_index = None
        self.heading_level = None
        self.headline_code = None
        self.original_indentation = ""
        self.indentation = ""
        self.indentation_spacing = ""
        self.reply_indentation = ""
        self.signature_code = ""
        self.in_small_font = False
        self.is_reply_outdented = False

        self.adjust()

    def adjust(self):
        def find_heading(text: str, masker: TextMasker) -> str:
            # Heading markup inside <nowiki>, <pre> and the like doesn't count.
            match = HEADING_RE.match(text)
            if match:
                self.heading_match = tuple(masker.unmask_text(group) for group in (match.group(0),) + match.groups())
            return text

        TextMasker(self.code).mask_sensitive_code().with_text(find_heading)

        self.exclude_bad_beginnings()
        self.exclude_indentation_and_intro()
        self.adjust_signature()
        self.adjust_indentation()

    def _bad_comment_beginnings(self):
        namespaces = "|".join(self.config.file_namespaces)
        regexps = list(BAD_COMMENT_BEGINNINGS)
        regexps.append(re.compile(rf"^\[\[(?:{namespaces})[ _]*:.+\n+(?=[*:#])", re.IGNORECASE))
        clear_templates = templates_pattern(self.config.clear_templates)
        if clear_templates:
            regexps.append(re.compile(rf"^\{{\{{ *(?:{clear_templates}) *\}}\}} *\n+", re.IGNORECASE))
        return regexps

    def exclude_bad_beginnings(self):
        """Cut the heading, or code that precedes the comment without belonging to it."""
        if self.heading_match:
            whole, before, heading, equal_signs, headline = self.heading_match
            self.heading_code = heading
            self.heading_start_index = self.start_index + len(before)
            self.heading_level = len(equal_signs)
            self.headline_code = headline.strip()
            self.start_index += len(whole)
            self.code = self.code[len(whole) :]
            self.line_start_index = self.heading_start_index if self.comment.is_opening_section else self.start_index
            return

        # Lines of a previous comment signed with three or five tildes, or with a foreign timestamp.
        endings = [self.config.signature_ending_pattern]
        if not self.comment.has_foreign_timestamps:
            endings.append(self.config.timezone_pattern)
        for pattern in filter(None, endings):
            regexp = re.compile(pattern + "$", re.MULTILINE)
            cut = None
            for line_match in re.finditer(r"^(.+)\n", self.code, re.MULTILINE):
                line = WIKILINK_DISPLAY_RE.sub(r"\1", line_match.group(1))
                if regexp.search(line):
                    if line_match.end() == len(self.code):
                        break
                    cut = line_match.end()
            if cut:
                self.code = self.code[cut:]
                self.start_index += cut
                self.line_start_index += cut

        for regexp in self._bad_comment_beginnings():
            while True:
                match = regexp.match(self.code)
                if not match:
                    break
                self.code = self.code[match.end() :]
                self.line_start_index = self.start_index + match.group(0).rfind("\n") + 1
                self.start_index += match.end()

    def exclude_indentation_and_intro(self):
        """Separate the indentation characters, and any intro before them, from the comment code.

        Zero-level comments sometimes start with `:` used for a side note; that isn't indentation.
        """
        if self.comment.level == 0:
            return

        def replace_indentation(match: re.Match) -> str:
            before, chars, after = match.group(1), match.group(2), match.group(3) or ""
            remainder = ""
            adjusted_chars = chars
            start_index_shift = len(match.group(0))

            # A numbered list item written one level too shallow: keep `#` in the comment.
            if not before and count_occurrences(self.code, r"(?:\A|\n)[:*#]") >= 2 and adjusted_chars.endswith("#"):
                adjusted_chars = adjusted_chars[:-1]
                self.original_indentation = adjusted_chars
                if len(adjusted_chars) < self.comment.level:
                    adjusted_chars += ":"
                start_index_shift -= 1 + len(after)
                remainder = "#" + after
            else:
                self.original_indentation = chars

            self.indentation = adjusted_chars
            self.line_start_index = self.start_index + len(before)
            self.start_index += start_index_shift
            self.indentation_spacing = after
            return remainder

        self.code = re.sub(r"\A()" + INDENTATION_PATTERN, replace_indentation, self.code, count=1)

        # The section intro or a badly signed comment precedes the indented comment.
        if self.indentation == "":
            self.code = re.sub(
                r"(\A[\s\S]*?\n)" + INDENTATION_PATTERN + r"(?![\s\S]*\n[^:*#])",
                replace_indentation,
                self.code,
                count=1,
            )

        if len(self.indentation) < self.comment.level and "\n" in self.code:
            self.code = re.sub(
                rf"\A([\s\S]+?\n)([:*#]{{{self.comment.level}}})( *)",
                replace_indentation,
                self.code,
                count=1,
            )

    def adjust_signature(self):
        def move_to_signature(match: re.Match) -> str:
            self.signature_dirty_code = match.group(0) + self.signature_dirty_code
            self.end_index -= len(match.group(0))
            return ""

        prefix_re = re.compile(self.config.signature_prefix_pattern)
        unsigned_class = re.escape(self.config.unsigned_class)
        for regexp in (
            re.compile(r"'+\Z"),
            prefix_re,
            TAGS_BEFORE_SIGNATURE_RE,
            prefix_re,
            TAGS_BEFORE_SIGNATURE_RE,
            re.compile(r"\s+'+\Z"),
            re.compile(rf'<small class="{unsigned_class}">.*\Z'),
            re.compile(r"<!-- *Template:Unsigned.*\Z"),
            prefix_re,
        ):
            self.code = regexp.sub(move_to_signature, self.code, count=1)

        small_wrappers = [(re.compile(r"^<small>"), re.compile(r"</small>[ \xa0\t]*\Z"))]
        small_div_templates = templates_pattern(self.config.small_div_templates)
        if small_div_templates:
            small_wrappers.append(
                (
                    re.compile(rf"^(?:\{{\{{({small_div_templates})\|(?: *1 *= *|(?![^{{]*=)))", re.IGNORECASE),
                    re.compile(r"\}\}[ \xa0\t]*\Z"),
                )
            )

        self.signature_code = self.signature_dirty_code
        self.in_small_font = False
        for start_re, end_re in small_wrappers:
            if start_re.search(self.code) and end_re.search(self.signature_code):
                self.in_small_font = True
                self.code = start_re.sub("", self.code, count=1)
                self.signature_code = end_re.sub("", self.signature_code, count=1)
                break

    def adjust_indentation(self):
        """Work out the indentation of replies, which the last line may differ in."""
        reply_indentation = self.indentation
        if not self.comment.is_opening_section:
            # A last line ending in `#` is a numbered list inside the comment.
            match = LAST_LINE_INDENTATION_RE.search(self.code + self.signature_dirty_code)
            if match:
                reply_indentation = match.group(1)
                # The first line's indentation characters had some other purpose.
                if len(reply_indentation) < len(self.original_indentation):
                    prefix = self.original_indentation[len(reply_indentation) :] + self.indentation_spacing
                    self.code = prefix + self.code
                    self.original_indentation = self.original_indentation[: len(reply_indentation)]
                    self.indentation = self.original_indentation
                    self.start_index -= len(prefix)
        self.reply_indentation = reply_indentation + self.config.default_indentation_char

    def calculate_match_score(self, comment_data: CommentData, sources, signatures) -> float:
        weights = self.config.match_weights
        does_index_match = comment_data.index == self.index
        does_previous_comments_data_match = False
        is_previous_comments_data_equal = None
        if comment_data.previous_comments:
            for i, previous in enumerate(comment_data.previous_comments):
                signature_index = self.index - 1 - i
                if signature_index < 0:
                    break
                signature = signatures[signature_index]

                # One matching comment is enough if the next one is unavailable.
                does_previous_comments_data_match = (
                    signature.timestamp == previous.timestamp
                    and signature.author == normalize_user_name(previous.author)
                )

                # Many consecutive comments with the same author and timestamp.
                if is_previous_comments_data_equal is not False:
                    is_previous_comments_data_equal = (
                        self.timestamp == signature.timestamp and self.author == signature.author
                    )
                if not does_previous_comments_data_match:
                    break
        else:
            does_previous_comments_data_match = self.index == 0
        is_previous_comments_data_equal = bool(is_previous_comments_data_equal)

        if comment_data.section_headline is not None:
            if self.headline_code is not None:
                headline_match = float(
                    normalize_code(remove_wiki_markup(self.headline_code))
                    == normalize_code(comment_data.section_headline)
                )
            else:
                headline_match = weights.missing_heading
        else:
            headline_match = float(not self.heading_match)

        word_overlap = calculate_word_overlap(comment_data.text, remove_wiki_markup(self.code))
        is_required_met = (
            len(sources) == 1
            or word_overlap > weights.word_overlap_threshold
            # First comments have no previous comments to compare, so their position and headline count.
            or (comment_data.index == 0 and does_previous_comments_data_match and headline_match != 0)
            or (comment_data.index != 0 and does_previous_comments_data_match and not is_previous_comments_data_equal)
        )
        self.score = (
            weights.required * is_required_met
            + weights.word_overlap * word_overlap
            + weights.headline * headline_match
            + weights.previous_comments * does_previous_comments_data_match
            + weights.index * does_index_match
        )
        logger.debug(
            "candidate #%d by %s: score %.4f (overlap %.2f, headline %s, previous %s)",
            self.index,
            self.author,
            self.score,
            word_overlap,
            headline_match,
            does_previous_comments_data_match,
        )
        return self.score

    def to_input(self) -> str:
        """Convert the source code to the text of an editing form, reversing the newline policy."""
        original_indentation_length = len(self.original_indentation)
        config = self.config
        file_re = re.compile(
            FILE_LINE_RE_TEMPLATE.format(namespaces="|".join(config.file_namespaces)), re.IGNORECASE
        )

        def convert(code: str, masker: TextMasker) -> str:
            if self.comment.level == 0:
                code = self._collapse_line_breaks(code, file_re)

            code = brs_to_newlines(code, "\x01\n")
            # Templates occupying a whole line keep their <br>.
            code = re.sub(
                r"^((?:\x01\d+_template.*\x02) *)\x01$",
                lambda m: m.group(1) + "<br>",
                code,
                flags=re.MULTILINE,
            )
            # Two templates in a row are likely a paragraph template and another template.
            code = re.sub(
                r"((?:\x01\d+_template.*\x02){2} *)\x01",
                lambda m: m.group(1) + "<br>" if config.paragraph_templates else m.group(0),
                code,
            )
            code = code.replace("\x01\n", "\n")

            def remove_indentation_chars(match: re.Match) -> str:
                chars, spacing = match.group(1), match.group(2)
                if len(chars) >= original_indentation_length:
                    new_chars = chars[original_indentation_length:]
                    if len(chars) > original_indentation_length:
                        new_chars += spacing
                else:
                    new_chars = chars + spacing
                return "\n" + new_chars

            code = INDENTATION_CHARS_RE.sub(remove_indentation_chars, code)

            paragraph_templates = templates_pattern(config.paragraph_templates)
            if paragraph_templates:
                pattern = rf"\{{\{{(?:{paragraph_templates})\}}\}}"
                code = re.sub(
                    rf"^(?![:*#]).*{pattern}",
                    lambda m: re.sub(pattern, "\n\n", m.group(0)),
                    code,
                    flags=re.MULTILINE,
                )

            if self.comment.level != 0:
                code = re.sub(r"\n\n+", "\n\n", code)
            return code

        return TextMasker(self.code).mask_sensitive_code().with_text(convert).unmask().get_text().strip()

    @staticmethod
    def _collapse_line_breaks(code: str, file_re: re.Pattern) -> str:
        # Line breaks that don't affect rendering would turn into <br>s on posting.
        entire_line_re = re.compile(r"^(?:\x01\d+_(?:block|template)\x02) *$")
        current_line_ending_re = re.compile(
            rf"(?:<{PNIE_PATTERN}(?: [\w ]+?=[^<>]+?| ?/?)>|</{PNIE_PATTERN}>|\x04) *$", re.IGNORECASE
        )
        next_line_beginning_re = re.compile(rf"^(?:</{PNIE_PATTERN}>|<{PNIE_PATTERN}|\||!)", re.IGNORECASE)
        entire_line_from_start_re = re.compile(r"^(=+).*\1[ \t]*$|^----")

        def on_newline(match: re.Match) -> str:
            current_line, next_line = match.group(1), match.group(2)
            keep_newline = (
                entire_line_re.search(current_line)
                or entire_line_re.search(next_line)
                or file_re.search(current_line)
                or file_re.search(next_line)
                or entire_line_from_start_re.search(current_line)
                or entire_line_from_start_re.search(next_line)
                or current_line_ending_re.search(current_line)
                or next_line_beginning_re.search(next_line)
            )
            return current_line + ("\n" if keep_newline else " ")

        return re.sub(r"^((?![:*#; ]).+)\n(?![\n:*#; \x03])(?=(.*))", on_newline, code, flags=re.MULTILINE)

    def _adjusted_chunk_code_after(self, current_index: int, context_code: str) -> str:
        """Code of the section part after `current_index` with irrelevant parts masked."""
        adjusted_code = mask_distracting_code(context_code)

        beginnings, endings = self.config.closed_discussion_templates
        beginnings_pattern = templates_pattern(beginnings)
        if beginnings_pattern:
            endings_pattern = templates_pattern(endings)
            if endings_pattern:
                pair_re = re.compile(
                    rf"\{{\{{ *(?:{beginnings_pattern}) *(?=[|}}])[^}}]*\}}\}}\s*([:*#]*)[\s\S]*?"
                    rf"\{{\{{ *(?:{endings_pattern}) *(?=[|}}])[^}}]*\}}\}}"
                )
                adjusted_code = pair_re.sub(
                    lambda m: _make_indentation_markers(len(m.group(1)), len(m.group(0))), adjusted_code
                )

            # A closing template holding the whole discussion in a parameter.
            single_re = re.compile(rf"\{{\{{ *(?:{beginnings_pattern}) *\|[^}}]{{0,50}}?=\s*([:*#]*)")
            position = 0
            while True:
                match = single_re.search(adjusted_code, position)
                if not match:
                    break
                indentation_length = len(match.group(1))
                tail = (
                    TextMasker(adjusted_code[match.start() :])
                    .mask_templates_recursively(add_lengths=True)
                    .with_text(
                        lambda code, _: TEMPLATE_LENGTH_MARKER_RE.sub(
                            lambda m: _make_indentation_markers(indentation_length, int(m.group(1))),
                            code,
                            count=1,
                        )
                    )
                    .unmask()
                    .get_text()
                )
                adjusted_code = adjusted_code[: match.start()] + tail
                position = match.end()

        next_heading = NEXT_HEADING_RE.search(adjusted_code, current_index)
        chunk_end_index = next_heading.start() + 1
        chunk_code_after = context_code[current_index:chunk_end_index]
        for regexp in self._keep_in_section_ending():
            match = regexp.search(chunk_code_after)
            if match:
                # 1 is for the first line break.
                chunk_end_index -= len(match.group(0)) - 1
        return adjusted_code[current_index:chunk_end_index]

    def _keep_in_section_ending(self):
        regexps = list(KEEP_IN_SECTION_ENDING)
        clear_templates = templates_pattern(self.config.clear_templates)
        if clear_templates:
            regexps.append(re.compile(rf"\n+\{{\{{ *(?:{clear_templates}) *\}}\}}\s*\Z"))
        return regexps

    def _match_proper_place(self, chunk_code_after: str):
        unsigned_re = unsigned_templates_regexp(self.config)
        unsigned_part = f"|{unsigned_re.pattern}.*" if unsigned_re else ""
        table_part = r"[\s\S]*?(?:(?:\s*\n\|\})+|</table>).*\n" if self.comment.is_table_comment else ""
        # \x01 comes from masked closed discussions and HTML comments.
        any_signature_pattern = (
            "^("
            + table_part
            + r"[\s\S]*?(?:"
            + re.escape(self.signature_code)
            + "|"
            + self.config.timestamp_pattern
            + ".*"
            + unsigned_part
            + r"|(?:^|\n)\x01.+)\n)\n*"
        )
        max_indentation_length = len(self.reply_indentation) - 1
        end_of_thread_pattern = r"((?![:*#\x01\n])"
        if max_indentation_length > 0:
            # `#` can only start a numbered list in a comment, never continue indentation.
            end_of_thread_pattern += rf"|[:*#\x01]{{1,{max_indentation_length}}}(?![:*\x01])"
        end_of_thread_pattern += ")"

        proper_place_re = re.compile(any_signature_pattern + end_of_thread_pattern)
        match = proper_place_re.search(chunk_code_after)
        if match:
            code_between = match.group(1)
            indentation_after = match.group(proper_place_re.groups) or ""
        else:
            code_between = chunk_code_after
            indentation_after = ""
        is_next_line = code_between.count("\n") == 1

        outdent_templates = templates_pattern(self.config.outdent_templates)
        if outdent_templates:
            outdent_match = re.match(
                rf"\s*([:*#]*)[ \t]*\{{\{{ *(?:{outdent_templates}) *(?:\||\}}\}})",
                chunk_code_after[len(code_between) :],
            )
            if outdent_match:
                if is_next_line:
                    raise ParseError("findPlace", "Can't insert a reply before an outdent template.")
                if len(outdent_match.group(1)) <= len(self.reply_indentation):
                    # Insert on the next line, out of chronological order.
                    signature_match = re.search(any_signature_pattern, chunk_code_after)
                    if signature_match:
                        code_between = signature_match.group(1)

        return code_between, indentation_after, is_next_line

    def find_reply_position(self, context_code: str) -> int:
        """Offset in `context_code` to insert a reply at: after the thread that follows the comment.

        Also decides whether the reply is outdented.
        """
        config = self.config
        current_index = self.end_index
        chunk_code_after = self._adjusted_chunk_code_after(current_index, context_code)
        if re.match(r" +\x02", chunk_code_after):
            raise ParseError("closed", "The discussion is closed.")

        code_between, indentation_after, is_next_line = self._match_proper_place(chunk_code_after)

        if (
            config.outdent_templates
            and config.outdent_level
            and len(self.reply_indentation) >= config.outdent_level
            and len(self.indentation) > len(indentation_after)
            and is_next_line
        ):
            self.is_reply_outdented = True
            self.reply_indentation = (
                self.reply_indentation[: max(len(indentation_after), 1)] + config.default_indentation_char
            )

        # Follow the indentation characters of the comment the reply goes after.
        many_chars_part = (
            "" if len(self.reply_indentation) == 1 and config.indentation_char_mode == "unify" else "[:*#]{2,}|"
        )
        first_char = "[#*:]" if config.indentation_char_mode == "mimic" else "#"
        match = re.search(rf"\n({many_chars_part}{first_char}[:*#]*).*\n\Z", code_between)
        if match:
            # `*` isn't replaced with `:` since that would look like a continuation of the comment.
            self.reply_indentation = re.sub(
                r":\Z", config.default_indentation_char, match.group(1)[: len(self.reply_indentation)]
            )

        logger.debug("reply goes at offset %d with indentation %r", current_index + len(code_between), self.reply_indentation)
        return current_index + len(code_between)

    def _section_bounds(self, context_code: str):
        start = self.heading_start_index
        end = len(context_code)
        for match in SECTION_HEADING_RE.finditer(context_code, start + len(self.heading_code)):
            if len(match.group(1)) <= self.heading_level:
                end = match.start()
                break
        return start, end

    def modify_context(
        self,
        action: str,
        context_code: str,
        comment_code=None,
        delete: bool = False,
    ) -> tuple[str, str | None]:
        """Apply a reply or an edit (or a deletion) to the context code.

        `comment_code` may be a callable returning the code; for a reply it is called after the
        reply position (and with it `is_reply_outdented`) is known. Returns the new context code
        and the comment code.
        """
        if not context_code:
            raise WikitextError("noCode", "Context (section or page) code is not set.")
        if action not in {"reply", "edit"}:
            raise ValueError(f"action must be 'reply' or 'edit'; got {action!r}.")
        if comment_code is None and not delete:
            raise ValueError(f"comment_code is required for action '{action}'.")

        if action == "reply":
            current_index = self.find_reply_position(context_code)
            if callable(comment_code):
                comment_code = comment_code()
            return context_code[:current_index] + comment_code + context_code[current_index:], comment_code

        if not delete:
            if callable(comment_code):
                comment_code = comment_code()
            new_code = context_code[: self.line_start_index] + comment_code + context_code[self.signature_end_index :]
            return new_code, comment_code

        if self.comment.is_opening_section and self.heading_start_index is not None:
            start_index, end_index = self._section_bounds(context_code)
            if len(extract_signatures(context_code[start_index:end_index], self.config)) > 1:
                raise ParseError("delete-repliesInSection", "The section has replies.")
        else:
            end_index = self.signature_end_index + 1
            replies_re = re.compile(rf".+\n+[:*#]{{{len(self.indentation) + 1},}}")
            if replies_re.match(context_code, self.end_index):
                raise ParseError("delete-repliesToComment", "The comment has replies.")
            start_index = self.line_start_index
        return context_code[:start_index] + context_code[end_index:], None

    def transform_request(self, text: str, mode: str = "reply", **options) -> TransformRequest:
        """Build the transformer input for replying to or editing this comment."""
        indentation = resolve_indentation(
            mode,
            reply_indentation=self.reply_indentation,
            indentation=self.indentation,
            config=self.config,
        )
        return TransformRequest(
            text=text,
            mode=mode,
            indentation=indentation,
            signature_code=self.signature_code,
            target_level=self.comment.level,
            heading_level=self.heading_level,
            is_opening_section=self.comment.is_opening_section,
            target_code_starts_with_newline=self.code.startswith("\n"),
            is_reply_outdented=self.is_reply_outdented,
            **options,
        )

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "author": self.author,
            "timestamp": self.timestamp,
            "score": self.score,
            "start_index": self.start_index,
            "line_start_index": self.line_start_index,
            "end_index": self.end_index,
            "signature_end_index": self.signature_end_index,
            "indentation": self.indentation,
            "original_indentation": self.original_indentation,
            "reply_indentation": self.reply_indentation,
            "is_reply_outdented": self.is_reply_outdented,
            "heading_level": self.heading_level,
            "headline_code": self.headline_code,
            "signature_code": self.signature_code,
            "in_small_font": self.in_small_font,
            "code": self.code,
        }


