from __future__ import annotations

import re

HTML_COMMENT_RE = re.compile(r"(<!--)([\s\S]*?)(-->)")
WIKILINK_DISPLAY_RE = re.compile(r"\[\[:?(?:[^|\[\]<>\n]+\|)?(.+?)\]\]")
TEMPLATE_NAME_RE = re.compile(r"\{\{:?(?:[^|{}<>\n]+)(?:\|(.+?))?\}\}")
EXTERNAL_LINK_RE = re.compile(r"\[https?://[^\[\]<>\"\n ]+ *([^\]]*)\]")
BOLD_RE = re.compile(r"'''(.+?)'''")
ITALIC_RE = re.compile(r"''(.+?)''")
BR_RE = re.compile(r"<br ?/?>")
OPENING_TAG_RE = re.compile(r"<\w+(?: [\w ]+?=[^<>]+?| ?/?)>")
CLOSING_TAG_RE = re.compile(r"</\w+ ?>")
MULTIPLE_SPACES_RE = re.compile(r" {2,}")
WHITESPACE_RE = re.compile(r"\s+")
WORD_RE = re.compile(r"[^\W\d_]{2,}")
BR_WITH_NEWLINE_RE = re.compile(r"<br[ \n]*/?>\n?", re.IGNORECASE)

ENTITY_REPLACEMENTS = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&#91;", "["),
    ("&#93;", "]"),
    ("&#123;", "{"),
    ("&#124;", "|"),
    ("&#125;", "}"),
)


def generate_tags_pattern(tags) -> str:
    """Pattern matching a paired tag (any of `tags`, which may be patterns) with its content."""
    joined = "|".join(tags)
    return rf"<({joined})(?:\s[^<>]*)?>[\s\S]*?</\1\s*>"


def generate_tags_regexp(tags) -> re.Pattern:
    return re.compile(generate_tags_pattern(tags), re.IGNORECASE)


def any_space(name: str) -> str:
    return re.sub(r"[ _]+", "[ _]+", name).replace(":", "[ _]*:[ _]*")


def page_name_pattern(name: str) -> str:
    """Pattern for a page name with a case-insensitive first letter and flexible spaces."""
    if not name:
        return ""
    first_char = name[0]
    upper = first_char.upper()
    lower = first_char.lower()
    if upper != lower:
        first_pattern = f"[{upper}{lower}]"
    else:
        first_pattern = re.escape(first_char)
    rest = re.escape(name[1:])
    return first_pattern + re.sub(r"(?:\\ |_)+", "[ _]+", rest)


def templates_pattern(names) -> str:
    return "|".join(page_name_pattern(name) for name in names if name)


def count_occurrences(text: str, pattern) -> int:
    if isinstance(pattern, str):
        pattern = re.compile(pattern)
    return sum(1 for _ in pattern.finditer(text))


def hide_html_comments(code: str) -> str:
    """Blank out the contents of `<!-- -->` comments keeping every offset intact."""
    return HTML_COMMENT_RE.sub(lambda m: m.group(1) + " " * len(m.group(2)) + m.group(3), code)


def remove_wiki_markup(code: str) -> str:
    """Strip formatting, links, tags and comments. The result is for comparisons, not display."""
    code = re.sub(r"<!--[\s\S]*?-->", "", code)
    code = WIKILINK_DISPLAY_RE.sub(r"\1", code)
    code = TEMPLATE_NAME_RE.sub(r"\1", code)
    code = EXTERNAL_LINK_RE.sub(r"\1", code)
    code = BOLD_RE.sub(r"\1", code)
    code = ITALIC_RE.sub(r"\1", code)
    code = BR_RE.sub(" ", code)
    code = OPENING_TAG_RE.sub("", code)
    code = CLOSING_TAG_RE.sub("", code)
    code = MULTIPLE_SPACES_RE.sub(" ", code)
    return code.strip()


def normalize_code(text: str) -> str:
    for entity, char in ENTITY_REPLACEMENTS:
        text = text.replace(entity, char)
    return WHITESPACE_RE.sub(" ", text)


def _unique_words(text: str, case_insensitive: bool):
    words = []
    for word in WORD_RE.findall(text.lower() if case_insensitive else text):
        if word not in words:
            words.append(word)
    return words


def calculate_word_overlap(s1: str, s2: str, case_insensitive: bool = False) -> float:
    """Share of distinct words (2+ letters) present in both strings relative to all words."""
    words1 = _unique_words(s1, case_insensitive)
    words2 = _unique_words(s2, case_insensitive)
    if not words1 or not words2:
        return 0.0

    total = len(words2)
    overlap = 0
    for word in words1:
        if word in words2:
            overlap += 1
        else:
            total += 1
    return overlap / total


def brs_to_newlines(code: str, replacement: str = "\n") -> str:
    return BR_WITH_NEWLINE_RE.sub(lambda _: replacement, code)


def quote_regexp(pair_quote_templates=((), ())) -> re.Pattern:
    """Regexp matching quotes: `<blockquote>`, `<q>` and paired quote templates."""
    beginnings, endings = pair_quote_templates or ((), ())
    beginnings_pattern = "|".join(
        ["<blockquote", "<q"] + [r"\{\{ *" + page_name_pattern(name) for name in beginnings]
    )
    endings_pattern = "|".join(
        ["</blockquote>", "</q>"] + [r"\{\{ *" + page_name_pattern(name) for name in endings]
    )
    return re.compile(f"({beginnings_pattern})([\\s\\S]*?)({endings_pattern})", re.IGNORECASE)


def mask_distracting_code(code: str) -> str:
    """Blank out code where signatures and headings don't count, keeping every offset intact.

    HTML comments become `\\x01` + spaces + `\\x02` so that reply placement can tell them apart.
    """
    code = generate_tags_regexp(["pre", "source", "syntaxhighlight"]).sub(lambda m: " " * len(m.group(0)), code)
    code = re.sub(
        r"(<nowiki>)([\s\S]*?)(</nowiki>)",
        lambda m: m.group(1) + " " * len(m.group(2)) + m.group(3),
        code,
        flags=re.IGNORECASE,
    )
    return HTML_COMMENT_RE.sub(lambda m: "\x01" + " " * (len(m.group(0)) - 2) + "\x02", code)
