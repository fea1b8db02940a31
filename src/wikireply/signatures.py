from __future__ import annotations

import html
import logging
import re
from dataclasses import asdict, dataclass

from .config import DEFAULT_CONFIG, WikitextConfig
from .wikitext import hide_html_comments, page_name_pattern, quote_regexp, templates_pattern

logger = logging.getLogger(__name__)

UNDATED_AUTHOR = "<undated>"

# 255 (maximum signature length) minus len("[[u:a") plus the space before the timestamp.
SIGNATURE_SCAN_LIMIT = 251


@dataclass
class SignatureOccurrence:
    index: int
    author: str
    timestamp: str | None
    start_index: int
    end_index: int
    dirty_code: str
    comment_start_index: int = 0
    line_start_index: int = 0
    next_comment_start_index: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def normalize_user_name(name: str) -> str:
    name = html.unescape(name).replace("_", " ").strip()
    name = re.sub(r" {2,}", " ", name)
    return name[:1].upper() + name[1:]


def capture_user_name_pattern(config: WikitextConfig = DEFAULT_CONFIG) -> str:
    """Pattern for a link to a user page, user talk page or contributions page.

    Group 1 is the user name, group 2 is a slash following it (a subpage link).
    """
    user_namespaces = templates_pattern(config.user_namespaces)
    contributions = "|".join(
        page_name_pattern(config.special_namespace) + r"[ _]*:[ _]*" + page_name_pattern(alias)
        for alias in config.contributions_aliases
    )
    return (
        r"\[\[[ _]*:?(?:\w*:){0,2}"
        rf"(?:(?:{user_namespaces})[ _]*:[ _]*|(?:{contributions})/[ _]*)"
        r"([^|\]/]+)(/)?"
    )


def unsigned_templates_regexp(config: WikitextConfig = DEFAULT_CONFIG) -> re.Pattern | None:
    names = templates_pattern(config.unsigned_templates)
    if not names:
        return None
    return re.compile(rf"(\{{\{{ *(?:{names}) *\| *([^}}|]+?) *(?:\| *([^}}]+?) *)?\}}\}})")


def hide_quotes(code: str, config: WikitextConfig = DEFAULT_CONFIG) -> str:
    return quote_regexp(config.pair_quote_templates).sub(
        lambda m: m.group(1) + " " * len(m.group(2)) + m.group(3), code
    )


def extract_signatures(code: str, config: WikitextConfig | None = None) -> list[SignatureOccurrence]:
    """Find signatures (author link + timestamp) and unsigned templates in wikitext.

    Offsets refer to `code`. HTML comments and quotes are skipped.
    """
    config = config or DEFAULT_CONFIG
    adjusted_code = hide_quotes(hide_html_comments(code), config)
    timestamp = config.timestamp_pattern
    user_name = capture_user_name_pattern(config)

    timestamp_re = re.compile(
        rf"^((.*)({timestamp})(?:\}}\}}|</small>)?).*\n*", re.IGNORECASE | re.MULTILINE
    )
    # The greedy ".*" finds the last author link; the loop below then looks for the first link to
    # the same author.
    signature_re = re.compile(
        rf"^((.*)({user_name}.{{1,{SIGNATURE_SCAN_LIMIT}}}(({timestamp})(?:\}}\}}|</small>)?)).*)(\n*)",
        re.IGNORECASE,
    )
    author_link_re = re.compile(user_name, re.IGNORECASE)
    no_timezone_re = re.compile(config.timestamp_no_timezone_pattern)
    unsigned_re = unsigned_templates_regexp(config)
    unsigned_matches = list(unsigned_re.finditer(adjusted_code)) if unsigned_re else []

    def inside_unsigned_template(index: int) -> bool:
        return any(m.start() <= index < m.end() for m in unsigned_matches)

    signatures: list[SignatureOccurrence] = []
    for timestamp_match in timestamp_re.finditer(adjusted_code):
        line = timestamp_match.group(0)
        line_index = timestamp_match.start()
        if inside_unsigned_template(timestamp_match.start(3)):
            # Unsigned templates are collected separately.
            continue
        match = signature_re.match(line)
        if match:
            author = normalize_user_name(match.group(4))
            start_index = line_index + len(match.group(2))
            dirty_code = match.group(3)
            ending_start = max(
                0,
                len(match.group(0))
                - len(match.group(6))
                - len(match.group(signature_re.groups))
                - SIGNATURE_SCAN_LIMIT,
            )
            for link_match in author_link_re.finditer(match.group(0)[ending_start:]):
                # A slash usually means a link to a userspace page that isn't part of the signature.
                if link_match.group(2):
                    continue
                if normalize_user_name(link_match.group(1)) == author:
                    start_index = line_index + ending_start + link_match.start()
                    dirty_code = code[start_index : line_index + len(match.group(2)) + len(match.group(3))]
                    break
            signatures.append(
                SignatureOccurrence(
                    index=-1,
                    author=author,
                    timestamp=match.group(7),
                    start_index=start_index,
                    end_index=start_index + len(dirty_code),
                    dirty_code=dirty_code,
                    next_comment_start_index=line_index + len(line),
                )
            )
        else:
            start_index = line_index + len(timestamp_match.group(2))
            signatures.append(
                SignatureOccurrence(
                    index=-1,
                    author=UNDATED_AUTHOR,
                    timestamp=timestamp_match.group(3),
                    start_index=start_index,
                    end_index=start_index + len(timestamp_match.group(3)),
                    dirty_code=timestamp_match.group(3),
                    next_comment_start_index=line_index + len(line),
                )
            )

    for match in unsigned_matches:
        first, second = match.group(2), match.group(3)
        if no_timezone_re.search(first):
            template_timestamp, author = first, second
        elif second and no_timezone_re.search(second):
            template_timestamp, author = second, first
        else:
            template_timestamp, author = None, first
        signatures.append(
            SignatureOccurrence(
                index=-1,
                author=normalize_user_name(author) if author else UNDATED_AUTHOR,
                timestamp=template_timestamp,
                start_index=match.start(),
                end_index=match.start() + len(match.group(1)),
                dirty_code=match.group(1),
                next_comment_start_index=match.end(),
            )
        )
    signatures.sort(key=lambda sig: sig.start_index)

    previous_end = 0
    for index, sig in enumerate(signatures):
        sig.index = index
        sig.comment_start_index = previous_end
        sig.line_start_index = code.rfind("\n", 0, sig.start_index) + 1
        previous_end = sig.next_comment_start_index

    logger.debug("extracted %d signatures", len(signatures))
    return signatures
