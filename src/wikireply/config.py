from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

logger = logging.getLogger(__name__)

MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
TIMESTAMP_NO_TIMEZONE_PATTERN = r"\b\d\d:\d\d, \d{1,2} (?:" + "|".join(MONTHS) + r") \d{4}"
TIMEZONE_PATTERN = r" \(UTC\)"
TIMESTAMP_PATTERN = TIMESTAMP_NO_TIMEZONE_PATTERN + TIMEZONE_PATTERN

# Separators and decorations that people put between the comment text and the signature link.
SIGNATURE_PREFIX_PATTERN = (
    r"(?:\s[-\u2013\u2212\u2014\u2015]+\xa0?[A-Z][A-Za-z_-]*)?"
    r"(?:\s+>+)?"
    r"(?:[\u00b7\u2022\-\u2011\u2013\u2212\u2014\u2015\u2500~\u2053/\u2192\u21d2\s\u200d\u200e\u200f\u2060]"
    r"|&\w+;|&#\d+;)*"
    r"(?:\s+\()?\Z"
)

POPULAR_NOT_INLINE_ELEMENTS = (
    "blockquote", "caption", "center", "dd", "div", "dl", "dt", "figure", "figcaption", "form",
    "h1", "h2", "h3", "h4", "h5", "h6", "hr", "input", "li", "link", "ol", "p", "pre", "section",
    "style", "table", "tbody", "td", "tfoot", "th", "thead", "tr", "ul",
)
POPULAR_INLINE_ELEMENTS = (
    "a", "abbr", "b", "bdi", "big", "br", "button", "cite", "code", "del", "em", "font", "i",
    "img", "ins", "kbd", "meta", "q", "s", "samp", "small", "span", "strike", "strong", "sub",
    "sup", "time", "tt", "u", "var",
)

MODES = ("reply", "edit", "replyInSection", "addSection", "addSubsection")
ACTIONS = ("submit", "preview", "viewChanges")
INDENTATION_CHAR_MODES = ("mimic", "unify")


@dataclass(frozen=True)
class MatchWeights:
    """Weights of the signals combined into a comment match score."""

    required: float = 2.0
    word_overlap: float = 1.0
    headline: float = 1.0
    previous_comments: float = 0.5
    index: float = 0.0001
    missing_heading: float = -0.4999
    word_overlap_threshold: float = 0.5
    threshold: float = 2.5


@dataclass(frozen=True)
class WikitextConfig:
    paragraph_templates: tuple[str, ...] = ()
    outdent_templates: tuple[str, ...] = ()
    small_div_templates: tuple[str, ...] = ()
    unsigned_templates: tuple[str, ...] = ("unsigned", "unsignedIP", "unsigned2", "unsignedIP2")
    clear_templates: tuple[str, ...] = ()
    closed_discussion_templates: tuple[tuple[str, ...], tuple[str, ...]] = ((), ())
    pair_quote_templates: tuple[tuple[str, ...], tuple[str, ...]] = ((), ())
    default_indentation_char: str = ":"
    indentation_char_mode: str = "mimic"
    space_after_indentation_chars: bool = True
    signature_prefix: str = " "
    outdent_level: int = 15
    file_namespaces: tuple[str, ...] = ("File", "Image")
    user_namespaces: tuple[str, ...] = ("User", "User talk")
    special_namespace: str = "Special"
    contributions_aliases: tuple[str, ...] = ("Contributions", "Contribs")
    timestamp_pattern: str = TIMESTAMP_PATTERN
    timestamp_no_timezone_pattern: str = TIMESTAMP_NO_TIMEZONE_PATTERN
    timezone_pattern: str = TIMEZONE_PATTERN
    signature_prefix_pattern: str = SIGNATURE_PREFIX_PATTERN
    signature_ending_pattern: str | None = None
    unsigned_class: str = "autosigned"
    match_weights: MatchWeights = field(default_factory=MatchWeights)

    def __post_init__(self):
        if self.indentation_char_mode not in INDENTATION_CHAR_MODES:
            raise ValueError(
                f"indentation_char_mode must be one of {', '.join(INDENTATION_CHAR_MODES)}; "
                f"got {self.indentation_char_mode!r}."
            )
        if self.default_indentation_char not in {":", "*"}:
            raise ValueError(f"default_indentation_char must be ':' or '*'; got {self.default_indentation_char!r}.")

    @property
    def sign_code(self) -> str:
        return "~" * 4

    @property
    def user_signature(self) -> str:
        return self.signature_prefix + self.sign_code


DEFAULT_CONFIG = WikitextConfig()

ENGLISH_WIKIPEDIA = WikitextConfig(
    paragraph_templates=("pb", "Paragraph break", "Break!", "Paragraph", "Parabr", "Paragr"),
    outdent_templates=("outdent", "Noindent", "Unindent", "Outdentarrow", "Oda", "Od", "Out", "De-indent"),
    small_div_templates=("smalldiv", "Div-small"),
    unsigned_templates=(
        "Unsigned",
        "Unsigned3",
        "Unsig",
        "Signed",
        "Unsigned2",
        "Unsigned IP",
        "UnsignedIP",
        "Unsigned IP2",
        "UnsignedIP2",
    ),
    clear_templates=("Clear", "Clr", "-", "Br", "Clear all", "Clear both"),
    closed_discussion_templates=(
        ("Closed", "Discussion top", "Archive top", "Atop", "Hat", "Hidden archive top", "Cot"),
        ("Archive bottom", "Ab", "Discussion bottom", "Abot", "Hab", "Hidden archive bottom", "Cob"),
    ),
    space_after_indentation_chars=False,
    signature_ending_pattern=r" \(talk\)",
)

PRESETS = {
    "default": DEFAULT_CONFIG,
    "enwiki": ENGLISH_WIKIPEDIA,
}


def _coerce_tuple(value):
    if isinstance(value, list):
        return tuple(_coerce_tuple(item) for item in value)
    return value


def config_from_dict(overrides: dict, base: WikitextConfig | None = None) -> WikitextConfig:
    base = base or DEFAULT_CONFIG
    known = {f.name for f in fields(WikitextConfig)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

    values = {}
    for key, value in overrides.items():
        if key == "match_weights":
            if not isinstance(value, dict):
                raise ValueError("match_weights must be an object.")
            weight_names = {f.name for f in fields(MatchWeights)}
            bad = sorted(set(value) - weight_names)
            if bad:
                raise ValueError(f"Unknown match weight keys: {', '.join(bad)}")
            values[key] = replace(base.match_weights, **{k: float(v) for k, v in value.items()})
        else:
            values[key] = _coerce_tuple(value)
    return replace(base, **values)


def load_config(path: Path, base: WikitextConfig | None = None) -> WikitextConfig:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {path} must contain a JSON object.")

    preset_name = raw.pop("preset", None)
    if preset_name is not None:
        if preset_name not in PRESETS:
            raise ValueError(f"Unknown preset '{preset_name}'. Use one of: {', '.join(sorted(PRESETS))}.")
        base = PRESETS[preset_name]

    config = config_from_dict(raw, base=base)
    logger.debug("loaded configuration from %s (%d overrides)", path, len(raw))
    return config
