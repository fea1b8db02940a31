from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import DEFAULT_CONFIG, WikitextConfig
from .errors import ParseError
from .signatures import UNDATED_AUTHOR, SignatureOccurrence, extract_signatures, normalize_user_name
from .source import CommentData, CommentSource, PreviousComment

__all__ = ["CommentData", "LocateFailure", "PreviousComment", "locate", "locate_or_raise"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocateFailure:
    """No candidate scored above the acceptance threshold."""

    code: str = "locateComment"
    candidate_count: int = 0
    best_score: float | None = None

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "candidate_count": self.candidate_count,
            "best_score": self.best_score,
        }


def _signature_matches(signature: SignatureOccurrence, comment_data: CommentData) -> bool:
    if signature.author != normalize_user_name(comment_data.author) and signature.author != UNDATED_AUTHOR:
        return False
    if comment_data.timestamp == signature.timestamp:
        return True
    # The timezone may be missing from an unsigned template while it's shown on the page.
    return bool(comment_data.timestamp and signature.timestamp and comment_data.timestamp.startswith(signature.timestamp))


def locate(
    code: str,
    comment_data: CommentData,
    config: WikitextConfig | None = None,
) -> CommentSource | LocateFailure:
    """Find the source of a comment in page or section wikitext.

    Candidates are signatures by the same author (or undated ones) with the same timestamp. The
    best scoring one above the threshold wins; on a tie, the one earlier in the code.
    """
    config = config or DEFAULT_CONFIG
    signatures = extract_signatures(code, config)
    sources = [
        CommentSource(comment_data, signature, code, config)
        for signature in signatures
        if _signature_matches(signature, comment_data)
    ]
    for source in sources:
        source.calculate_match_score(comment_data, sources, signatures)

    threshold = config.match_weights.threshold
    accepted = [source for source in sources if source.score > threshold]
    if not accepted:
        best_score = max((source.score for source in sources), default=None)
        logger.info(
            "comment by %s at %s not located among %d candidates",
            comment_data.author,
            comment_data.timestamp,
            len(sources),
        )
        return LocateFailure(candidate_count=len(sources), best_score=best_score)

    best = max(accepted, key=lambda source: (source.score, -source.start_index))
    logger.debug("located comment #%d with score %.4f", best.index, best.score)
    return best


def locate_or_raise(
    code: str,
    comment_data: CommentData,
    config: WikitextConfig | None = None,
) -> CommentSource:
    result = locate(code, comment_data, config)
    if isinstance(result, LocateFailure):
        raise ParseError(
            result.code,
            "Couldn't locate the comment in the code.",
            candidate_count=result.candidate_count,
            best_score=result.best_score,
        )
    return result
