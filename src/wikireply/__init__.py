from .config import DEFAULT_CONFIG, ENGLISH_WIKIPEDIA, MatchWeights, WikitextConfig, load_config
from .errors import ParseError, WikitextError
from .locator import LocateFailure, locate, locate_or_raise
from .masker import MaskedText, TextMasker, mask, unmask
from .source import CommentData, CommentSource, PreviousComment
from .transformer import CommentInputTransformer, TransformRequest, transform
from .version import __version__

__all__ = [
    "CommentData",
    "CommentInputTransformer",
    "CommentSource",
    "DEFAULT_CONFIG",
    "ENGLISH_WIKIPEDIA",
    "LocateFailure",
    "MaskedText",
    "MatchWeights",
    "ParseError",
    "PreviousComment",
    "TextMasker",
    "TransformRequest",
    "WikitextConfig",
    "WikitextError",
    "__version__",
    "load_config",
    "locate",
    "locate_or_raise",
    "mask",
    "transform",
    "unmask",
]
