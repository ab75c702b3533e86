"""
ioredis -> GLIDE Translation Module

Pure, synchronous translation between the loosely typed ioredis calling
conventions and the typed GLIDE client API, in both directions.

Guarantees:
- Translation never raises on malformed input; the server reports errors
- Binary payloads are never decoded on the way in
- Every legacy variant of a command normalizes to one comparable value
"""

from .models import (
    BlockingPopParams,
    CommandFamily,
    CommandInvocation,
    ConditionalWrite,
    ExpireParams,
    Expiry,
    ExpiryUnit,
    HashParams,
    LexBound,
    RangeKind,
    RangeLimit,
    ScanParams,
    ScoreBound,
    ScoreComparison,
    SetParams,
    ZAddParams,
    ZRangeParams,
)
from .options import OptionVocabulary, scan_leading_flags, scan_options
from .results import flatten_scored, format_blocking_pop, format_float, to_text, translate_error

__all__ = [
    "BlockingPopParams",
    "CommandFamily",
    "CommandInvocation",
    "ConditionalWrite",
    "ExpireParams",
    "Expiry",
    "ExpiryUnit",
    "HashParams",
    "LexBound",
    "RangeKind",
    "RangeLimit",
    "ScanParams",
    "ScoreBound",
    "ScoreComparison",
    "SetParams",
    "ZAddParams",
    "ZRangeParams",
    "OptionVocabulary",
    "scan_options",
    "scan_leading_flags",
    "flatten_scored",
    "format_blocking_pop",
    "format_float",
    "to_text",
    "translate_error",
]
