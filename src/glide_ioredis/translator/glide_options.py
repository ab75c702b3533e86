"""
Mapping from normalized parameters onto GLIDE option objects.

Kept apart from ``parameters`` so that translation stays comparable with
``==`` and free of driver types.
"""

from typing import Any, Optional, Union

from glide import (
    ConditionalChange,
    ExpireOptions,
    ExpirySet,
    ExpiryType,
    InfBound,
    InsertPosition,
    LexBoundary,
    Limit,
    ObjectType,
    RangeByIndex,
    RangeByLex,
    RangeByScore,
    ScoreBoundary,
    UpdateOptions,
)

from .models import (
    ConditionalWrite,
    Expiry,
    ExpiryUnit,
    LexBound,
    RangeKind,
    RangeLimit,
    ScoreBound,
    ScoreComparison,
    ZRangeParams,
)
from .options import token_of

_EXPIRY_TYPES = {
    ExpiryUnit.SECONDS: ExpiryType.SEC,
    ExpiryUnit.MILLISECONDS: ExpiryType.MILLSEC,
    ExpiryUnit.UNIX_SECONDS: ExpiryType.UNIX_SEC,
    ExpiryUnit.UNIX_MILLISECONDS: ExpiryType.UNIX_MILLSEC,
    ExpiryUnit.KEEP_TTL: ExpiryType.KEEP_TTL,
}

_CONDITIONS = {
    ConditionalWrite.ONLY_IF_EXISTS: ConditionalChange.ONLY_IF_EXISTS,
    ConditionalWrite.ONLY_IF_NOT_EXISTS: ConditionalChange.ONLY_IF_DOES_NOT_EXIST,
}

_COMPARISONS = {
    ScoreComparison.GREATER_THAN: UpdateOptions.GREATER_THAN,
    ScoreComparison.LESS_THAN: UpdateOptions.LESS_THAN,
}

_EXPIRE_OPTIONS = {
    'NX': ExpireOptions.HasNoExpiry,
    'XX': ExpireOptions.HasExistingExpiry,
    'GT': ExpireOptions.NewExpiryGreaterThanCurrent,
    'LT': ExpireOptions.NewExpiryLessThanCurrent,
}


_OBJECT_TYPES = {
    'string': ObjectType.STRING,
    'list': ObjectType.LIST,
    'set': ObjectType.SET,
    'zset': ObjectType.ZSET,
    'hash': ObjectType.HASH,
    'stream': ObjectType.STREAM,
}


def object_type(name: Optional[str]) -> Optional[ObjectType]:
    """SCAN TYPE filter; unknown names give None"""
    return _OBJECT_TYPES.get(name) if name else None


def expiry_set(expiry: Optional[Expiry]) -> Optional[ExpirySet]:
    if expiry is None:
        return None
    if expiry.unit is ExpiryUnit.KEEP_TTL:
        return ExpirySet(ExpiryType.KEEP_TTL, None)
    return ExpirySet(_EXPIRY_TYPES[expiry.unit], expiry.value)


def conditional_change(condition: Optional[ConditionalWrite]) -> Optional[ConditionalChange]:
    return _CONDITIONS.get(condition) if condition else None


def update_options(comparison: Optional[ScoreComparison]) -> Optional[UpdateOptions]:
    return _COMPARISONS.get(comparison) if comparison else None


def expire_option(condition: Optional[str]) -> Optional[ExpireOptions]:
    return _EXPIRE_OPTIONS.get(condition) if condition else None


def insert_position(where: Any) -> Optional[InsertPosition]:
    """LINSERT BEFORE|AFTER; anything else is None"""
    token = token_of(where)
    if token == 'BEFORE':
        return InsertPosition.BEFORE
    if token == 'AFTER':
        return InsertPosition.AFTER
    return None


def score_boundary(bound: ScoreBound) -> Union[InfBound, ScoreBoundary]:
    if bound.is_infinite:
        return InfBound.POS_INF if bound.value > 0 else InfBound.NEG_INF
    return ScoreBoundary(bound.value, is_inclusive=bound.inclusive)


def lex_boundary(bound: LexBound) -> Union[InfBound, LexBoundary]:
    if bound.infinite == '+':
        return InfBound.POS_INF
    if bound.infinite == '-':
        return InfBound.NEG_INF
    value = bound.value.decode('utf-8', 'surrogateescape') if isinstance(bound.value, bytes) else bound.value
    return LexBoundary(value, is_inclusive=bound.inclusive)


def limit(range_limit: Optional[RangeLimit]) -> Optional[Limit]:
    if range_limit is None:
        return None
    return Limit(range_limit.offset, range_limit.count)


def range_query(params: ZRangeParams) -> Union[RangeByIndex, RangeByScore, RangeByLex]:
    """Build the GLIDE range query; ``start`` is the upper bound for reversed score/lex ranges"""
    if params.kind is RangeKind.SCORE:
        return RangeByScore(score_boundary(params.start), score_boundary(params.stop),
                            limit=limit(params.limit))
    if params.kind is RangeKind.LEX:
        return RangeByLex(lex_boundary(params.start), lex_boundary(params.stop),
                          limit=limit(params.limit))
    return RangeByIndex(params.start, params.stop)
