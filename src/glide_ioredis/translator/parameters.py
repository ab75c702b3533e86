"""
Parameter Translator

Converts ioredis-style argument lists into the normalized parameter types of
``models``. One function per command family; every function is pure and total:

- Never raises on malformed input (None, odd pair runs, unknown tokens)
- Never decodes binary payloads (bytes stay bytes, str stays str)
- Flat, mapping, list-of-pairs and keyword shapes of the same request produce
  equal results

Shapes that cannot be expressed with the driver's typed methods carry
``fallback_args`` so the facade can hand the raw command to the server and let
it raise its own error.
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .models import (
    BlockingPopParams,
    ConditionalWrite,
    Encodable,
    Expiry,
    ExpireParams,
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
from .options import (
    EXPIRE_OPTIONS,
    SCAN_OPTIONS,
    SET_OPTIONS,
    ZADD_OPTIONS,
    ZRANGE_OPTIONS,
    ZRANGEBYSCORE_OPTIONS,
    scan_leading_flags,
    scan_options,
    token_of,
)

logger = logging.getLogger(__name__)

# Stand-in for None values and holes in argument arrays
PLACEHOLDER = ""

_MAX_SAFE_FLOAT_INT = 1e21

Number = Union[int, float]


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------

def format_number(value: Number) -> str:
    """
    Text form of a number as the legacy client would send it.

    Integral floats lose their ``.0`` (``1.0`` -> ``"1"``); ints keep every
    digit; infinities use the spelling the server accepts.
    """
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return 'nan'
    if math.isinf(value):
        return 'inf' if value > 0 else '-inf'
    if value.is_integer() and abs(value) < _MAX_SAFE_FLOAT_INT:
        return str(int(value))
    return repr(value)


def normalize_value(value: Any) -> Encodable:
    """
    Binary-safe value normalization.

    bytes-like values are returned as bytes, str untouched (control characters
    and "" included), numbers as text, None as the placeholder.
    """
    if value is None:
        return PLACEHOLDER
    if isinstance(value, (str, bytes)):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


def normalize_key(key: Any, prefix: Encodable = "") -> Encodable:
    """Normalize a key and apply the client's key prefix"""
    normalized = normalize_value(key)
    if not prefix:
        return normalized
    if isinstance(normalized, bytes):
        raw_prefix = prefix if isinstance(prefix, bytes) else prefix.encode()
        return raw_prefix + normalized
    if isinstance(prefix, bytes):
        return prefix + normalized.encode()
    return prefix + normalized


def flatten_arguments(args: Iterable[Any]) -> List[Any]:
    """
    Flatten nested lists/tuples in order.

    None entries become the placeholder so positions stay meaningful for
    ordered commands. Mappings and scalars are kept as they are.
    """
    flat: List[Any] = []
    for arg in args:
        if isinstance(arg, (list, tuple)):
            flat.extend(flatten_arguments(arg))
        elif arg is None:
            flat.append(PLACEHOLDER)
        else:
            flat.append(arg)
    return flat


def translate_numeric(value: Any, integer: bool = False) -> Union[int, float, str]:
    """
    Numeric family translation.

    Accepts ints, floats, scientific notation and numeric strings. Integer text
    is parsed with ``int`` so values beyond 2**53 keep every digit. NaN and
    infinities are passed through for the server to reject. Anything that does
    not parse is returned as text, unchanged.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if integer and value.is_integer():
            return int(value)
        return value
    text = value.decode('ascii', 'replace') if isinstance(value, (bytes, bytearray)) else str(value)
    stripped = text.strip()
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        parsed = float(stripped)
    except ValueError:
        logger.debug("Numeric argument left as text: %r", text)
        return text
    if integer and parsed.is_integer():
        return int(parsed)
    if integer:
        # "1.5" for an integer command: let the server say so
        return text
    return parsed


def translate_count(value: Any) -> Optional[Union[int, str]]:
    """Optional integer argument (COUNT, LIMIT, pop counts); None stays None"""
    if value is None:
        return None
    return translate_numeric(value, integer=True)


# ---------------------------------------------------------------------------
# Keys and plain arrays
# ---------------------------------------------------------------------------

def translate_keys(args: Sequence[Any], prefix: Encodable = "") -> List[Encodable]:
    """Variadic or list form of a key list (MGET, DEL, EXISTS, SINTER...)"""
    return [normalize_key(key, prefix) for key in flatten_arguments(args)]


def translate_list_elements(args: Sequence[Any]) -> List[Encodable]:
    """
    Array family: LPUSH/RPUSH elements.

    Duplicates are preserved, holes become placeholders.
    """
    return [normalize_value(element) for element in flatten_arguments(args)]


def translate_set_members(args: Sequence[Any], dedupe: bool = True) -> List[Encodable]:
    """
    Set family: SADD/SREM members.

    Members are compared after normalization, so ``1`` and ``"1"`` collapse.
    """
    members = translate_list_elements(args)
    if not dedupe:
        return members
    return list(dict.fromkeys(members))


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------

_EXPIRY_TOKENS = {
    'EX': ExpiryUnit.SECONDS,
    'PX': ExpiryUnit.MILLISECONDS,
    'EXAT': ExpiryUnit.UNIX_SECONDS,
    'PXAT': ExpiryUnit.UNIX_MILLISECONDS,
}


def _connect_redis_expiration(args: Sequence[Any]) -> List[Any]:
    """Rewrite ``{"expiration": {"type": "EX", "value": 10}}`` into tokens"""
    rewritten: List[Any] = []
    for arg in args:
        if isinstance(arg, Mapping) and isinstance(arg.get('expiration'), Mapping):
            expiration = arg['expiration']
            kind = token_of(expiration.get('type'))
            if kind in _EXPIRY_TOKENS and expiration.get('value') is not None:
                rewritten.extend([kind, expiration['value']])
            rest = {key: value for key, value in arg.items() if key != 'expiration'}
            if rest:
                rewritten.append(rest)
            continue
        rewritten.append(arg)
    return rewritten


def translate_set(args: Sequence[Any], keywords: Optional[Mapping[str, Any]] = None) -> SetParams:
    """
    SET options.

    ``("EX", 10, "NX")``, ``({"EX": 10, "NX": True},)``,
    ``({"expiration": {"type": "EX", "value": 10}, "NX": True},)`` and
    ``ex=10, nx=True`` all give the same SetParams.
    """
    keywords = dict(keywords or {})
    scan = scan_options(_connect_redis_expiration(flatten_arguments(args)), SET_OPTIONS, keywords)

    expiry = None
    for token, unit in _EXPIRY_TOKENS.items():
        if scan.has(token):
            expiry = Expiry(unit, translate_numeric(scan.value(token), integer=True))
    if scan.has('KEEPTTL'):
        expiry = Expiry(ExpiryUnit.KEEP_TTL)

    condition = None
    if scan.has('NX'):
        condition = ConditionalWrite.ONLY_IF_NOT_EXISTS
    elif scan.has('XX'):
        condition = ConditionalWrite.ONLY_IF_EXISTS

    if scan.positional or (expiry is not None and not is_typed_expiry(expiry)):
        logger.debug("SET arguments deferred to server: %r", scan.positional or expiry)
        return SetParams(fallback_args=tuple(_option_tokens(scan) + [
            normalize_value(arg) for arg in scan.positional if not isinstance(arg, Mapping)
        ]))

    return SetParams(expiry=expiry, condition=condition, return_old=scan.has('GET'))


def is_typed_expiry(expiry: Expiry) -> bool:
    """
    True when the driver can carry the expiry as given.

    A zero, negative or non-integer amount is sent as raw text so the server
    reports "invalid expire time" itself.
    """
    if expiry.unit is ExpiryUnit.KEEP_TTL:
        return True
    value = expiry.value
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _option_tokens(scan) -> List[Encodable]:
    """Recognized options back in token form, for a raw command"""
    tokens: List[Encodable] = []
    for token, consumed in scan.options.items():
        tokens.append(token)
        if consumed is not True:
            tokens.extend(normalize_value(value) for value in consumed)
    return tokens


def translate_mset(args: Sequence[Any], prefix: Encodable = "") -> HashParams:
    """MSET key value ... or MSET {key: value}; keys get the prefix"""
    pairs = translate_hash_fields(args)
    if pairs.fallback_args is not None:
        return HashParams(fallback_args=tuple(
            normalize_key(arg, prefix) if index % 2 == 0 else arg
            for index, arg in enumerate(pairs.fallback_args)
        ))
    return HashParams(fields=tuple(
        (normalize_key(field_name, prefix), value) for field_name, value in pairs.fields
    ))


# ---------------------------------------------------------------------------
# Hashes
# ---------------------------------------------------------------------------

def _mapping_pairs(mapping: Mapping) -> List[Tuple[Encodable, Encodable]]:
    pairs = []
    for field_name, value in mapping.items():
        if callable(value):
            continue
        pairs.append((normalize_value(field_name), normalize_value(value)))
    return pairs


def translate_hash_fields(
    args: Sequence[Any],
    mapping: Optional[Mapping] = None,
) -> HashParams:
    """
    Hash family field/value extraction (arguments after the key).

    Accepted shapes, all equal for the same request:
    - ``f1, v1, f2, v2``
    - ``{f1: v1, f2: v2}`` (callable values are skipped)
    - ``[(f1, v1), (f2, v2)]``
    - ``[f1, v1, f2, v2]``
    - ``mapping={...}`` keyword, merged after positional pairs
    """
    pairs: List[Tuple[Encodable, Encodable]] = []
    flat: List[Any] = []

    for arg in args:
        if isinstance(arg, Mapping):
            pairs.extend(_mapping_pairs(arg))
        elif isinstance(arg, (list, tuple)) and arg and all(
                isinstance(item, (list, tuple)) and len(item) == 2 for item in arg):
            pairs.extend((normalize_value(f), normalize_value(v)) for f, v in arg)
        elif isinstance(arg, (list, tuple)):
            flat.extend(flatten_arguments(arg))
        else:
            flat.append(PLACEHOLDER if arg is None else arg)

    if len(flat) % 2:
        logger.debug("Odd field/value run deferred to server: %d arguments", len(flat))
        raw = [item for pair in pairs for item in pair] + [normalize_value(item) for item in flat]
        if mapping:
            raw.extend(item for pair in _mapping_pairs(mapping) for item in pair)
        return HashParams(fallback_args=tuple(raw))

    for index in range(0, len(flat), 2):
        pairs.append((normalize_value(flat[index]), normalize_value(flat[index + 1])))
    if mapping:
        pairs.extend(_mapping_pairs(mapping))

    # Last assignment of a field wins, first position is kept
    merged: Dict[Encodable, Encodable] = {}
    for field_name, value in pairs:
        merged[field_name] = value
    return HashParams(fields=tuple(merged.items()))


def translate_field_list(args: Sequence[Any]) -> List[Encodable]:
    """HMGET / HDEL field lists (variadic or array)"""
    return [normalize_value(field_name) for field_name in flatten_arguments(args)]


# ---------------------------------------------------------------------------
# Sorted sets
# ---------------------------------------------------------------------------

def parse_score(value: Any) -> Union[float, str]:
    """
    Parse a score with full float precision.

    ``inf``/``+inf``/``-inf`` map to infinities. Unparseable text is returned
    unchanged so the server reports the error.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if value is None:
        return 0.0
    text = value.decode('ascii', 'replace') if isinstance(value, (bytes, bytearray)) else str(value)
    try:
        return float(text.strip())
    except ValueError:
        return text


def parse_score_bound(value: Any) -> ScoreBound:
    """``5``, ``"5"``, ``"(5"``, ``"-inf"``, ``"+inf"``, ``"(+inf"``"""
    if isinstance(value, ScoreBound):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode('ascii', 'replace')
    if isinstance(value, str) and value.startswith('('):
        return ScoreBound(parse_score(value[1:]), inclusive=False)
    return ScoreBound(parse_score(value), inclusive=True)


def parse_lex_bound(value: Any) -> LexBound:
    """``[a`` inclusive, ``(a`` exclusive, ``-`` / ``+`` unbounded"""
    if isinstance(value, LexBound):
        return value
    raw = normalize_value(value)
    text = raw.decode('latin-1') if isinstance(raw, bytes) else raw
    if text in ('-', '+'):
        return LexBound(infinite=text)
    if text[:1] in ('[', '('):
        body = raw[1:]
        return LexBound(value=body, inclusive=text[0] == '[')
    # No prefix is a server syntax error; inclusive is the closest meaning
    return LexBound(value=raw, inclusive=True)


def _is_pair_list(arg: Any) -> bool:
    return isinstance(arg, (list, tuple)) and bool(arg) and all(
        isinstance(item, (list, tuple)) and len(item) == 2 for item in arg)


def translate_zadd(args: Sequence[Any], keywords: Optional[Mapping[str, Any]] = None) -> ZAddParams:
    """
    ZADD after the key.

    Accepted shapes:
    - ``[NX|XX] [GT|LT] [CH] [INCR] score member [score member ...]``
    - ``[1, "a", 2, "b"]`` flat list
    - ``[(1, "a"), (2, "b")]`` (score, member) pairs
    - ``{"a": 1, "b": 2}`` member -> score mapping, flags as tokens or keywords
    """
    keywords = {key.upper(): value for key, value in (keywords or {}).items()}
    flags = scan_leading_flags(args, ZADD_OPTIONS)

    members: List[Tuple[Encodable, Union[float, str]]] = []
    flat: List[Any] = []
    for arg in flags.positional:
        if isinstance(arg, Mapping):
            token_keys = {token_of(key) for key in arg.keys()}
            if token_keys and token_keys <= set(ZADD_OPTIONS.flags):
                flags.options.update(
                    {token_of(key): True for key, value in arg.items() if value})
                continue
            members.extend(
                (normalize_value(member), parse_score(score))
                for member, score in arg.items() if not callable(score))
        elif _is_pair_list(arg):
            members.extend((normalize_value(member), parse_score(score)) for score, member in arg)
        elif isinstance(arg, (list, tuple)):
            flat.extend(flatten_arguments(arg))
        else:
            flat.append(arg)

    for token in ZADD_OPTIONS.flags:
        if keywords.get(token):
            flags.options[token] = True

    condition = None
    if flags.has('NX'):
        condition = ConditionalWrite.ONLY_IF_NOT_EXISTS
    elif flags.has('XX'):
        condition = ConditionalWrite.ONLY_IF_EXISTS
    comparison = None
    if flags.has('GT'):
        comparison = ScoreComparison.GREATER_THAN
    elif flags.has('LT'):
        comparison = ScoreComparison.LESS_THAN

    if len(flat) % 2:
        tokens = [token for token in ('NX', 'XX', 'GT', 'LT', 'CH', 'INCR') if flags.has(token)]
        raw = tokens + [item for member, score in members
                        for item in (normalize_value(score), member)]
        raw.extend(normalize_value(item) for item in flat)
        return ZAddParams(fallback_args=tuple(raw))

    for index in range(0, len(flat), 2):
        members.append((normalize_value(flat[index + 1]), parse_score(flat[index])))

    ordered: Dict[Encodable, Union[float, str]] = {}
    for member, score in members:
        ordered[member] = score

    return ZAddParams(
        members=tuple(ordered.items()),
        condition=condition,
        comparison=comparison,
        changed=flags.has('CH'),
        increment=flags.has('INCR'),
    )


def _limit(scan) -> Optional[RangeLimit]:
    values = scan.options.get('LIMIT')
    if not values or values is True:
        return None
    offset, count = values
    return RangeLimit(translate_count(offset), translate_count(count))


def translate_zrange(
    start: Any,
    stop: Any,
    args: Sequence[Any],
    keywords: Optional[Mapping[str, Any]] = None,
) -> ZRangeParams:
    """
    ZRANGE key start stop [BYSCORE|BYLEX] [REV] [LIMIT offset count] [WITHSCORES]

    Tokens may appear anywhere in the trailing run. With REV and BYSCORE/BYLEX
    ``start`` is the upper boundary, as on the server.
    """
    scan = scan_options(flatten_arguments(args), ZRANGE_OPTIONS, keywords)
    reverse = scan.has('REV')
    with_scores = scan.has('WITHSCORES')
    limit = _limit(scan)

    if scan.has('BYSCORE'):
        return ZRangeParams(parse_score_bound(start), parse_score_bound(stop),
                            RangeKind.SCORE, reverse, limit, with_scores)
    if scan.has('BYLEX'):
        return ZRangeParams(parse_lex_bound(start), parse_lex_bound(stop),
                            RangeKind.LEX, reverse, limit, with_scores)
    # Index ranges with LIMIT go to the server raw
    return ZRangeParams(translate_numeric(start, integer=True), translate_numeric(stop, integer=True),
                        RangeKind.INDEX, reverse, limit, with_scores)


def translate_zrevrange(start: Any, stop: Any, args: Sequence[Any]) -> ZRangeParams:
    """ZREVRANGE key start stop [WITHSCORES]"""
    params = translate_zrange(start, stop, args)
    return ZRangeParams(params.start, params.stop, RangeKind.INDEX, True, params.limit, params.with_scores)


def translate_range_by_score(
    low: Any,
    high: Any,
    args: Sequence[Any],
    reverse: bool = False,
    keywords: Optional[Mapping[str, Any]] = None,
) -> ZRangeParams:
    """
    ZRANGEBYSCORE key min max / ZREVRANGEBYSCORE key max min

    ``low`` and ``high`` are given in the command's own argument order; for the
    reverse form the first boundary is the maximum.
    """
    scan = scan_options(flatten_arguments(args), ZRANGEBYSCORE_OPTIONS, keywords)
    return ZRangeParams(
        parse_score_bound(low),
        parse_score_bound(high),
        RangeKind.SCORE,
        reverse,
        _limit(scan),
        scan.has('WITHSCORES'),
    )


def translate_blocking_pop(args: Sequence[Any], prefix: Encodable = "") -> BlockingPopParams:
    """
    BLPOP/BRPOP/BZPOPMIN/BZPOPMAX: keys (variadic or list) then timeout.

    A missing timeout means "block forever" (0).
    """
    flat = flatten_arguments(args)
    if len(flat) < 2:
        keys = flat
        timeout: Union[float, str] = 0
    else:
        keys, timeout = flat[:-1], translate_numeric(flat[-1])
    return BlockingPopParams(
        keys=tuple(normalize_key(key, prefix) for key in keys),
        timeout=timeout,
    )


# ---------------------------------------------------------------------------
# Keys / scanning
# ---------------------------------------------------------------------------

def translate_scan(
    cursor: Any,
    args: Sequence[Any],
    keywords: Optional[Mapping[str, Any]] = None,
) -> ScanParams:
    """SCAN-family cursor options: MATCH pattern, COUNT n, TYPE t"""
    scan = scan_options(flatten_arguments(args), SCAN_OPTIONS, keywords)
    scan_type = scan.value('TYPE')
    return ScanParams(
        cursor=normalize_value(cursor if cursor is not None else '0'),
        match=normalize_value(scan.value('MATCH')) if scan.has('MATCH') else None,
        count=translate_count(scan.value('COUNT')),
        type=str(normalize_value(scan_type)).lower() if scan_type is not None else None,
    )


def translate_expire(amount: Any, args: Sequence[Any]) -> ExpireParams:
    """EXPIRE key seconds [NX|XX|GT|LT]"""
    scan = scan_options(flatten_arguments(args), EXPIRE_OPTIONS)
    condition = next((token for token in ('NX', 'XX', 'GT', 'LT') if scan.has(token)), None)
    return ExpireParams(amount=translate_numeric(amount, integer=True), condition=condition)
