"""
Translation data model

Value types produced by the parameter translator. Every legacy calling
convention of a command family normalizes to exactly one of these values, so
two argument shapes can be compared for semantic equality with ``==``.

GLIDE option objects are deliberately not used here; ``glide_options`` maps
these values onto the driver types at call time.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

Encodable = Union[str, bytes]


class CommandFamily(Enum):
    """Command families sharing one translation strategy"""
    STRING = "string"
    NUMERIC = "numeric"
    KEY = "key"
    HASH = "hash"
    LIST = "list"
    SET = "set"
    SORTED_SET = "sorted_set"
    PUBSUB = "pubsub"
    SERVER = "server"
    SCRIPTING = "scripting"
    TRANSACTION = "transaction"
    GENERIC = "generic"


class ConditionalWrite(Enum):
    """NX / XX write conditions"""
    ONLY_IF_NOT_EXISTS = "NX"
    ONLY_IF_EXISTS = "XX"


class ScoreComparison(Enum):
    """ZADD GT / LT update conditions"""
    GREATER_THAN = "GT"
    LESS_THAN = "LT"


class ExpiryUnit(Enum):
    """SET expiry flavours"""
    SECONDS = "EX"
    MILLISECONDS = "PX"
    UNIX_SECONDS = "EXAT"
    UNIX_MILLISECONDS = "PXAT"
    KEEP_TTL = "KEEPTTL"


class RangeKind(Enum):
    """How ZRANGE interprets its start/stop arguments"""
    INDEX = "index"
    SCORE = "score"
    LEX = "lex"


@dataclass(frozen=True)
class CommandInvocation:
    """
    One legacy command call.

    ``args`` keeps the caller's ordering and shapes untouched; translation
    happens later, per family.
    """
    name: str
    family: CommandFamily
    args: Tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)

    def describe(self) -> Dict[str, Any]:
        """Compact representation for structured log events"""
        return {
            'command': self.name,
            'family': self.family.value,
            'arg_count': len(self.args),
        }


@dataclass(frozen=True)
class Expiry:
    unit: ExpiryUnit
    value: Optional[Union[int, float, str]] = None


@dataclass(frozen=True)
class SetParams:
    """
    Normalized SET options.

    ``fallback_args`` holds the raw option run when it contained something
    the typed call cannot express (unknown tokens, dangling EX).
    """
    expiry: Optional[Expiry] = None
    condition: Optional[ConditionalWrite] = None
    return_old: bool = False
    fallback_args: Optional[Tuple[Any, ...]] = None


@dataclass(frozen=True)
class ScoreBound:
    """
    Sorted-set score boundary.

    ``value`` is a float, or the original text when it could not be parsed
    (the server rejects it later).
    """
    value: Union[float, str]
    inclusive: bool = True

    @property
    def is_infinite(self) -> bool:
        return isinstance(self.value, float) and math.isinf(self.value)

    def __eq__(self, other):
        if not isinstance(other, ScoreBound):
            return NotImplemented
        if self.inclusive != other.inclusive:
            return False
        # nan != nan would break normalization checks
        if isinstance(self.value, float) and isinstance(other.value, float):
            if math.isnan(self.value) and math.isnan(other.value):
                return True
        return self.value == other.value

    def __hash__(self):
        return hash((repr(self.value), self.inclusive))


@dataclass(frozen=True)
class LexBound:
    """Lexicographic boundary: ``[a``, ``(a``, ``-`` or ``+``"""
    value: Encodable = ""
    inclusive: bool = True
    infinite: Optional[str] = None  # "-" or "+"


@dataclass(frozen=True)
class RangeLimit:
    offset: int
    count: int


@dataclass(frozen=True)
class ZRangeParams:
    """Normalized ZRANGE-family query"""
    start: Union[int, ScoreBound, LexBound]
    stop: Union[int, ScoreBound, LexBound]
    kind: RangeKind = RangeKind.INDEX
    reverse: bool = False
    limit: Optional[RangeLimit] = None
    with_scores: bool = False


@dataclass(frozen=True)
class ZAddParams:
    """
    Normalized ZADD request.

    ``members`` keeps insertion order; a member given twice keeps its last
    score, as the server would apply it. ``fallback_args`` is set when the
    argument list cannot be expressed natively (odd score/member run).
    """
    members: Tuple[Tuple[Encodable, Union[float, str]], ...] = ()
    condition: Optional[ConditionalWrite] = None
    comparison: Optional[ScoreComparison] = None
    changed: bool = False
    increment: bool = False
    fallback_args: Optional[Tuple[Any, ...]] = None

    def members_scores(self) -> Dict[Encodable, Union[float, str]]:
        return dict(self.members)


@dataclass(frozen=True)
class HashParams:
    """Field/value mapping for HSET-style commands"""
    fields: Tuple[Tuple[Encodable, Encodable], ...] = ()
    fallback_args: Optional[Tuple[Any, ...]] = None

    def mapping(self) -> Dict[Encodable, Encodable]:
        return dict(self.fields)


@dataclass(frozen=True)
class BlockingPopParams:
    keys: Tuple[Encodable, ...]
    timeout: Union[float, str]


@dataclass(frozen=True)
class ScanParams:
    cursor: Encodable = "0"
    match: Optional[Encodable] = None
    count: Optional[Union[int, str]] = None
    type: Optional[str] = None


@dataclass(frozen=True)
class ExpireParams:
    amount: Union[int, float, str]
    condition: Optional[str] = None  # NX | XX | GT | LT


@dataclass
class OptionScan:
    """
    Result of scanning a trailing option run.

    ``options`` maps an upper-case token to ``True`` (flag) or to the tuple of
    values it consumed; ``positional`` keeps every argument that was not
    recognized, in order.
    """
    options: Dict[str, Any] = field(default_factory=dict)
    positional: List[Any] = field(default_factory=list)

    def has(self, token: str) -> bool:
        return token in self.options

    def value(self, token: str, default: Any = None) -> Any:
        consumed = self.options.get(token)
        if consumed is None or consumed is True:
            return default
        if isinstance(consumed, tuple) and len(consumed) == 1:
            return consumed[0]
        return consumed
