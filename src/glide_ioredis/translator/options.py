"""
Trailing option scanner

Shared by every command family that accepts ioredis-style flag tokens
(``EX 10 NX``, ``LIMIT 0 10 WITHSCORES``, ``MATCH user:* COUNT 100``).

Rules:
- Tokens are recognized case-insensitively, in any order, only if they belong
  to the vocabulary of the family being translated
- A valued token always consumes its values, even when a value looks like a
  token itself (``MATCH NX`` matches the literal pattern "NX")
- A valued token that is missing its values is kept as a literal argument
- Mapping arguments (``{"EX": 10, "NX": True}``) and keyword options are merged
  with the same vocabulary
- Anything unrecognized is kept, in order, as a positional literal
"""

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Mapping, Optional

from .models import OptionScan


@dataclass(frozen=True)
class OptionVocabulary:
    """Fixed token vocabulary of one command family"""
    flags: FrozenSet[str] = frozenset()
    valued: Mapping[str, int] = field(default_factory=dict)
    # tokens that replace each other, last one wins (EX/PX/EXAT/PXAT/KEEPTTL)
    exclusive: Iterable[FrozenSet[str]] = ()

    def __contains__(self, token: str) -> bool:
        return token in self.flags or token in self.valued

    def arity(self, token: str) -> int:
        return self.valued.get(token, 0)


SET_OPTIONS = OptionVocabulary(
    flags=frozenset({'NX', 'XX', 'GET', 'KEEPTTL'}),
    valued={'EX': 1, 'PX': 1, 'EXAT': 1, 'PXAT': 1},
    exclusive=(
        frozenset({'EX', 'PX', 'EXAT', 'PXAT', 'KEEPTTL'}),
        frozenset({'NX', 'XX'}),
    ),
)

ZADD_OPTIONS = OptionVocabulary(
    flags=frozenset({'NX', 'XX', 'GT', 'LT', 'CH', 'INCR'}),
    exclusive=(frozenset({'NX', 'XX'}), frozenset({'GT', 'LT'})),
)

ZRANGE_OPTIONS = OptionVocabulary(
    flags=frozenset({'BYSCORE', 'BYLEX', 'REV', 'WITHSCORES'}),
    valued={'LIMIT': 2},
    exclusive=(frozenset({'BYSCORE', 'BYLEX'}),),
)

ZRANGEBYSCORE_OPTIONS = OptionVocabulary(
    flags=frozenset({'WITHSCORES'}),
    valued={'LIMIT': 2},
)

SCAN_OPTIONS = OptionVocabulary(
    valued={'MATCH': 1, 'COUNT': 1, 'TYPE': 1},
)

EXPIRE_OPTIONS = OptionVocabulary(
    flags=frozenset({'NX', 'XX', 'GT', 'LT'}),
    exclusive=(frozenset({'NX', 'XX', 'GT', 'LT'}),),
)


def token_of(arg: Any) -> Optional[str]:
    """Upper-case token text of ``arg``, or None if it cannot be a token"""
    if isinstance(arg, str):
        return arg.upper()
    if isinstance(arg, (bytes, bytearray)):
        try:
            return bytes(arg).decode('ascii').upper()
        except UnicodeDecodeError:
            return None
    return None


def _record(scan: OptionScan, vocabulary: OptionVocabulary, token: str, value: Any) -> None:
    for group in vocabulary.exclusive:
        if token in group:
            for other in group:
                scan.options.pop(other, None)
    scan.options[token] = value


def _merge_mapping(scan: OptionScan, vocabulary: OptionVocabulary, mapping: Mapping) -> bool:
    """Merge a mapping of options; False if no key belongs to the vocabulary"""
    recognized = False
    for raw_key, raw_value in mapping.items():
        token = token_of(raw_key)
        if token is None or token not in vocabulary:
            continue
        recognized = True
        arity = vocabulary.arity(token)
        if arity == 0:
            # {"NX": False} means "not requested"
            if raw_value is None or raw_value is False:
                continue
            _record(scan, vocabulary, token, True)
        else:
            if raw_value is None or raw_value is False:
                continue
            if arity > 1 and isinstance(raw_value, (list, tuple)):
                _record(scan, vocabulary, token, tuple(raw_value))
            else:
                _record(scan, vocabulary, token, (raw_value,))
    return recognized


def scan_options(
    args: Iterable[Any],
    vocabulary: OptionVocabulary,
    keywords: Optional[Mapping[str, Any]] = None,
) -> OptionScan:
    """
    Split an argument run into recognized options and positional literals.

    Args:
        args: Trailing arguments after the fixed positional ones
        vocabulary: Token vocabulary of the command family
        keywords: Keyword options (``nx=True``, ``ex=10``, ``limit=(0, 5)``)

    Returns:
        OptionScan with ``options`` and ``positional``
    """
    scan = OptionScan()
    items = list(args)
    i = 0
    while i < len(items):
        arg = items[i]

        if isinstance(arg, Mapping):
            if not _merge_mapping(scan, vocabulary, arg) and arg:
                scan.positional.append(arg)
            i += 1
            continue

        token = token_of(arg)
        if token is None or token not in vocabulary:
            scan.positional.append(arg)
            i += 1
            continue

        arity = vocabulary.arity(token)
        if arity == 0:
            _record(scan, vocabulary, token, True)
            i += 1
            continue

        if i + arity >= len(items):
            # Not enough values left, so this is a literal, not an option
            scan.positional.append(arg)
            i += 1
            continue

        _record(scan, vocabulary, token, tuple(items[i + 1:i + 1 + arity]))
        i += 1 + arity

    if keywords:
        _merge_mapping(scan, vocabulary, {key.upper(): value for key, value in keywords.items()})

    return scan


def scan_leading_flags(args: Iterable[Any], vocabulary: OptionVocabulary) -> OptionScan:
    """
    Consume flag tokens only from the head of ``args``.

    Used where options precede data (``ZADD key NX CH 1 a``): once the first
    non-token argument is seen, everything after it is data, so a member
    literally named "NX" is never mistaken for a flag.
    """
    scan = OptionScan()
    items = list(args)
    i = 0
    while i < len(items):
        token = token_of(items[i])
        if token is None or token not in vocabulary or vocabulary.arity(token):
            break
        _record(scan, vocabulary, token, True)
        i += 1
    scan.positional.extend(items[i:])
    return scan
