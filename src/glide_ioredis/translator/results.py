"""
Result Translator

Maps GLIDE return values back onto the legacy reply conventions:
flat lists for WITHSCORES, ``None`` (never ``[]``) for timed-out blocking pops,
``1``/``0`` for booleans, text for scores, and str instead of bytes unless a
``*_buffer`` variant asked for raw payloads.

Also normalizes anything raised by the backend (or by user code in a pipeline)
into an exception instance.
"""

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Union

from ..errors import ReplyError

logger = logging.getLogger(__name__)

_MAX_INTEGRAL_TEXT = 1e21


def format_float(value: Any) -> str:
    """
    Format a score or float reply the way the server prints it.

    Rounds to 15 decimal places to drop binary artifacts
    (``1.0000000000000002`` -> ``"1"``, ``0.1 + 0.2`` -> ``"0.3"``) and prints
    the shortest text that reads back as the rounded value.
    """
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode('ascii', 'replace')
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return value
    if isinstance(value, bool):
        return '1' if value else '0'
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return 'nan'
    if math.isinf(value):
        return 'inf' if value > 0 else '-inf'

    rounded = round(value, 15)
    if rounded.is_integer() and abs(rounded) < _MAX_INTEGRAL_TEXT:
        return str(int(rounded))
    return repr(rounded)


def to_text(value: Any, binary: bool = False) -> Any:
    """bytes -> str (UTF-8, invalid sequences replaced) unless ``binary``"""
    if binary:
        if isinstance(value, str):
            return value.encode()
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode('utf-8', errors='replace')
    return value


def to_text_list(values: Optional[Any], binary: bool = False) -> Optional[List[Any]]:
    """Lists and sets of replies; ``None`` stays ``None``"""
    if values is None:
        return None
    return [to_text(item, binary) for item in values]


def to_int(value: Any) -> Any:
    """Boolean replies become 1/0, everything else is passed through"""
    if isinstance(value, bool):
        return int(value)
    return value


def decode_reply(reply: Any, binary: bool = False) -> Any:
    """Untyped replies: bytes -> str, recursively through lists, sets and dicts"""
    if isinstance(reply, (list, set)):
        return [decode_reply(item, binary) for item in reply]
    if isinstance(reply, dict):
        return {decode_reply(k, binary): decode_reply(v, binary) for k, v in reply.items()}
    if isinstance(reply, bool):
        return int(reply)
    return to_text(reply, binary)


def to_ok(value: Any) -> Any:
    """``OK`` status replies always come back as the str ``"OK"``"""
    if value in (b'OK', 'OK'):
        return 'OK'
    return to_text(value)


def flatten_scored(
    pairs: Union[Mapping, List, None],
    with_scores: bool = True,
    binary: bool = False,
) -> List[Any]:
    """
    Flatten an ordered member->score mapping or a list of (member, score)
    pairs into ``[m1, s1, m2, s2]``, or ``[m1, m2]`` without scores.
    """
    if not pairs:
        return []
    items = pairs.items() if isinstance(pairs, Mapping) else pairs
    flat: List[Any] = []
    for member, score in items:
        flat.append(to_text(member, binary))
        if with_scores:
            flat.append(format_float(score))
    return flat


def format_blocking_pop(reply: Optional[List[Any]], binary: bool = False) -> Optional[List[Any]]:
    """
    ``[key, value]`` or ``[key, member, score]``; a timeout is ``None``.
    """
    if not reply:
        return None
    key, *rest = reply
    formatted = [to_text(key, binary)]
    if len(rest) == 2:
        formatted.append(to_text(rest[0], binary))
        formatted.append(format_float(rest[1]))
    else:
        formatted.extend(to_text(item, binary) for item in rest)
    return formatted


def format_hash(reply: Optional[Mapping], binary: bool = False) -> Dict[Any, Any]:
    """HGETALL: a missing key is an empty dict"""
    if not reply:
        return {}
    return {to_text(field_name, binary): to_text(value, binary) for field_name, value in reply.items()}


def format_scan(reply: Optional[List[Any]]) -> List[Any]:
    """``[cursor, [items]]``; HSCAN and ZSCAN items are flat field/value runs"""
    if not reply:
        return ['0', []]
    cursor, items = reply[0], reply[1]
    return [to_text(cursor), [to_text(item) for item in items or []]]


def format_zscan(reply: Optional[List[Any]]) -> List[Any]:
    """ZSCAN: every second item is a score"""
    cursor, items = format_scan(reply)
    formatted = [
        format_float(item) if index % 2 else item
        for index, item in enumerate(items)
    ]
    return [cursor, formatted]


def format_optional_float(value: Any) -> Optional[str]:
    """ZSCORE / INCRBYFLOAT style replies: text, ``None`` stays ``None``"""
    if value is None:
        return None
    return format_float(value)


def format_pop_scored(reply: Optional[Mapping]) -> List[Any]:
    """ZPOPMIN / ZPOPMAX: ``[member, score, ...]``"""
    return flatten_scored(reply or {}, with_scores=True)


def format_info(reply: Any) -> Any:
    return to_text(reply)


def format_time(reply: Optional[List[Any]]) -> List[Any]:
    return [to_text(part) for part in reply or []]


def _message_of(value: Any) -> Optional[Any]:
    if isinstance(value, Mapping):
        return value.get('message')
    return getattr(value, 'message', None)


def translate_error(value: Any) -> BaseException:
    """
    Turn anything raised into an exception instance.

    Exception instances are returned as-is so their type is preserved.
    Mappings and objects with a ``message`` become ``ReplyError(message)``,
    other values become ``ReplyError(str(value))``; the raw value is kept in
    ``.original``.
    """
    if isinstance(value, BaseException):
        return value
    if value is None:
        return ReplyError()

    message = _message_of(value)
    if message is None:
        message = to_text(value) if isinstance(value, (str, bytes, bytearray)) else str(value)
    else:
        message = to_text(message)
        if not isinstance(message, str):
            message = str(message)

    error = ReplyError(message, original=value)
    logger.debug("Synthesized ReplyError from %s", type(value).__name__)
    return error
