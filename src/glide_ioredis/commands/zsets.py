"""Sorted set commands"""

from typing import Any, List, Optional, Sequence, Union

from ..translator import glide_options
from ..translator.models import CommandFamily, ConditionalWrite, Encodable, RangeKind, ZAddParams, ZRangeParams
from ..translator.parameters import (
    normalize_value,
    parse_score,
    parse_score_bound,
    translate_blocking_pop,
    translate_count,
    translate_list_elements,
    translate_numeric,
    translate_range_by_score,
    translate_scan,
    translate_zadd,
    translate_zrange,
    translate_zrevrange,
)
from ..translator.results import (
    flatten_scored,
    format_blocking_pop,
    format_optional_float,
    format_pop_scored,
    format_zscan,
    to_text_list,
)

ZSET = CommandFamily.SORTED_SET


def _score_list(reply: Optional[List[Any]]) -> List[Optional[str]]:
    return [format_optional_float(score) for score in reply or []]


def _lex_text(bound) -> Encodable:
    if bound.infinite:
        return bound.infinite
    prefix = '[' if bound.inclusive else '('
    return prefix + bound.value if isinstance(bound.value, str) else prefix.encode() + bound.value


def _needs_raw(params: ZRangeParams) -> bool:
    """Queries GLIDE cannot type: lex WITHSCORES, index LIMIT, unparsed indexes"""
    if params.kind is RangeKind.LEX:
        return params.with_scores
    if params.kind is RangeKind.INDEX:
        return params.limit is not None or not (isinstance(params.start, int) and isinstance(params.stop, int))
    return False


def _zrange_argv(key: Encodable, params: ZRangeParams) -> List[Encodable]:
    if params.kind is RangeKind.LEX:
        argv = ['ZRANGE', key, _lex_text(params.start), _lex_text(params.stop), 'BYLEX']
    else:
        argv = ['ZRANGE', key, normalize_value(params.start), normalize_value(params.stop)]
    if params.reverse:
        argv.append('REV')
    if params.limit is not None:
        argv += ['LIMIT', normalize_value(params.limit.offset), normalize_value(params.limit.count)]
    if params.with_scores:
        argv.append('WITHSCORES')
    return argv


class SortedSetCommands:

    async def zadd(self, key: Any, *args: Any, **kwargs: Any) -> Union[int, str, None]:
        """
        ZADD key [NX|XX] [GT|LT] [CH] [INCR] score member [score member ...]

        Pairs may also be given as a flat list, a list of (score, member)
        pairs, or a ``{member: score}`` mapping; flags as leading tokens, a
        mapping or keywords. With INCR the reply is the new score as text.
        """
        params = translate_zadd(args, kwargs)
        key = self._key(key)
        incompatible = params.condition is ConditionalWrite.ONLY_IF_NOT_EXISTS and params.comparison
        if params.fallback_args is not None or incompatible or (params.increment and len(params.members) != 1):
            argv = params.fallback_args
            if argv is None:
                argv = self._zadd_tokens(params)
            return await self._raw('zadd', ZSET, ['ZADD', key, *argv],
                                   format_optional_float if params.increment else None)

        existing = glide_options.conditional_change(params.condition)
        update = glide_options.update_options(params.comparison)
        if params.increment:
            member, score = params.members[0]
            return await self._run(
                'zadd', ZSET,
                lambda c: c.zadd_incr(key, member, score, existing_options=existing, update_condition=update),
                format_optional_float,
            )
        return await self._run(
            'zadd', ZSET,
            lambda c: c.zadd(key, params.members_scores(), existing_options=existing,
                             update_condition=update, changed=params.changed),
        )

    @staticmethod
    def _zadd_tokens(params: ZAddParams) -> List[Encodable]:
        tokens: List[Encodable] = []
        if params.condition is not None:
            tokens.append(params.condition.value)
        if params.comparison is not None:
            tokens.append(params.comparison.value)
        if params.changed:
            tokens.append('CH')
        if params.increment:
            tokens.append('INCR')
        for member, score in params.members:
            tokens += [normalize_value(score), member]
        return tokens

    async def zrem(self, key: Any, *members: Any) -> int:
        return await self._run('zrem', ZSET, lambda c: c.zrem(self._key(key), translate_list_elements(members)))

    async def zcard(self, key: Any) -> int:
        return await self._run('zcard', ZSET, lambda c: c.zcard(self._key(key)))

    async def zscore(self, key: Any, member: Any) -> Optional[str]:
        return await self._run('zscore', ZSET, lambda c: c.zscore(self._key(key), normalize_value(member)),
                               format_optional_float)

    async def zmscore(self, key: Any, *members: Any) -> List[Optional[str]]:
        return await self._run('zmscore', ZSET,
                               lambda c: c.zmscore(self._key(key), translate_list_elements(members)),
                               _score_list)

    async def zincrby(self, key: Any, increment: Any, member: Any) -> Optional[str]:
        amount = parse_score(increment)
        if isinstance(amount, str):
            return await self._raw('zincrby', ZSET,
                                   ['ZINCRBY', self._key(key), amount, normalize_value(member)],
                                   format_optional_float)
        return await self._run('zincrby', ZSET,
                               lambda c: c.zincrby(self._key(key), amount, normalize_value(member)),
                               format_optional_float)

    async def zrank(self, key: Any, member: Any) -> Optional[int]:
        return await self._run('zrank', ZSET, lambda c: c.zrank(self._key(key), normalize_value(member)))

    async def zrevrank(self, key: Any, member: Any) -> Optional[int]:
        return await self._run('zrevrank', ZSET, lambda c: c.zrevrank(self._key(key), normalize_value(member)))

    async def zcount(self, key: Any, low: Any, high: Any) -> int:
        return await self._run(
            'zcount', ZSET,
            lambda c: c.zcount(self._key(key),
                               glide_options.score_boundary(parse_score_bound(low)),
                               glide_options.score_boundary(parse_score_bound(high))),
        )

    async def zrange(self, key: Any, start: Any, stop: Any, *args: Any, **kwargs: Any) -> List[str]:
        """ZRANGE key start stop [BYSCORE|BYLEX] [REV] [LIMIT offset count] [WITHSCORES]"""
        return await self._zrange('zrange', key, translate_zrange(start, stop, args, kwargs))

    async def zrange_buffer(self, key: Any, start: Any, stop: Any, *args: Any, **kwargs: Any) -> List[bytes]:
        return await self._zrange('zrange', key, translate_zrange(start, stop, args, kwargs), binary=True)

    async def zrevrange(self, key: Any, start: Any, stop: Any, *args: Any) -> List[str]:
        return await self._zrange('zrevrange', key, translate_zrevrange(start, stop, args))

    async def zrangebyscore(self, key: Any, low: Any, high: Any, *args: Any, **kwargs: Any) -> List[str]:
        """ZRANGEBYSCORE key min max [WITHSCORES] [LIMIT offset count]"""
        return await self._zrange('zrangebyscore', key, translate_range_by_score(low, high, args, keywords=kwargs))

    async def zrevrangebyscore(self, key: Any, high: Any, low: Any, *args: Any, **kwargs: Any) -> List[str]:
        """ZREVRANGEBYSCORE key max min [WITHSCORES] [LIMIT offset count]"""
        return await self._zrange('zrevrangebyscore', key,
                                  translate_range_by_score(high, low, args, reverse=True, keywords=kwargs))

    async def _zrange(self, name: str, key: Any, params: ZRangeParams, binary: bool = False) -> List[Any]:
        key = self._key(key)
        if _needs_raw(params):
            return await self._raw(name, ZSET, _zrange_argv(key, params),
                                   lambda r: to_text_list(r, binary=binary))

        query = glide_options.range_query(params)
        if params.with_scores:
            return await self._run(
                name, ZSET,
                lambda c: c.zrange_withscores(key, query, reverse=params.reverse),
                lambda r: flatten_scored(r, with_scores=True, binary=binary),
            )
        return await self._run(
            name, ZSET,
            lambda c: c.zrange(key, query, reverse=params.reverse),
            lambda r: to_text_list(r, binary=binary),
        )

    async def zremrangebyscore(self, key: Any, low: Any, high: Any) -> int:
        return await self._run(
            'zremrangebyscore', ZSET,
            lambda c: c.zremrangebyscore(self._key(key),
                                         glide_options.score_boundary(parse_score_bound(low)),
                                         glide_options.score_boundary(parse_score_bound(high))),
        )

    async def zremrangebyrank(self, key: Any, start: Any, stop: Any) -> int:
        return await self._run(
            'zremrangebyrank', ZSET,
            lambda c: c.zremrangebyrank(self._key(key), translate_numeric(start, integer=True),
                                        translate_numeric(stop, integer=True)),
        )

    async def zpopmin(self, key: Any, count: Any = None) -> List[str]:
        """-> [member, score, ...]"""
        count = translate_count(count)
        return await self._run('zpopmin', ZSET, lambda c: c.zpopmin(self._key(key), count), format_pop_scored)

    async def zpopmax(self, key: Any, count: Any = None) -> List[str]:
        count = translate_count(count)
        return await self._run('zpopmax', ZSET, lambda c: c.zpopmax(self._key(key), count), format_pop_scored)

    async def bzpopmin(self, *args: Any) -> Optional[List[str]]:
        """-> [key, member, score] or None on timeout"""
        return await self._blocking_zpop('bzpopmin', args)

    async def bzpopmax(self, *args: Any) -> Optional[List[str]]:
        return await self._blocking_zpop('bzpopmax', args)

    async def _blocking_zpop(self, name: str, args: Sequence[Any]) -> Optional[List[str]]:
        params = translate_blocking_pop(args, self.key_prefix)
        if not isinstance(params.timeout, (int, float)):
            return await self._raw(name, ZSET,
                                   [name.upper(), *params.keys, normalize_value(params.timeout)],
                                   format_blocking_pop)
        return await self._run(
            name, ZSET,
            lambda c: getattr(c, name)(list(params.keys), float(params.timeout)),
            format_blocking_pop,
        )

    async def zscan(self, key: Any, cursor: Any = 0, *args: Any, **kwargs: Any) -> List[Any]:
        """-> [cursor, [member, score, ...]]"""
        params = translate_scan(cursor, args, kwargs)
        return await self._run(
            'zscan', ZSET,
            lambda c: c.zscan(self._key(key), params.cursor, match=params.match, count=params.count),
            format_zscan,
        )
