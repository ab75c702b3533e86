"""Hash commands"""

from typing import Any, Dict, List, Mapping, Optional

from ..translator.models import CommandFamily
from ..translator.parameters import (
    normalize_value,
    translate_field_list,
    translate_hash_fields,
    translate_numeric,
    translate_scan,
)
from ..translator.results import format_float, format_hash, format_scan, to_int, to_text, to_text_list

HASH = CommandFamily.HASH


class HashCommands:

    async def hset(self, key: Any, *args: Any, mapping: Optional[Mapping] = None) -> int:
        """
        HSET key field value [field value ...]

        Also accepts ``{field: value}``, ``[(field, value), ...]``,
        ``[field, value, ...]`` and ``mapping=``. Returns the number of new fields.
        """
        params = translate_hash_fields(args, mapping)
        if params.fallback_args is not None:
            return await self._raw('hset', HASH, ['HSET', self._key(key), *params.fallback_args])
        return await self._run('hset', HASH, lambda c: c.hset(self._key(key), params.mapping()))

    async def hmset(self, key: Any, *args: Any, mapping: Optional[Mapping] = None) -> str:
        """Same arguments as ``hset``; replies "OK" """
        params = translate_hash_fields(args, mapping)
        if params.fallback_args is not None:
            return await self._raw('hmset', HASH, ['HMSET', self._key(key), *params.fallback_args])
        return await self._run('hmset', HASH, lambda c: c.hset(self._key(key), params.mapping()),
                               lambda _: 'OK')

    async def hget(self, key: Any, field: Any) -> Optional[str]:
        return await self._run('hget', HASH, lambda c: c.hget(self._key(key), normalize_value(field)), to_text)

    async def hget_buffer(self, key: Any, field: Any) -> Optional[bytes]:
        return await self._run('hget', HASH, lambda c: c.hget(self._key(key), normalize_value(field)),
                               lambda r: to_text(r, binary=True))

    async def hgetall(self, key: Any) -> Dict[str, str]:
        return await self._run('hgetall', HASH, lambda c: c.hgetall(self._key(key)), format_hash)

    async def hgetall_buffer(self, key: Any) -> Dict[bytes, bytes]:
        return await self._run('hgetall', HASH, lambda c: c.hgetall(self._key(key)),
                               lambda r: format_hash(r, binary=True))

    async def hmget(self, key: Any, *fields: Any) -> List[Optional[str]]:
        return await self._run('hmget', HASH,
                               lambda c: c.hmget(self._key(key), translate_field_list(fields)),
                               to_text_list)

    async def hdel(self, key: Any, *fields: Any) -> int:
        return await self._run('hdel', HASH, lambda c: c.hdel(self._key(key), translate_field_list(fields)))

    async def hexists(self, key: Any, field: Any) -> int:
        return await self._run('hexists', HASH,
                               lambda c: c.hexists(self._key(key), normalize_value(field)), to_int)

    async def hkeys(self, key: Any) -> List[str]:
        return await self._run('hkeys', HASH, lambda c: c.hkeys(self._key(key)), to_text_list)

    async def hvals(self, key: Any) -> List[str]:
        return await self._run('hvals', HASH, lambda c: c.hvals(self._key(key)), to_text_list)

    async def hlen(self, key: Any) -> int:
        return await self._run('hlen', HASH, lambda c: c.hlen(self._key(key)))

    async def hincrby(self, key: Any, field: Any, increment: Any) -> int:
        amount = translate_numeric(increment, integer=True)
        if not isinstance(amount, int):
            return await self._raw('hincrby', HASH,
                                   ['HINCRBY', self._key(key), normalize_value(field), normalize_value(amount)])
        return await self._run('hincrby', HASH,
                               lambda c: c.hincrby(self._key(key), normalize_value(field), amount))

    async def hincrbyfloat(self, key: Any, field: Any, increment: Any) -> str:
        amount = translate_numeric(increment)
        if not isinstance(amount, (int, float)):
            return await self._raw('hincrbyfloat', HASH,
                                   ['HINCRBYFLOAT', self._key(key), normalize_value(field), normalize_value(amount)],
                                   to_text)
        return await self._run('hincrbyfloat', HASH,
                               lambda c: c.hincrbyfloat(self._key(key), normalize_value(field), float(amount)),
                               format_float)

    async def hsetnx(self, key: Any, field: Any, value: Any) -> int:
        return await self._run('hsetnx', HASH,
                               lambda c: c.hsetnx(self._key(key), normalize_value(field), normalize_value(value)),
                               to_int)

    async def hscan(self, key: Any, cursor: Any = 0, *args: Any, **kwargs: Any) -> List[Any]:
        """HSCAN key cursor [MATCH pattern] [COUNT n] -> [cursor, [field, value, ...]]"""
        params = translate_scan(cursor, args, kwargs)
        return await self._run(
            'hscan', HASH,
            lambda c: c.hscan(self._key(key), params.cursor, match=params.match, count=params.count),
            format_scan,
        )
