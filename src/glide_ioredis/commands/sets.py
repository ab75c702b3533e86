"""Set commands"""

from typing import Any, List, Union

from ..translator.models import CommandFamily
from ..translator.parameters import normalize_value, translate_count, translate_scan, translate_set_members
from ..translator.results import format_scan, to_int, to_text, to_text_list

SET = CommandFamily.SET


class SetCommands:

    async def sadd(self, key: Any, *members: Any) -> int:
        return await self._run('sadd', SET, lambda c: c.sadd(self._key(key), translate_set_members(members)))

    async def srem(self, key: Any, *members: Any) -> int:
        return await self._run('srem', SET, lambda c: c.srem(self._key(key), translate_set_members(members)))

    async def smembers(self, key: Any) -> List[str]:
        return await self._run('smembers', SET, lambda c: c.smembers(self._key(key)), to_text_list)

    async def smembers_buffer(self, key: Any) -> List[bytes]:
        return await self._run('smembers', SET, lambda c: c.smembers(self._key(key)),
                               lambda r: to_text_list(r, binary=True))

    async def sismember(self, key: Any, member: Any) -> int:
        return await self._run('sismember', SET,
                               lambda c: c.sismember(self._key(key), normalize_value(member)), to_int)

    async def scard(self, key: Any) -> int:
        return await self._run('scard', SET, lambda c: c.scard(self._key(key)))

    async def spop(self, key: Any, count: Any = None) -> Union[str, List[str], None]:
        count = translate_count(count)
        if count is None:
            return await self._run('spop', SET, lambda c: c.spop(self._key(key)), to_text)
        return await self._run('spop', SET, lambda c: c.spop_count(self._key(key), count), to_text_list)

    async def srandmember(self, key: Any, count: Any = None) -> Union[str, List[str], None]:
        count = translate_count(count)
        if count is None:
            return await self._run('srandmember', SET, lambda c: c.srandmember(self._key(key)), to_text)
        return await self._run('srandmember', SET,
                               lambda c: c.srandmember_count(self._key(key), count), to_text_list)

    async def sinter(self, *keys: Any) -> List[str]:
        return await self._run('sinter', SET, lambda c: c.sinter(self._keys(keys)), to_text_list)

    async def sunion(self, *keys: Any) -> List[str]:
        return await self._run('sunion', SET, lambda c: c.sunion(self._keys(keys)), to_text_list)

    async def sdiff(self, *keys: Any) -> List[str]:
        return await self._run('sdiff', SET, lambda c: c.sdiff(self._keys(keys)), to_text_list)

    async def sscan(self, key: Any, cursor: Any = 0, *args: Any, **kwargs: Any) -> List[Any]:
        params = translate_scan(cursor, args, kwargs)
        return await self._run(
            'sscan', SET,
            lambda c: c.sscan(self._key(key), params.cursor, match=params.match, count=params.count),
            format_scan,
        )
