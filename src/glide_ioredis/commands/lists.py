"""List commands"""

from typing import Any, List, Optional, Sequence, Union

from ..translator import glide_options
from ..translator.models import CommandFamily
from ..translator.parameters import (
    normalize_value,
    translate_blocking_pop,
    translate_count,
    translate_list_elements,
    translate_numeric,
)
from ..translator.results import format_blocking_pop, to_ok, to_text, to_text_list

LIST = CommandFamily.LIST


def _index(value: Any) -> Union[int, str]:
    return translate_numeric(value, integer=True)


class ListCommands:

    async def lpush(self, key: Any, *elements: Any) -> int:
        return await self._run('lpush', LIST,
                               lambda c: c.lpush(self._key(key), translate_list_elements(elements)))

    async def rpush(self, key: Any, *elements: Any) -> int:
        return await self._run('rpush', LIST,
                               lambda c: c.rpush(self._key(key), translate_list_elements(elements)))

    async def lpop(self, key: Any, count: Any = None) -> Union[str, List[str], None]:
        """Without ``count`` a single element (or None), with it a list (or None)"""
        count = translate_count(count)
        if count is None:
            return await self._run('lpop', LIST, lambda c: c.lpop(self._key(key)), to_text)
        return await self._run('lpop', LIST, lambda c: c.lpop_count(self._key(key), count), to_text_list)

    async def rpop(self, key: Any, count: Any = None) -> Union[str, List[str], None]:
        count = translate_count(count)
        if count is None:
            return await self._run('rpop', LIST, lambda c: c.rpop(self._key(key)), to_text)
        return await self._run('rpop', LIST, lambda c: c.rpop_count(self._key(key), count), to_text_list)

    async def llen(self, key: Any) -> int:
        return await self._run('llen', LIST, lambda c: c.llen(self._key(key)))

    async def lrange(self, key: Any, start: Any, stop: Any) -> List[str]:
        return await self._run('lrange', LIST,
                               lambda c: c.lrange(self._key(key), _index(start), _index(stop)),
                               to_text_list)

    async def lrange_buffer(self, key: Any, start: Any, stop: Any) -> List[bytes]:
        return await self._run('lrange', LIST,
                               lambda c: c.lrange(self._key(key), _index(start), _index(stop)),
                               lambda r: to_text_list(r, binary=True))

    async def ltrim(self, key: Any, start: Any, stop: Any) -> str:
        return await self._run('ltrim', LIST,
                               lambda c: c.ltrim(self._key(key), _index(start), _index(stop)),
                               to_ok)

    async def lindex(self, key: Any, index: Any) -> Optional[str]:
        return await self._run('lindex', LIST, lambda c: c.lindex(self._key(key), _index(index)), to_text)

    async def lset(self, key: Any, index: Any, element: Any) -> str:
        return await self._run('lset', LIST,
                               lambda c: c.lset(self._key(key), _index(index), normalize_value(element)),
                               to_ok)

    async def lrem(self, key: Any, count: Any, element: Any) -> int:
        return await self._run('lrem', LIST,
                               lambda c: c.lrem(self._key(key), _index(count), normalize_value(element)))

    async def linsert(self, key: Any, where: Any, pivot: Any, element: Any) -> int:
        """LINSERT key BEFORE|AFTER pivot element"""
        position = glide_options.insert_position(where)
        if position is None:
            return await self._raw('linsert', LIST, [
                'LINSERT', self._key(key), normalize_value(where),
                normalize_value(pivot), normalize_value(element),
            ])
        return await self._run('linsert', LIST,
                               lambda c: c.linsert(self._key(key), position,
                                                   normalize_value(pivot), normalize_value(element)))

    async def blpop(self, *args: Any) -> Optional[List[str]]:
        """``blpop("a", "b", 0)`` or ``blpop(["a", "b"], 0)``; timeout -> None"""
        return await self._blocking_pop('blpop', args)

    async def brpop(self, *args: Any) -> Optional[List[str]]:
        return await self._blocking_pop('brpop', args)

    async def _blocking_pop(self, name: str, args: Sequence[Any]) -> Optional[List[str]]:
        params = translate_blocking_pop(args, self.key_prefix)
        if not isinstance(params.timeout, (int, float)):
            return await self._raw(name, LIST,
                                   [name.upper(), *params.keys, normalize_value(params.timeout)],
                                   format_blocking_pop)
        return await self._run(
            name, LIST,
            lambda c: getattr(c, name)(list(params.keys), float(params.timeout)),
            format_blocking_pop,
        )
