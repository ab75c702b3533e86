"""Generic key commands"""

from typing import Any, List, Optional

from ..translator import glide_options
from ..translator.models import CommandFamily, Encodable, ExpireParams
from ..translator.parameters import translate_expire, translate_scan
from ..translator.results import format_scan, to_int, to_ok, to_text, to_text_list

KEY = CommandFamily.KEY


def _expire_argv(command: str, key: Encodable, params: ExpireParams) -> List[Encodable]:
    argv = [command, key, str(params.amount)]
    if params.condition is not None:
        argv.append(params.condition)
    return argv


class KeyCommands:

    async def delete(self, *keys: Any) -> int:
        """DEL; ``del`` is a keyword in Python"""
        return await self._run('del', KEY, lambda c: c.delete(self._keys(keys)))

    async def unlink(self, *keys: Any) -> int:
        return await self._run('unlink', KEY, lambda c: c.unlink(self._keys(keys)))

    async def exists(self, *keys: Any) -> int:
        return await self._run('exists', KEY, lambda c: c.exists(self._keys(keys)))

    async def expire(self, key: Any, seconds: Any, *args: Any) -> int:
        params = translate_expire(seconds, args)
        if not isinstance(params.amount, int):
            return await self._raw('expire', KEY, _expire_argv('EXPIRE', self._key(key), params), to_int)
        option = glide_options.expire_option(params.condition)
        return await self._run('expire', KEY,
                               lambda c: c.expire(self._key(key), params.amount, option),
                               to_int)

    async def pexpire(self, key: Any, milliseconds: Any, *args: Any) -> int:
        params = translate_expire(milliseconds, args)
        if not isinstance(params.amount, int):
            return await self._raw('pexpire', KEY, _expire_argv('PEXPIRE', self._key(key), params), to_int)
        option = glide_options.expire_option(params.condition)
        return await self._run('pexpire', KEY,
                               lambda c: c.pexpire(self._key(key), params.amount, option),
                               to_int)

    async def ttl(self, key: Any) -> int:
        return await self._run('ttl', KEY, lambda c: c.ttl(self._key(key)))

    async def pttl(self, key: Any) -> int:
        return await self._run('pttl', KEY, lambda c: c.pttl(self._key(key)))

    async def persist(self, key: Any) -> int:
        return await self._run('persist', KEY, lambda c: c.persist(self._key(key)), to_int)

    async def type(self, key: Any) -> str:
        return await self._run('type', KEY, lambda c: c.type(self._key(key)), to_text)

    async def rename(self, key: Any, new_key: Any) -> str:
        return await self._run('rename', KEY, lambda c: c.rename(self._key(key), self._key(new_key)), to_ok)

    async def keys(self, pattern: Any = '*') -> List[str]:
        """KEYS pattern; the key prefix is applied to the pattern"""
        return await self._raw('keys', KEY, ['KEYS', self._key(pattern)], to_text_list)

    async def scan(self, cursor: Any = 0, *args: Any, **kwargs: Any) -> List[Any]:
        """SCAN cursor [MATCH pattern] [COUNT n] [TYPE t] -> [cursor, [keys]]"""
        params = translate_scan(cursor, args, kwargs)
        match: Optional[Encodable] = self._key(params.match) if params.match is not None else None
        object_type = glide_options.object_type(params.type)
        if params.type is not None and object_type is None:
            argv = ['SCAN', params.cursor]
            if match is not None:
                argv += ['MATCH', match]
            if params.count is not None:
                argv += ['COUNT', str(params.count)]
            return await self._raw('scan', KEY, argv + ['TYPE', params.type], format_scan)
        return await self._run(
            'scan', KEY,
            lambda c: c.scan(params.cursor, match=match, count=params.count, type=object_type),
            format_scan,
        )
