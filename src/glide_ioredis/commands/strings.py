"""String and numeric commands"""

from typing import Any, List, Optional

from glide import ConditionalChange

from ..translator import glide_options
from ..translator.models import CommandFamily, Expiry, ExpiryUnit
from ..translator.parameters import (
    is_typed_expiry,
    normalize_value,
    translate_mset,
    translate_numeric,
    translate_set,
)
from ..translator.results import format_float, to_int, to_ok, to_text, to_text_list

STRING = CommandFamily.STRING
NUMERIC = CommandFamily.NUMERIC


class StringCommands:

    async def get(self, key: Any) -> Optional[str]:
        return await self._run('get', STRING, lambda c: c.get(self._key(key)), to_text)

    async def get_buffer(self, key: Any) -> Optional[bytes]:
        return await self._run('get', STRING, lambda c: c.get(self._key(key)),
                               lambda r: to_text(r, binary=True))

    async def set(self, key: Any, value: Any, *args: Any, **kwargs: Any) -> Optional[str]:
        """
        SET key value [EX s|PX ms|EXAT|PXAT|KEEPTTL] [NX|XX] [GET]

        Returns "OK", None when an NX/XX condition was not met, or the old
        value with GET.
        """
        params = translate_set(args, kwargs)
        key, value = self._key(key), normalize_value(value)
        if params.fallback_args is not None:
            return await self._raw('set', STRING, ['SET', key, value, *params.fallback_args],
                                   to_ok)

        transform = to_text if params.return_old else to_ok
        return await self._run(
            'set', STRING,
            lambda c: c.set(
                key, value,
                conditional_set=glide_options.conditional_change(params.condition),
                expiry=glide_options.expiry_set(params.expiry),
                return_old_value=params.return_old,
            ),
            transform,
        )

    async def setex(self, key: Any, seconds: Any, value: Any) -> str:
        return await self._set_expiring('setex', key, Expiry(ExpiryUnit.SECONDS,
                                                             translate_numeric(seconds, integer=True)), value)

    async def psetex(self, key: Any, milliseconds: Any, value: Any) -> str:
        return await self._set_expiring('psetex', key, Expiry(ExpiryUnit.MILLISECONDS,
                                                              translate_numeric(milliseconds, integer=True)), value)

    async def _set_expiring(self, name: str, key: Any, expiry: Expiry, value: Any) -> str:
        key, value = self._key(key), normalize_value(value)
        if not is_typed_expiry(expiry):
            return await self._raw(name, STRING, [name.upper(), key, normalize_value(expiry.value), value],
                                   to_ok)
        return await self._run(name, STRING,
                               lambda c: c.set(key, value, expiry=glide_options.expiry_set(expiry)),
                               to_ok)

    async def setnx(self, key: Any, value: Any) -> int:
        return await self._run(
            'setnx', STRING,
            lambda c: c.set(self._key(key), normalize_value(value),
                            conditional_set=ConditionalChange.ONLY_IF_DOES_NOT_EXIST),
            lambda r: 0 if r is None else 1,
        )

    async def getset(self, key: Any, value: Any) -> Optional[str]:
        return await self._run('getset', STRING,
                               lambda c: c.set(self._key(key), normalize_value(value), return_old_value=True),
                               to_text)

    async def getdel(self, key: Any) -> Optional[str]:
        return await self._run('getdel', STRING, lambda c: c.getdel(self._key(key)), to_text)

    async def mget(self, *keys: Any) -> List[Optional[str]]:
        return await self._run('mget', STRING, lambda c: c.mget(self._keys(keys)), to_text_list)

    async def mget_buffer(self, *keys: Any) -> List[Optional[bytes]]:
        return await self._run('mget', STRING, lambda c: c.mget(self._keys(keys)),
                               lambda r: to_text_list(r, binary=True))

    async def mset(self, *args: Any) -> str:
        """``mset(k1, v1, k2, v2)`` or ``mset({k1: v1, k2: v2})``"""
        params = translate_mset(args, self.key_prefix)
        if params.fallback_args is not None:
            return await self._raw('mset', STRING, ['MSET', *params.fallback_args], to_ok)
        return await self._run('mset', STRING, lambda c: c.mset(params.mapping()), to_ok)

    async def msetnx(self, *args: Any) -> int:
        params = translate_mset(args, self.key_prefix)
        if params.fallback_args is not None:
            return await self._raw('msetnx', STRING, ['MSETNX', *params.fallback_args])
        return await self._run('msetnx', STRING, lambda c: c.msetnx(params.mapping()), to_int)

    async def append(self, key: Any, value: Any) -> int:
        return await self._run('append', STRING, lambda c: c.append(self._key(key), normalize_value(value)))

    async def strlen(self, key: Any) -> int:
        return await self._run('strlen', STRING, lambda c: c.strlen(self._key(key)))

    async def getrange(self, key: Any, start: Any, end: Any) -> str:
        return await self._run(
            'getrange', STRING,
            lambda c: c.getrange(self._key(key), translate_numeric(start, integer=True),
                                 translate_numeric(end, integer=True)),
            to_text,
        )

    async def setrange(self, key: Any, offset: Any, value: Any) -> int:
        return await self._run(
            'setrange', STRING,
            lambda c: c.setrange(self._key(key), translate_numeric(offset, integer=True),
                                 normalize_value(value)),
        )

    # Numeric

    async def incr(self, key: Any) -> int:
        return await self._run('incr', NUMERIC, lambda c: c.incr(self._key(key)))

    async def incrby(self, key: Any, increment: Any) -> int:
        amount = translate_numeric(increment, integer=True)
        if not isinstance(amount, int):
            return await self._raw('incrby', NUMERIC, ['INCRBY', self._key(key), normalize_value(amount)])
        return await self._run('incrby', NUMERIC, lambda c: c.incrby(self._key(key), amount))

    async def incrbyfloat(self, key: Any, increment: Any) -> str:
        """Reply is text, as the server sends it"""
        amount = translate_numeric(increment)
        if not isinstance(amount, (int, float)):
            return await self._raw('incrbyfloat', NUMERIC,
                                   ['INCRBYFLOAT', self._key(key), normalize_value(amount)],
                                   to_text)
        return await self._run('incrbyfloat', NUMERIC,
                               lambda c: c.incrbyfloat(self._key(key), float(amount)),
                               format_float)

    async def decr(self, key: Any) -> int:
        return await self._run('decr', NUMERIC, lambda c: c.decr(self._key(key)))

    async def decrby(self, key: Any, decrement: Any) -> int:
        amount = translate_numeric(decrement, integer=True)
        if not isinstance(amount, int):
            return await self._raw('decrby', NUMERIC, ['DECRBY', self._key(key), normalize_value(amount)])
        return await self._run('decrby', NUMERIC, lambda c: c.decrby(self._key(key), amount))
