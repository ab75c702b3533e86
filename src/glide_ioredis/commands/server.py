"""Server and connection commands"""

from typing import Any, List, Optional, Sequence

from glide import FlushMode

from ..translator.models import CommandFamily
from ..translator.options import token_of
from ..translator.parameters import flatten_arguments, normalize_value
from ..translator.results import decode_reply, format_info, format_time, to_ok, to_text

SERVER = CommandFamily.SERVER
GENERIC = CommandFamily.GENERIC


def _flush_mode(args: Sequence[Any]) -> Optional[FlushMode]:
    token = token_of(args[0]) if args else None
    if token == 'ASYNC':
        return FlushMode.ASYNC
    if token == 'SYNC':
        return FlushMode.SYNC
    return None


class ServerCommands:

    async def ping(self, message: Any = None) -> Optional[str]:
        if message is None:
            return await self._run('ping', SERVER, lambda c: c.ping(), to_text)
        return await self._run('ping', SERVER, lambda c: c.ping(normalize_value(message)), to_text)

    async def echo(self, message: Any) -> Optional[str]:
        return await self._run('echo', SERVER, lambda c: c.echo(normalize_value(message)), to_text)

    async def dbsize(self) -> int:
        return await self._run('dbsize', SERVER, lambda c: c.dbsize())

    async def flushdb(self, *args: Any) -> str:
        mode = _flush_mode(args)
        return await self._run('flushdb', SERVER, lambda c: c.flushdb(mode), to_ok)

    async def flushall(self, *args: Any) -> str:
        mode = _flush_mode(args)
        return await self._run('flushall', SERVER, lambda c: c.flushall(mode), to_ok)

    async def info(self, *sections: Any) -> str:
        """INFO [section ...] -> text"""
        if sections:
            argv = ['INFO', *(normalize_value(s) for s in flatten_arguments(sections))]
            return await self._raw('info', SERVER, argv, format_info)
        return await self._run('info', SERVER, lambda c: c.info(), format_info)

    async def time(self) -> List[str]:
        """-> [seconds, microseconds] as text"""
        return await self._run('time', SERVER, lambda c: c.time(), format_time)

    async def call(self, command: Any, *args: Any) -> Any:
        """
        Send any command as-is. Arguments are normalized like values; key
        prefixes are not applied.
        """
        argv = [normalize_value(command), *(normalize_value(a) for a in flatten_arguments(args))]
        return await self._raw(str(to_text(argv[0])).lower(), GENERIC, argv, decode_reply)

    send_command = call
