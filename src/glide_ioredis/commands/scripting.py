"""Lua scripting commands"""

import functools
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Tuple

import structlog
from glide import Script

from ..translator.models import CommandFamily, Encodable
from ..translator.parameters import flatten_arguments, normalize_value, translate_numeric
from ..translator.results import decode_reply, to_text

logger = structlog.get_logger()

SCRIPTING = CommandFamily.SCRIPTING
BUFFER_SUFFIX = '_buffer'


@dataclass
class ScriptCommand:
    """A Lua script registered with ``define_command``"""
    name: str
    lua: str
    number_of_keys: Optional[int] = None
    script: Script = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.script = Script(self.lua)

    @property
    def sha(self) -> str:
        return self.script.get_hash()


def split_script_args(numkeys: Any, args: Sequence[Any]) -> Tuple[Optional[int], List[Any], List[Any]]:
    """
    ``(count, keys, values)`` for EVAL-style arguments.

    ``count`` is None when ``numkeys`` is not a usable key count; nothing is
    split off then and the server reports the problem.
    """
    flat = flatten_arguments(args)
    count = translate_numeric(numkeys, integer=True)
    if isinstance(count, bool) or not isinstance(count, int) or not 0 <= count <= len(flat):
        return None, [], flat
    return count, flat[:count], flat[count:]


def script_target(redis: Any, name: str) -> Optional[Tuple[str, bool]]:
    """``(script name, binary)`` when ``name`` is a defined script command"""
    scripts = getattr(redis, 'scripts', None) or {}
    if name in scripts:
        return name, False
    if name.endswith(BUFFER_SUFFIX) and name[:-len(BUFFER_SUFFIX)] in scripts:
        return name[:-len(BUFFER_SUFFIX)], True
    return None


class ScriptingCommands:

    # Set by the transaction recorder; scripts then go out as EVAL
    batching = False

    async def eval(self, script: Any, numkeys: Any, *args: Any) -> Any:
        """EVAL script numkeys [key ...] [arg ...]; the key prefix applies to the keys"""
        return await self._raw('eval', SCRIPTING,
                               ['EVAL', normalize_value(script), *self._script_tail(numkeys, args)],
                               decode_reply)

    async def evalsha(self, sha: Any, numkeys: Any, *args: Any) -> Any:
        return await self._raw('evalsha', SCRIPTING,
                               ['EVALSHA', normalize_value(sha), *self._script_tail(numkeys, args)],
                               decode_reply)

    async def script(self, subcommand: Any, *args: Any) -> Any:
        """SCRIPT LOAD|EXISTS|FLUSH|KILL [arg ...]"""
        argv = ['SCRIPT', normalize_value(subcommand), *(normalize_value(a) for a in flatten_arguments(args))]
        return await self._raw('script', SCRIPTING, argv, decode_reply)

    async def script_load(self, script: Any) -> str:
        """-> SHA1 of the loaded script"""
        return await self._raw('script', SCRIPTING, ['SCRIPT', 'LOAD', normalize_value(script)], to_text)

    def define_command(
        self,
        name: str,
        definition: Optional[Mapping[str, Any]] = None,
        *,
        lua: Optional[str] = None,
        number_of_keys: Optional[int] = None,
    ) -> None:
        """
        Register a Lua script as a client method.

        ``redis.define_command("hello", lua="return ARGV[1]", number_of_keys=0)``
        makes ``await redis.hello("x")`` available, plus ``hello_buffer`` for
        raw replies. The ioredis form ``{"lua": ..., "numberOfKeys": ...}`` is
        accepted as ``definition``. Without a key count the first argument of
        every call is the count.

        Calls run through GLIDE's script cache (EVALSHA, loading the script
        when the server does not know it). Inside a transaction the script is
        sent as EVAL.
        """
        options = dict(definition or {})
        if lua is None:
            lua = options.get('lua')
        if number_of_keys is None:
            number_of_keys = options.get('numberOfKeys', options.get('number_of_keys'))
        if not lua:
            raise ValueError(f"define_command({name!r}) needs the Lua source")
        if not name.isidentifier() or name.startswith('_') or hasattr(type(self), name):
            raise ValueError(f"{name!r} cannot be used as a command name")

        self.scripts[name] = ScriptCommand(name, lua, number_of_keys)
        setattr(self, name, functools.partial(self._run_script, name))
        setattr(self, name + BUFFER_SUFFIX, functools.partial(self._run_script, name, binary=True))
        logger.debug("Script command defined", command=name, number_of_keys=number_of_keys)

    defineCommand = define_command

    def _script_tail(self, numkeys: Any, args: Sequence[Any]) -> List[Encodable]:
        count, keys, values = split_script_args(numkeys, args)
        tail = [normalize_value(numkeys if count is None else count)]
        tail += [self._key(k) for k in keys]
        tail += [normalize_value(v) for v in values]
        return tail

    async def _run_script(self, name: str, *args: Any, binary: bool = False) -> Any:
        command: ScriptCommand = self.scripts[name]
        numkeys: Any = command.number_of_keys
        if numkeys is None:
            args = flatten_arguments(args)
            numkeys, args = (args[0], args[1:]) if args else (0, [])

        def transform(reply: Any) -> Any:
            return decode_reply(reply, binary)

        count, keys, values = split_script_args(numkeys, args)
        if self.batching or count is None:
            return await self._raw(name, SCRIPTING, ['EVAL', command.lua, *self._script_tail(numkeys, args)],
                                   transform)

        keys = [self._key(k) for k in keys]
        values = [normalize_value(v) for v in values]
        return await self._run(name, SCRIPTING,
                               lambda c: c.invoke_script(command.script, keys=keys, args=values),
                               transform)

