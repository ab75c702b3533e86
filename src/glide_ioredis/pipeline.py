"""
Command pipelines and transactions

``Pipeline`` queues commands and runs them in order on ``exec()``, returning
ioredis-style ``[[error, result], ...]`` pairs. Execution is not atomic; one
failing command does not stop the rest.

``Transaction`` (``redis.multi()``) sends the queue as one MULTI/EXEC block
through a GLIDE atomic batch.
"""

import inspect
from functools import partial
from types import FunctionType, MethodType
from typing import Any, Callable, Dict, List, Optional

import structlog
from glide import Batch

from .commands import (
    HashCommands,
    KeyCommands,
    ListCommands,
    PubSubCommands,
    ScriptingCommands,
    ServerCommands,
    SetCommands,
    SortedSetCommands,
    StringCommands,
    TransactionCommands,
)
from .commands.scripting import script_target
from .translator.models import CommandFamily, CommandInvocation
from .translator.results import translate_error

logger = structlog.get_logger()

_NUMERIC = {'incr', 'incrby', 'incrbyfloat', 'decr', 'decrby'}

# Commands that cannot be part of a MULTI/EXEC block
_NOT_TRANSACTIONAL = {'watch', 'unwatch', 'subscribe', 'psubscribe', 'unsubscribe', 'punsubscribe'}


def _family_tables() -> Dict[str, CommandFamily]:
    families = {}
    for mixin, family in (
        (StringCommands, CommandFamily.STRING),
        (KeyCommands, CommandFamily.KEY),
        (HashCommands, CommandFamily.HASH),
        (ListCommands, CommandFamily.LIST),
        (SetCommands, CommandFamily.SET),
        (SortedSetCommands, CommandFamily.SORTED_SET),
        (ServerCommands, CommandFamily.SERVER),
        (PubSubCommands, CommandFamily.PUBSUB),
        (ScriptingCommands, CommandFamily.SCRIPTING),
        (TransactionCommands, CommandFamily.TRANSACTION),
    ):
        for name, member in vars(mixin).items():
            if not name.startswith('_') and inspect.iscoroutinefunction(member):
                families[name] = CommandFamily.NUMERIC if name in _NUMERIC else family
    return families


COMMAND_FAMILIES = _family_tables()


def command_family(name: str) -> CommandFamily:
    return COMMAND_FAMILIES.get(name, CommandFamily.GENERIC)


class Pipeline:
    """
    ``redis.pipeline().set("a", 1).get("a").exec()``

    Every command method of the client is available and returns the pipeline
    for chaining, including commands added with ``define_command``.
    """

    def __init__(self, redis):
        self.redis = redis
        self.queue: List[CommandInvocation] = []

    def __len__(self):
        return len(self.queue)

    @property
    def length(self) -> int:
        return len(self.queue)

    def __getattr__(self, name: str):
        if not self._accepts(name):
            raise AttributeError(f"'{type(self).__name__}' has no command '{name}'")

        family = CommandFamily.SCRIPTING if name not in COMMAND_FAMILIES else command_family(name)

        def enqueue(*args: Any, **kwargs: Any) -> "Pipeline":
            self.queue.append(CommandInvocation(name, family, args, kwargs))
            return self

        return enqueue

    def _accepts(self, name: str) -> bool:
        if name.startswith('_'):
            return False
        return name in COMMAND_FAMILIES or script_target(self.redis, name) is not None

    def discard(self) -> None:
        self.queue = []

    async def exec(self) -> List[List[Any]]:
        """Run the queued commands in order -> ``[[error, result], ...]``"""
        queued, self.queue = self.queue, []
        results: List[List[Any]] = []
        for invocation in queued:
            method = getattr(self.redis, invocation.name)
            try:
                value = await method(*invocation.args, **dict(invocation.kwargs))
            except Exception as e:
                logger.debug("Pipelined command failed", error=str(e), **invocation.describe())
                results.append([translate_error(e), None])
            else:
                results.append([None, value])
        return results


class BatchRecorder:
    """
    Stands in for the client while a transaction is assembled.

    The client's command methods run unchanged against the recorder: the
    GLIDE operation each one would await is added to ``batch`` instead, and
    its reply transform is kept for the batch result.
    """

    batching = True

    def __init__(self, redis: Any, batch: Batch):
        self._redis = redis
        self.batch = batch
        self.transforms: List[Optional[Callable[[Any], Any]]] = []

    def __getattr__(self, name: str) -> Any:
        attribute = inspect.getattr_static(type(self._redis), name, None)
        if isinstance(attribute, FunctionType):
            return MethodType(attribute, self)
        target = script_target(self._redis, name)
        if target is not None:
            script_name, binary = target
            return partial(self._run_script, script_name, binary=binary)
        return getattr(self._redis, name)

    async def _run(
        self,
        name: str,
        family: CommandFamily,
        operation: Callable[[Any], Any],
        transform: Optional[Callable[[Any], Any]] = None,
    ) -> None:
        operation(self.batch)
        self.transforms.append(transform)

    async def record(self, invocation: CommandInvocation) -> None:
        method = getattr(self, invocation.name)
        await method(*invocation.args, **dict(invocation.kwargs))

    def results(self, replies: List[Any]) -> List[List[Any]]:
        results: List[List[Any]] = []
        for reply, transform in zip(replies, self.transforms):
            if isinstance(reply, Exception):
                results.append([translate_error(reply), None])
            elif transform is not None:
                results.append([None, transform(reply)])
            else:
                results.append([None, reply])
        return results


class Transaction(Pipeline):
    """
    ``redis.multi().set("a", 1).incr("a").exec()``

    The queue runs atomically. ``exec()`` returns ``[[error, result], ...]``
    (a command failing at run time does not roll back the others), or None
    when a key passed to ``watch`` changed before EXEC.
    """

    def _accepts(self, name: str) -> bool:
        return name not in _NOT_TRANSACTIONAL and super()._accepts(name)

    async def exec(self) -> Optional[List[List[Any]]]:
        queued, self.queue = self.queue, []
        if not queued:
            return []

        recorder = BatchRecorder(self.redis, Batch(is_atomic=True))
        for invocation in queued:
            await recorder.record(invocation)

        client = await self.redis._ensure_client()
        try:
            replies = await client.exec(recorder.batch, raise_on_error=False)
        except Exception as e:
            error = translate_error(e)
            self.redis._on_command_error('exec', CommandFamily.TRANSACTION, error)
            if error is e:
                raise
            raise error from e

        if replies is None:
            logger.info("Transaction discarded, watched key changed", commands=len(queued))
            return None
        return recorder.results(replies)
