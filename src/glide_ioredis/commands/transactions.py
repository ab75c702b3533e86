"""Optimistic locking for transactions"""

from typing import Any

from ..translator.models import CommandFamily
from ..translator.results import to_ok

TRANSACTION = CommandFamily.TRANSACTION


class TransactionCommands:
    """
    ``watch`` marks keys; a following ``multi().exec()`` resolves to None
    when one of them changed. ``multi()`` itself lives on the client.
    """

    async def watch(self, *keys: Any) -> str:
        return await self._run('watch', TRANSACTION, lambda c: c.watch(self._keys(keys)), to_ok)

    async def unwatch(self) -> str:
        return await self._run('unwatch', TRANSACTION, lambda c: c.unwatch(), to_ok)
