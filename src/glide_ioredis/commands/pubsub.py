"""Pub/sub commands"""

from typing import Any

from ..translator.models import CommandFamily
from ..translator.parameters import normalize_value

PUBSUB = CommandFamily.PUBSUB


class PubSubCommands:
    """
    Publishing goes through the command client. Subscriptions live on a
    separate subscriber connection owned by ``self.subscriptions``; channel
    names are never prefixed.
    """

    async def publish(self, channel: Any, message: Any) -> int:
        """-> number of receiving clients"""
        return await self._run('publish', PUBSUB,
                               lambda c: c.publish(normalize_value(message), normalize_value(channel)))

    async def subscribe(self, *channels: Any) -> int:
        """-> number of subscribed channels"""
        self._check_open()
        return await self.subscriptions.subscribe(*channels)

    async def psubscribe(self, *patterns: Any) -> int:
        self._check_open()
        return await self.subscriptions.psubscribe(*patterns)

    async def unsubscribe(self, *channels: Any) -> int:
        """No arguments: leave every channel"""
        self._check_open()
        return await self.subscriptions.unsubscribe(*channels)

    async def punsubscribe(self, *patterns: Any) -> int:
        self._check_open()
        return await self.subscriptions.punsubscribe(*patterns)
