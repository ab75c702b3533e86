"""
Subscription State Machine

GLIDE fixes a subscriber's channels and patterns when the connection is
created. This module keeps the desired sets and, whenever they change,
replaces the subscriber connection:

1. compute the new sets (nothing to do if unchanged)
2. stop the poller of the old connection (its in-flight tick completes)
3. create a subscriber for the new sets
4. swap it in and bump the generation
5. close the old connection, start polling the new one

Cycles are serialized by one lock. Messages published between steps 2 and 3
can be lost; none are delivered twice, because a message is only read from
one connection and envelopes of older generations are dropped.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional, Set, Union

import structlog

from ..events import EventEmitter
from ..translator.results import to_text
from .envelope import MessageEnvelope
from .poller import PubSubPoller

logger = structlog.get_logger()

Name = Union[str, bytes]


class SubscriptionPhase(Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class SubscriptionState:
    channels: Set[Name] = field(default_factory=set)
    patterns: Set[Name] = field(default_factory=set)
    generation: int = 0

    @property
    def phase(self) -> SubscriptionPhase:
        if self.channels or self.patterns:
            return SubscriptionPhase.ACTIVE
        return SubscriptionPhase.IDLE


def _names(args: Iterable[Any]) -> List[Name]:
    """Flatten variadic/list channel arguments, dropping repeats; bytes stay bytes"""
    names: List[Name] = []
    for arg in args:
        if isinstance(arg, (list, tuple, set, frozenset)):
            names.extend(_names(arg))
        elif arg is not None:
            names.append(bytes(arg) if isinstance(arg, (bytes, bytearray)) else str(arg))
    return list(dict.fromkeys(names))


class SubscriptionManager:
    """
    Owns the subscriber connection and its poller.

    Args:
        connector: Object with ``create_subscriber(channels, patterns)``
        emitter: Event surface for message and subscription events
        poll_interval: Poller sleep on an empty queue, in seconds
    """

    def __init__(self, connector: Any, emitter: EventEmitter, poll_interval: float = 0.01):
        self.connector = connector
        self.emitter = emitter
        self.poll_interval = poll_interval
        self.state = SubscriptionState()
        self.cycles = 0
        self._subscriber: Optional[Any] = None
        self._poller: Optional[PubSubPoller] = None
        self._lock = asyncio.Lock()

    @property
    def phase(self) -> SubscriptionPhase:
        return self.state.phase

    @property
    def subscriber(self) -> Optional[Any]:
        return self._subscriber

    async def subscribe(self, *channels: Any) -> int:
        names = _names(channels)
        async with self._lock:
            before = set(self.state.channels)
            await self._reconcile(before | set(names), self.state.patterns)
        self._announce('subscribe', names, before, added=True)
        return len(self.state.channels)

    async def psubscribe(self, *patterns: Any) -> int:
        names = _names(patterns)
        async with self._lock:
            before = set(self.state.patterns)
            await self._reconcile(self.state.channels, before | set(names))
        self._announce('psubscribe', names, before, added=True)
        return len(self.state.patterns)

    async def unsubscribe(self, *channels: Any) -> int:
        """No arguments removes every channel"""
        async with self._lock:
            before = set(self.state.channels)
            names = _names(channels) or sorted(before, key=repr)
            await self._reconcile(before - set(names), self.state.patterns)
        self._announce('unsubscribe', names, before, added=False)
        return len(self.state.channels)

    async def punsubscribe(self, *patterns: Any) -> int:
        """No arguments removes every pattern"""
        async with self._lock:
            before = set(self.state.patterns)
            names = _names(patterns) or sorted(before, key=repr)
            await self._reconcile(self.state.channels, before - set(names))
        self._announce('punsubscribe', names, before, added=False)
        return len(self.state.patterns)

    async def close(self) -> None:
        """Stop polling and close the subscriber; subscriptions are discarded"""
        async with self._lock:
            poller, subscriber = self._poller, self._subscriber
            self._poller = None
            self._subscriber = None
            self.state.channels = set()
            self.state.patterns = set()
            self.state.generation += 1
            if poller is not None:
                await poller.stop()
            await self._close_connection(subscriber)

    def _announce(self, event: str, names: List[Name], before: Set[Name], added: bool) -> None:
        count = len(before)
        for name in names:
            if added and name not in before:
                count += 1
            elif not added and name in before:
                count -= 1
            self.emitter.emit(event, to_text(name), count)

    async def _reconcile(self, channels: Set[Name], patterns: Set[Name]) -> None:
        state = self.state
        if channels == state.channels and patterns == state.patterns:
            return

        old_poller, old_subscriber = self._poller, self._subscriber
        self._poller = None
        if old_poller is not None:
            await old_poller.stop()

        if not channels and not patterns:
            self._subscriber = None
            state.channels, state.patterns = set(), set()
            state.generation += 1
            await self._close_connection(old_subscriber)
            logger.info("Pub/sub idle, subscriber closed", generation=state.generation)
            return

        try:
            subscriber = await self.connector.create_subscriber(frozenset(channels), frozenset(patterns))
        except Exception as e:
            self._subscriber = None
            state.channels, state.patterns = set(), set()
            state.generation += 1
            await self._close_connection(old_subscriber)
            logger.error("Subscriber establishment failed, subscriptions cleared",
                         error=str(e),
                         error_type=type(e).__name__)
            self.emitter.emit('error', e)
            raise

        self._subscriber = subscriber
        state.channels, state.patterns = set(channels), set(patterns)
        state.generation += 1
        self.cycles += 1
        await self._close_connection(old_subscriber)

        self._poller = PubSubPoller(
            subscriber,
            state.generation,
            self._deliver,
            self._report,
            poll_interval=self.poll_interval,
        )
        self._poller.start()
        logger.info("Subscriber established",
                    generation=state.generation,
                    channels=len(state.channels),
                    patterns=len(state.patterns))

    async def _close_connection(self, subscriber: Optional[Any]) -> None:
        if subscriber is None:
            return
        try:
            await subscriber.close()
        except Exception as e:
            logger.debug("Closing previous subscriber failed", error=str(e))

    def _deliver(self, envelope: MessageEnvelope) -> None:
        if envelope.generation != self.state.generation:
            logger.debug("Dropped message from stale subscriber",
                         generation=envelope.generation,
                         active_generation=self.state.generation)
            return

        channel = to_text(envelope.channel)
        text = to_text(envelope.payload)
        if envelope.is_pattern:
            pattern = to_text(envelope.pattern)
            self.emitter.emit('pmessage', pattern, channel, text)
            self.emitter.emit('pmessageBuffer', envelope.pattern, envelope.channel, envelope.payload)
        else:
            self.emitter.emit('message', channel, text)
            self.emitter.emit('messageBuffer', envelope.channel, envelope.payload)

    def _report(self, error: BaseException) -> None:
        try:
            self.emitter.emit('error', error)
        except Exception as e:
            logger.error("Error listener failed", error=str(e))
