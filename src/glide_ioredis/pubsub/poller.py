"""
PubSub Poller

Turns GLIDE's pull API (``try_get_pubsub_message``) into push delivery.

One asyncio task per subscriber connection. Each tick fetches at most one
message; after a message it yields to the loop, on an empty queue it sleeps
``poll_interval``. A failing fetch ends polling (the connection is gone or
being replaced), a failing listener does not.
"""

import asyncio
from typing import Any, Callable, Optional

import structlog

from .envelope import MessageEnvelope

logger = structlog.get_logger()


class PubSubPoller:
    """
    Message pump for one subscriber.

    Args:
        subscriber: GLIDE client created with pub/sub subscriptions
        generation: Generation tag stamped on every envelope
        deliver: Called with each MessageEnvelope, in arrival order
        on_error: Called with exceptions raised by ``deliver``
        poll_interval: Sleep between empty polls, in seconds
    """

    def __init__(
        self,
        subscriber: Any,
        generation: int,
        deliver: Callable[[MessageEnvelope], None],
        on_error: Callable[[BaseException], None],
        poll_interval: float = 0.01,
    ):
        self.subscriber = subscriber
        self.generation = generation
        self.poll_interval = poll_interval
        self._deliver = deliver
        self._on_error = on_error
        self._task: Optional[asyncio.Task] = None
        self._stopping = False
        self.delivered = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is not None:
            return
        self._stopping = False
        self._task = asyncio.ensure_future(self._run())
        logger.debug("Pub/sub poller started", generation=self.generation)

    async def stop(self) -> None:
        """Stop polling; returns once the in-flight tick has completed"""
        self._stopping = True
        task = self._task
        if task is None:
            return
        await task
        logger.debug("Pub/sub poller stopped", generation=self.generation,
                     delivered=self.delivered)

    def poll_once(self) -> Optional[MessageEnvelope]:
        """Fetch and deliver at most one message; raises if the fetch fails"""
        message = self.subscriber.try_get_pubsub_message()
        if message is None:
            return None

        self.delivered += 1
        envelope = MessageEnvelope.from_glide(message, self.delivered, self.generation)
        try:
            self._deliver(envelope)
        except Exception as e:
            logger.error("Pub/sub listener failed",
                         channel=envelope.channel,
                         generation=self.generation,
                         error=str(e))
            self._on_error(e)
        return envelope

    async def _run(self) -> None:
        while not self._stopping:
            try:
                envelope = self.poll_once()
            except Exception as e:
                logger.warning("Pub/sub fetch failed, polling stopped",
                               generation=self.generation,
                               error=str(e),
                               error_type=type(e).__name__)
                return

            if envelope is None:
                await asyncio.sleep(self.poll_interval)
            else:
                await asyncio.sleep(0)
