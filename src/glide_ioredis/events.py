"""
Event surface

Node-style emitter used for connection lifecycle and pub/sub events.
Listeners are called synchronously in registration order; a coroutine
returned by a listener is scheduled on the running loop.
"""

import asyncio
import inspect
from typing import Any, Callable, Dict, List, Optional, Set

import structlog

logger = structlog.get_logger()

Listener = Callable[..., Any]


class EventEmitter:

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}
        self._once: Dict[str, List[Listener]] = {}
        self._pending: Set[asyncio.Task] = set()

    def on(self, event: str, listener: Listener) -> "EventEmitter":
        """Register ``listener`` for ``event``; returns self for chaining"""
        self._listeners.setdefault(event, []).append(listener)
        return self

    add_listener = on

    def once(self, event: str, listener: Listener) -> "EventEmitter":
        self.on(event, listener)
        self._once.setdefault(event, []).append(listener)
        return self

    def off(self, event: str, listener: Listener) -> "EventEmitter":
        """Remove one registration of ``listener``; unknown listeners are ignored"""
        listeners = self._listeners.get(event)
        if listeners and listener in listeners:
            listeners.remove(listener)
            if not listeners:
                del self._listeners[event]
        once = self._once.get(event)
        if once and listener in once:
            once.remove(listener)
        return self

    remove_listener = off

    def remove_all_listeners(self, event: Optional[str] = None) -> "EventEmitter":
        if event is None:
            self._listeners.clear()
            self._once.clear()
        else:
            self._listeners.pop(event, None)
            self._once.pop(event, None)
        return self

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def listeners(self, event: str) -> List[Listener]:
        return list(self._listeners.get(event, ()))

    def emit(self, event: str, *args: Any) -> bool:
        """
        Call every listener of ``event`` with ``args``.

        Returns:
            True if the event had listeners

        Raises:
            Whatever a listener raises; the remaining listeners are not called.
            An ``error`` event without listeners is logged instead.
        """
        listeners = self.listeners(event)
        if not listeners:
            if event == 'error':
                error = args[0] if args else None
                logger.warning("Unhandled error event", error=str(error),
                               error_type=type(error).__name__)
            return False

        for listener in listeners:
            once = self._once.get(event)
            if once and listener in once:
                self.off(event, listener)
            result = listener(*args)
            if inspect.isawaitable(result):
                self._schedule(event, result)
        return True

    def _schedule(self, event: str, awaitable) -> None:
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)
        task.add_done_callback(lambda done: self._finished(event, done))

    def _finished(self, event: str, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            return
        logger.error("Async listener failed", event_name=event, error=str(error))
        if event != 'error':
            self.emit('error', error)
