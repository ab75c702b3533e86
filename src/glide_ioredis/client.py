"""
ioredis-compatible client over Valkey GLIDE

``Redis`` exposes the ioredis command surface and event model. Every command
runs the same path: translate arguments, await exactly one GLIDE call,
translate the reply. Errors raised by GLIDE propagate unchanged; connection
level failures are additionally emitted as ``error`` events.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

import structlog

from .backend import GlideConnector
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
from .commands.scripting import ScriptCommand
from .config import RedisOptions
from .errors import ConnectionClosedError, get_classifier
from .events import EventEmitter
from .pipeline import Pipeline, Transaction
from .pubsub import SubscriptionManager
from .translator.models import CommandFamily, Encodable
from .translator.parameters import normalize_key, translate_keys
from .translator.results import translate_error

logger = structlog.get_logger()


class Redis(
    StringCommands,
    KeyCommands,
    HashCommands,
    ListCommands,
    SetCommands,
    SortedSetCommands,
    ServerCommands,
    PubSubCommands,
    ScriptingCommands,
    TransactionCommands,
    EventEmitter,
):
    """
    Client with the ioredis calling conventions.

    Construction never blocks. Unless ``lazy_connect`` is set and a loop is
    running, connecting starts in the background right away; otherwise the
    first command connects.

    Args:
        options: RedisOptions; keyword arguments override its fields
        connector: Factory for GLIDE clients (defaults to GlideConnector)
        **kwargs: RedisOptions fields, snake_case or ioredis camelCase

    Status values follow ioredis: wait, connecting, connect, ready, close, end.
    """

    def __init__(self, options: Optional[RedisOptions] = None, *, connector: Any = None, **kwargs: Any):
        EventEmitter.__init__(self)
        if options is None:
            options = RedisOptions.from_kwargs(**kwargs)
        elif kwargs:
            options = options.with_overrides(**kwargs)

        problems = options.validate()
        if problems:
            raise ValueError(f"Invalid Redis options: {'; '.join(problems)}")

        self.options = options
        self.key_prefix = options.key_prefix
        self.connector = connector if connector is not None else GlideConnector(options)
        self.subscriptions = SubscriptionManager(self.connector, self, options.poll_interval)
        self.status = 'wait'
        self.scripts: Dict[str, ScriptCommand] = {}

        self._client: Optional[Any] = None
        self._connect_lock = asyncio.Lock()
        self._connect_task: Optional[asyncio.Task] = None
        self._classifier = get_classifier()

        if not options.lazy_connect:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
            if loop is not None:
                self._connect_task = loop.create_task(self._background_connect())

    def __repr__(self):
        return f"<Redis {self.options.host}:{self.options.port}/{self.options.db} status={self.status}>"

    # Lifecycle

    async def connect(self) -> "Redis":
        """Create the command client; a no-op when already connected"""
        async with self._connect_lock:
            if self._client is not None:
                return self
            self._check_open()

            self._set_status('connecting')
            try:
                self._client = await self.connector.create_client()
            except Exception as e:
                logger.error("Connection failed",
                             host=self.options.host,
                             port=self.options.port,
                             error=str(e),
                             error_type=type(e).__name__)
                self._set_status('close')
                self._emit_error(e)
                raise

            self._set_status('connect')
            logger.info("Connected",
                        host=self.options.host,
                        port=self.options.port,
                        db=self.options.db)
            self._set_status('ready')
        return self

    async def _background_connect(self) -> None:
        try:
            await self.connect()
        except Exception as e:
            # Already logged and emitted; the next command retries
            logger.debug("Background connect did not complete", error=str(e))

    async def disconnect(self) -> None:
        """Close the subscriber and the command client; the client ends"""
        if self.status == 'end':
            return
        await self.subscriptions.close()
        async with self._connect_lock:
            client, self._client = self._client, None
            if client is not None:
                try:
                    await client.close()
                except Exception as e:
                    logger.warning("Closing GLIDE client failed", error=str(e))
            self._set_status('close')
            self._set_status('end')
        logger.info("Disconnected", host=self.options.host, port=self.options.port)

    close = disconnect

    async def quit(self) -> str:
        await self.disconnect()
        return 'OK'

    def duplicate(self, **overrides: Any) -> "Redis":
        """New client with the same options (plus overrides) and no shared state"""
        options = self.options.with_overrides(**overrides)
        connector = None if isinstance(self.connector, GlideConnector) else self.connector
        return Redis(options, connector=connector)

    def pipeline(self, commands: Optional[Iterable[List[Any]]] = None) -> Pipeline:
        pipeline = Pipeline(self)
        for command in commands or ():
            name, *args = command
            getattr(pipeline, name)(*args)
        return pipeline

    def multi(self, commands: Optional[Iterable[List[Any]]] = None) -> Transaction:
        """Pipeline whose commands run as one MULTI/EXEC block"""
        transaction = Transaction(self)
        for command in commands or ():
            name, *args = command
            getattr(transaction, name)(*args)
        return transaction

    async def __aenter__(self) -> "Redis":
        return await self.connect()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    # Command execution

    async def _run(
        self,
        name: str,
        family: CommandFamily,
        operation: Callable[[Any], Awaitable[Any]],
        transform: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        client = await self._ensure_client()
        try:
            result = await operation(client)
        except Exception as e:
            error = translate_error(e)
            self._on_command_error(name, family, error)
            if error is e:
                raise
            raise error from e
        return transform(result) if transform is not None else result

    async def _raw(
        self,
        name: str,
        family: CommandFamily,
        argv: List[Encodable],
        transform: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        """Send ``argv`` unchanged through ``custom_command``"""
        return await self._run(name, family, lambda c: c.custom_command(list(argv)), transform)

    async def _ensure_client(self) -> Any:
        if self._client is None:
            await self.connect()
        return self._client

    def _key(self, key: Any) -> Encodable:
        return normalize_key(key, self.key_prefix)

    def _keys(self, keys: Iterable[Any]) -> List[Encodable]:
        return translate_keys(keys, self.key_prefix)

    def _check_open(self) -> None:
        if self.status == 'end':
            raise ConnectionClosedError()

    def _set_status(self, status: str) -> None:
        self.status = status
        self.emit(status)

    def _emit_error(self, error: BaseException) -> None:
        try:
            self.emit('error', error)
        except Exception as e:
            logger.error("Error listener failed", error=str(e))

    def _on_command_error(self, name: str, family: CommandFamily, error: BaseException) -> None:
        classification = self._classifier.classify(error)
        if classification.should_suppress:
            logger.debug("Command failed during shutdown", command=name, error=str(error))
            return

        logger.debug("Command failed",
                     command=name,
                     family=family.value,
                     error_type=classification.error_type.value,
                     error=str(error))
        if classification.is_connection_level:
            logger.warning("Connection error", command=name, error=str(error))
            self._emit_error(error)
