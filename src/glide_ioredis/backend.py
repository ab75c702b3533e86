"""
GLIDE connector

Builds GLIDE clients from ``RedisOptions``. A subscriber client carries its
channel and pattern sets in its configuration; they cannot be changed after
creation, so every change in subscriptions means a new subscriber.
"""

from typing import AbstractSet, Iterable, Optional, Set, Tuple, Union

import structlog
from glide import (
    GlideClient,
    GlideClientConfiguration,
    NodeAddress,
    ServerCredentials,
)

from .config import RedisOptions

logger = structlog.get_logger()

Name = Union[str, bytes]


def split_names(names: Iterable[Name]) -> Tuple[Set[str], Set[bytes]]:
    """Names carried as text, and binary names that do not decode as UTF-8"""
    text: Set[str] = set()
    binary: Set[bytes] = set()
    for name in names:
        if isinstance(name, bytes):
            try:
                text.add(name.decode("utf-8"))
            except UnicodeDecodeError:
                binary.add(name)
        else:
            text.add(name)
    return text, binary


class GlideConnector:
    """
    Creates command and subscriber clients.

    Tests replace it with a connector returning in-memory fakes; any object
    with the same two coroutine methods works.
    """

    def __init__(self, options: RedisOptions):
        self.options = options

    def build_configuration(
        self,
        channels: Optional[AbstractSet[str]] = None,
        patterns: Optional[AbstractSet[str]] = None,
    ) -> GlideClientConfiguration:
        options = self.options
        credentials = None
        if options.password:
            credentials = ServerCredentials(password=options.password, username=options.username)

        subscriptions = None
        if channels or patterns:
            modes = GlideClientConfiguration.PubSubChannelModes
            subscriptions = GlideClientConfiguration.PubSubSubscriptions(
                channels_and_patterns={
                    modes.Exact: set(channels or ()),
                    modes.Pattern: set(patterns or ()),
                },
                callback=None,
                context=None,
            )

        return GlideClientConfiguration(
            addresses=[NodeAddress(options.host, options.port)],
            use_tls=options.tls,
            credentials=credentials,
            database_id=options.db,
            client_name=options.client_name,
            request_timeout=options.request_timeout,
            pubsub_subscriptions=subscriptions,
        )

    async def create_client(self) -> GlideClient:
        """Command client (no subscriptions)"""
        logger.debug("Creating GLIDE client", host=self.options.host, port=self.options.port,
                     db=self.options.db)
        return await GlideClient.create(self.build_configuration())

    async def create_subscriber(
        self,
        channels: AbstractSet[Name],
        patterns: AbstractSet[Name],
    ) -> GlideClient:
        """
        Subscriber client bound to exactly ``channels`` and ``patterns``.

        Names that are not valid UTF-8 cannot travel in the configuration;
        they are subscribed on the new client before it is handed out.
        """
        channel_text, channel_binary = split_names(channels)
        pattern_text, pattern_binary = split_names(patterns)
        logger.info("Creating GLIDE subscriber",
                    channels=sorted(map(repr, channels)),
                    patterns=sorted(map(repr, patterns)))
        client = await GlideClient.create(self.build_configuration(channel_text, pattern_text))
        timeout_ms = self.options.request_timeout or 0
        try:
            if channel_binary:
                await client.subscribe(channel_binary, timeout_ms=timeout_ms)
            if pattern_binary:
                await client.psubscribe(pattern_binary, timeout_ms=timeout_ms)
        except Exception:
            await client.close()
            raise
        return client
