"""
Pytest configuration for glide-ioredis tests

Unit and contract tests run against an in-memory stand-in for the GLIDE
client (``FakeGlideClient``) injected through a connector, so they need no
server. Integration tests use a real Valkey/Redis server and are skipped when
none answers on VALKEY_HOST:VALKEY_PORT (default localhost:6379).
"""

import asyncio
import fnmatch
import os
import socket
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest
import structlog
from glide import ConditionalChange, RequestError, UpdateOptions

from glide_ioredis import Redis

logger = structlog.get_logger()

VALKEY_HOST = os.environ.get("VALKEY_HOST", "localhost")
VALKEY_PORT = int(os.environ.get("VALKEY_PORT", "6379"))


def wait_for_port(host: str, port: int, timeout: float = 2) -> bool:
    """Wait for a port to become available"""
    start_time = time.time()
    while time.time() - start_time < timeout:
        try:
            with socket.create_connection((host, port), timeout=0.5):
                return True
        except OSError:
            time.sleep(0.1)
    return False


def is_server_available() -> bool:
    return wait_for_port(VALKEY_HOST, VALKEY_PORT, timeout=1)


def _b(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    return str(value).encode()


@dataclass
class FakePubSubMsg:
    """Same attributes as glide's PubSubMsg"""
    message: bytes
    channel: bytes
    pattern: Optional[bytes] = None


class FakeGlideClient:
    """
    In-memory GLIDE client.

    Implements the typed methods the facade calls, returning bytes the way
    GLIDE does. ``replies[name]`` overrides a method's return value (an
    exception instance is raised instead). Every call is recorded in ``calls``.
    """

    def __init__(self, channels=frozenset(), patterns=frozenset()):
        self.calls: List[tuple] = []
        self.replies: Dict[str, Any] = {}
        self.strings: Dict[bytes, bytes] = {}
        self.hashes: Dict[bytes, Dict[bytes, bytes]] = {}
        self.lists: Dict[bytes, List[bytes]] = {}
        self.sets: Dict[bytes, set] = {}
        self.zsets: Dict[bytes, Dict[bytes, float]] = {}
        self.channels = set(channels)
        self.patterns = set(patterns)
        self.inbox = deque()
        self.fetch_error: Optional[BaseException] = None
        self.published: List[tuple] = []
        self.closed = False

    def _call(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        if self.closed:
            raise RequestError("client closed")
        if name in self.replies:
            reply = self.replies[name]
            if isinstance(reply, BaseException):
                raise reply
            return True, reply
        return False, None

    def called(self, name) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]

    # strings

    async def get(self, key):
        hit, reply = self._call('get', key)
        return reply if hit else self.strings.get(_b(key))

    async def set(self, key, value, conditional_set=None, expiry=None, return_old_value=False):
        hit, reply = self._call('set', key, value, conditional_set=conditional_set,
                                expiry=expiry, return_old_value=return_old_value)
        if hit:
            return reply
        key = _b(key)
        old = self.strings.get(key)
        exists = key in self.strings
        if conditional_set == ConditionalChange.ONLY_IF_DOES_NOT_EXIST and exists:
            return old if return_old_value else None
        if conditional_set == ConditionalChange.ONLY_IF_EXISTS and not exists:
            return old if return_old_value else None
        self.strings[key] = _b(value)
        return old if return_old_value else "OK"

    async def getdel(self, key):
        self._call('getdel', key)
        return self.strings.pop(_b(key), None)

    async def mget(self, keys):
        self._call('mget', keys)
        return [self.strings.get(_b(key)) for key in keys]

    async def mset(self, key_value_map):
        self._call('mset', key_value_map)
        for key, value in key_value_map.items():
            self.strings[_b(key)] = _b(value)
        return "OK"

    async def msetnx(self, key_value_map):
        self._call('msetnx', key_value_map)
        if any(_b(key) in self.strings for key in key_value_map):
            return False
        for key, value in key_value_map.items():
            self.strings[_b(key)] = _b(value)
        return True

    async def incrby(self, key, amount):
        hit, reply = self._call('incrby', key, amount)
        if hit:
            return reply
        value = int(self.strings.get(_b(key), b'0')) + amount
        self.strings[_b(key)] = _b(value)
        return value

    async def incr(self, key):
        return await self.incrby(key, 1)

    async def decr(self, key):
        return await self.incrby(key, -1)

    async def decrby(self, key, amount):
        return await self.incrby(key, -amount)

    async def incrbyfloat(self, key, amount):
        self._call('incrbyfloat', key, amount)
        value = float(self.strings.get(_b(key), b'0')) + amount
        self.strings[_b(key)] = _b(repr(value))
        return value

    async def append(self, key, value):
        self._call('append', key, value)
        self.strings[_b(key)] = self.strings.get(_b(key), b'') + _b(value)
        return len(self.strings[_b(key)])

    async def strlen(self, key):
        self._call('strlen', key)
        return len(self.strings.get(_b(key), b''))

    # keys

    def _stores(self):
        return (self.strings, self.hashes, self.lists, self.sets, self.zsets)

    async def delete(self, keys):
        self._call('delete', keys)
        removed = 0
        for key in keys:
            for store in self._stores():
                if store.pop(_b(key), None) is not None:
                    removed += 1
        return removed

    async def exists(self, keys):
        self._call('exists', keys)
        return sum(1 for key in keys for store in self._stores() if _b(key) in store)

    async def expire(self, key, seconds, option=None):
        self._call('expire', key, seconds, option)
        return any(_b(key) in store for store in self._stores())

    async def type(self, key):
        self._call('type', key)
        names = (b'string', b'hash', b'list', b'set', b'zset')
        for name, store in zip(names, self._stores()):
            if _b(key) in store:
                return name
        return b'none'

    async def scan(self, cursor, match=None, count=None, type=None):
        hit, reply = self._call('scan', cursor, match=match, count=count, type=type)
        if hit:
            return reply
        keys = sorted(key for store in self._stores() for key in store)
        if match is not None:
            keys = [key for key in keys if fnmatch.fnmatchcase(key.decode(), str(match))]
        return [b'0', keys]

    # hashes

    async def hset(self, key, field_value_map):
        hit, reply = self._call('hset', key, field_value_map)
        if hit:
            return reply
        fields = self.hashes.setdefault(_b(key), {})
        added = 0
        for field_name, value in field_value_map.items():
            if _b(field_name) not in fields:
                added += 1
            fields[_b(field_name)] = _b(value)
        return added

    async def hget(self, key, field_name):
        self._call('hget', key, field_name)
        return self.hashes.get(_b(key), {}).get(_b(field_name))

    async def hgetall(self, key):
        self._call('hgetall', key)
        return dict(self.hashes.get(_b(key), {}))

    async def hmget(self, key, fields):
        self._call('hmget', key, fields)
        stored = self.hashes.get(_b(key), {})
        return [stored.get(_b(field_name)) for field_name in fields]

    async def hdel(self, key, fields):
        self._call('hdel', key, fields)
        stored = self.hashes.get(_b(key), {})
        return sum(1 for field_name in fields if stored.pop(_b(field_name), None) is not None)

    async def hexists(self, key, field_name):
        self._call('hexists', key, field_name)
        return _b(field_name) in self.hashes.get(_b(key), {})

    async def hlen(self, key):
        self._call('hlen', key)
        return len(self.hashes.get(_b(key), {}))

    async def hkeys(self, key):
        self._call('hkeys', key)
        return list(self.hashes.get(_b(key), {}))

    async def hincrby(self, key, field_name, amount):
        self._call('hincrby', key, field_name, amount)
        fields = self.hashes.setdefault(_b(key), {})
        value = int(fields.get(_b(field_name), b'0')) + amount
        fields[_b(field_name)] = _b(value)
        return value

    # lists

    async def lpush(self, key, elements):
        self._call('lpush', key, elements)
        stored = self.lists.setdefault(_b(key), [])
        for element in elements:
            stored.insert(0, _b(element))
        return len(stored)

    async def rpush(self, key, elements):
        self._call('rpush', key, elements)
        stored = self.lists.setdefault(_b(key), [])
        stored.extend(_b(element) for element in elements)
        return len(stored)

    async def lrange(self, key, start, end):
        self._call('lrange', key, start, end)
        stored = self.lists.get(_b(key), [])
        end = len(stored) + end if end < 0 else end
        return stored[start:end + 1]

    async def lpop(self, key):
        self._call('lpop', key)
        stored = self.lists.get(_b(key))
        return stored.pop(0) if stored else None

    async def lpop_count(self, key, count):
        self._call('lpop_count', key, count)
        stored = self.lists.get(_b(key))
        if not stored:
            return None
        popped, self.lists[_b(key)] = stored[:count], stored[count:]
        return popped

    async def llen(self, key):
        self._call('llen', key)
        return len(self.lists.get(_b(key), []))

    async def linsert(self, key, position, pivot, element):
        self._call('linsert', key, position, pivot, element)
        return 1

    async def blpop(self, keys, timeout):
        self._call('blpop', keys, timeout)
        for key in keys:
            stored = self.lists.get(_b(key))
            if stored:
                return [_b(key), stored.pop(0)]
        return None

    async def brpop(self, keys, timeout):
        self._call('brpop', keys, timeout)
        for key in keys:
            stored = self.lists.get(_b(key))
            if stored:
                return [_b(key), stored.pop()]
        return None

    # sets

    async def sadd(self, key, members):
        self._call('sadd', key, members)
        stored = self.sets.setdefault(_b(key), set())
        before = len(stored)
        stored.update(_b(member) for member in members)
        return len(stored) - before

    async def srem(self, key, members):
        self._call('srem', key, members)
        stored = self.sets.get(_b(key), set())
        before = len(stored)
        stored.difference_update(_b(member) for member in members)
        return before - len(stored)

    async def smembers(self, key):
        self._call('smembers', key)
        return set(self.sets.get(_b(key), set()))

    async def sismember(self, key, member):
        self._call('sismember', key, member)
        return _b(member) in self.sets.get(_b(key), set())

    async def scard(self, key):
        self._call('scard', key)
        return len(self.sets.get(_b(key), set()))

    # sorted sets

    def _ordered(self, key):
        stored = self.zsets.get(_b(key), {})
        return sorted(stored.items(), key=lambda item: (item[1], item[0]))

    async def zadd(self, key, members_scores, existing_options=None, update_condition=None, changed=False):
        hit, reply = self._call('zadd', key, members_scores, existing_options=existing_options,
                                update_condition=update_condition, changed=changed)
        if hit:
            return reply
        stored = self.zsets.setdefault(_b(key), {})
        added = updated = 0
        for member, score in members_scores.items():
            member, score = _b(member), float(score)
            exists = member in stored
            if existing_options == ConditionalChange.ONLY_IF_DOES_NOT_EXIST and exists:
                continue
            if existing_options == ConditionalChange.ONLY_IF_EXISTS and not exists:
                continue
            if exists and update_condition == UpdateOptions.GREATER_THAN and score <= stored[member]:
                continue
            if exists and update_condition == UpdateOptions.LESS_THAN and score >= stored[member]:
                continue
            if not exists:
                added += 1
            elif stored[member] != score:
                updated += 1
            stored[member] = score
        return added + updated if changed else added

    async def zadd_incr(self, key, member, increment, existing_options=None, update_condition=None):
        self._call('zadd_incr', key, member, increment,
                   existing_options=existing_options, update_condition=update_condition)
        stored = self.zsets.setdefault(_b(key), {})
        stored[_b(member)] = stored.get(_b(member), 0.0) + float(increment)
        return stored[_b(member)]

    async def zincrby(self, key, increment, member):
        self._call('zincrby', key, increment, member)
        stored = self.zsets.setdefault(_b(key), {})
        stored[_b(member)] = stored.get(_b(member), 0.0) + increment
        return stored[_b(member)]

    async def zscore(self, key, member):
        self._call('zscore', key, member)
        return self.zsets.get(_b(key), {}).get(_b(member))

    async def zmscore(self, key, members):
        self._call('zmscore', key, members)
        stored = self.zsets.get(_b(key), {})
        return [stored.get(_b(member)) for member in members]

    async def zcard(self, key):
        self._call('zcard', key)
        return len(self.zsets.get(_b(key), {}))

    async def zrem(self, key, members):
        self._call('zrem', key, members)
        stored = self.zsets.get(_b(key), {})
        return sum(1 for member in members if stored.pop(_b(member), None) is not None)

    def _index_range(self, key, range_query, reverse):
        ordered = self._ordered(key)
        if reverse:
            ordered.reverse()
        start, end = range_query.start, range_query.end
        start = max(len(ordered) + start, 0) if start < 0 else start
        end = len(ordered) + end if end < 0 else end
        return ordered[start:end + 1]

    async def zrange(self, key, range_query, reverse=False):
        hit, reply = self._call('zrange', key, range_query, reverse=reverse)
        if hit:
            return reply
        return [member for member, _ in self._index_range(key, range_query, reverse)]

    async def zrange_withscores(self, key, range_query, reverse=False):
        hit, reply = self._call('zrange_withscores', key, range_query, reverse=reverse)
        if hit:
            return reply
        return dict(self._index_range(key, range_query, reverse))

    async def zpopmin(self, key, count=None):
        self._call('zpopmin', key, count)
        popped = self._ordered(key)[:count or 1]
        for member, _ in popped:
            del self.zsets[_b(key)][member]
        return dict(popped)

    async def bzpopmin(self, keys, timeout):
        self._call('bzpopmin', keys, timeout)
        for key in keys:
            ordered = self._ordered(key)
            if ordered:
                member, score = ordered[0]
                del self.zsets[_b(key)][member]
                return [_b(key), member, score]
        return None

    # server / generic

    async def ping(self, message=None):
        self._call('ping', message)
        return _b(message) if message is not None else b'PONG'

    async def echo(self, message):
        self._call('echo', message)
        return _b(message)

    async def dbsize(self):
        self._call('dbsize')
        return sum(len(store) for store in self._stores())

    async def flushdb(self, flush_mode=None):
        self._call('flushdb', flush_mode)
        for store in self._stores():
            store.clear()
        return "OK"

    async def custom_command(self, command_args):
        hit, reply = self._call('custom_command', command_args)
        return reply if hit else None

    # transactions and scripts

    async def watch(self, keys):
        self._call('watch', keys)
        return "OK"

    async def unwatch(self):
        self._call('unwatch')
        return "OK"

    async def exec(self, batch, raise_on_error, options=None):
        """Replies come from ``replies['exec']``; by default every command replies OK"""
        hit, reply = self._call('exec', batch, raise_on_error=raise_on_error)
        return reply if hit else [b"OK"] * len(batch.commands)

    async def invoke_script(self, script, keys=None, args=None):
        hit, reply = self._call('invoke_script', script, keys=keys, args=args)
        return reply if hit else None

    async def publish(self, message, channel):
        self._call('publish', message, channel)
        self.published.append((channel, message))
        return 1

    async def close(self, err_message=None):
        self.closed = True

    # pub/sub pull API

    def try_get_pubsub_message(self):
        if self.fetch_error is not None:
            raise self.fetch_error
        if self.closed:
            raise RequestError("subscriber closed")
        return self.inbox.popleft() if self.inbox else None

    def deliver(self, channel, message, pattern=None):
        self.inbox.append(FakePubSubMsg(message=_b(message), channel=_b(channel),
                                        pattern=_b(pattern) if pattern is not None else None))


class FakeConnector:
    """Hands out FakeGlideClients and remembers them"""

    def __init__(self):
        self.clients: List[FakeGlideClient] = []
        self.subscribers: List[FakeGlideClient] = []
        self.client_error: Optional[BaseException] = None
        self.subscriber_error: Optional[BaseException] = None

    async def create_client(self) -> FakeGlideClient:
        if self.client_error is not None:
            raise self.client_error
        client = FakeGlideClient()
        self.clients.append(client)
        return client

    async def create_subscriber(self, channels, patterns) -> FakeGlideClient:
        if self.subscriber_error is not None:
            raise self.subscriber_error
        subscriber = FakeGlideClient(channels, patterns)
        self.subscribers.append(subscriber)
        return subscriber

    @property
    def client(self) -> FakeGlideClient:
        return self.clients[-1]

    @property
    def subscriber(self) -> Optional[FakeGlideClient]:
        return self.subscribers[-1] if self.subscribers else None


async def _eventually(predicate, timeout: float = 1.0, interval: float = 0.005):
    """Wait until ``predicate()`` is truthy or fail the test"""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            pytest.fail("condition not reached in time")
        await asyncio.sleep(interval)


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def redis(connector) -> Redis:
    """Lazily connecting client on the fake connector"""
    return Redis(connector=connector, lazy_connect=True, poll_interval=0.001)


@pytest.fixture
def eventually():
    return _eventually


@pytest.fixture
def fake_client_factory():
    return FakeGlideClient


@pytest.fixture
def server_options():
    if not is_server_available():
        pytest.skip(f"No Valkey/Redis server at {VALKEY_HOST}:{VALKEY_PORT}")
    return {"host": VALKEY_HOST, "port": VALKEY_PORT}
