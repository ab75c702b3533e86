"""
glide-ioredis

ioredis-style client API for asyncio applications, running on the Valkey GLIDE
Python driver: variadic, loosely typed commands and push-style pub/sub events
on top of GLIDE's typed commands and pull-based subscriber connections.
"""

__version__ = "0.1.0"

from .client import Redis
from .config import RedisOptions
from .errors import ConnectionClosedError, GlideIoredisError, ReplyError
from .pipeline import Pipeline, Transaction

__all__ = [
    "__version__",
    "Redis",
    "RedisOptions",
    "Pipeline",
    "Transaction",
    "GlideIoredisError",
    "ReplyError",
    "ConnectionClosedError",
]
