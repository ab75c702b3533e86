"""
Client configuration

``RedisOptions`` mirrors the ioredis constructor options the shim supports.
Parsing connection URLs or environment variables is left to the caller.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, List, Optional

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6379
DEFAULT_POLL_INTERVAL = 0.01
MAX_POLL_INTERVAL = 1.0

# ioredis option names accepted by RedisOptions.from_kwargs
_CAMEL_CASE = {
    'clientName': 'client_name',
    'requestTimeout': 'request_timeout',
    'keyPrefix': 'key_prefix',
    'lazyConnect': 'lazy_connect',
    'pollInterval': 'poll_interval',
}


@dataclass
class RedisOptions:
    """Connection and behaviour options of one client"""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    db: int = 0
    username: Optional[str] = None
    password: Optional[str] = None
    tls: bool = False
    client_name: Optional[str] = None
    request_timeout: Optional[int] = None  # milliseconds
    key_prefix: str = ""
    lazy_connect: bool = False
    poll_interval: float = DEFAULT_POLL_INTERVAL  # seconds

    @classmethod
    def from_kwargs(cls, **kwargs: Any) -> "RedisOptions":
        """
        Build options from keyword arguments.

        Accepts both snake_case and the ioredis camelCase names
        (``keyPrefix``, ``lazyConnect``...). Unknown names raise TypeError.
        """
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for name, value in kwargs.items():
            name = _CAMEL_CASE.get(name, name)
            if name not in known:
                raise TypeError(f"Unknown Redis option: {name}")
            values[name] = value
        return cls(**values)

    def with_overrides(self, **kwargs: Any) -> "RedisOptions":
        return replace(self, **{_CAMEL_CASE.get(k, k): v for k, v in kwargs.items()})

    def validate(self) -> List[str]:
        """
        Validate configuration parameters.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.host:
            errors.append("host cannot be empty")

        if not (1 <= self.port <= 65535):
            errors.append(f"Port must be 1-65535, got {self.port}")

        if self.db < 0:
            errors.append(f"db must be >= 0, got {self.db}")

        if self.username and not self.password:
            errors.append("username requires a password")

        if self.request_timeout is not None and self.request_timeout <= 0:
            errors.append(f"request_timeout must be > 0, got {self.request_timeout}")

        if not (0 < self.poll_interval <= MAX_POLL_INTERVAL):
            errors.append(f"poll_interval must be in (0, {MAX_POLL_INTERVAL}], got {self.poll_interval}")

        return errors
