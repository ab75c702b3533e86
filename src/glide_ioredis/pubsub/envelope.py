"""Message envelope handed from the poller to the event surface"""

from dataclasses import dataclass
from typing import Any, Optional


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return str(value).encode()


@dataclass(frozen=True)
class MessageEnvelope:
    """
    One delivered pub/sub message.

    ``generation`` identifies the subscriber connection it arrived on;
    ``sequence`` counts arrivals on that connection, starting at 1.
    """
    channel: bytes
    payload: bytes
    pattern: Optional[bytes]
    sequence: int
    generation: int

    @classmethod
    def from_glide(cls, message: Any, sequence: int, generation: int) -> "MessageEnvelope":
        """Build from a GLIDE ``PubSubMsg`` (``message``, ``channel``, ``pattern``)"""
        pattern = getattr(message, 'pattern', None)
        return cls(
            channel=_as_bytes(message.channel),
            payload=_as_bytes(message.message),
            pattern=_as_bytes(pattern) if pattern is not None else None,
            sequence=sequence,
            generation=generation,
        )

    @property
    def is_pattern(self) -> bool:
        return self.pattern is not None
