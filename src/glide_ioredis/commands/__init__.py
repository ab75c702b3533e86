"""
Command families of the ``Redis`` facade.

Each mixin translates arguments, calls the GLIDE client through
``self._run(name, family, operation, transform)`` and shapes the reply. Key
arguments go through ``self._key`` / ``self._keys`` so the key prefix applies.
"""

from .hashes import HashCommands
from .keys import KeyCommands
from .lists import ListCommands
from .pubsub import PubSubCommands
from .scripting import ScriptingCommands
from .server import ServerCommands
from .sets import SetCommands
from .strings import StringCommands
from .transactions import TransactionCommands
from .zsets import SortedSetCommands

__all__ = [
    "HashCommands",
    "KeyCommands",
    "ListCommands",
    "PubSubCommands",
    "ScriptingCommands",
    "ServerCommands",
    "SetCommands",
    "StringCommands",
    "SortedSetCommands",
    "TransactionCommands",
]
