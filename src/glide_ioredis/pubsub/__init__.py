"""
Pub/sub emulation over GLIDE's pull-based subscriber API.
"""

from .envelope import MessageEnvelope
from .poller import PubSubPoller
from .state import SubscriptionManager, SubscriptionPhase, SubscriptionState

__all__ = [
    "MessageEnvelope",
    "PubSubPoller",
    "SubscriptionManager",
    "SubscriptionPhase",
    "SubscriptionState",
]
