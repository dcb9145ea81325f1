from .protocol import Message, MessageType, parse_violation_event
from .local_channel import LocalViolationChannel, SubscriptionHandle

__all__ = [
    'Message',
    'MessageType',
    'parse_violation_event',
    'LocalViolationChannel',
    'SubscriptionHandle'
]
