"""
Connection status tracking for push-channel observers.

Connection lifecycle is tracked separately from the observer mailbox:
connection_status: DOWN | UP

This is pure data owned by ObserverGateway.
"""
from enum import Enum

class ConnectionStatus(Enum):
    """
    Connection lifecycle status of one WebSocket observer.
    """
    DOWN = "DOWN"  # Not connected, or torn down
    UP = "UP"      # Accepted WebSocket subscribed to the broadcaster
